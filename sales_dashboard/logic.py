import calendar
from datetime import datetime

from .models import ListQuery

# (lower, upper) price bounds; a band holds lower < price <= upper, except the
# first which also holds 0 and the last which has no upper bound.
PRICE_BANDS = tuple(
    (i * 100, (i + 1) * 100 if i < 9 else None) for i in range(10)
)

PIE_COLORS = (
    "#4e79a7",
    "#f28e2b",
    "#e15759",
    "#76b7b2",
    "#59a14f",
    "#edc948",
    "#b07aa1",
    "#ff9da7",
    "#9c755f",
    "#bab0ac",
)


def month_range(year: int, month: int) -> tuple[str, str]:
    """Half-open [start, end) bounds of ``month`` in ``year`` as ISO timestamps."""
    if not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12")
    start = datetime(year, month, 1)
    if month == 12:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, month + 1, 1)
    return start.isoformat(timespec="seconds"), end.isoformat(timespec="seconds")


def month_options() -> list[tuple[int, str]]:
    return [(m, calendar.month_name[m]) for m in range(1, 13)]


def band_label(lower: int, upper: int | None) -> str:
    start = lower if lower == 0 else lower + 1
    end = "Infinity" if upper is None else upper
    return f"{start}-{end}"


def _parse_int(s: str | None, name: str) -> int | None:
    if s is None or not s.strip():
        return None
    try:
        return int(s.strip())
    except ValueError as e:
        raise ValueError(f"{name} must be an integer") from e


def parse_month(s: str | None, default: int) -> int:
    month = _parse_int(s, "month")
    if month is None:
        return default
    if not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12")
    return month


def parse_page(s: str | None) -> int:
    page = _parse_int(s, "page")
    if page is None:
        return 1
    if page < 1:
        raise ValueError("page must be at least 1")
    return page


def parse_per_page(s: str | None) -> int:
    per_page = _parse_int(s, "perPage")
    if per_page is None:
        return 10
    if per_page < 1:
        raise ValueError("perPage must be at least 1")
    return per_page


def parse_list_query(
    *,
    month: str | None,
    search: str | None,
    page: str | None,
    per_page: str | None,
    default_month: int,
) -> ListQuery:
    return ListQuery(
        month=parse_month(month, default_month),
        search=search if search and search.strip() else "",
        page=parse_page(page),
        per_page=parse_per_page(per_page),
    )


def pie_slices(breakdown: list[dict]) -> list[dict]:
    """Attach percentages, angles and colors to a category breakdown."""
    total = sum(item["count"] for item in breakdown)
    slices = []
    start = 0.0
    for i, item in enumerate(breakdown):
        share = item["count"] / total if total else 0.0
        end = start + share * 360
        slices.append(
            {
                "category": item["_id"],
                "count": item["count"],
                "percent": round(share * 100, 1),
                "start_deg": round(start, 2),
                "end_deg": round(end, 2),
                "color": PIE_COLORS[i % len(PIE_COLORS)],
            }
        )
        start = end
    return slices


def conic_gradient(slices: list[dict]) -> str:
    if not slices:
        return "none"
    stops = ", ".join(
        f"{s['color']} {s['start_deg']}deg {s['end_deg']}deg" for s in slices
    )
    return f"conic-gradient({stops})"
