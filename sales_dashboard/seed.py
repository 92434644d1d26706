"""
Seed loader: pulls the product transaction feed and replaces the store.

The feed is a JSON array of objects carrying ``id``, ``title``,
``description``, ``price``, ``dateOfSale``, ``sold`` and ``category`` (plus
fields such as ``image`` that are not stored).
"""

import logging
from datetime import datetime, timezone

import requests

from .models import Transaction
from .repo import TransactionStore

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "title", "description", "price", "dateOfSale", "sold", "category")


class SeedError(Exception):
    """Raised when the seed feed cannot be fetched or parsed."""


def fetch_seed(url: str, timeout: float = 30.0) -> list:
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as e:
        raise SeedError(f"cannot fetch seed from {url}: {e}") from e
    if not isinstance(data, list):
        raise SeedError("seed document must be a JSON array")
    return data


def parse_date_of_sale(value: str) -> str:
    """Normalize an ISO-8601 timestamp to naive UTC text (``YYYY-MM-DDTHH:MM:SS``)."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed.isoformat(timespec="seconds")


def normalize_record(raw: dict) -> Transaction:
    if not isinstance(raw, dict):
        raise SeedError("seed record must be an object")
    missing = [f for f in REQUIRED_FIELDS if f not in raw]
    if missing:
        raise SeedError(f"seed record {raw.get('id')!r} missing {', '.join(missing)}")
    try:
        return Transaction(
            id=int(raw["id"]),
            title=str(raw["title"]),
            description=str(raw["description"]),
            price=float(raw["price"]),
            date_of_sale=parse_date_of_sale(str(raw["dateOfSale"])),
            sold=bool(raw["sold"]),
            category=str(raw["category"]),
        )
    except (TypeError, ValueError) as e:
        raise SeedError(f"seed record {raw.get('id')!r} is malformed: {e}") from e


def load_seed(store: TransactionStore, url: str, timeout: float = 30.0) -> int:
    """Fetch the feed and replace every stored transaction with it."""
    payload = fetch_seed(url, timeout=timeout)
    records = [normalize_record(raw) for raw in payload]
    inserted = store.replace_all(records)
    logger.info("seeded transactions", extra={"records": inserted, "source": url})
    return inserted
