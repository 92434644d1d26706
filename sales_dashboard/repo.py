import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from .db import connect, init_db
from .logic import PRICE_BANDS, band_label, month_range
from .models import ListQuery, Transaction

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the transaction store cannot be read or written."""


def _escape_like(s: str) -> str:
    return s.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _band_condition(lower: int, upper: int | None) -> tuple[str, tuple]:
    if upper is None:
        return "price > ?", (lower,)
    if lower == 0:
        return "price >= ? AND price <= ?", (lower, upper)
    return "price > ? AND price <= ?", (lower, upper)


class TransactionStore:
    """Access to the ``transactions`` table.

    Every call opens its own connection, so one store can be shared by
    concurrent request handlers. Month arguments are resolved against
    ``reference_year``.
    """

    def __init__(self, db_path: str | Path, *, reference_year: int = 2024):
        self.db_path = Path(db_path)
        self.reference_year = reference_year
        self._is_open = False

    @property
    def is_open(self) -> bool:
        return self._is_open

    def open(self) -> None:
        try:
            init_db(self.db_path)
        except sqlite3.Error as exc:
            raise StoreError(f"cannot initialize {self.db_path}: {exc}") from exc
        self._is_open = True
        logger.info("transaction store opened at %s", self.db_path)

    def close(self) -> None:
        if self._is_open:
            self._is_open = False
            logger.info("transaction store closed")

    @contextmanager
    def _connection(self):
        if not self._is_open:
            raise StoreError("transaction store is closed")
        try:
            with connect(self.db_path) as conn:
                yield conn
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc

    def _range(self, month: int) -> tuple[str, str]:
        return month_range(self.reference_year, month)

    def replace_all(self, records: list[Transaction]) -> int:
        with self._connection() as conn:
            deleted = conn.execute("DELETE FROM transactions").rowcount
            conn.executemany(
                """
                INSERT INTO transactions(id, title, description, price, date_of_sale, sold, category)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        r.id,
                        r.title,
                        r.description,
                        r.price,
                        r.date_of_sale,
                        int(r.sold),
                        r.category,
                    )
                    for r in records
                ],
            )
        logger.info(
            "replaced transactions",
            extra={"deleted": deleted, "inserted": len(records)},
        )
        return len(records)

    def list_transactions(self, query: ListQuery) -> list[Transaction]:
        start, end = self._range(query.month)
        sql = """
            SELECT * FROM transactions
            WHERE date_of_sale >= ? AND date_of_sale < ?
        """
        params: list = [start, end]
        if query.search:
            pattern = f"%{_escape_like(query.search.casefold())}%"
            sql += """
              AND (
                casefold(title) LIKE ? ESCAPE '\\'
                OR casefold(description) LIKE ? ESCAPE '\\'
                OR casefold(CAST(price AS TEXT)) LIKE ? ESCAPE '\\'
              )
            """
            params += [pattern, pattern, pattern]
        sql += " ORDER BY date_of_sale ASC, id ASC LIMIT ? OFFSET ?"
        params += [query.per_page, query.offset]
        with self._connection() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [Transaction.from_row(row) for row in rows]

    def month_transactions(self, month: int) -> list[Transaction]:
        start, end = self._range(month)
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM transactions
                WHERE date_of_sale >= ? AND date_of_sale < ?
                ORDER BY date_of_sale ASC, id ASC
                """,
                (start, end),
            ).fetchall()
        return [Transaction.from_row(row) for row in rows]

    def statistics(self, month: int) -> dict:
        start, end = self._range(month)
        with self._connection() as conn:
            row = conn.execute(
                """
                SELECT
                  COALESCE(SUM(CASE WHEN sold = 1 THEN price END), 0) AS total,
                  COUNT(CASE WHEN sold = 1 THEN 1 END) AS sold_items,
                  COUNT(CASE WHEN sold = 0 THEN 1 END) AS not_sold_items
                FROM transactions
                WHERE date_of_sale >= ? AND date_of_sale < ?
                """,
                (start, end),
            ).fetchone()
        return {
            "totalSaleAmount": round(float(row["total"]), 2),
            "soldItems": int(row["sold_items"]),
            "notSoldItems": int(row["not_sold_items"]),
        }

    def bar_chart(self, month: int) -> list[dict]:
        start, end = self._range(month)
        columns = []
        params: list = []
        for i, (lower, upper) in enumerate(PRICE_BANDS):
            condition, bounds = _band_condition(lower, upper)
            columns.append(f"COUNT(CASE WHEN {condition} THEN 1 END) AS band_{i}")
            params.extend(bounds)
        sql = (
            f"SELECT {', '.join(columns)} FROM transactions "
            "WHERE date_of_sale >= ? AND date_of_sale < ?"
        )
        with self._connection() as conn:
            row = conn.execute(sql, (*params, start, end)).fetchone()
        return [
            {"range": band_label(lower, upper), "count": int(row[f"band_{i}"])}
            for i, (lower, upper) in enumerate(PRICE_BANDS)
        ]

    def pie_chart(self, month: int) -> list[dict]:
        start, end = self._range(month)
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT category, COUNT(*) AS count
                FROM transactions
                WHERE date_of_sale >= ? AND date_of_sale < ?
                GROUP BY category
                ORDER BY category ASC
                """,
                (start, end),
            ).fetchall()
        return [{"_id": row["category"], "count": int(row["count"])} for row in rows]
