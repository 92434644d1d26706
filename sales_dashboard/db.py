import sqlite3
from contextlib import contextmanager
from pathlib import Path


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value


@contextmanager
def connect(db_path: str | Path):
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.create_function("casefold", 1, _casefold, deterministic=True)
    try:
        with conn:
            yield conn
    finally:
        conn.close()


def init_db(db_path: str | Path) -> None:
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    with connect(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS transactions (
              row_id INTEGER PRIMARY KEY AUTOINCREMENT,
              id INTEGER NOT NULL,
              title TEXT NOT NULL,
              description TEXT NOT NULL,
              price REAL NOT NULL,
              date_of_sale TEXT NOT NULL,
              sold INTEGER NOT NULL CHECK(sold IN (0, 1)),
              category TEXT NOT NULL
            );
            """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_transactions_date_of_sale
            ON transactions(date_of_sale)
            """
        )
