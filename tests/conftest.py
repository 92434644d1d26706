import pytest

from sales_dashboard.models import Transaction
from sales_dashboard.repo import TransactionStore


@pytest.fixture
def store(tmp_path):
    store = TransactionStore(tmp_path / "t.sqlite", reference_year=2024)
    store.open()
    yield store
    store.close()


@pytest.fixture
def make_txn():
    def _make(
        id: int,
        *,
        price: float = 10.0,
        date_of_sale: str = "2024-03-05T10:00:00",
        sold: bool = True,
        category: str = "electronics",
        title: str | None = None,
        description: str = "plain item",
    ) -> Transaction:
        return Transaction(
            id=id,
            title=title or f"item {id}",
            description=description,
            price=price,
            date_of_sale=date_of_sale,
            sold=sold,
            category=category,
        )

    return _make
