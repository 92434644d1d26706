from dataclasses import dataclass


@dataclass(frozen=True)
class Transaction:
    id: int
    title: str
    description: str
    price: float
    date_of_sale: str
    sold: bool
    category: str

    @classmethod
    def from_row(cls, row) -> "Transaction":
        return cls(
            id=int(row["id"]),
            title=row["title"],
            description=row["description"],
            price=float(row["price"]),
            date_of_sale=row["date_of_sale"],
            sold=bool(row["sold"]),
            category=row["category"],
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "dateOfSale": f"{self.date_of_sale}Z",
            "sold": self.sold,
            "category": self.category,
        }


@dataclass(frozen=True)
class ListQuery:
    month: int
    search: str = ""
    page: int = 1
    per_page: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page
