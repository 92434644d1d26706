import pytest
import requests

from sales_dashboard import seed
from sales_dashboard.seed import (
    SeedError,
    fetch_seed,
    load_seed,
    normalize_record,
    parse_date_of_sale,
)

FEED = [
    {
        "id": 1,
        "title": "Fjallraven Backpack",
        "price": 329.85,
        "description": "Your perfect pack for everyday use",
        "category": "men's clothing",
        "image": "https://example.invalid/1.jpg",
        "sold": False,
        "dateOfSale": "2024-03-27T20:29:54+05:30",
    },
    {
        "id": 2,
        "title": "Mens Casual T-Shirt",
        "price": 44.6,
        "description": "Slim-fitting style",
        "category": "men's clothing",
        "image": "https://example.invalid/2.jpg",
        "sold": True,
        "dateOfSale": "2024-03-01T02:00:00+05:30",
    },
    {
        "id": 3,
        "title": "WD 2TB Elements Portable Hard Drive",
        "price": 64,
        "description": "USB 3.0 and USB 2.0 compatibility",
        "category": "electronics",
        "image": "https://example.invalid/3.jpg",
        "sold": True,
        "dateOfSale": "2024-10-27T20:29:54Z",
    },
]


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def _serve(monkeypatch, response):
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(seed.requests, "get", fake_get)
    return calls


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2024-03-27T20:29:54+05:30", "2024-03-27T14:59:54"),
        ("2024-03-01T02:00:00+05:30", "2024-02-29T20:30:00"),
        ("2024-10-27T20:29:54Z", "2024-10-27T20:29:54"),
        ("2024-10-27T20:29:54.123Z", "2024-10-27T20:29:54"),
        ("2024-10-27T20:29:54", "2024-10-27T20:29:54"),
    ],
)
def test_parse_date_of_sale_normalizes_to_utc(value, expected):
    assert parse_date_of_sale(value) == expected


def test_normalize_record_drops_extra_fields():
    txn = normalize_record(FEED[0])
    assert txn.id == 1
    assert txn.price == 329.85
    assert txn.sold is False
    assert txn.category == "men's clothing"
    assert txn.date_of_sale == "2024-03-27T14:59:54"
    assert not hasattr(txn, "image")


def test_normalize_record_requires_all_fields():
    raw = dict(FEED[0])
    del raw["category"]
    with pytest.raises(SeedError, match="category"):
        normalize_record(raw)


@pytest.mark.parametrize(
    "field,value", [("price", "cheap"), ("dateOfSale", "yesterday"), ("id", None)]
)
def test_normalize_record_rejects_malformed_values(field, value):
    raw = dict(FEED[0], **{field: value})
    with pytest.raises(SeedError):
        normalize_record(raw)


def test_fetch_seed_returns_array(monkeypatch):
    calls = _serve(monkeypatch, FakeResponse(FEED))
    assert fetch_seed("https://feed.invalid/tx.json", timeout=5) == FEED
    assert calls == [("https://feed.invalid/tx.json", 5)]


@pytest.mark.parametrize(
    "response",
    [
        requests.ConnectionError("down"),
        FakeResponse(FEED, status_code=503),
        FakeResponse(ValueError("not json")),
        FakeResponse({"items": FEED}),
    ],
)
def test_fetch_seed_failures(monkeypatch, response):
    _serve(monkeypatch, response)
    with pytest.raises(SeedError):
        fetch_seed("https://feed.invalid/tx.json")


def test_load_seed_replaces_store(monkeypatch, store, make_txn):
    store.replace_all([make_txn(i) for i in range(100, 110)])
    _serve(monkeypatch, FakeResponse(FEED))

    assert load_seed(store, "https://feed.invalid/tx.json") == len(FEED)

    march = store.month_transactions(3)
    february = store.month_transactions(2)
    october = store.month_transactions(10)
    assert [t.id for t in march] == [1]
    assert [t.id for t in february] == [2]
    assert [t.id for t in october] == [3]


def test_load_seed_failure_keeps_previous_contents(monkeypatch, store, make_txn):
    store.replace_all([make_txn(1), make_txn(2)])
    _serve(monkeypatch, requests.Timeout("slow"))

    with pytest.raises(SeedError):
        load_seed(store, "https://feed.invalid/tx.json")
    assert len(store.month_transactions(3)) == 2
