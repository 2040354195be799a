"""Unit tests for SupabaseOrderRepository against a recording client."""

import asyncio
from collections import defaultdict
from decimal import Decimal

import pytest

from errors import ErrorKind
from models import OrderItem, OrderSubmission
from repositories.orders_repository import SupabaseOrderRepository, order_to_row, row_to_order
from services.orders_service import OrderService
from tests.conftest import FIXED_NOW, CountingWallet, make_order


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.columns = None
        self.filters = []
        self.payload = None
        self.deleting = False

    def select(self, columns):
        self.columns = columns
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        return self

    def limit(self, count):
        return self

    def insert(self, payload):
        self.payload = payload
        return self

    def delete(self):
        self.deleting = True
        return self

    def _matches(self, row):
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self):
        self.client.executed.append(self)
        if self.deleting:
            removed = [row for row in self.client.rows[self.table] if self._matches(row)]
            self.client.rows[self.table] = [
                row for row in self.client.rows[self.table] if not self._matches(row)
            ]
            return FakeResponse(removed)
        if self.payload is not None:
            if self.table in self.client.failing_tables:
                raise ConnectionError(f"insert into {self.table} timed out")
            if self.table in self.client.reject_tables:
                return FakeResponse([])
            rows = self.payload if isinstance(self.payload, list) else [self.payload]
            saved = []
            for row in rows:
                self.client.next_id += 1
                stored = dict(row, id=str(self.client.next_id))
                self.client.rows[self.table].append(stored)
                saved.append(stored)
            return FakeResponse(saved)
        return FakeResponse([row for row in self.client.rows[self.table] if self._matches(row)])


class FakeSupabase:
    def __init__(self):
        self.rows = defaultdict(list)
        self.executed = []
        self.reject_tables = set()
        self.failing_tables = set()
        self.next_id = 0

    def table(self, name):
        return FakeQuery(self, name)


def _stored(order_id, owner):
    row = order_to_row(make_order(order_id, owner))
    row["id"] = order_id
    row["order_items"] = [
        {"id": "1", "order_id": order_id, "product_id": "accordion-1", "product_title": None,
         "quantity": 1, "unit_price": "20.00"}
    ]
    return row


def test_save_all_assigns_id_and_writes_items():
    client = FakeSupabase()
    repository = SupabaseOrderRepository(client)
    order = make_order(None, "u-alice")
    order.items.append(OrderItem(product_id="strap-7", quantity=2, unit_price=Decimal("4.50")))

    repository.add_order(order)
    assert repository.save_all() is True

    assert order.id == "1"
    items = client.rows["order_items"]
    assert [item["order_id"] for item in items] == ["1", "1"]
    assert items[1]["unit_price"] == "4.50"
    assert client.rows["orders"][0]["total_crypto"] == "0.00100000"


def test_save_all_reports_rejected_write():
    client = FakeSupabase()
    client.reject_tables.add("orders")
    repository = SupabaseOrderRepository(client)
    repository.add_order(make_order(None, "u-alice"))

    assert repository.save_all() is False
    assert client.rows["order_items"] == []


def test_save_all_clears_pending():
    client = FakeSupabase()
    repository = SupabaseOrderRepository(client)
    repository.add_order(make_order(None, "u-alice"))
    repository.save_all()
    repository.save_all()
    assert len(client.rows["orders"]) == 1


def test_orders_by_owner_embeds_items_and_filters():
    client = FakeSupabase()
    client.rows["orders"] = [_stored("A", "u-alice"), _stored("C", "u-bob")]
    repository = SupabaseOrderRepository(client)

    orders = repository.get_orders_by_owner("u-alice", include_items=True)

    assert [order.id for order in orders] == ["A"]
    assert orders[0].items[0].unit_price == Decimal("20.00")
    assert client.executed[0].columns == "*, order_items(*)"
    assert client.executed[0].filters == [("owner", "u-alice")]


def test_orders_by_owner_without_items():
    client = FakeSupabase()
    repository = SupabaseOrderRepository(client)
    repository.get_orders_by_owner("u-alice", include_items=False)
    assert client.executed[0].columns == "*"


def test_order_by_id_scopes_to_owner():
    client = FakeSupabase()
    client.rows["orders"] = [_stored("C", "u-bob")]
    repository = SupabaseOrderRepository(client)

    assert repository.get_order_by_id("u-alice", "C") is None
    assert repository.get_order_by_id(None, "C").owner == "u-bob"


def test_order_by_number_missing_returns_none():
    repository = SupabaseOrderRepository(FakeSupabase())
    assert repository.get_order_by_number("ORD-404") is None


def test_row_round_trip_keeps_decimals():
    row = _stored("A", "u-alice")
    order = row_to_order(row)
    assert order.total_crypto == Decimal("0.00100000")
    assert order.exchange_rate == Decimal("20000.00")
    assert order.order_date.tzinfo is not None


def test_rejected_items_remove_the_order_row():
    client = FakeSupabase()
    client.reject_tables.add("order_items")
    repository = SupabaseOrderRepository(client)
    order = make_order(None, "u-alice")
    repository.add_order(order)

    assert repository.save_all() is False
    assert client.rows["orders"] == []
    assert order.id is None


def test_failing_items_write_removes_the_order_row():
    client = FakeSupabase()
    client.failing_tables.add("order_items")
    repository = SupabaseOrderRepository(client)
    repository.add_order(make_order(None, "u-alice"))

    with pytest.raises(ConnectionError):
        repository.save_all()
    assert client.rows["orders"] == []


def test_create_order_leaves_no_row_when_items_are_rejected(alice):
    client = FakeSupabase()
    client.reject_tables.add("order_items")
    service = OrderService(
        SupabaseOrderRepository(client), CountingWallet(), clock=lambda: FIXED_NOW
    )
    submission = OrderSubmission(
        order_number="ORD-9",
        items=[OrderItem(product_id="accordion-1", quantity=1, unit_price=Decimal("100.00"))],
        exchange_rate=Decimal("20000.00"),
    )

    result = asyncio.run(service.create_order(submission, alice))

    assert result.error.kind is ErrorKind.PERSISTENCE
    assert result.error.address_issued
    assert client.rows["orders"] == []
    assert client.rows["order_items"] == []


def test_all_orders_spans_owners_with_items():
    client = FakeSupabase()
    client.rows["orders"] = [_stored("A", "u-alice"), _stored("C", "u-bob")]
    repository = SupabaseOrderRepository(client)

    orders = repository.get_all_orders()

    assert sorted(order.owner for order in orders) == ["u-alice", "u-bob"]
    assert all(order.items for order in orders)
    assert client.executed[0].columns == "*, order_items(*)"
    assert client.executed[0].filters == []
