"""Shared fixtures and test doubles.

The application reads its configuration at import time, so the environment is
seeded here before any backend module is imported.
"""

import os
from datetime import datetime, timezone
from decimal import Decimal
from itertools import count

import pytest
from cryptography.fernet import Fernet

_KEY = Fernet.generate_key().decode("utf-8")
os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "service-role-key")
os.environ.setdefault("ENCRYPTION_KEY", _KEY)
os.environ.setdefault("WALLET_RPC_URL", "http://127.0.0.1:18332/")
os.environ.setdefault("WALLET_RPC_USER", "rpcuser")
os.environ.setdefault(
    "WALLET_RPC_PASSWORD_ENCRYPTED",
    Fernet(os.environ["ENCRYPTION_KEY"].encode("utf-8")).encrypt(b"rpcpassword").decode("utf-8"),
)

from models import Caller, Order, OrderItem, Role  # noqa: E402
from wallet import WalletError  # noqa: E402

FIXED_NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class InMemoryOrderRepository:
    def __init__(self, orders=None, save_result=True, fail_reads=False, fail_save=False):
        self.orders = list(orders or [])
        self.pending = []
        self.save_result = save_result
        self.fail_reads = fail_reads
        self.fail_save = fail_save
        self.add_calls = 0
        self.save_calls = 0
        self.owner_queries = []
        self._ids = count(1000)

    def _check_reads(self):
        if self.fail_reads:
            raise ConnectionError("database unavailable")

    def get_all_orders(self):
        self._check_reads()
        return list(self.orders)

    def get_orders_by_owner(self, owner, include_items=True):
        self._check_reads()
        self.owner_queries.append((owner, include_items))
        return [order for order in self.orders if order.owner == owner]

    def get_order_by_number(self, order_number):
        self._check_reads()
        return next((o for o in self.orders if o.order_number == order_number), None)

    def get_order_by_id(self, owner, order_id):
        self._check_reads()
        for order in self.orders:
            if order.id == order_id and (owner is None or order.owner == owner):
                return order
        return None

    def add_order(self, order):
        self.add_calls += 1
        self.pending.append(order)

    def save_all(self):
        self.save_calls += 1
        if self.fail_save:
            raise TimeoutError("write timed out")
        if not self.save_result:
            self.pending = []
            return False
        for order in self.pending:
            order.id = str(next(self._ids))
            self.orders.append(order)
        self.pending = []
        return True


class CountingWallet:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = 0
        self.issued = []

    async def issue_address(self):
        self.calls += 1
        if self.fail:
            raise WalletError("Wallet node unreachable: ConnectError")
        address = f"tb1qstorefront{self.calls:06d}"
        self.issued.append(address)
        return address


def make_order(order_id, owner, order_number=None, total="20.00"):
    return Order(
        id=order_id,
        order_number=order_number or f"ORD-{order_id}",
        order_date=FIXED_NOW,
        owner=owner,
        items=[OrderItem(product_id="accordion-1", quantity=1, unit_price=Decimal(total))],
        exchange_rate=Decimal("20000.00"),
        total_fiat=Decimal(total),
        total_crypto=Decimal("0.00100000"),
        payment_address=f"tb1qaddr{order_id}",
    )


@pytest.fixture
def admin():
    return Caller(user_id="u-admin", username="admin@shop.test", roles=frozenset({Role.ADMIN, Role.CUSTOMER}))


@pytest.fixture
def alice():
    return Caller(user_id="u-alice", username="alice@shop.test")


@pytest.fixture
def bob():
    return Caller(user_id="u-bob", username="bob@shop.test")


@pytest.fixture
def seeded_repository():
    return InMemoryOrderRepository(
        orders=[
            make_order("A", "u-alice"),
            make_order("B", "u-alice"),
            make_order("C", "u-bob"),
        ]
    )


@pytest.fixture
def wallet():
    return CountingWallet()
