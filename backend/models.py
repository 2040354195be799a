from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional


class Role(str, Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"

    @classmethod
    def from_claims(cls, claims: Iterable[str], admin_claim: str = "Admin") -> FrozenSet["Role"]:
        """Map raw role claims onto known roles; unknown claims are dropped."""
        roles = {cls.CUSTOMER}
        for claim in claims:
            text = str(claim).strip()
            if text.lower() == admin_claim.lower():
                roles.add(cls.ADMIN)
        return frozenset(roles)


@dataclass(frozen=True)
class Caller:
    user_id: str
    username: str
    roles: FrozenSet[Role] = frozenset({Role.CUSTOMER})

    @property
    def is_admin(self) -> bool:
        return Role.ADMIN in self.roles


@dataclass(frozen=True)
class OrderItem:
    product_id: str
    quantity: int
    unit_price: Decimal
    product_title: Optional[str] = None
    id: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class OrderSubmission:
    order_number: str
    items: List[OrderItem]
    order_date: Optional[datetime] = None
    exchange_rate: Optional[Decimal] = None
    owner: Optional[str] = None


@dataclass
class Order:
    order_number: str
    order_date: datetime
    owner: str
    items: List[OrderItem]
    exchange_rate: Decimal
    total_fiat: Decimal
    total_crypto: Decimal
    payment_address: Optional[str] = None
    id: Optional[str] = None

    def assign_payment_address(self, address: str) -> None:
        if self.payment_address is not None:
            raise ValueError(f"Order {self.order_number} already has a payment address")
        self.payment_address = address
