from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol

from supabase import Client

from config import settings
from models import Order, OrderItem


class OrderRepository(Protocol):
    def get_all_orders(self) -> List[Order]: ...

    def get_orders_by_owner(self, owner: str, include_items: bool = True) -> List[Order]: ...

    def get_order_by_number(self, order_number: str) -> Optional[Order]: ...

    def get_order_by_id(self, owner: Optional[str], order_id: str) -> Optional[Order]: ...

    def add_order(self, order: Order) -> None: ...

    def save_all(self) -> bool: ...


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _item_to_row(order_id: str, item: OrderItem) -> Dict[str, Any]:
    return {
        "order_id": order_id,
        "product_id": item.product_id,
        "product_title": item.product_title,
        "quantity": item.quantity,
        "unit_price": str(item.unit_price),
    }


def _row_to_item(row: Dict[str, Any]) -> OrderItem:
    return OrderItem(
        id=str(row["id"]) if row.get("id") is not None else None,
        product_id=str(row["product_id"]),
        product_title=row.get("product_title"),
        quantity=int(row["quantity"]),
        unit_price=Decimal(str(row["unit_price"])),
    )


def order_to_row(order: Order) -> Dict[str, Any]:
    return {
        "order_number": order.order_number,
        "order_date": order.order_date.isoformat(),
        "owner": order.owner,
        "exchange_rate": str(order.exchange_rate),
        "total_fiat": str(order.total_fiat),
        "total_crypto": str(order.total_crypto),
        "payment_address": order.payment_address,
    }


def row_to_order(row: Dict[str, Any], items_key: str = "order_items") -> Order:
    return Order(
        id=str(row["id"]),
        order_number=row["order_number"],
        order_date=_parse_datetime(row.get("order_date")),
        owner=row["owner"],
        items=[_row_to_item(item) for item in row.get(items_key) or []],
        exchange_rate=Decimal(str(row["exchange_rate"])),
        total_fiat=Decimal(str(row["total_fiat"])),
        total_crypto=Decimal(str(row["total_crypto"])),
        payment_address=row.get("payment_address"),
    )


class SupabaseOrderRepository:
    """Order storage on supabase tables; one instance per unit of work."""

    def __init__(
        self,
        client: Client,
        orders_table: str = settings.orders_table,
        items_table: str = settings.order_items_table,
    ) -> None:
        self.client = client
        self.orders_table = orders_table
        self.items_table = items_table
        self._pending: List[Order] = []

    def _select(self, include_items: bool = True):
        columns = f"*, {self.items_table}(*)" if include_items else "*"
        return self.client.table(self.orders_table).select(columns)

    def _to_orders(self, rows: List[Dict[str, Any]]) -> List[Order]:
        return [row_to_order(row, items_key=self.items_table) for row in rows]

    def get_all_orders(self) -> List[Order]:
        response = self._select().order("order_date", desc=True).execute()
        return self._to_orders(response.data or [])

    def get_orders_by_owner(self, owner: str, include_items: bool = True) -> List[Order]:
        response = (
            self._select(include_items)
            .eq("owner", owner)
            .order("order_date", desc=True)
            .execute()
        )
        return self._to_orders(response.data or [])

    def get_order_by_number(self, order_number: str) -> Optional[Order]:
        response = self._select().eq("order_number", order_number).limit(1).execute()
        orders = self._to_orders(response.data or [])
        return orders[0] if orders else None

    def get_order_by_id(self, owner: Optional[str], order_id: str) -> Optional[Order]:
        query = self._select().eq("id", order_id)
        if owner is not None:
            query = query.eq("owner", owner)
        response = query.limit(1).execute()
        orders = self._to_orders(response.data or [])
        return orders[0] if orders else None

    def add_order(self, order: Order) -> None:
        self._pending.append(order)

    def _discard_order_row(self, order: Order) -> None:
        self.client.table(self.orders_table).delete().eq("id", order.id).execute()
        order.id = None

    def save_all(self) -> bool:
        """Write staged orders; an order whose items fail to write is removed again."""
        pending, self._pending = self._pending, []
        for order in pending:
            response = self.client.table(self.orders_table).insert(order_to_row(order)).execute()
            if not response.data:
                return False
            order.id = str(response.data[0]["id"])
            if not order.items:
                continue
            rows = [_item_to_row(order.id, item) for item in order.items]
            try:
                response = self.client.table(self.items_table).insert(rows).execute()
            except Exception:
                self._discard_order_row(order)
                raise
            if not response.data:
                self._discard_order_row(order)
                return False
        return True
