"""Role-gated reads of placed orders.

Administrators see every order. Everyone else sees only their own; a lookup by
id for an order owned by someone else is answered as not found, so the ids of
other accounts stay hidden. Lookup by order number is a global search and is
reserved for administrators.
"""

import asyncio
import logging
from typing import List

from errors import Result, authorization_error, not_found_error, retrieval_error
from models import Caller, Order
from repositories.orders_repository import OrderRepository

logger = logging.getLogger("storefront")


class OrderListingService:
    def __init__(self, repository: OrderRepository) -> None:
        self.repository = repository

    async def list_orders(self, caller: Caller) -> Result[List[Order]]:
        try:
            if caller.is_admin:
                orders = await asyncio.to_thread(self.repository.get_all_orders)
            else:
                orders = await asyncio.to_thread(
                    self.repository.get_orders_by_owner, caller.user_id, True
                )
        except Exception as exc:
            logger.error("Orders for %s could not be retrieved: %s", caller.username, exc)
            return Result.failure(retrieval_error())
        scope = "all accounts" if caller.is_admin else caller.username
        logger.info("Returned %d orders for %s", len(orders), scope)
        return Result.success(list(orders))


class OrderLookup:
    def __init__(self, repository: OrderRepository) -> None:
        self.repository = repository

    async def get_by_number(self, caller: Caller, order_number: str) -> Result[Order]:
        if not caller.is_admin:
            logger.warning(
                "%s attempted lookup of order number %s without admin role",
                caller.username,
                order_number,
            )
            return Result.failure(authorization_error("Order number lookup requires admin role"))
        try:
            order = await asyncio.to_thread(self.repository.get_order_by_number, order_number)
        except Exception as exc:
            logger.error("Failed to retrieve order number %s: %s", order_number, exc)
            return Result.failure(retrieval_error())
        if order is None:
            logger.info("Order with number %s not found", order_number)
            return Result.failure(not_found_error(f"Order {order_number} not found"))
        return Result.success(order)

    async def get_by_id(self, caller: Caller, order_id: str) -> Result[Order]:
        owner = None if caller.is_admin else caller.user_id
        try:
            order = await asyncio.to_thread(self.repository.get_order_by_id, owner, order_id)
        except Exception as exc:
            logger.error("Failed to retrieve order id %s: %s", order_id, exc)
            return Result.failure(retrieval_error())
        if order is None:
            logger.info("Order with id %s not found for %s", order_id, caller.username)
            return Result.failure(not_found_error())
        return Result.success(order)
