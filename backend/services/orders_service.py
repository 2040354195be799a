import asyncio
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional

from errors import (
    Result,
    payment_issuance_error,
    persistence_error,
    pricing_error,
    validation_error,
)
from models import Caller, Order, OrderSubmission
from repositories.orders_repository import OrderRepository
from services.pricing_service import PricingCalculator
from wallet import WalletAddressIssuer

logger = logging.getLogger("storefront")

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_unset_date(value: Optional[datetime]) -> bool:
    if value is None:
        return True
    if value.replace(tzinfo=None) == datetime.min:
        return True
    aware = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return aware == EPOCH


def validate_submission(submission: OrderSubmission) -> Optional[str]:
    """Return the first violated rule, or None when the cart is acceptable."""
    if not submission.order_number or not submission.order_number.strip():
        return "Order number is required"
    if not submission.items:
        return "Order must contain at least one item"
    for index, item in enumerate(submission.items, start=1):
        if not item.product_id or not str(item.product_id).strip():
            return f"Item {index}: product reference is required"
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int):
            return f"Item {index}: quantity must be a whole number"
        if item.quantity <= 0:
            return f"Item {index}: quantity must be positive, got {item.quantity}"
        if not isinstance(item.unit_price, Decimal) or not item.unit_price.is_finite():
            return f"Item {index}: unit price must be a decimal amount"
        if item.unit_price < 0:
            return f"Item {index}: unit price must not be negative, got {item.unit_price}"
    return None


class OrderService:
    def __init__(
        self,
        repository: OrderRepository,
        wallet: WalletAddressIssuer,
        pricing: Optional[PricingCalculator] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.repository = repository
        self.wallet = wallet
        self.pricing = pricing or PricingCalculator()
        self.clock = clock

    async def create_order(self, submission: OrderSubmission, caller: Caller) -> Result[Order]:
        problem = validate_submission(submission)
        if problem:
            logger.warning("Order rejected for %s: %s", caller.username, problem)
            return Result.failure(validation_error(problem))

        order_date = submission.order_date
        if _is_unset_date(order_date):
            order_date = self.clock()

        if submission.owner is not None and submission.owner != caller.user_id:
            logger.warning(
                "Ignoring owner %s supplied by %s on order %s",
                submission.owner,
                caller.username,
                submission.order_number,
            )

        subtotal = self.pricing.compute_subtotal(submission.items)
        if not subtotal.ok:
            logger.warning(
                "Order %s not priced: %s", submission.order_number, subtotal.error.message
            )
            return Result.failure(subtotal.error)
        total_fiat = subtotal.value
        priced = self.pricing.compute_crypto_total(total_fiat, submission.exchange_rate)
        if not priced.ok:
            logger.warning(
                "Order %s not priced: %s", submission.order_number, priced.error.message
            )
            return Result.failure(priced.error)
        if priced.value == 0:
            problem = "Order total in crypto rounds to zero"
            logger.warning("Order %s not priced: %s", submission.order_number, problem)
            return Result.failure(pricing_error(problem))

        order = Order(
            order_number=submission.order_number.strip(),
            order_date=order_date,
            owner=caller.user_id,
            items=list(submission.items),
            exchange_rate=Decimal(submission.exchange_rate),
            total_fiat=total_fiat,
            total_crypto=priced.value,
        )

        try:
            address = await self.wallet.issue_address()
        except Exception as exc:
            logger.error(
                "Payment address issuance failed for order %s: %s", order.order_number, exc
            )
            return Result.failure(payment_issuance_error())
        order.assign_payment_address(address)

        try:
            await asyncio.to_thread(self.repository.add_order, order)
            saved = await asyncio.to_thread(self.repository.save_all)
            failure = None if saved else "repository reported no rows written"
        except Exception as exc:
            failure = f"{exc.__class__.__name__}: {exc}"
        if failure:
            logger.error(
                "RECONCILE order %s for owner %s not persisted after address %s was issued "
                "(total_fiat=%s total_crypto=%s rate=%s items=%s): %s",
                order.order_number,
                order.owner,
                order.payment_address,
                order.total_fiat,
                order.total_crypto,
                order.exchange_rate,
                [(item.product_id, item.quantity, str(item.unit_price)) for item in order.items],
                failure,
            )
            return Result.failure(persistence_error(address_issued=True))

        logger.info(
            "Order %s created for %s (id=%s, %s fiat, %s crypto)",
            order.order_number,
            caller.username,
            order.id,
            order.total_fiat,
            order.total_crypto,
        )
        return Result.success(order)
