"""Fiat and crypto totals for a cart.

Amounts are ``Decimal`` throughout. The crypto total is quantized to
8 places (one satoshi) with ROUND_HALF_UP, i.e. halves round away from zero.
"""

from decimal import ROUND_HALF_UP, Decimal, DecimalException, Inexact, localcontext
from typing import Iterable

from errors import Result, pricing_error
from models import OrderItem

CRYPTO_PLACES = 8
CRYPTO_QUANTUM = Decimal(1).scaleb(-CRYPTO_PLACES)
CRYPTO_ROUNDING = ROUND_HALF_UP
_PRECISION = 60


class PricingCalculator:
    @staticmethod
    def compute_subtotal(items: Iterable[OrderItem]) -> Result[Decimal]:
        try:
            with localcontext() as ctx:
                ctx.prec = _PRECISION
                ctx.traps[Inexact] = True
                return Result.success(sum((item.line_total for item in items), Decimal("0")))
        except DecimalException:
            return Result.failure(pricing_error("Order subtotal cannot be computed exactly"))

    @staticmethod
    def compute_crypto_total(fiat_amount: Decimal, exchange_rate) -> Result[Decimal]:
        if exchange_rate is None:
            return Result.failure(pricing_error("Exchange rate is missing"))
        try:
            rate = Decimal(exchange_rate)
        except (DecimalException, TypeError, ValueError):
            return Result.failure(pricing_error(f"Exchange rate is not a number: {exchange_rate!r}"))
        if not rate.is_finite() or rate <= 0:
            return Result.failure(
                pricing_error(f"Exchange rate must be greater than zero, got {exchange_rate}")
            )
        try:
            with localcontext() as ctx:
                ctx.prec = _PRECISION
                total = (Decimal(fiat_amount) / rate).quantize(
                    CRYPTO_QUANTUM, rounding=CRYPTO_ROUNDING
                )
        except DecimalException:
            return Result.failure(pricing_error("Order total is too large to price"))
        return Result.success(total)
