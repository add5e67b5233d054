"""Coupon Validator: resolves a code to an eligibility decision and bounded discount.

Ineligible coupons (unknown, inactive, expired, below minimum spend) all
produce the same generic rejection so callers cannot tell which condition
failed. A rule that cannot be interpreted is an operator problem and raises
``ConfigurationError`` instead.
"""

from dataclasses import asdict, dataclass
from decimal import Decimal
from enum import Enum

from protean.utils.globals import current_domain

from ordering.coupon.coupon import Coupon
from ordering.domain import logger
from shared.errors import ConfigurationError, InvalidRequestError
from shared.money import ZERO, as_float, clamp, to_decimal

MAX_CODE_LENGTH = 64
INELIGIBLE_MESSAGE = "Coupon code is invalid or unavailable."


class DiscountType(Enum):
    PERCENT = "percent"
    FIXED = "fixed"


_TYPE_ALIASES = {
    "percent": DiscountType.PERCENT,
    "percentage": DiscountType.PERCENT,
    "pct": DiscountType.PERCENT,
    "fixed": DiscountType.FIXED,
    "amount": DiscountType.FIXED,
    "flat": DiscountType.FIXED,
}


@dataclass(frozen=True)
class CouponResult:
    valid: bool
    code: str
    subtotal: float
    discount_amount: float
    total_after_discount: float
    discount_type: str | None = None
    discount_value: float | None = None
    message: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def parse_discount_type(raw) -> DiscountType | None:
    if raw is None:
        return None
    return _TYPE_ALIASES.get(str(raw).strip().lower())


def compute_discount(discount_type: DiscountType, value: Decimal, subtotal: Decimal) -> Decimal:
    """Discount for ``subtotal``, always within ``[0, subtotal]``."""
    if subtotal <= ZERO:
        return ZERO
    if discount_type is DiscountType.PERCENT:
        raw = subtotal * value / Decimal(100)
    else:
        raw = value
    return to_decimal(clamp(raw, ZERO, subtotal))


def _find_coupon(code: str) -> Coupon | None:
    matches = current_domain.repository_for(Coupon)._dao.query.filter(code=code).all().items
    return matches[0] if matches else None


def _rejected(code: str, subtotal: Decimal) -> CouponResult:
    return CouponResult(
        valid=False,
        code=code,
        subtotal=as_float(subtotal),
        discount_amount=0.0,
        total_after_discount=as_float(subtotal),
        message=INELIGIBLE_MESSAGE,
    )


def validate_coupon(code, subtotal) -> CouponResult:
    normalized = (code or "").strip() if isinstance(code, str) else ""
    if not normalized or len(normalized) > MAX_CODE_LENGTH:
        raise InvalidRequestError("Coupon code must be between 1 and 64 characters")
    normalized = normalized.upper()

    try:
        amount = to_decimal(subtotal)
    except (ArithmeticError, TypeError, ValueError):
        raise InvalidRequestError("Subtotal must be a number")
    if amount < ZERO:
        raise InvalidRequestError("Subtotal must not be negative")

    coupon = _find_coupon(normalized)
    if coupon is None or not coupon.is_active or coupon.is_expired():
        return _rejected(normalized, amount)
    if amount < to_decimal(coupon.min_spend or 0):
        return _rejected(normalized, amount)

    discount_type = parse_discount_type(coupon.discount_type)
    value = to_decimal(coupon.discount_value or 0)
    if discount_type is None or value <= ZERO:
        logger.error(
            "Coupon rule is malformed",
            code=normalized,
            discount_type=coupon.discount_type,
            discount_value=coupon.discount_value,
        )
        raise ConfigurationError("COUPON_CONFIG_INVALID", f"Coupon {normalized} has an invalid discount rule")

    discount = compute_discount(discount_type, value, amount)
    return CouponResult(
        valid=True,
        code=normalized,
        discount_type=discount_type.value,
        discount_value=as_float(value),
        subtotal=as_float(amount),
        discount_amount=as_float(discount),
        total_after_discount=as_float(amount - discount),
    )
