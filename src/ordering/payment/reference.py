"""PromptPay payment reference.

The reference is a URI the customer's banking app (or the QR image service
behind it) understands: ``<base>/<merchant id>/<amount>``.
"""

from decimal import Decimal
from urllib.parse import quote

from shared.money import to_decimal


def amount_to_payable_string(amount) -> str:
    """Render an amount the way the QR service expects it.

    Whole amounts carry no decimals (``300``); fractional amounts drop
    trailing zeros (``270.5``, ``99.99``).
    """
    value = to_decimal(amount)
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), "f")


def build_reference(merchant_id: str, base_url: str, amount) -> str:
    if not merchant_id:
        raise ValueError("merchant_id is required")
    payable = amount_to_payable_string(amount)
    return f"{base_url.rstrip('/')}/{quote(merchant_id, safe='')}/{quote(payable, safe='')}"


def payable_amount(amount) -> Decimal:
    return to_decimal(amount)
