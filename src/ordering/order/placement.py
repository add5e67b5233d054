"""Order placement: turns a cart into a durable order.

Placement is a saga rather than one transaction: stock is reserved line by
line through the stock gateway (each reserve commits on its own), and every
later failure releases what was reserved, newest first. Everything that can
be checked without side effects is checked before the first reserve.

Steps:
    1. Validate the request shape
    2. Resolve products; reject missing, inactive or visibly short lines
    3. Price the cart and apply the coupon
    4. Read merchant payment settings and build the payment reference
    5. Upsert the customer profile
    6. Reserve stock per line (compensation: release)
    7. Pick an order number and persist the order with its items
"""

from collections import OrderedDict
from dataclasses import dataclass

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.catalogue.reader import get_products
from ordering.coupon.validator import validate_coupon
from ordering.customer.profile import ensure_customer_profile
from ordering.domain import logger
from ordering.inventory import StockOutcome, get_stock_gateway
from ordering.order.lookup import order_number_taken
from ordering.order.numbering import fallback_number, generate_order_number
from ordering.order.order import Order
from ordering.payment.reference import build_reference
from ordering.payment.settings import get_payment_settings
from shared.errors import (
    ConfigurationError,
    ConflictError,
    InfrastructureError,
    InvalidRequestError,
    NotFoundError,
)
from shared.money import ZERO, as_float, to_decimal
from shared.saga import Saga

MAX_LINES = 100
MAX_QUANTITY = 999
SHIPPING_FEE = ZERO


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class CustomerDetails:
    full_name: str
    phone: str
    email: str | None = None
    note: str | None = None

    def as_dict(self) -> dict:
        return {"full_name": self.full_name, "phone": self.phone, "email": self.email, "note": self.note}


@dataclass(frozen=True)
class PlacedOrder:
    order_id: str
    order_number: str
    payment_uri: str
    payable_amount: float


class StockReservationFailed(Exception):
    def __init__(self, product_id, result):
        self.product_id = product_id
        self.result = result
        super().__init__(f"Reserve failed for {product_id}: {result.outcome.value}")


class StockReleaseFailed(Exception):
    pass


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def _parse_lines(items) -> list[CartLine]:
    if not isinstance(items, list | tuple) or not 1 <= len(items) <= MAX_LINES:
        raise InvalidRequestError(f"Cart must contain between 1 and {MAX_LINES} items")

    merged: OrderedDict[str, int] = OrderedDict()
    for item in items:
        if isinstance(item, CartLine):
            product_id, quantity = item.product_id, item.quantity
        elif isinstance(item, dict):
            product_id, quantity = item.get("product_id"), item.get("quantity", item.get("qty"))
        else:
            raise InvalidRequestError("Cart items must have a product_id and quantity")

        product_id = _text(product_id)
        if not product_id:
            raise InvalidRequestError("Every cart item needs a product_id")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or not 1 <= quantity <= MAX_QUANTITY:
            raise InvalidRequestError(f"Quantity must be a whole number between 1 and {MAX_QUANTITY}")

        # Repeated lines for one product are reserved and priced as one
        merged[product_id] = merged.get(product_id, 0) + quantity

    return [CartLine(product_id=pid, quantity=qty) for pid, qty in merged.items()]


def _parse_customer(customer) -> CustomerDetails:
    if isinstance(customer, CustomerDetails):
        customer = customer.as_dict()
    if not isinstance(customer, dict):
        raise InvalidRequestError("Customer details are required")

    full_name = _text(customer.get("full_name"))
    phone = _text(customer.get("phone"))
    email = _text(customer.get("email")) or None
    note = _text(customer.get("note")) or None

    if not 1 <= len(full_name) <= 120:
        raise InvalidRequestError("Customer name must be between 1 and 120 characters")
    if not 6 <= len(phone) <= 32:
        raise InvalidRequestError("Phone must be between 6 and 32 characters")
    if email is not None and (len(email) > 254 or "@" not in email):
        raise InvalidRequestError("Email address is invalid")
    if note is not None and len(note) > 500:
        raise InvalidRequestError("Note must be at most 500 characters")

    return CustomerDetails(full_name=full_name, phone=phone, email=email, note=note)


class OrderPlacementService:
    def __init__(self, stock_gateway=None):
        self._stock_gateway = stock_gateway

    @property
    def stock_gateway(self):
        return self._stock_gateway or get_stock_gateway()

    def place_order(self, customer_id, items, customer, coupon_code=None) -> PlacedOrder:
        customer_id = _text(str(customer_id) if customer_id is not None else "")
        if not customer_id:
            raise InvalidRequestError("Customer id is required")
        lines = _parse_lines(items)
        details = _parse_customer(customer)
        coupon_code = _text(coupon_code) or None
        if coupon_code is not None and len(coupon_code) > 64:
            raise InvalidRequestError("Coupon code must be at most 64 characters")

        priced_lines = self._price_lines(lines)
        subtotal = sum((to_decimal(to_decimal(line["unit_price"]) * line["quantity"]) for line in priced_lines), ZERO)

        discount = ZERO
        if coupon_code is not None:
            result = validate_coupon(coupon_code, subtotal)
            if not result.valid:
                raise ConflictError("COUPON_INVALID", result.message, status_code=400)
            discount = to_decimal(result.discount_amount)
            coupon_code = result.code

        grand_total = max(ZERO, subtotal - discount + SHIPPING_FEE)

        settings = get_payment_settings()
        if not settings.configured:
            raise ConfigurationError("PAYMENT_CONFIG_MISSING", "PromptPay ID is not configured")
        payment_uri = build_reference(settings.promptpay_id, settings.base_url, grand_total)

        try:
            ensure_customer_profile(customer_id, details.full_name, details.phone)
        except Exception as exc:
            logger.error("Customer profile upsert failed", customer_id=customer_id, error=str(exc))
            raise InfrastructureError("CUSTOMER_PROFILE_FAILED", str(exc)) from exc

        saga = self._reservation_saga(priced_lines)
        try:
            reservations = saga.run()
        except StockReservationFailed as exc:
            if exc.result.outcome is StockOutcome.INSUFFICIENT:
                raise ConflictError("INSUFFICIENT_STOCK", f"Insufficient stock: {exc.product_id}") from exc
            raise InfrastructureError("STOCK_RESERVE_FAILED", exc.result.detail or str(exc)) from exc

        try:
            order = Order.place(
                order_number=generate_order_number(order_number_taken),
                customer_id=customer_id,
                customer=details.as_dict(),
                lines=priced_lines,
                promptpay_id=settings.promptpay_id,
                payment_uri=payment_uri,
                discount_total=as_float(discount),
                shipping_fee=as_float(SHIPPING_FEE),
                coupon_code=coupon_code,
            )
            self._persist(order)
        except Exception as exc:
            saga.compensate_all(reservations.values)
            logger.error("Order creation failed", customer_id=customer_id, error=str(exc))
            raise InfrastructureError("ORDER_CREATE_FAILED", str(exc)) from exc

        logger.info(
            "Order placed",
            order_number=order.order_number,
            customer_id=customer_id,
            items=len(priced_lines),
            grand_total=order.grand_total,
            coupon_code=coupon_code,
        )
        return PlacedOrder(
            order_id=str(order.id),
            order_number=order.order_number,
            payment_uri=payment_uri,
            payable_amount=order.grand_total,
        )

    def _price_lines(self, lines: list[CartLine]) -> list[dict]:
        products = get_products([line.product_id for line in lines])
        for line in lines:
            if line.product_id not in products:
                raise NotFoundError("PRODUCT_NOT_FOUND", f"Product not found: {line.product_id}")

        priced = []
        for line in lines:
            product = products[line.product_id]
            if not product.is_active:
                raise ConflictError("PRODUCT_INACTIVE", f"Product inactive: {line.product_id}", status_code=400)
            if line.quantity > product.stock:
                raise ConflictError("INSUFFICIENT_STOCK", f"Insufficient stock: {line.product_id}")
            priced.append(
                {
                    "product_id": line.product_id,
                    "sku": product.sku,
                    "name": product.title,
                    "unit_price": product.price,
                    "quantity": line.quantity,
                }
            )
        return priced

    def _reservation_saga(self, priced_lines: list[dict]) -> Saga:
        gateway = self.stock_gateway
        saga = Saga("place_order")

        for line in priced_lines:
            product_id, quantity = line["product_id"], line["quantity"]

            def reserve(product_id=product_id, quantity=quantity):
                result = gateway.reserve(product_id, quantity)
                if not result.ok:
                    raise StockReservationFailed(product_id, result)
                return (product_id, quantity)

            saga.step(f"reserve:{product_id}", reserve, self._release)
        return saga

    def _release(self, reservation):
        product_id, quantity = reservation
        result = self.stock_gateway.release(product_id, quantity)
        if not result.ok:
            logger.error("Stock release failed", product_id=product_id, quantity=quantity, detail=result.detail)
            raise StockReleaseFailed(result.detail or f"release failed for {product_id}")

    def _persist(self, order: Order) -> None:
        repo = current_domain.repository_for(Order)
        try:
            repo.add(order)
        except ValidationError as exc:
            if "order_number" not in exc.messages:
                raise
            # Unique index rejected the number; one regeneration, then give up
            order.order_number = fallback_number()
            logger.warning("Order number collided on insert, regenerating", order_number=order.order_number)
            repo.add(order)
