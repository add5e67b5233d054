"""FastAPI routes for the Ordering domain: storefront and admin order desk.

Identity is resolved upstream: the auth layer forwards ``X-Customer-Id``
for shoppers and ``X-Admin-Id`` for staff.
"""

from fastapi import APIRouter, File, Header, Query, UploadFile
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    CouponResponse,
    CreateOrderRequest,
    OrderCreatedResponse,
    OrderStatusResponse,
    PaymentSettingsRequest,
    PaymentSettingsResponse,
    ProductPageResponse,
    ProductSchema,
    ReviewSlipRequest,
    SlipUploadedResponse,
    ValidateCouponRequest,
)
from ordering.catalogue.reader import get_product_by_slug, list_active_products
from ordering.coupon.validator import validate_coupon
from ordering.order.cancellation import OrderCancellationService
from ordering.order.fulfillment import MarkOrderCompleted, MarkOrderProcessing, MarkOrderShipped
from ordering.order.placement import OrderPlacementService
from ordering.order.queries import (
    get_admin_order_detail,
    get_customer_order,
    list_admin_orders,
    list_customer_orders,
)
from ordering.payment.settings import UpdatePaymentSettings, get_payment_settings
from ordering.slip.intake import upload_payment_slip
from ordering.slip.review import review_payment_slip
from shared.errors import NotFoundError, UnauthorizedError


def _require(identity: str | None) -> str:
    identity = (identity or "").strip()
    if not identity:
        raise UnauthorizedError()
    return identity


# ---------------------------------------------------------------------------
# Storefront Router
# ---------------------------------------------------------------------------
storefront_router = APIRouter(tags=["storefront"])


@storefront_router.get("/products", response_model=ProductPageResponse)
async def list_products(
    q: str | None = None,
    featured: bool = False,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1),
) -> ProductPageResponse:
    result = list_active_products(query=q, featured_only=featured, page=page, page_size=page_size)
    return ProductPageResponse(
        items=[ProductSchema(**vars(p)) for p in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@storefront_router.get("/products/{slug}", response_model=ProductSchema)
async def get_product(slug: str) -> ProductSchema:
    product = get_product_by_slug(slug)
    if product is None:
        raise NotFoundError("PRODUCT_NOT_FOUND", "Product not found")
    return ProductSchema(**vars(product))


@storefront_router.post("/coupons/validate", response_model=CouponResponse)
async def validate_coupon_code(body: ValidateCouponRequest) -> CouponResponse:
    return CouponResponse(**validate_coupon(body.code, body.subtotal).to_dict())


@storefront_router.post("/orders", status_code=201, response_model=OrderCreatedResponse)
async def create_order(
    body: CreateOrderRequest,
    x_customer_id: str | None = Header(None),
) -> OrderCreatedResponse:
    placed = OrderPlacementService().place_order(
        customer_id=_require(x_customer_id),
        items=[item.model_dump() for item in body.items],
        customer=body.customer.model_dump(),
        coupon_code=body.coupon_code,
    )
    return OrderCreatedResponse(
        order_number=placed.order_number,
        payment_uri=placed.payment_uri,
        payable_amount=placed.payable_amount,
    )


@storefront_router.get("/orders")
async def my_orders(x_customer_id: str | None = Header(None)) -> dict:
    return {"orders": list_customer_orders(_require(x_customer_id))}


@storefront_router.get("/orders/{order_number}")
async def my_order(order_number: str, x_customer_id: str | None = Header(None)) -> dict:
    return get_customer_order(order_number, _require(x_customer_id))


@storefront_router.post("/orders/{order_number}/slip", status_code=201, response_model=SlipUploadedResponse)
async def upload_slip(
    order_number: str,
    file: UploadFile = File(...),
    x_customer_id: str | None = Header(None),
) -> SlipUploadedResponse:
    customer_id = _require(x_customer_id)
    content = await file.read()
    receipt = upload_payment_slip(
        order_number=order_number,
        customer_id=customer_id,
        filename=file.filename,
        content_type=file.content_type,
        content=content,
    )
    return SlipUploadedResponse(
        order_number=receipt.order_number,
        slip_id=receipt.slip_id,
        status=receipt.status,
        payment_status=receipt.payment_status,
    )


@storefront_router.post("/orders/{order_number}/cancel", response_model=OrderStatusResponse)
async def cancel_order(order_number: str, x_customer_id: str | None = Header(None)) -> OrderStatusResponse:
    result = OrderCancellationService().cancel_order(order_number, _require(x_customer_id))
    return OrderStatusResponse(
        order_number=result.order_number,
        status=result.status,
        payment_status=result.payment_status,
    )


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin", tags=["admin-orders"])


@admin_router.get("/orders")
async def admin_orders(
    q: str | None = None,
    status: str | None = None,
    limit: int = Query(100, ge=1, le=500),
    x_admin_id: str | None = Header(None),
) -> dict:
    _require(x_admin_id)
    return {"orders": list_admin_orders(query=q, status=status, limit=limit)}


@admin_router.get("/orders/{order_number}")
async def admin_order(order_number: str, x_admin_id: str | None = Header(None)) -> dict:
    _require(x_admin_id)
    return get_admin_order_detail(order_number)


@admin_router.post("/orders/{order_number}/review", response_model=OrderStatusResponse)
async def review_slip(
    order_number: str,
    body: ReviewSlipRequest,
    x_admin_id: str | None = Header(None),
) -> OrderStatusResponse:
    outcome = review_payment_slip(
        order_number=order_number,
        slip_id=body.slip_id,
        action=body.action,
        reviewer_id=_require(x_admin_id),
        note=body.note,
    )
    return OrderStatusResponse(
        order_number=outcome.order_number,
        status=outcome.status,
        payment_status=outcome.payment_status,
    )


_FULFILLMENT_COMMANDS = {
    "processing": MarkOrderProcessing,
    "shipped": MarkOrderShipped,
    "completed": MarkOrderCompleted,
}


@admin_router.put("/orders/{order_number}/{stage}", response_model=OrderStatusResponse)
async def advance_fulfillment(order_number: str, stage: str, x_admin_id: str | None = Header(None)) -> OrderStatusResponse:
    admin_id = _require(x_admin_id)
    command_cls = _FULFILLMENT_COMMANDS.get(stage)
    if command_cls is None:
        raise NotFoundError("NOT_FOUND", f"Unknown fulfillment stage: {stage}")
    current_domain.process(command_cls(order_number=order_number, admin_id=admin_id), asynchronous=False)

    detail = get_admin_order_detail(order_number)
    return OrderStatusResponse(
        order_number=detail["order_number"],
        status=detail["status"],
        payment_status=detail["payment_status"],
    )


@admin_router.get("/settings/payment", response_model=PaymentSettingsResponse)
async def read_payment_settings(x_admin_id: str | None = Header(None)) -> PaymentSettingsResponse:
    _require(x_admin_id)
    settings = get_payment_settings()
    return PaymentSettingsResponse(
        promptpay_id=settings.promptpay_id,
        promptpay_base_url=settings.base_url,
        source=settings.source,
    )


@admin_router.put("/settings/payment", response_model=PaymentSettingsResponse)
async def update_payment_settings(
    body: PaymentSettingsRequest,
    x_admin_id: str | None = Header(None),
) -> PaymentSettingsResponse:
    command = UpdatePaymentSettings(
        promptpay_id=body.promptpay_id,
        promptpay_base_url=body.promptpay_base_url,
        updated_by=_require(x_admin_id),
    )
    current_domain.process(command, asynchronous=False)
    settings = get_payment_settings()
    return PaymentSettingsResponse(
        promptpay_id=settings.promptpay_id,
        promptpay_base_url=settings.base_url,
        source=settings.source,
    )
