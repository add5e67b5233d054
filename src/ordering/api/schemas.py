"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands. Bounds that carry a business error code
(cart size, quantities, name and phone lengths) are enforced by the
services, so a bad cart gets ``INVALID_REQUEST`` rather than a schema error.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ProductSchema(BaseModel):
    id: str
    sku: str
    slug: str
    title: str
    price: float
    stock: int
    status: str
    is_featured: bool = False


class CartItemSchema(BaseModel):
    product_id: str
    quantity: int


class CustomerInfoSchema(BaseModel):
    full_name: str
    phone: str
    email: str | None = None
    note: str | None = None


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class ValidateCouponRequest(BaseModel):
    code: str
    subtotal: float = Field(ge=0)


class CreateOrderRequest(BaseModel):
    items: list[CartItemSchema]
    customer: CustomerInfoSchema
    coupon_code: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "prod-001", "quantity": 3}],
                    "customer": {"full_name": "Somchai Jaidee", "phone": "0812345678"},
                    "coupon_code": "SAVE10",
                }
            ]
        }
    }


class ReviewSlipRequest(BaseModel):
    slip_id: str
    action: str
    note: str | None = None


class PaymentSettingsRequest(BaseModel):
    promptpay_id: str
    promptpay_base_url: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class ProductPageResponse(BaseModel):
    items: list[ProductSchema]
    total: int
    page: int
    page_size: int
    total_pages: int


class CouponResponse(BaseModel):
    valid: bool
    code: str
    discount_type: str | None = None
    discount_value: float | None = None
    discount_amount: float
    subtotal: float
    total_after_discount: float
    message: str | None = None


class OrderCreatedResponse(BaseModel):
    order_number: str
    payment_uri: str
    payable_amount: float


class OrderStatusResponse(BaseModel):
    order_number: str
    status: str
    payment_status: str


class SlipUploadedResponse(OrderStatusResponse):
    slip_id: str


class PaymentSettingsResponse(BaseModel):
    promptpay_id: str | None = None
    promptpay_base_url: str
    source: str


class StatusResponse(BaseModel):
    status: str = "ok"
