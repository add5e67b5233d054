"""Slip intake: a customer uploads proof of payment for their order.

The file is checked and stored first; only then is the slip recorded. The
slip row and the order's move to ``pending_review`` are written by one
command handler, so they commit together or not at all.
"""

import re
from dataclasses import dataclass
from uuid import uuid4

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.order.lookup import find_customer_order
from ordering.order.order import Order
from ordering.slip.slip import PaymentSlip, slips_for_order
from ordering.slip.storage import get_slip_storage
from shared.errors import ConflictError, InfrastructureError, InvalidRequestError, NotFoundError

MAX_SLIP_BYTES = 10 * 1024 * 1024
SLIP_URL_TTL_SECONDS = 60 * 60 * 24 * 7
ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "application/pdf": "pdf",
}


@dataclass(frozen=True)
class SlipReceipt:
    order_number: str
    slip_id: str
    status: str
    payment_status: str


def safe_extension(filename, content_type) -> str:
    """Extension from the uploaded filename, reduced to ``[a-z0-9]``."""
    name = filename or ""
    ext = name.rsplit(".", 1)[-1] if "." in name else ""
    ext = re.sub(r"[^a-z0-9]", "", ext.lower())
    return ext or ALLOWED_CONTENT_TYPES.get(content_type, "bin")


def slip_path(order_number, filename, content_type) -> str:
    return f"{order_number}/{uuid4().hex}.{safe_extension(filename, content_type)}"


@ordering.command(part_of="PaymentSlip")
class RecordPaymentSlip:
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    file_path = String(required=True, max_length=500)
    file_url = String(required=True, max_length=2000)
    content_type = String(required=True, max_length=100)


@ordering.command_handler(part_of=PaymentSlip)
class RecordPaymentSlipHandler:
    @handle(RecordPaymentSlip)
    def record_slip(self, command):
        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(command.order_id)

        slip = PaymentSlip.submit(
            order=order,
            customer_id=command.customer_id,
            sequence=len(slips_for_order(order.id)) + 1,
            file_path=command.file_path,
            file_url=command.file_url,
            content_type=command.content_type,
        )
        order.submit_slip(slip.id)

        current_domain.repository_for(PaymentSlip).add(slip)
        order_repo.add(order)
        return str(slip.id)


def upload_payment_slip(order_number, customer_id, filename, content_type, content) -> SlipReceipt:
    order_number = (order_number or "").strip()
    if not order_number:
        raise InvalidRequestError("Order number is required", code="INVALID_ORDER_NO")

    size = len(content or b"")
    if size <= 0 or size > MAX_SLIP_BYTES:
        raise InvalidRequestError("Slip file size must be between 1 byte and 10MB", code="INVALID_FILE")

    content_type = (content_type or "").split(";", 1)[0].strip().lower()
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise InvalidRequestError("Only JPG, PNG, WEBP, or PDF are allowed", code="INVALID_FILE_TYPE")

    order = find_customer_order(order_number, customer_id)
    if order is None:
        raise NotFoundError("ORDER_NOT_FOUND", "Order not found")
    if not order.accepts_slips:
        raise ConflictError("ORDER_NOT_AWAITING_PAYMENT", f"Order is {order.status}, not awaiting payment")

    storage = get_slip_storage()
    path = slip_path(order.order_number, filename, content_type)

    stored = storage.upload(path, content, content_type)
    if not stored.success:
        logger.error("Slip upload failed", order_number=order_number, path=path, error=stored.error)
        raise InfrastructureError("SLIP_UPLOAD_FAILED", stored.error or "Upload failed")

    signed = storage.create_timed_access_url(path, SLIP_URL_TTL_SECONDS)
    if not signed.success:
        logger.error("Slip URL signing failed", order_number=order_number, path=path, error=signed.error)
        raise InfrastructureError("SLIP_URL_FAILED", signed.error or "Could not create slip URL")

    slip_id = current_domain.process(
        RecordPaymentSlip(
            order_id=str(order.id),
            customer_id=str(customer_id),
            file_path=path,
            file_url=signed.url,
            content_type=content_type,
        ),
        asynchronous=False,
    )

    order = current_domain.repository_for(Order).get(order.id)
    logger.info("Payment slip submitted", order_number=order.order_number, slip_id=slip_id, size=size)
    return SlipReceipt(
        order_number=order.order_number,
        slip_id=slip_id,
        status=order.status,
        payment_status=order.payment_status,
    )
