"""PaymentSettings aggregate: the merchant's PromptPay identity.

A single row (id ``default``) edited by admins. When the row has no merchant
id the environment (``PROMPTPAY_ID`` / ``PROMPTPAY_BASE_URL``) is used.
Orders snapshot the reference at creation time, so later edits never touch
existing orders.
"""

import os
from dataclasses import dataclass
from datetime import UTC, datetime

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering

SETTINGS_ID = "default"
DEFAULT_BASE_URL = "https://promptpay.io"


@ordering.aggregate
class PaymentSettings:
    id = Identifier(identifier=True, default=SETTINGS_ID)
    promptpay_id = String(max_length=64)
    promptpay_base_url = String(max_length=255)
    updated_by = Identifier()
    updated_at = DateTime()

    def update(self, promptpay_id, promptpay_base_url, updated_by):
        merchant = (promptpay_id or "").strip()
        if not merchant:
            raise ValidationError({"promptpay_id": ["PromptPay ID is required"]})
        base_url = (promptpay_base_url or "").strip() or DEFAULT_BASE_URL
        if not base_url.startswith(("http://", "https://")):
            raise ValidationError({"promptpay_base_url": ["Base URL must be http(s)"]})

        self.promptpay_id = merchant
        self.promptpay_base_url = base_url.rstrip("/")
        self.updated_by = updated_by
        self.updated_at = datetime.now(UTC)


@dataclass(frozen=True)
class MerchantSettings:
    promptpay_id: str | None
    base_url: str
    source: str

    @property
    def configured(self) -> bool:
        return bool(self.promptpay_id)


def _stored_settings() -> PaymentSettings | None:
    try:
        return current_domain.repository_for(PaymentSettings).get(SETTINGS_ID)
    except ObjectNotFoundError:
        return None


def get_payment_settings() -> MerchantSettings:
    settings = _stored_settings()
    if settings is not None and settings.promptpay_id:
        return MerchantSettings(
            promptpay_id=settings.promptpay_id,
            base_url=settings.promptpay_base_url or DEFAULT_BASE_URL,
            source="database",
        )
    return MerchantSettings(
        promptpay_id=(os.environ.get("PROMPTPAY_ID") or "").strip() or None,
        base_url=(os.environ.get("PROMPTPAY_BASE_URL") or "").strip() or DEFAULT_BASE_URL,
        source="environment",
    )


@ordering.command(part_of="PaymentSettings")
class UpdatePaymentSettings:
    promptpay_id = String(required=True, max_length=64)
    promptpay_base_url = String(max_length=255)
    updated_by = Identifier(required=True)


@ordering.command_handler(part_of=PaymentSettings)
class PaymentSettingsHandler:
    @handle(UpdatePaymentSettings)
    def update_settings(self, command):
        repo = current_domain.repository_for(PaymentSettings)
        settings = _stored_settings() or PaymentSettings(id=SETTINGS_ID)
        settings.update(command.promptpay_id, command.promptpay_base_url, command.updated_by)
        repo.add(settings)

        logger.info("Payment settings updated", updated_by=str(command.updated_by))
        return settings.promptpay_id
