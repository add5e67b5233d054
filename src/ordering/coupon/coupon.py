"""Coupon aggregate (CQRS): discount rules, read-only to checkout.

Coupons are stored under one schema contract. Rows exported from the legacy
table layout (``coupon_code``, ``type``, ``minimum_spend``, several expiry
column names...) are normalized once by ``normalize_legacy_coupon`` and
imported with ``ImportCoupons``; lookups never branch on column variants.
"""

import json
from datetime import UTC, datetime

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering

SCHEMA_VERSION = 2
_EXPIRY_FIELDS = ("expires_at", "expired_at", "end_at", "expire_at")


@ordering.aggregate
class Coupon:
    code = String(required=True, max_length=64, unique=True)
    # Kept as raw text: a malformed rule must still be readable so the
    # validator can report it as a configuration error.
    discount_type = String(max_length=32)
    discount_value = Float(default=0.0)
    min_spend = Float(default=0.0)
    is_active = Boolean(default=True)
    expires_at = DateTime()
    schema_version = Integer(default=SCHEMA_VERSION)

    @classmethod
    def create(cls, code, discount_type, discount_value, min_spend=0.0, is_active=True, expires_at=None):
        normalized = (code or "").strip().upper()
        if not normalized:
            raise ValidationError({"code": ["Coupon code is required"]})
        return cls(
            code=normalized,
            discount_type=discount_type,
            discount_value=discount_value,
            min_spend=min_spend or 0.0,
            is_active=is_active,
            expires_at=expires_at,
        )

    def is_expired(self, now=None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(UTC)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return expires_at < now


def _optional_text(value):
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _as_number(value) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if number == number and number not in (float("inf"), float("-inf")) else 0.0


def _parse_timestamp(raw):
    if isinstance(raw, datetime):
        return raw
    text = _optional_text(raw)
    if text is None:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def _legacy_active(row: dict) -> bool:
    status = str(row.get("status") or "").strip().lower()
    if status:
        return status == "active"
    if isinstance(row.get("is_active"), bool):
        return row["is_active"]
    return True


def normalize_legacy_coupon(row: dict) -> dict:
    """Map a legacy coupon row onto the current schema.

    The first parseable expiry column wins. Discount type is copied verbatim;
    interpreting it is the validator's job.
    """
    expires_at = None
    for field_name in _EXPIRY_FIELDS:
        expires_at = _parse_timestamp(row.get(field_name))
        if expires_at is not None:
            break

    discount_type = row.get("discount_type")
    if discount_type is None:
        discount_type = row.get("type")

    return {
        "code": (_optional_text(row.get("code")) or _optional_text(row.get("coupon_code")) or "").upper(),
        "discount_type": None if discount_type is None else str(discount_type),
        "discount_value": _as_number(row.get("discount_value", row.get("value"))),
        "min_spend": _as_number(row.get("min_spend", row.get("minimum_spend"))),
        "is_active": _legacy_active(row),
        "expires_at": expires_at,
    }


@ordering.command(part_of="Coupon")
class ImportCoupons:
    """Import coupon rows exported from the legacy coupons table."""

    rows = Text(required=True)  # JSON: list of legacy row dicts


@ordering.command_handler(part_of=Coupon)
class ImportCouponsHandler:
    @handle(ImportCoupons)
    def import_coupons(self, command):
        rows = json.loads(command.rows) if isinstance(command.rows, str) else command.rows
        repo = current_domain.repository_for(Coupon)

        imported = 0
        for row in rows:
            data = normalize_legacy_coupon(row)
            if not data["code"]:
                logger.warning("Skipping legacy coupon without a code", row_keys=sorted(row))
                continue
            repo.add(Coupon.create(**data))
            imported += 1

        logger.info("Legacy coupons imported", imported=imported, skipped=len(rows) - imported)
        return imported
