"""CustomerProfile aggregate: contact details kept alongside orders.

The profile row must exist before an order references the customer, so
checkout upserts it with the details just entered.
"""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering


@ordering.aggregate
class CustomerProfile:
    id = Identifier(identifier=True)
    full_name = String(required=True, max_length=120)
    phone = String(max_length=32)
    updated_at = DateTime()


def ensure_customer_profile(customer_id, full_name, phone) -> CustomerProfile:
    repo = current_domain.repository_for(CustomerProfile)
    try:
        profile = repo.get(customer_id)
    except ObjectNotFoundError:
        profile = CustomerProfile(id=customer_id, full_name=full_name)

    profile.full_name = full_name
    profile.phone = phone
    profile.updated_at = datetime.now(UTC)
    repo.add(profile)
    return profile
