"""Human-readable order numbers: ``ORD-YYYYMMDDHHMM-NNNN``.

A random candidate is checked against existing orders up to
``MAX_ATTEMPTS`` times. After that a longer fallback number is returned
unchecked; the unique ``order_number`` column rejects the rare collision and
the orchestrator regenerates once.
"""

import random
from collections.abc import Callable
from datetime import UTC, datetime

from ordering.domain import logger

MAX_ATTEMPTS = 8
PREFIX = "ORD"

_random = random.SystemRandom()


def _stamp(now: datetime) -> str:
    return now.strftime("%Y%m%d%H%M")


def candidate_number(now: datetime | None = None) -> str:
    now = now or datetime.now(UTC)
    return f"{PREFIX}-{_stamp(now)}-{_random.randint(1000, 9999)}"


def fallback_number(now: datetime | None = None) -> str:
    now = now or datetime.now(UTC)
    return f"{PREFIX}-{_stamp(now)}-{_random.randint(1000, 9999)}-{_random.randint(10, 99)}"


def generate_order_number(is_taken: Callable[[str], bool], now: datetime | None = None) -> str:
    for _ in range(MAX_ATTEMPTS):
        number = candidate_number(now)
        if not is_taken(number):
            return number

    number = fallback_number(now)
    logger.warning("Order number attempts exhausted, using fallback", order_number=number)
    return number
