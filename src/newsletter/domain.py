"""Newsletter bounded context: subscriber registry and broadcast fan-out.

Independent of ordering: an admin composes a message, the dispatcher sends it
to the resolved subscribers over a bounded worker pool and logs one delivery
outcome per recipient.
"""

import structlog
from protean.domain import Domain

newsletter = Domain(name="newsletter")

logger = structlog.get_logger(__name__)
