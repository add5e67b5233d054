"""Error taxonomy shared by the ordering and newsletter contexts.

Every error carries a machine-readable ``code`` and an HTTP-style
``status_code``. Configuration and infrastructure errors keep their internal
detail in ``message`` (for operator logs) but expose only a generic
``public_message`` to end users.
"""


class StorefrontError(Exception):
    """Base exception for all storefront service errors."""

    status_code = 500
    retryable = False
    exposes_detail = True
    generic_message = "Something went wrong. Please try again later."

    def __init__(self, code: str, message: str, status_code: int | None = None):
        self.code = code
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(f"{code}: {message}")

    @property
    def public_message(self) -> str:
        return self.message if self.exposes_detail else self.generic_message


class InvalidRequestError(StorefrontError):
    """Malformed input, rejected before any side effect."""

    status_code = 400

    def __init__(self, message: str, code: str = "INVALID_REQUEST"):
        super().__init__(code, message)


class UnauthorizedError(StorefrontError):
    """No resolved identity was supplied by the auth layer."""

    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__("UNAUTHORIZED", message)


class NotFoundError(StorefrontError):
    """Unknown product, order, slip or subscriber."""

    status_code = 404


class ConflictError(StorefrontError):
    """Business rule rejection (stock, coupon, state).

    Defaults to 409; rejections the storefront reports as plain bad requests
    (inactive product, invalid coupon) pass ``status_code=400``.
    """

    status_code = 409


class ConfigurationError(StorefrontError):
    """Operator-actionable misconfiguration."""

    status_code = 500
    exposes_detail = False


class InfrastructureError(StorefrontError):
    """Storage, transport or persistence failure. Callers may retry."""

    status_code = 503
    retryable = True
    exposes_detail = False
