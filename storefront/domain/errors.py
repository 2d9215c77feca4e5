"""Error taxonomy shared by every storefront operation.

Each error carries the HTTP status it maps to at the request boundary
(see the exception handlers in ``storefront.main``) and a short message
that is safe to show to the caller.
"""

class StorefrontError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(StorefrontError):
    """Malformed or missing request fields. Raised before any mutation."""
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(StorefrontError):
    status_code = 404
    default_message = "Not found"


class UnauthorizedError(StorefrontError):
    status_code = 401
    default_message = "Authentication required"


class InvalidSignatureError(UnauthorizedError):
    """A signed payment callback did not match the recomputed signature."""
    status_code = 400
    default_message = "Invalid payment signature"


class ForbiddenError(StorefrontError):
    status_code = 403
    default_message = "Insufficient privileges"


class UnavailableError(StorefrontError):
    """Referenced product exists but is not currently sellable."""
    status_code = 400
    default_message = "Product is not available"


class PreconditionFailedError(StorefrontError):
    status_code = 409
    default_message = "Precondition failed"


class InvalidTransitionError(PreconditionFailedError):
    default_message = "Invalid order status transition"

    def __init__(self, order_id: str, current: str, target: str):
        self.order_id = order_id
        self.current = current
        self.target = target
        super().__init__(f"Order {order_id} cannot move from '{current}' to '{target}'")


class CollaboratorError(StorefrontError):
    """An external payment/shipping call failed; message is passed through as received."""
    status_code = 502
    default_message = "External service call failed"


class InternalError(StorefrontError):
    status_code = 500
