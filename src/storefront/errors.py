"""Storefront error taxonomy.

Every error carries a stable ``code`` and the HTTP status the API answers
with. Messages are shown to shoppers, so they say what to do next.
"""


class StorefrontError(Exception):
    code = "storefront_error"
    status_code = 400
    default_message = "The request could not be completed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class InvalidInput(StorefrontError):
    code = "invalid_input"
    default_message = "The request is malformed"


class NotFound(StorefrontError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class NoSession(StorefrontError):
    code = "no_session"
    default_message = "No shopping session found. Add something to your cart first."


class EmptyCart(StorefrontError):
    code = "empty_cart"
    default_message = "Your cart is empty"


class ProductUnavailable(StorefrontError):
    code = "product_unavailable"
    default_message = "An item in your cart is no longer available"


class InvalidTotal(StorefrontError):
    code = "invalid_total"
    default_message = "The order total is invalid. Please refresh your cart and try again."


class IncompleteOrderData(StorefrontError):
    code = "incomplete_order_data"
    default_message = "Order data is missing required fields"

    def __init__(self, missing_fields: list[str]) -> None:
        self.missing_fields = list(missing_fields)
        super().__init__(f"Order data is missing required fields: {', '.join(self.missing_fields)}")


class InvalidWebhook(StorefrontError):
    code = "invalid_webhook"
    default_message = "Webhook payload could not be verified"


class UpstreamFailure(StorefrontError):
    """Persistence or payment provider failure.

    ``retryable`` marks failures that may succeed when attempted again.
    """

    code = "upstream_failure"
    status_code = 502
    default_message = "A dependent service failed. Please try again."

    def __init__(self, message: str | None = None, retryable: bool = True) -> None:
        self.retryable = retryable
        super().__init__(message)
