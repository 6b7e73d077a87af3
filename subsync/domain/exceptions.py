"""Errors raised by the subscription services and translated by the API layer."""


class SubscriptionSyncError(Exception):
    """Base class for every failure the services surface to callers."""


class UnauthorizedError(SubscriptionSyncError):
    """Bearer credential missing, malformed, expired or otherwise rejected."""


class NotFoundError(SubscriptionSyncError):
    """A record the command depends on does not exist."""


class CustomerNotFoundError(NotFoundError):
    def __init__(self, subject: str) -> None:
        super().__init__("No Stripe customer found")
        self.subject = subject


class ActiveSubscriptionNotFoundError(NotFoundError):
    def __init__(self, customer_id: str) -> None:
        super().__init__("No active subscription found")
        self.customer_id = customer_id


class MissingContactError(SubscriptionSyncError):
    """The verified identity carries no email to look up or create a customer."""


class UpstreamError(SubscriptionSyncError):
    """A Stripe API call failed or timed out."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"Stripe {operation} failed: {message}")
        self.operation = operation


class SignatureVerificationFailed(SubscriptionSyncError):
    """Webhook payload could not be authenticated against the signing secret."""


class InvalidWebhookPayload(SubscriptionSyncError):
    """Authenticated webhook body is not a readable Stripe event."""
