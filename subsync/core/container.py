from dataclasses import dataclass

from ..application.services.checkout_service import CheckoutService
from ..application.services.subscription_command_service import SubscriptionCommandService
from ..application.services.webhook_reconciler import WebhookReconciler
from ..domain.ports.identity import IdentityVerifier
from ..domain.ports.persistence import SubscriptionStateStore
from ..services.stripe_service import StripeGateway
from .config import Settings


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    store: SubscriptionStateStore
    identity_verifier: IdentityVerifier
    stripe_gateway: StripeGateway
    checkout_service: CheckoutService
    command_service: SubscriptionCommandService
    webhook_reconciler: WebhookReconciler
