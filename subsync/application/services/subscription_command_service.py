import logging

from ...domain.exceptions import ActiveSubscriptionNotFoundError
from ...domain.models import SubscriptionStatus
from ...domain.ports.persistence import SubscriptionStatusRepository
from ...services.customer_directory import CustomerDirectory
from ...services.stripe_service import StripeGateway

logger = logging.getLogger(__name__)


class SubscriptionCommandService:
    """Cancel and reactivate commands issued by the subscriber.

    Both commands write the resulting status optimistically, right after Stripe
    accepts the change and before the matching ``customer.subscription.updated``
    webhook arrives. A webhook processed concurrently may overwrite that value
    with whatever Stripe reported at the time; the store keeps the last write.
    Do not serialise these writes against the webhook: the command must return
    as soon as Stripe has accepted the change.
    """

    def __init__(
        self,
        customers: CustomerDirectory,
        stripe_gateway: StripeGateway,
        statuses: SubscriptionStatusRepository,
    ) -> None:
        self._customers = customers
        self._stripe = stripe_gateway
        self._statuses = statuses

    def cancel(self, subject: str) -> SubscriptionStatus:
        """Schedule the subscription to end at period end."""
        return self._apply(subject, cancel_at_period_end=True)

    def reactivate(self, subject: str) -> SubscriptionStatus:
        """Clear a scheduled cancellation."""
        return self._apply(subject, cancel_at_period_end=False)

    def _apply(self, subject: str, cancel_at_period_end: bool) -> SubscriptionStatus:
        customer_id = self._customers.require_customer_id(subject)

        subscription_id = self._stripe.find_active_subscription_id(customer_id)
        if subscription_id is None:
            raise ActiveSubscriptionNotFoundError(customer_id)

        self._stripe.set_cancel_at_period_end(subscription_id, cancel_at_period_end)

        status = (
            SubscriptionStatus.PENDING_CANCELLATION
            if cancel_at_period_end
            else SubscriptionStatus.SUBSCRIBED
        )
        # Optimistic: ahead of Stripe's webhook until it is delivered.
        self._statuses.set_status(subject, status)
        logger.info(
            "Subscription %s for subject %s set to %s",
            subscription_id,
            subject,
            status.value,
        )
        return status
