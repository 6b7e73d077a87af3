import logging
from typing import Optional

from ...domain.exceptions import MissingContactError
from ...domain.models import VerifiedIdentity
from ...services.customer_directory import CustomerDirectory
from ...services.stripe_service import StripeGateway

logger = logging.getLogger(__name__)


class CheckoutService:
    """Starts Stripe Checkout for a verified caller.

    No subscription status is written here; the status becomes ``subscribed``
    only when the ``checkout.session.completed`` webhook arrives.
    """

    def __init__(
        self,
        customers: CustomerDirectory,
        stripe_gateway: StripeGateway,
        price_id: str,
        default_origin: str,
    ) -> None:
        self._customers = customers
        self._stripe = stripe_gateway
        self._price_id = price_id
        self._default_origin = default_origin.rstrip("/")

    def start_checkout(self, identity: VerifiedIdentity, origin: Optional[str] = None) -> str:
        if not identity.email:
            logger.error("Checkout requested by subject %s without an email claim", identity.subject)
            raise MissingContactError("Token does not contain email")

        customer_id = self._customers.resolve_or_create(identity.subject, identity.email)

        base_url = (origin or self._default_origin).rstrip("/")
        session_id = self._stripe.create_checkout_session(
            customer_id=customer_id,
            subject=identity.subject,
            price_id=self._price_id,
            success_url=f"{base_url}/success",
            cancel_url=f"{base_url}/",
        )
        logger.info("Checkout session %s opened for subject %s", session_id, identity.subject)
        return session_id
