"""Resolution of subjects to Stripe customers."""

import logging

from ..domain.exceptions import CustomerNotFoundError
from ..domain.ports.persistence import CustomerMappingRepository
from .stripe_service import StripeGateway

logger = logging.getLogger(__name__)


class CustomerDirectory:
    """Maps each subject to exactly one Stripe customer."""

    def __init__(self, mappings: CustomerMappingRepository, stripe_gateway: StripeGateway) -> None:
        self._mappings = mappings
        self._stripe = stripe_gateway

    def resolve_or_create(self, subject: str, email: str) -> str:
        """
        Find the subject's Stripe customer by email, creating one if absent.

        The email lookup is limited to one result and treated as authoritative,
        so repeated checkouts reuse the same customer. The mapping is persisted
        only after Stripe has returned a customer id.

        Args:
            subject: Verified subject identifier
            email: Contact address from the verified identity

        Returns:
            Stripe customer id

        Raises:
            UpstreamError: If a Stripe call fails; nothing is persisted in that case
        """
        customer_id = self._stripe.find_customer_by_email(email)
        if customer_id is None:
            customer_id = self._stripe.create_customer(email, subject)
        else:
            logger.debug("Reusing Stripe customer %s for subject %s", customer_id, subject)

        self._mappings.set_customer_id(subject, customer_id)
        return customer_id

    def require_customer_id(self, subject: str) -> str:
        """Return the stored customer id or raise ``CustomerNotFoundError``."""
        customer_id = self._mappings.get_customer_id(subject)
        if not customer_id:
            raise CustomerNotFoundError(subject)
        return customer_id
