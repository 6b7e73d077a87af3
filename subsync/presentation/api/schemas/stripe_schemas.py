"""Pydantic schemas for Stripe API endpoints."""

from pydantic import BaseModel


class WebhookReceivedResponse(BaseModel):
    """Acknowledgement returned to Stripe once an event is authenticated."""

    received: bool = True
