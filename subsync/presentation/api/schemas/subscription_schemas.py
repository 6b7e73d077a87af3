"""Pydantic schemas for subscription API endpoints."""

from pydantic import BaseModel, ConfigDict, Field

from ....domain.models import SubscriptionStatus


class StartCheckoutResponse(BaseModel):
    """Response schema for starting a checkout session."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")


class CommandResponse(BaseModel):
    """Response schema for cancel and reactivate commands."""

    success: bool = True


class SubscriptionStatusResponse(BaseModel):
    """Response schema for the caller's stored subscription status."""

    status: SubscriptionStatus
