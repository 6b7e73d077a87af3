"""API router for subscriber-initiated checkout, cancel and reactivate."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from ....application.services.checkout_service import CheckoutService
from ....application.services.subscription_command_service import SubscriptionCommandService
from ....core.dependencies import get_checkout_service, get_command_service, get_store
from ....domain.exceptions import MissingContactError, NotFoundError, UpstreamError
from ....domain.models import VerifiedIdentity
from ....domain.ports.persistence import SubscriptionStatusRepository
from ..dependencies import require_identity
from ..schemas.subscription_schemas import (
    CommandResponse,
    StartCheckoutResponse,
    SubscriptionStatusResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subscription", tags=["subscription"])


# Handlers calling Stripe are plain ``def`` so FastAPI runs them in its threadpool.

@router.post("/start-checkout", response_model=StartCheckoutResponse)
def start_checkout(
    request: Request,
    identity: VerifiedIdentity = Depends(require_identity),
    checkout_service: CheckoutService = Depends(get_checkout_service),
) -> StartCheckoutResponse:
    """Open a Stripe Checkout session for the caller."""
    try:
        session_id = checkout_service.start_checkout(identity, origin=request.headers.get("origin"))
    except (MissingContactError, UpstreamError) as exc:
        logger.error("Checkout failed for subject %s: %s", identity.subject, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create checkout session",
        ) from exc

    return StartCheckoutResponse(session_id=session_id)


@router.post("/cancel", response_model=CommandResponse)
def cancel_subscription(
    identity: VerifiedIdentity = Depends(require_identity),
    command_service: SubscriptionCommandService = Depends(get_command_service),
) -> CommandResponse:
    """Cancel the caller's subscription at the end of the billing period."""
    try:
        command_service.cancel(identity.subject)
    except NotFoundError as exc:
        logger.info("Cancel rejected for subject %s: %s", identity.subject, exc)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except UpstreamError as exc:
        logger.error("Cancel failed for subject %s: %s", identity.subject, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to cancel subscription",
        ) from exc

    return CommandResponse(success=True)


@router.post("/reactivate", response_model=CommandResponse)
def reactivate_subscription(
    identity: VerifiedIdentity = Depends(require_identity),
    command_service: SubscriptionCommandService = Depends(get_command_service),
) -> CommandResponse:
    """Undo a scheduled cancellation."""
    try:
        command_service.reactivate(identity.subject)
    except NotFoundError as exc:
        logger.info("Reactivate rejected for subject %s: %s", identity.subject, exc)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except UpstreamError as exc:
        logger.error("Reactivate failed for subject %s: %s", identity.subject, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to reactivate subscription",
        ) from exc

    return CommandResponse(success=True)


@router.get("/status", response_model=SubscriptionStatusResponse)
def get_subscription_status(
    identity: VerifiedIdentity = Depends(require_identity),
    statuses: SubscriptionStatusRepository = Depends(get_store),
) -> SubscriptionStatusResponse:
    """Return the caller's stored status; no record reads as unsubscribed."""
    return SubscriptionStatusResponse(status=statuses.get_status(identity.subject))


def _preflight() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT)


for _path in ("/start-checkout", "/cancel", "/reactivate"):
    router.add_api_route(_path, _preflight, methods=["OPTIONS"], include_in_schema=False)
