"""Stripe webhook endpoint."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from starlette.concurrency import run_in_threadpool

from ....application.services.webhook_reconciler import WebhookReconciler
from ....core.dependencies import get_webhook_reconciler
from ....domain.exceptions import InvalidWebhookPayload, SignatureVerificationFailed
from ...api.schemas.stripe_schemas import WebhookReceivedResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stripe", tags=["Stripe Payments"])


@router.post("/webhook", response_model=WebhookReceivedResponse, include_in_schema=False)
async def stripe_webhook(
    request: Request,
    reconciler: WebhookReconciler = Depends(get_webhook_reconciler),
) -> WebhookReceivedResponse:
    """Handle Stripe webhook events.

    Any authenticated event is acknowledged, including types this service does
    not act on and events that match no subject, so Stripe stops redelivering
    them.
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")

    try:
        await run_in_threadpool(reconciler.handle, payload, sig_header)
    except SignatureVerificationFailed as exc:
        logger.warning("Rejected webhook: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Webhook Error: {exc}",
        ) from exc
    except InvalidWebhookPayload as exc:
        logger.warning("Unreadable webhook payload: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Webhook Error: {exc}",
        ) from exc
    except Exception as exc:
        logger.exception("Webhook processing failed")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Webhook Error: processing failed",
        ) from exc

    return WebhookReceivedResponse(received=True)


@router.options("/webhook", include_in_schema=False)
async def stripe_webhook_preflight() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT)
