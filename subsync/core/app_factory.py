from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import Depends, FastAPI

from .config import Settings
from .container import ApplicationContainer
from .cors import ALLOWED_HEADERS, ALLOWED_METHODS, PreflightCORSMiddleware
from .dependencies import get_stripe_gateway
from .logging import configure_logging
from ..application.services.checkout_service import CheckoutService
from ..application.services.subscription_command_service import SubscriptionCommandService
from ..application.services.webhook_reconciler import WebhookReconciler
from ..infrastructure.persistence.sqlite import SQLiteSubscriptionStore
from ..presentation.api.routers import stripe_router
from ..presentation.api.routers import subscription_router
from ..services.customer_directory import CustomerDirectory
from ..services.identity_service import JWTIdentityVerifier
from ..services.stripe_service import StripeGateway

logger = logging.getLogger(__name__)


def create_application(
    settings: Optional[Settings] = None,
    container: Optional[ApplicationContainer] = None,
) -> FastAPI:
    """Build the ASGI app.

    A prebuilt ``container`` replaces the one the lifespan would assemble from
    ``settings``; tests use this to inject fakes.
    """
    settings = settings or (container.settings if container else Settings())

    app = FastAPI(title="Subscription Sync", lifespan=_create_lifespan(settings, container))

    app.add_middleware(
        PreflightCORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
    )

    app.include_router(subscription_router.router)
    app.include_router(stripe_router.router)

    @app.get("/health")
    async def health(stripe_gateway: StripeGateway = Depends(get_stripe_gateway)) -> Dict[str, Any]:
        return {"ok": True, "stripe_configured": stripe_gateway.is_configured()}

    return app


def build_container(settings: Settings) -> ApplicationContainer:
    store = SQLiteSubscriptionStore(settings.database_path)
    identity_verifier = JWTIdentityVerifier(
        secret=settings.auth_token_secret,
        algorithm=settings.auth_token_algorithm,
        audience=settings.auth_token_audience,
    )
    stripe_gateway = StripeGateway(
        secret_key=settings.stripe_secret_key,
        webhook_secret=settings.stripe_webhook_secret,
        webhook_tolerance=settings.stripe_webhook_tolerance,
    )
    customer_directory = CustomerDirectory(store, stripe_gateway)
    return ApplicationContainer(
        settings=settings,
        store=store,
        identity_verifier=identity_verifier,
        stripe_gateway=stripe_gateway,
        checkout_service=CheckoutService(
            customer_directory,
            stripe_gateway,
            price_id=settings.stripe_price_id,
            default_origin=settings.frontend_base_url,
        ),
        command_service=SubscriptionCommandService(customer_directory, stripe_gateway, store),
        webhook_reconciler=WebhookReconciler(stripe_gateway, store),
    )


def _create_lifespan(settings: Settings, prebuilt: Optional[ApplicationContainer]):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        container = prebuilt or build_container(settings)
        app.state.container = container  # type: ignore[attr-defined]
        logger.info("Subscription store ready at %s", settings.database_path)

        try:
            yield
        finally:
            if prebuilt is None:
                close = getattr(container.store, "close", None)
                if close:
                    close()

    return lifespan
