from fastapi import Depends, Request

from .container import ApplicationContainer


def get_container(request: Request) -> ApplicationContainer:
    container = getattr(request.app.state, "container", None)
    if not container:
        raise RuntimeError("Application container not initialised.")
    return container


def get_store(container: ApplicationContainer = Depends(get_container)):
    return container.store


def get_identity_verifier(container: ApplicationContainer = Depends(get_container)):
    return container.identity_verifier


def get_stripe_gateway(container: ApplicationContainer = Depends(get_container)):
    return container.stripe_gateway


def get_checkout_service(container: ApplicationContainer = Depends(get_container)):
    return container.checkout_service


def get_command_service(container: ApplicationContainer = Depends(get_container)):
    return container.command_service


def get_webhook_reconciler(container: ApplicationContainer = Depends(get_container)):
    return container.webhook_reconciler
