from types import SimpleNamespace

import pytest
import stripe

from subsync.application.services.checkout_service import CheckoutService
from subsync.domain.exceptions import MissingContactError, UpstreamError
from subsync.domain.models import SubscriptionStatus, VerifiedIdentity


@pytest.fixture
def checkout_service(customer_directory, gateway, price_id):
    return CheckoutService(customer_directory, gateway, price_id=price_id, default_origin="https://app.example.com/")


def test_new_subject_gets_a_new_customer(checkout_service, store, stripe_api, price_id):
    identity = VerifiedIdentity(subject="user-1", email="user1@example.com")

    session_id = checkout_service.start_checkout(identity, origin="http://localhost:3000")

    assert session_id == "cs_test_123"
    stripe_api.customer_create.assert_called_once_with(email="user1@example.com", metadata={"subject": "user-1"})
    assert store.get_customer_id("user-1") == "cus_new"
    kwargs = stripe_api.session_create.call_args.kwargs
    assert kwargs["customer"] == "cus_new"
    assert kwargs["line_items"] == [{"price": price_id, "quantity": 1}]
    assert kwargs["success_url"] == "http://localhost:3000/success"
    assert kwargs["cancel_url"] == "http://localhost:3000/"
    assert kwargs["client_reference_id"] == "user-1"


def test_checkout_twice_reuses_existing_customer(checkout_service, store, stripe_api):
    stripe_api.customer_list.return_value = SimpleNamespace(data=[SimpleNamespace(id="cus_existing")])
    identity = VerifiedIdentity(subject="user-1", email="user1@example.com")

    checkout_service.start_checkout(identity)
    checkout_service.start_checkout(identity)

    stripe_api.customer_create.assert_not_called()
    assert stripe_api.customer_list.call_count == 2
    assert store.get_customer_id("user-1") == "cus_existing"


def test_checkout_does_not_write_subscription_status(checkout_service, store, stripe_api):
    checkout_service.start_checkout(VerifiedIdentity(subject="user-1", email="user1@example.com"))

    assert store.get_status("user-1") is SubscriptionStatus.UNSUBSCRIBED


def test_default_origin_used_without_request_origin(checkout_service, stripe_api):
    checkout_service.start_checkout(VerifiedIdentity(subject="user-1", email="user1@example.com"))

    kwargs = stripe_api.session_create.call_args.kwargs
    assert kwargs["success_url"] == "https://app.example.com/success"
    assert kwargs["cancel_url"] == "https://app.example.com/"


def test_missing_email_fails_before_any_stripe_call(checkout_service, store, stripe_api):
    with pytest.raises(MissingContactError):
        checkout_service.start_checkout(VerifiedIdentity(subject="user-1", email=None))

    stripe_api.customer_list.assert_not_called()
    stripe_api.session_create.assert_not_called()
    assert store.get_customer_id("user-1") is None


def test_failed_customer_creation_persists_no_mapping(checkout_service, store, stripe_api):
    stripe_api.customer_create.side_effect = stripe.APIConnectionError("timeout")

    with pytest.raises(UpstreamError):
        checkout_service.start_checkout(VerifiedIdentity(subject="user-1", email="user1@example.com"))

    assert store.get_customer_id("user-1") is None
    stripe_api.session_create.assert_not_called()


def test_failed_session_creation_keeps_resolved_mapping(checkout_service, store, stripe_api):
    stripe_api.session_create.side_effect = stripe.APIError("server error")

    with pytest.raises(UpstreamError):
        checkout_service.start_checkout(VerifiedIdentity(subject="user-1", email="user1@example.com"))

    # The customer exists at Stripe, so the mapping is kept for the retry.
    assert store.get_customer_id("user-1") == "cus_new"
