from types import SimpleNamespace

import pytest
import stripe

from subsync.application.services.subscription_command_service import SubscriptionCommandService
from subsync.domain.exceptions import ActiveSubscriptionNotFoundError, CustomerNotFoundError, UpstreamError
from subsync.domain.models import SubscriptionStatus


@pytest.fixture
def commands(customer_directory, gateway, store):
    return SubscriptionCommandService(customer_directory, gateway, store)


def test_cancel_marks_pending_cancellation(commands, store, stripe_api):
    store.set_customer_id("user-1", "cus_1")
    store.set_status("user-1", SubscriptionStatus.SUBSCRIBED)

    assert commands.cancel("user-1") is SubscriptionStatus.PENDING_CANCELLATION

    stripe_api.subscription_list.assert_called_once_with(customer="cus_1", status="active", limit=1)
    stripe_api.subscription_modify.assert_called_once_with("sub_123", cancel_at_period_end=True)
    assert store.get_status("user-1") is SubscriptionStatus.PENDING_CANCELLATION


def test_reactivate_marks_subscribed(commands, store, stripe_api):
    store.set_customer_id("user-1", "cus_1")
    store.set_status("user-1", SubscriptionStatus.PENDING_CANCELLATION)

    assert commands.reactivate("user-1") is SubscriptionStatus.SUBSCRIBED

    stripe_api.subscription_modify.assert_called_once_with("sub_123", cancel_at_period_end=False)
    assert store.get_status("user-1") is SubscriptionStatus.SUBSCRIBED


def test_cancel_without_customer_touches_nothing(commands, store, stripe_api):
    with pytest.raises(CustomerNotFoundError):
        commands.cancel("user-1")

    stripe_api.subscription_list.assert_not_called()
    stripe_api.subscription_modify.assert_not_called()
    assert store.get_status("user-1") is SubscriptionStatus.UNSUBSCRIBED
    assert store.get_customer_id("user-1") is None


def test_reactivate_without_active_subscription(commands, store, stripe_api):
    store.set_customer_id("user-1", "cus_1")
    store.set_status("user-1", SubscriptionStatus.PENDING_CANCELLATION)
    stripe_api.subscription_list.return_value = SimpleNamespace(data=[])

    with pytest.raises(ActiveSubscriptionNotFoundError):
        commands.reactivate("user-1")

    stripe_api.subscription_modify.assert_not_called()
    assert store.get_status("user-1") is SubscriptionStatus.PENDING_CANCELLATION


def test_failed_mutation_leaves_status_unchanged(commands, store, stripe_api):
    store.set_customer_id("user-1", "cus_1")
    store.set_status("user-1", SubscriptionStatus.SUBSCRIBED)
    stripe_api.subscription_modify.side_effect = stripe.APIConnectionError("timeout")

    with pytest.raises(UpstreamError):
        commands.cancel("user-1")

    assert store.get_status("user-1") is SubscriptionStatus.SUBSCRIBED
