from __future__ import annotations

from staffdesk_controller.controller.elements import Element, Event
from staffdesk_controller.services.subscriptions import OneShotListener, Subscription, SubscriptionGroup


def test_subscription_cancel_is_idempotent():
    element = Element("input")
    seen: list[str] = []
    subscription = Subscription(element, "change", lambda event: seen.append(event.type))

    element.dispatch(Event("change"))
    subscription.cancel()
    subscription.cancel()
    element.dispatch(Event("change"))

    assert seen == ["change"]
    assert subscription.active is False
    assert element.listener_count("change") == 0


def test_subscription_context_manager_detaches_on_error():
    element = Element("input")
    try:
        with Subscription(element, "change", lambda _event: None):
            assert element.listener_count("change") == 1
            raise RuntimeError("boom")
    except RuntimeError:
        pass
    assert element.listener_count("change") == 0


def test_one_shot_listener_fires_once_even_when_reentrant():
    element = Element("input")
    calls: list[object] = []

    def _callback(event):
        calls.append(event)
        # Re-dispatch from inside the callback; the listener is already detached.
        element.dispatch(Event("change"))

    listener = OneShotListener(element, "change", _callback)
    element.dispatch(Event("change"))
    element.dispatch(Event("change"))

    assert len(calls) == 1
    assert listener.active is False


def test_one_shot_listener_cancel_prevents_firing():
    element = Element("input")
    calls: list[object] = []
    listener = OneShotListener(element, "change", calls.append)

    listener.cancel()
    element.dispatch(Event("change"))

    assert calls == []
    assert element.listener_count() == 0


def test_subscription_group_cancel_all_and_prune():
    element = Element("input")
    group = SubscriptionGroup()
    group.add(Subscription(element, "focus", lambda _e: None))
    shot = group.add(OneShotListener(element, "change", lambda _e: None))
    assert len(group) == 2

    element.dispatch(Event("change"))
    assert shot.active is False
    group.prune()
    assert len(group) == 1

    group.cancel_all()
    assert len(group) == 0
    assert element.listener_count() == 0
