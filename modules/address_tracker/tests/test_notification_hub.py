"""
Unit tests for NotificationHub and LoggingChangeSubscriber.
"""

import logging

import pytest
from unittest.mock import Mock

from modules.address_tracker.change_detection import FieldChange, ChangeSignature, TrackedField
from modules.address_tracker.notifications import (
    NotificationHub, SubscriberKind, LoggingChangeSubscriber
)


class RecordingSubscriber:
    """Stateful subscriber that records every update."""

    def __init__(self, log=None, name="recorder"):
        self.updates = []
        self.log = log if log is not None else []
        self.name = name

    def update(self, *args, **kwargs):
        self.updates.append((args, kwargs))
        self.log.append(self.name)


class FailingSubscriber:
    def update(self, *args, **kwargs):
        raise RuntimeError("display offline")


class TestNotificationHub:
    """Test subscribe/unsubscribe/publish semantics."""

    @pytest.fixture
    def hub(self):
        return NotificationHub(name="TestHub")

    def test_publish_with_no_subscribers(self, hub):
        report = hub.publish("street", "payload")

        assert report.delivered == 0
        assert report.all_delivered

    def test_stateful_and_callback_receive_same_arguments(self, hub):
        stateful = RecordingSubscriber()
        callback = Mock()
        hub.subscribe_stateful(stateful)
        hub.subscribe_callback(callback)

        report = hub.publish("neighborhood", "change", source="test")

        assert stateful.updates == [(("neighborhood", "change"), {"source": "test"})]
        callback.assert_called_once_with("neighborhood", "change", source="test")
        assert report.delivered == 2

    def test_delivery_in_registration_order(self, hub):
        log = []
        hub.subscribe_stateful(RecordingSubscriber(log, "first"))
        hub.subscribe_callback(lambda *args: log.append("second"))
        hub.subscribe_stateful(RecordingSubscriber(log, "third"))

        hub.publish("street")

        assert log == ["first", "second", "third"]

    def test_failing_subscriber_is_isolated(self, hub, caplog):
        before = Mock()
        after = RecordingSubscriber()
        hub.subscribe_callback(before)
        hub.subscribe_stateful(FailingSubscriber())
        hub.subscribe_stateful(after)

        with caplog.at_level(logging.ERROR):
            report = hub.publish("municipality", "x")

        before.assert_called_once()
        assert len(after.updates) == 1
        assert report.delivered == 2
        assert report.failed == 1
        assert report.failures[0].kind is SubscriberKind.STATEFUL
        assert isinstance(report.failures[0].error, RuntimeError)
        assert "display offline" in caplog.text

    def test_duplicate_subscription_delivers_twice(self, hub):
        subscriber = RecordingSubscriber()
        hub.subscribe_stateful(subscriber)
        hub.subscribe_stateful(subscriber)

        hub.publish("street")

        assert len(subscriber.updates) == 2
        assert hub.subscriber_count == 2

    def test_unsubscribe_removes_every_registration(self, hub):
        subscriber = RecordingSubscriber()
        hub.subscribe_stateful(subscriber)
        hub.subscribe_stateful(subscriber)

        assert hub.unsubscribe_stateful(subscriber) == 2
        hub.publish("street")

        assert subscriber.updates == []
        assert hub.unsubscribe_stateful(subscriber) == 0

    def test_unsubscribe_callback_matches_bound_methods(self, hub):
        subscriber = RecordingSubscriber()
        hub.subscribe_callback(subscriber.update)

        assert hub.unsubscribe_callback(subscriber.update) == 1
        assert hub.callback_count == 0

    def test_unsubscribe_kinds_are_separate(self, hub):
        subscriber = RecordingSubscriber()
        hub.subscribe_stateful(subscriber)

        assert hub.unsubscribe_callback(subscriber) == 0
        assert hub.stateful_count == 1

    def test_unsubscribe_handle_removes_only_its_registration(self, hub):
        subscriber = RecordingSubscriber()
        first = hub.subscribe_stateful(subscriber)
        hub.subscribe_stateful(subscriber)

        assert first() is True
        assert first() is False

        hub.publish("street")
        assert len(subscriber.updates) == 1

    def test_subscribe_rejects_invalid_subscribers(self, hub):
        with pytest.raises(TypeError):
            hub.subscribe_stateful(object())

        with pytest.raises(TypeError):
            hub.subscribe_callback("not callable")

        assert hub.subscriber_count == 0

    def test_subscriber_added_during_publish_waits_for_next_publish(self, hub):
        late = Mock()

        def adder(*args):
            hub.subscribe_callback(late)

        hub.subscribe_callback(adder)
        hub.publish("street")
        late.assert_not_called()

        hub.publish("street")
        late.assert_called_once_with("street")

    def test_subscriber_removed_during_publish_still_receives_it(self, hub):
        victim = Mock()

        def remover(*args):
            hub.unsubscribe_callback(victim)

        hub.subscribe_callback(remover)
        hub.subscribe_callback(victim)

        hub.publish("street")
        hub.publish("street")

        victim.assert_called_once_with("street")

    def test_clear(self, hub):
        hub.subscribe_callback(Mock())
        hub.subscribe_stateful(RecordingSubscriber())

        hub.clear()

        assert hub.subscriber_count == 0
        assert str(hub) == "TestHub: 0 stateful, 0 callback subscribers"


class TestLoggingChangeSubscriber:
    """Test announcement generation."""

    def make_change(self, field, previous, current):
        return FieldChange(
            field=field,
            previous_value=previous,
            current_value=current,
            changed=True,
            previous_signature=ChangeSignature.of(field, previous),
            current_signature=ChangeSignature.of(field, current),
        )

    def test_announces_neighborhood(self, caplog):
        subscriber = LoggingChangeSubscriber()
        change = self.make_change(TrackedField.NEIGHBORHOOD, "Bela Vista", "Glicério")

        with caplog.at_level(logging.INFO):
            subscriber.update("neighborhood", change)

        assert subscriber.announcements == ["Você entrou no bairro Glicério"]
        assert "[BairroChanged] Você entrou no bairro Glicério" in caplog.text

    def test_custom_templates(self):
        subscriber = LoggingChangeSubscriber({"municipality": "{previous} -> {current}"})
        change = self.make_change(TrackedField.MUNICIPALITY, "São Paulo", "Santos")

        subscriber.update("municipality", change)

        assert subscriber.announcements == ["São Paulo -> Santos"]

    def test_cleared_field_not_announced(self):
        subscriber = LoggingChangeSubscriber()
        change = self.make_change(TrackedField.STREET, "Rua Augusta", None)

        subscriber.update("street", change)

        assert subscriber.announcements == []

    def test_works_as_hub_subscriber(self):
        hub = NotificationHub()
        subscriber = LoggingChangeSubscriber()
        hub.subscribe_stateful(subscriber)

        hub.publish("municipality", self.make_change(TrackedField.MUNICIPALITY, None, "Rio de Janeiro"))

        assert subscriber.announcements == ["Bem-vindo a Rio de Janeiro"]
