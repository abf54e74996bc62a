"""Tests for localization.events module."""

from unittest.mock import MagicMock

import pytest

from localization import LocaleChanged, LocaleChannel, Signal


@pytest.mark.unit
class TestSignal:
    """Tests for Signal."""

    def test_emit_calls_handlers_in_order(self):
        """Handlers run in subscription order with the emitted args."""
        signal = Signal("refreshed")
        calls = []
        signal.subscribe(lambda value: calls.append(("first", value)))
        signal.subscribe(lambda value: calls.append(("second", value)))

        assert signal.emit(42) == 2
        assert calls == [("first", 42), ("second", 42)]

    def test_subscribe_as_decorator(self):
        """subscribe() returns the handler so it can decorate functions."""
        signal = Signal("refreshed")

        @signal.subscribe
        def on_refreshed():
            pass

        assert callable(on_refreshed)
        assert signal.handler_count == 1

    def test_failing_handler_does_not_stop_others(self):
        """A raising handler is logged and the rest still run."""
        signal = Signal("refreshed")
        failing = MagicMock(side_effect=RuntimeError("boom"))
        failing.__name__ = "failing"
        healthy = MagicMock()
        signal.subscribe(failing)
        signal.subscribe(healthy)

        assert signal.emit() == 1
        healthy.assert_called_once_with()

    def test_unsubscribe(self):
        """unsubscribe() removes the handler and reports whether it was present."""
        signal = Signal("refreshed")
        handler = MagicMock()
        signal.subscribe(handler)

        assert signal.unsubscribe(handler) is True
        assert signal.unsubscribe(handler) is False
        assert signal.emit() == 0
        handler.assert_not_called()

    def test_clear(self):
        """clear() drops every handler."""
        signal = Signal("refreshed")
        signal.subscribe(MagicMock())
        signal.subscribe(MagicMock())
        signal.clear()
        assert signal.handler_count == 0


@pytest.mark.unit
class TestLocaleChannel:
    """Tests for LocaleChannel."""

    def test_publish_delivers_event(self):
        """publish() hands a LocaleChanged event to every subscriber."""
        channel = LocaleChannel()
        received = []
        channel.subscribe(received.append)

        event = channel.publish("de_DE", "main_menu")

        assert received == [event]
        assert isinstance(event, LocaleChanged)
        assert event.locale == "de_DE"
        assert event.source_bucket_id == "main_menu"

    def test_publish_without_subscribers(self):
        """Publishing to an empty channel is harmless."""
        event = LocaleChannel().publish("en_US", "hud")
        assert event.locale == "en_US"
