"""Tests for the command dispatcher."""

from __future__ import annotations

import asyncio
import contextlib

import pytest

from ha_bridge.adapters.mock import MockHub
from ha_bridge.core.errors import (
    HubError,
    MalformedRequestError,
    RemoteOperationError,
    UnknownTopicError,
)
from ha_bridge.core.models import EntityState, Message, MessageType
from ha_bridge.services.dispatcher import CommandDispatcher
from ha_bridge.services.handlers import build_handlers
from tests.mocks.bus import MockBus


def make_dispatcher(hub, topics) -> CommandDispatcher:
    dispatcher = CommandDispatcher(hub)
    for handler in build_handlers(topics):
        dispatcher.register(handler)
    return dispatcher


@pytest.fixture
def dispatcher(mock_hub, topics) -> CommandDispatcher:
    return make_dispatcher(mock_hub, topics)


class TestRegistry:
    def test_registers_all_topics(self, dispatcher) -> None:
        assert dispatcher.topics() == [
            "homeassistant.get_state",
            "homeassistant.set_state",
            "homeassistant.post_service",
        ]
        assert len(dispatcher) == 3

    def test_register_replaces(self, dispatcher, topics) -> None:
        replacement = build_handlers(topics)[0]
        dispatcher.register(replacement)

        assert len(dispatcher) == 3
        assert dispatcher.get_handler(topics.get_state) is replacement

    def test_unregister(self, dispatcher, topics) -> None:
        assert dispatcher.unregister(topics.set_state) is True
        assert dispatcher.unregister(topics.set_state) is False
        assert dispatcher.get_handler(topics.set_state) is None


class TestDispatch:
    """Tests for routing a single message."""

    @pytest.mark.asyncio
    async def test_get_state(self, dispatcher, topics, make_message) -> None:
        topic, reply = await dispatcher.dispatch(topics.get_state, make_message("light.kitchen"))

        assert topic == "console.reply"
        assert reply.text == "on"
        assert reply.message_type == MessageType.TEXT
        assert reply.response_topics == []

    @pytest.mark.asyncio
    async def test_post_service(self, topics, make_message, mock_hub_client) -> None:
        dispatcher = make_dispatcher(mock_hub_client, topics)

        topic, reply = await dispatcher.dispatch(
            topics.post_service, make_message("light turn_on light.kitchen")
        )

        assert (topic, reply.text) == ("console.reply", "turn_on")
        mock_hub_client.call_service.assert_awaited_once_with(
            "light", "turn_on", {"entity_id": "light.kitchen"}
        )

    @pytest.mark.asyncio
    async def test_post_service_changes_mock_state(self, dispatcher, mock_hub, topics, make_message) -> None:
        await dispatcher.dispatch(topics.post_service, make_message("light turn_on light.living_room"))

        state = await mock_hub.get_state("light.living_room")
        assert state.state == "on"

    @pytest.mark.asyncio
    async def test_set_then_get_round_trip(self, topics, make_message) -> None:
        """Test a written state is read back as the same text."""
        hub = MockHub({
            "states": {
                "lamp.kitchen": EntityState(
                    entity_id="lamp.kitchen", state="0", attributes={"unit": "%"}
                ),
            },
        })
        dispatcher = make_dispatcher(hub, topics)

        _, set_reply = await dispatcher.dispatch(topics.set_state, make_message("lamp.kitchen 75"))
        _, get_reply = await dispatcher.dispatch(topics.get_state, make_message("lamp.kitchen"))

        assert set_reply.text == "75"
        assert get_reply.text == "75"
        assert (await hub.get_state("lamp.kitchen")).attributes == {"unit": "%"}

    @pytest.mark.asyncio
    async def test_set_state_keeps_attributes(self, topics, make_message, mock_hub_client) -> None:
        mock_hub_client.set_state.return_value = EntityState(entity_id="light.kitchen", state="off")
        dispatcher = make_dispatcher(mock_hub_client, topics)

        _, reply = await dispatcher.dispatch(topics.set_state, make_message("light.kitchen off"))

        assert reply.text == "off"
        mock_hub_client.set_state.assert_awaited_once_with(
            "light.kitchen", "off", {"friendly_name": "Kitchen", "brightness": 200}
        )

    @pytest.mark.asyncio
    async def test_failed_read_skips_write(self, topics, make_message, mock_hub_client) -> None:
        mock_hub_client.get_state.side_effect = HubError("connection refused")
        dispatcher = make_dispatcher(mock_hub_client, topics)

        with pytest.raises(RemoteOperationError):
            await dispatcher.dispatch(topics.set_state, make_message("light.kitchen off"))

        mock_hub_client.set_state.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_topic(self, dispatcher, make_message) -> None:
        with pytest.raises(UnknownTopicError):
            await dispatcher.dispatch("homeassistant.reboot", make_message("now"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("topic_name", "text"),
        [
            ("post_service", "light.turn_on"),
            ("post_service", "light turn_on"),
            ("post_service", "light turn_on light.kitchen extra"),
            ("post_service", "light  light.kitchen"),
            ("set_state", "light.kitchen"),
            ("set_state", "light.kitchen on now"),
            ("get_state", "   "),
        ],
    )
    async def test_malformed_never_reaches_hub(
        self, topics, make_message, mock_hub_client, topic_name, text
    ) -> None:
        dispatcher = make_dispatcher(mock_hub_client, topics)

        with pytest.raises(MalformedRequestError):
            await dispatcher.dispatch(getattr(topics, topic_name), make_message(text))

        mock_hub_client.get_state.assert_not_awaited()
        mock_hub_client.set_state.assert_not_awaited()
        mock_hub_client.call_service.assert_not_awaited()


class TestHandle:
    """Tests for failure replies at the dispatch boundary."""

    @pytest.mark.asyncio
    async def test_missing_entity_gets_failure_reply(self, dispatcher, topics, make_message) -> None:
        topic, reply = await dispatcher.handle(topics.get_state, make_message("light.nowhere"))

        assert topic == "console.reply"
        assert reply.params["error"] == "remote_error"
        assert reply.params["entity_id"] == "light.nowhere"
        assert "light.nowhere" in reply.text

    @pytest.mark.asyncio
    async def test_malformed_gets_failure_reply(self, dispatcher, mock_hub, topics, make_message) -> None:
        _, reply = await dispatcher.handle(topics.post_service, make_message("light.turn_on"))

        assert reply.params["error"] == "malformed_request"
        assert "entity_id" not in reply.params
        assert mock_hub.calls == []

    @pytest.mark.asyncio
    async def test_unknown_topic_gets_failure_reply(self, dispatcher, make_message) -> None:
        _, reply = await dispatcher.handle("homeassistant.reboot", make_message("now"))

        assert reply.params["error"] == "unknown_topic"

    @pytest.mark.asyncio
    async def test_null_state_gets_failure_reply(self, topics, make_message, mock_hub_client) -> None:
        mock_hub_client.get_state.return_value = EntityState(entity_id="light.kitchen", state=None)
        dispatcher = make_dispatcher(mock_hub_client, topics)

        _, reply = await dispatcher.handle(topics.get_state, make_message("light.kitchen"))

        assert reply.params["error"] == "no_state"

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_contained(self, topics, make_message, mock_hub_client) -> None:
        mock_hub_client.call_service.side_effect = KeyError("boom")
        dispatcher = make_dispatcher(mock_hub_client, topics)

        _, reply = await dispatcher.handle(
            topics.post_service, make_message("light turn_on light.kitchen")
        )

        assert reply.params["error"] == "internal_error"

    @pytest.mark.asyncio
    async def test_no_response_topic(self, dispatcher, mock_hub, topics) -> None:
        """Test success and failure are both dropped without a reply address."""
        ok = await dispatcher.handle(topics.get_state, Message(text="light.kitchen"))
        failed = await dispatcher.handle(topics.get_state, Message(text="light.nowhere"))

        assert ok is None
        assert failed is None

    @pytest.mark.asyncio
    async def test_reply_unwinds_topic_stack(self, dispatcher, topics) -> None:
        message = Message(
            text="light.kitchen",
            response_topics=["resolver.reply", "console.reply"],
            params={"session": "abc"},
        )

        topic, reply = await dispatcher.handle(topics.get_state, message)

        assert topic == "resolver.reply"
        assert reply.response_topics == ["console.reply"]
        assert reply.params == {"session": "abc"}

    @pytest.mark.asyncio
    async def test_metrics_recorded(self, dispatcher, topics, make_message) -> None:
        await dispatcher.handle(topics.get_state, make_message("light.kitchen"))
        await dispatcher.handle(topics.get_state, make_message("light.nowhere"))

        metrics = {m["topic"]: m for m in dispatcher.get_metrics()}
        get_state = metrics[topics.get_state]
        assert get_state["total"] == 2
        assert get_state["succeeded"] == 1
        assert get_state["failed"] == 1
        assert get_state["error_counts"] == {"remote_error": 1}

    @pytest.mark.asyncio
    async def test_completed_without_reply_counts_as_success(self, dispatcher, mock_hub, topics) -> None:
        """Test a request carried out with nowhere to reply is not a failure."""
        outbound = await dispatcher.handle(
            topics.post_service, Message(text="light turn_off light.kitchen")
        )
        await dispatcher.handle(topics.post_service, Message(text="light.turn_off"))

        assert outbound is None
        assert (await mock_hub.get_state("light.kitchen")).state == "off"
        metrics = {m["topic"]: m for m in dispatcher.get_metrics()}
        post_service = metrics[topics.post_service]
        assert post_service["succeeded"] == 1
        assert post_service["unreplied"] == 1
        assert post_service["failed"] == 1
        assert post_service["error_counts"] == {"malformed_request": 1}


class TestRunLoop:
    """Tests for the receive/handle/send loop."""

    @pytest.mark.asyncio
    async def test_replies_in_arrival_order(self, dispatcher, topics, make_message) -> None:
        bus = MockBus()
        task = asyncio.create_task(dispatcher.run(bus))

        bus.simulate_message(topics.get_state, make_message("light.kitchen"))
        bus.simulate_message(topics.post_service, make_message("light turn_off light.kitchen"))
        bus.simulate_message(topics.get_state, make_message("light.kitchen"))

        try:
            await bus.wait_for_published(3)
        finally:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        assert [entry["message"].text for entry in bus.published_messages] == [
            "on",
            "turn_off",
            "off",
        ]
        assert all(entry["topic"] == "console.reply" for entry in bus.published_messages)

    @pytest.mark.asyncio
    async def test_send_failure_does_not_stop_loop(self, dispatcher, topics, make_message) -> None:
        bus = MockBus()
        bus.fail_sends = True
        task = asyncio.create_task(dispatcher.run(bus))

        bus.simulate_message(topics.get_state, make_message("light.kitchen"))
        await asyncio.sleep(0.01)
        bus.fail_sends = False
        bus.simulate_message(topics.get_state, make_message("light.kitchen"))

        try:
            await bus.wait_for_published(1)
        finally:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        assert len(bus.published_messages) == 1
