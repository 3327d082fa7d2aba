"""Tests for the WebSocket Change Notifier."""
import pytest
from unittest.mock import AsyncMock

from fastapi import FastAPI, WebSocket
from fastapi.testclient import TestClient

from app.services.live_scores.notifier import MatchRoomManager, SubscriptionMessage


def fake_socket(fail: bool = False):
    websocket = AsyncMock()
    if fail:
        websocket.send_json.side_effect = RuntimeError("connection closed")
    return websocket


class TestMatchRoomManager:

    @pytest.mark.asyncio
    async def test_publish_reaches_only_topic_subscribers(self):
        manager = MatchRoomManager()
        a, b = fake_socket(), fake_socket()
        manager.subscribe(a, "evt1")
        manager.subscribe(b, "evt2")

        await manager.publish("evt1", {"match_id": "evt1"})

        a.send_json.assert_awaited_once_with(
            {"type": "matchUpdate", "topic": "evt1", "data": {"match_id": "evt1"}}
        )
        b.send_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_publish_without_subscribers(self):
        manager = MatchRoomManager()
        await manager.publish("evt1", {"match_id": "evt1"})
        assert manager.topics() == set()

    @pytest.mark.asyncio
    async def test_failing_subscriber_is_dropped(self):
        manager = MatchRoomManager()
        good, bad = fake_socket(), fake_socket(fail=True)
        manager.subscribe(good, "evt1")
        manager.subscribe(bad, "evt1")
        manager.subscribe(bad, "evt2")

        await manager.publish("evt1", {"match_id": "evt1"})

        good.send_json.assert_awaited_once()
        assert manager.subscriber_count("evt1") == 1
        assert manager.subscriber_count("evt2") == 0

    def test_unsubscribe_removes_empty_rooms(self):
        manager = MatchRoomManager()
        websocket = fake_socket()
        manager.subscribe(websocket, "evt1")
        manager.unsubscribe(websocket, "evt1")
        manager.unsubscribe(websocket, "never-joined")

        assert manager.topics() == set()

    def test_disconnect_leaves_every_room(self):
        manager = MatchRoomManager()
        websocket, other = fake_socket(), fake_socket()
        for topic in ("a", "b", "c"):
            manager.subscribe(websocket, topic)
        manager.subscribe(other, "b")

        manager.disconnect(websocket)

        assert manager.topics() == {"b"}


class TestSubscriptionMessage:

    def test_ping_needs_no_match_id(self):
        assert SubscriptionMessage.model_validate({"op": "ping"}).match_id is None

    def test_subscribe_requires_match_id(self):
        with pytest.raises(ValueError):
            SubscriptionMessage.model_validate({"op": "subscribe"})

    def test_unknown_op(self):
        with pytest.raises(ValueError):
            SubscriptionMessage.model_validate({"op": "shout", "match_id": "x"})


@pytest.fixture
def socket_app():
    manager = MatchRoomManager()
    app = FastAPI()

    @app.websocket("/ws")
    async def endpoint(websocket: WebSocket):
        await manager.handle_connection(websocket)

    return app, manager


class TestHandleConnection:

    def test_subscribe_unsubscribe_ping(self, socket_app):
        app, manager = socket_app
        client = TestClient(app)

        with client.websocket_connect("/ws") as websocket:
            websocket.send_json({"op": "subscribe", "match_id": "evt1"})
            assert websocket.receive_json() == {"type": "subscribed", "topic": "evt1"}
            assert manager.subscriber_count("evt1") == 1

            websocket.send_json({"op": "ping"})
            assert websocket.receive_json() == {"type": "pong"}

            websocket.send_json({"op": "unsubscribe", "match_id": "evt1"})
            assert websocket.receive_json() == {"type": "unsubscribed", "topic": "evt1"}
            assert manager.subscriber_count("evt1") == 0

    def test_invalid_messages_get_errors(self, socket_app):
        app, _ = socket_app
        client = TestClient(app)

        with client.websocket_connect("/ws") as websocket:
            websocket.send_text("not json")
            assert websocket.receive_json()["type"] == "error"

            websocket.send_json({"op": "subscribe"})
            assert websocket.receive_json()["type"] == "error"

            websocket.send_json({"op": "ping"})
            assert websocket.receive_json() == {"type": "pong"}

    def test_disconnect_cleans_up(self, socket_app):
        app, manager = socket_app
        client = TestClient(app)

        with client.websocket_connect("/ws") as websocket:
            websocket.send_json({"op": "subscribe", "match_id": "evt1"})
            websocket.receive_json()

        assert manager.topics() == set()
