"""
Change Notifier: pushes updated matches to WebSocket subscribers.

Subscribers join a topic (a match id) and receive every match published on
that topic while they are connected. There is no backlog: a client that
subscribes after a publish only sees the next one. A send failure drops that
one connection and never propagates to the publisher.

Client -> server messages:
    {"op": "subscribe", "match_id": "evt123"}
    {"op": "unsubscribe", "match_id": "evt123"}
    {"op": "ping"}

Server -> client messages:
    {"type": "matchUpdate", "topic": "evt123", "data": {...Match...}}
    {"type": "subscribed" | "unsubscribed", "topic": "evt123"}
    {"type": "pong"}
    {"type": "error", "detail": "..."}
"""
from collections import defaultdict
from typing import Any, Dict, Literal, Optional, Protocol, Set

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ValidationError, model_validator

from app.core.logging import get_logger

logger = get_logger(__name__)


class ChangeNotifier(Protocol):
    """Anything that can publish a payload to a topic's current subscribers."""

    async def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        ...


class SubscriptionMessage(BaseModel):
    """A message sent by a WebSocket client."""
    op: Literal["subscribe", "unsubscribe", "ping"]
    match_id: Optional[str] = None

    @model_validator(mode="after")
    def _require_match_id(self):
        if self.op != "ping" and not self.match_id:
            raise ValueError(f"'{self.op}' requires match_id")
        return self


class MatchRoomManager:
    """
    In-process topic rooms over WebSocket connections.

    Usage:
        manager = MatchRoomManager()
        await manager.handle_connection(websocket)    # in the WS endpoint
        await manager.publish("evt123", match.to_dict())  # from the sync loop
    """

    def __init__(self):
        self._rooms: Dict[str, Set[WebSocket]] = defaultdict(set)

    def subscriber_count(self, topic: str) -> int:
        return len(self._rooms.get(topic, ()))

    def topics(self) -> Set[str]:
        return {topic for topic, members in self._rooms.items() if members}

    def subscribe(self, websocket: WebSocket, topic: str):
        self._rooms[topic].add(websocket)

    def unsubscribe(self, websocket: WebSocket, topic: str):
        members = self._rooms.get(topic)
        if members is None:
            return
        members.discard(websocket)
        if not members:
            del self._rooms[topic]

    def disconnect(self, websocket: WebSocket):
        """Remove a connection from every room."""
        for topic in list(self._rooms):
            self.unsubscribe(websocket, topic)

    async def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        """
        Send ``payload`` to every connection currently subscribed to ``topic``.

        Connections that fail to receive are dropped.
        """
        members = list(self._rooms.get(topic, ()))
        if not members:
            return

        message = {"type": "matchUpdate", "topic": topic, "data": payload}
        delivered = 0
        for websocket in members:
            try:
                await websocket.send_json(message)
                delivered += 1
            except Exception as e:
                logger.info(f"Dropping subscriber on {topic}: {e}", extra={"match_id": topic})
                self.disconnect(websocket)

        logger.debug(f"Published {topic} to {delivered}/{len(members)} subscribers", extra={"match_id": topic})

    async def handle_connection(self, websocket: WebSocket):
        """Accept a connection and serve its subscribe/unsubscribe/ping messages until it closes."""
        await websocket.accept()
        try:
            while True:
                try:
                    raw = await websocket.receive_json()
                except ValueError:
                    await websocket.send_json({"type": "error", "detail": "message is not valid JSON"})
                    continue
                try:
                    message = SubscriptionMessage.model_validate(raw)
                except ValidationError as e:
                    await websocket.send_json({"type": "error", "detail": e.errors(include_url=False)[0]["msg"]})
                    continue

                if message.op == "ping":
                    await websocket.send_json({"type": "pong"})
                elif message.op == "subscribe":
                    self.subscribe(websocket, message.match_id)
                    await websocket.send_json({"type": "subscribed", "topic": message.match_id})
                else:
                    self.unsubscribe(websocket, message.match_id)
                    await websocket.send_json({"type": "unsubscribed", "topic": message.match_id})
        except WebSocketDisconnect:
            pass
        finally:
            self.disconnect(websocket)
