from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PayloadError
from typing import Dict
import asyncio
import json
import logging

from connection_manager import LOBBY, Subscription, WebSocketConnection
from errors import TastingError
from schemas import (
    EmoteMessage,
    Event,
    ParticipantJoinMessage,
    ParticipantUpdateMessage,
    ToastPressMessage,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])


class ClientSession:
    """Per-socket state: which session topics this client follows."""

    def __init__(self, websocket: WebSocket):
        state = websocket.app.state
        self.websocket = websocket
        self.connection = WebSocketConnection(websocket)
        self.store = state.store
        self.broadcaster = state.broadcaster
        self.presence = state.presence
        self.toast = state.toast
        self.pumps: Dict[str, asyncio.Task] = {}

    async def _pump(self, subscription: Subscription):
        async with subscription:
            async for message in subscription:
                if self.connection.closed:
                    break
                try:
                    await self.websocket.send_json(message)
                except (WebSocketDisconnect, RuntimeError):
                    logger.debug("Stopped forwarding %s to %s", subscription.topic, self.connection.id)
                    break

    def follow(self, topic: str):
        if topic not in self.pumps:
            self.pumps[topic] = asyncio.create_task(self._pump(self.broadcaster.subscribe(topic)))

    async def resolve(self, session_id: str) -> str:
        """Clients may address a session by id or code; topics use the id."""
        return (await self.store.get(session_id)).id

    async def handle(self, message: dict):
        kind = message.get("type")
        payload = message.get("payload")

        if kind == "join:session":
            if isinstance(payload, dict):
                payload = payload.get("sessionId")
            if not isinstance(payload, str):
                raise TastingError("join:session expects a session id")
            self.follow(await self.resolve(payload))

        elif kind == "participant:join":
            msg = ParticipantJoinMessage.model_validate(payload)
            session_id = await self.resolve(msg.session_id)
            self.follow(session_id)
            await self.presence.join(session_id, msg.participant, self.connection)

        elif kind == "participant:update":
            msg = ParticipantUpdateMessage.model_validate(payload)
            self.presence.update(await self.resolve(msg.session_id), msg.participant)

        elif kind == "emote":
            msg = EmoteMessage.model_validate(payload)
            session_id = await self.resolve(msg.session_id)
            if self.presence.is_present(session_id, msg.participant_id):
                self.broadcaster.publish(session_id, Event(type="emote", payload={
                    "participantId": msg.participant_id,
                    "emote": msg.emote,
                }))

        elif kind == "toast:press":
            msg = ToastPressMessage.model_validate(payload)
            self.toast.press(await self.resolve(msg.session_id), msg.participant_id)

        else:
            raise TastingError(f"Unknown message type: {kind}")

    def close(self):
        for task in self.pumps.values():
            task.cancel()
        self.pumps.clear()
        self.connection.closed = True
        self.presence.disconnect(self.connection.id)


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await websocket.accept()
    client = ClientSession(websocket)
    client.follow(LOBBY)

    try:
        while not client.connection.closed:
            data = await websocket.receive_text()
            # Heartbeat
            if data == "ping":
                await websocket.send_text("pong")
                continue

            try:
                message = json.loads(data)
                if not isinstance(message, dict):
                    raise ValueError("Messages must be JSON objects")
                await client.handle(message)
            except TastingError as exc:
                await client.connection.send(Event(type="error", payload=exc.to_dict()))
            except (PayloadError, ValueError) as exc:
                await client.connection.send(Event(type="error", payload={
                    "detail": str(exc),
                    "error": "validation_error",
                }))
    except WebSocketDisconnect:
        logger.debug("Connection %s disconnected", client.connection.id)
    finally:
        client.close()
