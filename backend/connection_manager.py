from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder
from typing import Dict, Set
import asyncio
import logging

import utils
from schemas import Event

logger = logging.getLogger(__name__)

# Topic for events that concern every client, not one session
LOBBY = "*"


class Subscription:
    """A stream of events for one topic. Iterate with `async for`."""

    def __init__(self, broadcaster: "Broadcaster", topic: str, maxsize: int):
        self.topic = topic
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._broadcaster = broadcaster
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self) -> dict:
        if self.closed:
            raise StopAsyncIteration
        return await self.queue.get()

    def pending(self) -> list:
        """Drain whatever is queued without waiting."""
        events = []
        while not self.queue.empty():
            events.append(self.queue.get_nowait())
        return events

    def close(self):
        if not self.closed:
            self.closed = True
            self._broadcaster.unsubscribe(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.close()


class Broadcaster:
    """
    Session-scoped pub/sub. The session id is the topic.

    publish() never waits on subscribers: a subscriber whose queue is full
    misses the event and has to re-fetch the session.
    """

    def __init__(self, maxsize: int = 256):
        self.maxsize = maxsize
        self.topics: Dict[str, Set[Subscription]] = {}

    def subscribe(self, topic: str) -> Subscription:
        subscription = Subscription(self, topic, self.maxsize)
        self.topics.setdefault(topic, set()).add(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription):
        subscribers = self.topics.get(subscription.topic)
        if subscribers is not None:
            subscribers.discard(subscription)
            if not subscribers:
                del self.topics[subscription.topic]

    def publish(self, topic: str, event: Event) -> int:
        """Fan an event out to every subscriber of topic. Returns deliveries."""
        message = {"type": event.type, "payload": jsonable_encoder(event.payload)}
        delivered = 0
        for subscription in list(self.topics.get(topic, ())):
            try:
                subscription.queue.put_nowait(message)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning("Dropping %s for a slow subscriber on %s", event.type, topic)
        return delivered


class WebSocketConnection:
    """Addressable handle on one client socket, used for unicast and kicks."""

    def __init__(self, websocket: WebSocket):
        self.id = utils.generate_uuid()
        self.websocket = websocket
        self.closed = False

    async def send(self, event: Event):
        if self.closed:
            return
        await self.websocket.send_json(
            {"type": event.type, "payload": jsonable_encoder(event.payload)}
        )

    async def close(self, code: int = 4001):
        if self.closed:
            return
        self.closed = True
        try:
            await self.websocket.close(code=code)
        except RuntimeError:
            # Socket already gone on the client side
            logger.debug("Connection %s was already closed", self.id)
