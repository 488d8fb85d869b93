"""
# Live Feed WebSocket Client

Keeps one persistent websocket open to the dashboard's realtime endpoint
and routes topic-tagged messages to registered handlers.

## Connection Lifecycle:
`DISCONNECTED → CONNECTING → CONNECTED → (RECONNECTING | DISCONNECTED)`

Reconnection and its backoff are left to the `websockets` transport: the
client iterates `websockets.connect(url)`, which yields a fresh connection
each time the previous one drops.

## Usage:
```python
async def on_gas_prices(message: GasPricesMessage) -> None:
    print(f"Fast gas: {message.data.fast}")

feed = LiveFeedClient("ws://localhost:3001/realtime")
feed.register(GAS_PRICES_TOPIC, on_gas_prices)
await feed.run()  # Blocks until close() or cancellation
```
"""

import json
import logging
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

import websockets
from pydantic import BaseModel

from pairwatch.exceptions import FeedNotConnectedError, UnknownTopicError
from pairwatch.feed.messages import (
    UnknownFeedMessage,
    decode_feed_message,
    decode_frame,
    match_topic,
    subscribe_message,
)
from pairwatch.notifications import Notifier

logger = logging.getLogger(__name__)

FeedHandler = Callable[[Any], Awaitable[None]]
Connector = Callable[[str], AsyncIterator[Any]]


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"


class LiveFeedClient:
    """
    # Live Feed Client

    Multiplexes unrelated update streams over one websocket. Each handler
    is registered under a topic prefix; inbound messages whose `topic`
    starts with that prefix are decoded and passed to it in receipt order.

    ## Subscriptions:
    A single `{"op": "subscribe", "topics": [...]}` control message is sent
    for every established connection, right after it opens. Set
    `resubscribe_on_reconnect=False` to only subscribe on the first one.

    ## Error Handling:
    - Unknown topics and malformed frames are ignored
    - A failing handler is logged; later messages are still processed
    - Connection drops are logged and reported to the notifier
    """

    def __init__(
        self,
        ws_url: str,
        connect: Connector = websockets.connect,
        notifier: Optional[Notifier] = None,
        resubscribe_on_reconnect: bool = True,
    ) -> None:
        self.ws_url = ws_url
        self._connect = connect
        self._notifier = notifier
        self.resubscribe_on_reconnect = resubscribe_on_reconnect

        self.ws: Any = None
        self._state = ConnectionState.DISCONNECTED
        self._running = False
        self._connections = 0

        # Handler registry keyed by topic prefix
        self._handlers: Dict[str, FeedHandler] = {}

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def topics(self) -> List[str]:
        return list(self._handlers)

    @property
    def connection_count(self) -> int:
        return self._connections

    def register(self, topic: str, handler: FeedHandler) -> None:
        # Only topics with a message model are ever routed to a handler
        if match_topic(topic) != topic:
            raise UnknownTopicError(topic)
        self._handlers[topic] = handler

    def _set_state(self, state: ConnectionState) -> None:
        if state != self._state:
            logger.debug(f"Live feed {self._state.value} -> {state.value}")
            self._state = state

    async def run(self) -> None:
        """
        Connect and process messages until `close()` is called or the task
        is cancelled.
        """
        self._running = True
        self._set_state(ConnectionState.CONNECTING)
        logger.info(f"Connecting to live feed: {self.ws_url}")

        try:
            async for ws in self._connect(self.ws_url):
                try:
                    await self._handle_connection(ws)
                except websockets.exceptions.ConnectionClosed as e:
                    logger.warning(f"⚠️ Live feed connection closed: {e}")
                    await self._notify(
                        f"⚠️ <b>Live feed disconnected</b>\n"
                        f"Reason: {e}\n"
                        f"Status: Attempting reconnection..."
                    )
                finally:
                    self.ws = None

                if not self._running:
                    break
                self._set_state(ConnectionState.RECONNECTING)
        finally:
            self._running = False
            self.ws = None
            self._set_state(ConnectionState.DISCONNECTED)
            logger.info("Live feed stopped")

    async def close(self) -> None:
        self._running = False
        if self.ws:
            await self.ws.close()
            logger.info("✅ Live feed connection closed")

    async def _handle_connection(self, ws: Any) -> None:
        self.ws = ws
        self._connections += 1
        self._set_state(ConnectionState.CONNECTED)
        logger.info("✅ Connected to live feed")

        if self._connections == 1 or self.resubscribe_on_reconnect:
            await self._subscribe()

        async for message in ws:
            await self.handle_message(message)

    async def _subscribe(self) -> None:
        if not self._handlers:
            return
        await self.send(subscribe_message(self.topics))
        logger.info(f"✅ Subscribed to live feed topics: {', '.join(self.topics)}")

    async def send(self, message: str) -> None:
        if not self.ws:
            raise FeedNotConnectedError("Live feed is not connected")
        await self.ws.send(message)

    async def send_json(self, payload: Dict[str, Any]) -> None:
        await self.send(json.dumps(payload))

    async def handle_message(self, raw: str | bytes) -> None:
        """
        Decode one inbound frame and dispatch it to its topic handler.

        ## Routing:
        - No `topic` or unknown topic → ignored
        - Known topic that fails validation → ignored
        - Otherwise → `handlers[prefix](message)`
        """
        payload = decode_frame(raw)
        if payload is None:
            return

        message = decode_feed_message(payload)
        if isinstance(message, UnknownFeedMessage):
            logger.debug(f"Ignoring feed message with topic {message.topic!r}")
            return

        await self._dispatch(message)

    async def _dispatch(self, message: BaseModel) -> None:
        topic = getattr(message, "topic", "")
        prefix = match_topic(topic)
        handler = self._handlers.get(prefix) if prefix else None
        if handler is None:
            logger.debug(f"No handler registered for topic: {topic}")
            return

        try:
            await handler(message)
        except Exception as e:
            logger.error(f"Error handling feed message {topic}: {e}", exc_info=True)

    async def _notify(self, message: str) -> None:
        if self._notifier:
            await self._notifier.notify(message)
