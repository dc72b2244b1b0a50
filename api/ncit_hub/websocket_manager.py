"""WebSocket connection manager for realtime channel feeds."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Iterable, Set

from fastapi import WebSocket

from .cache import get_redis

logger = logging.getLogger(__name__)

# Channel patterns the Redis listener subscribes to
CHANNEL_PATTERNS = (
    "notifications:user:*",
    "comments:blog:*",
    "likes:blog:*",
    "comment-likes:blog:*",
    "bookmarks:blog:*",
)

# Channel kinds a public blog feed subscribes to
BLOG_CHANNEL_KINDS = ("comments", "likes", "comment-likes", "bookmarks")


def user_channel(user_id: int) -> str:
    return f"notifications:user:{user_id}"


def blog_channel(kind: str, blog_id: int) -> str:
    return f"{kind}:blog:{blog_id}"


class ConnectionManager:
    """Tracks WebSocket connections per channel and fans out published events."""

    def __init__(self):
        # Map of channel -> set of WebSocket connections
        self.active_connections: Dict[str, Set[WebSocket]] = {}
        self._lock = asyncio.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._pubsub_task = None
        self._running = False
        self._max_connections = 15000

    async def connect(self, websocket: WebSocket, channels: Iterable[str]) -> bool:
        """Accept and register a WebSocket on the given channels. Returns False if limit reached."""
        if self.get_connection_count() >= self._max_connections:
            logger.warning(f"Connection limit reached ({self._max_connections}), rejecting connection")
            return False

        await websocket.accept()
        self._loop = asyncio.get_running_loop()
        async with self._lock:
            for channel in channels:
                self.active_connections.setdefault(channel, set()).add(websocket)
        logger.info(f"WebSocket connected. Total connections: {self.get_connection_count()}")
        return True

    async def disconnect(self, websocket: WebSocket, channels: Iterable[str]):
        async with self._lock:
            for channel in channels:
                sockets = self.active_connections.get(channel)
                if sockets is None:
                    continue
                sockets.discard(websocket)
                if not sockets:
                    del self.active_connections[channel]
        logger.info(f"WebSocket disconnected. Total connections: {self.get_connection_count()}")

    async def broadcast(self, channel: str, message: dict):
        """Send a message to every connection subscribed to a channel."""
        if channel not in self.active_connections:
            return

        # Copy so sends can't race with connect/disconnect
        connections = list(self.active_connections[channel])
        disconnected = []

        for websocket in connections:
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.error(f"Error sending message on {channel}: {e}")
                disconnected.append(websocket)

        if disconnected:
            async with self._lock:
                sockets = self.active_connections.get(channel, set())
                for ws in disconnected:
                    sockets.discard(ws)
                if channel in self.active_connections and not sockets:
                    del self.active_connections[channel]

    def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        """
        Publish an event on a channel from synchronous request code.

        Goes through Redis Pub/Sub when Redis is configured so every API
        process sees it; otherwise it is handed to this process's event loop.
        """
        message = {"channel": channel, "event": event, "payload": payload}

        redis = get_redis()
        if redis:
            try:
                redis.publish(channel, json.dumps(message, default=str))
                return
            except Exception as e:
                logger.warning(f"Redis publish failed on {channel}: {e}")

        if self._loop is None or self._loop.is_closed():
            logger.debug(f"No event loop for realtime delivery, dropping {event} on {channel}")
            return

        asyncio.run_coroutine_threadsafe(
            self.broadcast(channel, json.loads(json.dumps(message, default=str))),
            self._loop,
        )

    def get_connection_count(self) -> int:
        """Number of distinct open sockets."""
        sockets: Set[WebSocket] = set()
        for conns in self.active_connections.values():
            sockets.update(conns)
        return len(sockets)

    async def start_redis_listener(self):
        """Start Redis Pub/Sub listener for channel broadcasts."""
        if self._running:
            return

        self._loop = asyncio.get_running_loop()
        self._running = True
        self._pubsub_task = asyncio.create_task(self._redis_listener())
        logger.info("Redis Pub/Sub listener started")

    async def stop_redis_listener(self):
        self._running = False
        if self._pubsub_task:
            self._pubsub_task.cancel()
            try:
                await self._pubsub_task
            except asyncio.CancelledError:
                pass
        logger.info("Redis Pub/Sub listener stopped")

    async def _redis_listener(self):
        """Listen for Redis Pub/Sub messages and broadcast to WebSocket clients."""
        redis = get_redis()
        if not redis:
            logger.error("Redis not available, cannot start Pub/Sub listener")
            return

        pubsub = redis.pubsub()
        pubsub.psubscribe(*CHANNEL_PATTERNS)

        try:
            while self._running:
                message = pubsub.get_message(timeout=0)
                if message and message["type"] == "pmessage":
                    try:
                        channel = message["channel"]
                        if isinstance(channel, bytes):
                            channel = channel.decode("utf-8")

                        data = message["data"]
                        if isinstance(data, bytes):
                            data = data.decode("utf-8")

                        await self.broadcast(channel, json.loads(data))
                    except Exception as e:
                        logger.error(f"Error processing Redis message: {e}")

                # Small sleep to prevent busy-waiting
                await asyncio.sleep(0.01)
        except Exception as e:
            logger.error(f"Redis listener error: {e}")
        finally:
            try:
                pubsub.punsubscribe(*CHANNEL_PATTERNS)
                pubsub.close()
            except Exception as e:
                logger.error(f"Error closing Redis Pub/Sub: {e}")


# Global connection manager instance
connection_manager = ConnectionManager()
