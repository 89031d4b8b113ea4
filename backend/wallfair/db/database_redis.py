import json
import logging
from typing import AsyncIterator

import redis.asyncio as redis

logger = logging.getLogger(__name__)


def room_channel(room_id: int) -> str:
    return f"chat:room:{room_id}"


class RedisManager:
    """
    Owns the connection pool for one application instance.
    """

    def __init__(self, redis_url: str):
        self.pool = redis.ConnectionPool.from_url(redis_url, decode_responses=True)

    def get_client(self) -> redis.Redis:
        """
        Returns an async Redis client from this manager's connection pool.
        """
        return redis.Redis(connection_pool=self.pool)

    async def publish_chat_message(self, room_id: int, payload: dict) -> int:
        client = self.get_client()
        return await client.publish(room_channel(room_id), json.dumps(payload, default=str))

    async def listen_room(self, room_id: int) -> AsyncIterator[dict]:
        """Yields decoded payloads published on the room channel."""
        pubsub = self.get_client().pubsub()
        await pubsub.subscribe(room_channel(room_id))
        try:
            async for item in pubsub.listen():
                if item.get("type") != "message":
                    continue
                try:
                    yield json.loads(item["data"])
                except (TypeError, ValueError) as e:
                    logger.warning(f"[Redis] Dropping undecodable payload on room {room_id}: {e}")
        finally:
            await pubsub.unsubscribe(room_channel(room_id))
            await pubsub.aclose()

    async def close(self):
        await self.pool.disconnect()
