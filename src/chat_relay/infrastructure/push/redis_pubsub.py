"""Redis Pub/Sub push channel: one channel per live connection."""
from __future__ import annotations

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from chat_relay.domain.value_objects.enums import PushResult
from chat_relay.infrastructure.push.serializer import serialize_payload

logger = logging.getLogger(__name__)


class RedisPushChannel:
    """Implements application.ports.push.PushChannel.

    Gateway nodes subscribe to ``<prefix>.<connection_id>`` for every socket
    they hold, so a publish that reaches no subscriber means the connection
    is gone.
    """

    def __init__(self, redis: aioredis.Redis, channel_prefix: str) -> None:
        self._redis = redis
        self._prefix = channel_prefix

    def channel_for(self, connection_id: str) -> str:
        return f"{self._prefix}.{connection_id}"

    async def post(self, connection_id: str, payload: dict[str, str]) -> PushResult:
        try:
            receivers = await self._redis.publish(
                self.channel_for(connection_id), serialize_payload(payload),
            )
        except RedisError:
            logger.exception("Redis publish to %s failed", connection_id)
            return PushResult.FAILED
        if receivers == 0:
            return PushResult.GONE
        return PushResult.DELIVERED
