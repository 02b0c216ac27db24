"""Push channel over the API Gateway WebSocket management API."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from chat_relay.domain.value_objects.enums import PushResult
from chat_relay.infrastructure.push.serializer import serialize_payload

logger = logging.getLogger(__name__)

HTTP_GONE = 410


class ApiGatewayPushChannel:
    """Implements application.ports.push.PushChannel via ``post_to_connection``."""

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_endpoint(cls, endpoint_url: str, region_name: str) -> ApiGatewayPushChannel:
        client = boto3.client(
            "apigatewaymanagementapi",
            endpoint_url=endpoint_url,
            region_name=region_name,
        )
        return cls(client)

    async def post(self, connection_id: str, payload: dict[str, str]) -> PushResult:
        data = serialize_payload(payload).encode("utf-8")
        try:
            await asyncio.to_thread(
                self._client.post_to_connection, ConnectionId=connection_id, Data=data,
            )
        except ClientError as exc:
            if _is_gone(exc):
                return PushResult.GONE
            logger.warning("post_to_connection %s failed: %s", connection_id, exc)
            return PushResult.FAILED
        except BotoCoreError as exc:
            logger.warning("post_to_connection %s failed: %s", connection_id, exc)
            return PushResult.FAILED
        return PushResult.DELIVERED


def _is_gone(exc: ClientError) -> bool:
    error = exc.response.get("Error", {})
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return error.get("Code") == "GoneException" or status == HTTP_GONE
