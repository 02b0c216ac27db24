"""Serverless entrypoint for the API Gateway WebSocket ``sendMessage`` route."""
from __future__ import annotations

import asyncio
import base64
import functools
import json
import logging
import uuid
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any, AsyncIterator, Callable

import redis.asyncio as aioredis

from chat_relay.api.errors import INTERNAL_ERROR_DETAIL, status_for
from chat_relay.api.v1.schemas.message import SendMessageResponse
from chat_relay.application.exceptions import AppError
from chat_relay.application.ports.clock import Clock
from chat_relay.application.ports.push import PushChannel
from chat_relay.application.uow import UnitOfWork
from chat_relay.config import settings
from chat_relay.domain.value_objects.enums import PushResult
from chat_relay.infrastructure.db.session import AsyncSessionLocal
from chat_relay.infrastructure.db.uow import SqlAlchemyUoW
from chat_relay.infrastructure.push.apigateway import ApiGatewayPushChannel
from chat_relay.infrastructure.push.redis_pubsub import RedisPushChannel
from chat_relay.log_config import configure_logging, correlation_id_ctx
from chat_relay.services.delivery_service import DeliveryDispatcher

logger = logging.getLogger(__name__)

UoWFactory = Callable[[], AbstractAsyncContextManager[UnitOfWork]]

# One loop per warm container so pooled DB connections survive between invocations.
_loop: asyncio.AbstractEventLoop | None = None
_redis: aioredis.Redis | None = None


@asynccontextmanager
async def open_uow() -> AsyncIterator[UnitOfWork]:
    async with AsyncSessionLocal() as session:
        async with SqlAlchemyUoW(session) as uow:
            yield uow


@functools.lru_cache(maxsize=8)
def apigateway_channel(endpoint_url: str, region_name: str) -> ApiGatewayPushChannel:
    """One boto3 client per endpoint for the life of the container."""
    return ApiGatewayPushChannel.from_endpoint(endpoint_url, region_name)


def _default_push_channel(request_context: dict[str, Any]) -> PushChannel:
    global _redis  # noqa: PLW0603
    if settings.PUSH_BACKEND == "redis":
        if _redis is None:
            _redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
        return RedisPushChannel(_redis, settings.PUSH_CHANNEL_PREFIX)
    endpoint_url = settings.PUSH_ENDPOINT_URL
    if not endpoint_url:
        endpoint_url = f"https://{request_context['domainName']}/{request_context['stage']}"
    return apigateway_channel(endpoint_url, settings.AWS_REGION)


class RequestPushChannel:
    """Resolves the push channel for this request on first use.

    Requests rejected before delivery never touch the push configuration.
    """

    def __init__(self, request_context: dict[str, Any]) -> None:
        self._request_context = request_context

    async def post(self, connection_id: str, payload: dict[str, str]) -> PushResult:
        channel = _default_push_channel(self._request_context)
        return await channel.post(connection_id, payload)


def _response(status_code: int, content: dict[str, Any]) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(content),
    }


def _event_body(event: dict[str, Any]) -> str | bytes | None:
    body = event.get("body")
    if body and event.get("isBase64Encoded"):
        return base64.b64decode(body)
    return body


async def handle_event(
    event: dict[str, Any],
    *,
    uow_factory: UoWFactory = open_uow,
    push: PushChannel | None = None,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Handle one send request and build the API Gateway response."""
    request_context = event.get("requestContext") or {}
    token = correlation_id_ctx.set(request_context.get("requestId") or uuid.uuid4().hex)
    try:
        async with uow_factory() as uow:
            dispatcher = DeliveryDispatcher(
                uow,
                push or RequestPushChannel(request_context),
                clock,
                timeout=settings.REQUEST_TIMEOUT_SECONDS,
            )
            outcome = await dispatcher.dispatch(
                request_context.get("connectionId"), _event_body(event),
            )
        return _response(200, SendMessageResponse.from_outcome(outcome).model_dump(mode="json"))
    except AppError as exc:
        return _response(status_for(exc), {"detail": exc.detail})
    except Exception:
        logger.exception("Unexpected error while relaying message")
        return _response(500, {"detail": INTERNAL_ERROR_DETAIL})
    finally:
        correlation_id_ctx.reset(token)


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    global _loop  # noqa: PLW0603
    if _loop is None:
        configure_logging(settings.LOG_LEVEL)
        _loop = asyncio.new_event_loop()
    return _loop.run_until_complete(handle_event(event))
