"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated, AsyncIterator

from fastapi import Depends, Request

from chat_relay.application.ports.clock import Clock, SystemClock
from chat_relay.application.ports.push import PushChannel
from chat_relay.config import settings
from chat_relay.infrastructure.db.session import AsyncSessionLocal
from chat_relay.infrastructure.db.uow import SqlAlchemyUoW
from chat_relay.infrastructure.push.apigateway import ApiGatewayPushChannel
from chat_relay.infrastructure.push.redis_pubsub import RedisPushChannel
from chat_relay.services.delivery_service import DeliveryDispatcher


async def get_uow() -> AsyncIterator[SqlAlchemyUoW]:
    async with AsyncSessionLocal() as session:
        async with SqlAlchemyUoW(session) as uow:
            yield uow


UoWDep = Annotated[SqlAlchemyUoW, Depends(get_uow)]


_apigateway_channel: ApiGatewayPushChannel | None = None


def get_push_channel(request: Request) -> PushChannel:
    global _apigateway_channel  # noqa: PLW0603
    if settings.PUSH_BACKEND == "redis":
        return RedisPushChannel(request.app.state.redis, settings.PUSH_CHANNEL_PREFIX)
    if _apigateway_channel is None:
        assert settings.PUSH_ENDPOINT_URL, "PUSH_ENDPOINT_URL must be set when PUSH_BACKEND=apigateway"
        _apigateway_channel = ApiGatewayPushChannel.from_endpoint(
            settings.PUSH_ENDPOINT_URL, settings.AWS_REGION,
        )
    return _apigateway_channel


def get_clock() -> Clock:
    return SystemClock()


async def get_dispatcher(
    uow: UoWDep,
    push: Annotated[PushChannel, Depends(get_push_channel)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> DeliveryDispatcher:
    return DeliveryDispatcher(uow, push, clock, timeout=settings.REQUEST_TIMEOUT_SECONDS)


DispatcherDep = Annotated[DeliveryDispatcher, Depends(get_dispatcher)]
