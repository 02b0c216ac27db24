from __future__ import annotations

from typing import Protocol

from chat_relay.application.repositories.connection import (
    ConnectionReader,
    ConnectionWriter,
)
from chat_relay.application.repositories.friendship import FriendshipReader
from chat_relay.application.repositories.message import MessageWriter


class UnitOfWork(Protocol):
    connections: ConnectionReader
    connections_w: ConnectionWriter
    friends: FriendshipReader
    messages_w: MessageWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
