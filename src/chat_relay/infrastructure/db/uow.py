from __future__ import annotations

from types import TracebackType
from typing import Self

from sqlalchemy.ext.asyncio import AsyncSession

from chat_relay.infrastructure.db.repositories.connection import (
    ConnectionReaderRepo,
    ConnectionWriterRepo,
)
from chat_relay.infrastructure.db.repositories.friendship import FriendshipReaderRepo
from chat_relay.infrastructure.db.repositories.message import MessageWriterRepo


class SqlAlchemyUoW:
    """Concrete Unit-of-Work backed by a single AsyncSession."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self.connections = ConnectionReaderRepo(session)
        self.connections_w = ConnectionWriterRepo(session)
        self.friends = FriendshipReaderRepo(session)
        self.messages_w = MessageWriterRepo(session)

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            await self.rollback()
