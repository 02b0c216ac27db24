from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from chat_relay.infrastructure.db.models.connection import ConnectionModel


class ConnectionReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def lookup_user_by_connection(self, connection_id: str) -> str | None:
        stmt = select(ConnectionModel.user_id).where(
            ConnectionModel.connection_id == connection_id
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def lookup_latest_connection_by_user(self, user_id: str) -> str | None:
        stmt = (
            select(ConnectionModel.connection_id)
            .where(ConnectionModel.user_id == user_id)
            .order_by(ConnectionModel.connected_at.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()


class ConnectionWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def remove_connection(self, connection_id: str) -> None:
        await self._session.execute(
            delete(ConnectionModel).where(ConnectionModel.connection_id == connection_id)
        )
