from __future__ import annotations

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from chat_relay.domain.value_objects.enums import FriendshipStatus
from chat_relay.infrastructure.db.models.friendship import FriendshipModel


class FriendshipReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def are_friends(self, user_a: str, user_b: str) -> bool:
        stmt = (
            select(FriendshipModel.user_id)
            .where(
                or_(
                    and_(FriendshipModel.user_id == user_a, FriendshipModel.friend_id == user_b),
                    and_(FriendshipModel.user_id == user_b, FriendshipModel.friend_id == user_a),
                ),
                FriendshipModel.status == FriendshipStatus.ACCEPTED.value,
            )
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None
