from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from chat_relay.infrastructure.db.base import Base


class FriendshipModel(Base):
    __tablename__ = "friends"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    friend_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)  # pending | accepted
