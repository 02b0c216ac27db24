"""Import all models so they register on Base.metadata."""
from chat_relay.infrastructure.db.models.connection import ConnectionModel
from chat_relay.infrastructure.db.models.friendship import FriendshipModel
from chat_relay.infrastructure.db.models.message import MessageModel

__all__ = [
    "ConnectionModel",
    "FriendshipModel",
    "MessageModel",
]
