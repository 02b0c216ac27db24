from __future__ import annotations

from enum import StrEnum


class FriendshipStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"


class MessageType(StrEnum):
    TEXT = "text"


class PushResult(StrEnum):
    DELIVERED = "delivered"
    GONE = "gone"  # target connection no longer exists
    FAILED = "failed"


class DeliveryStatus(StrEnum):
    DELIVERED = "delivered"
    OFFLINE = "offline"
    DEFERRED = "deferred"
