from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Message:
    id: str
    conversation_id: str
    sender_id: str
    recipient_id: str | None
    content: str
    type: str
    created_at: datetime
    delivered: bool = False
    read: bool = False
