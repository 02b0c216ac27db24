from __future__ import annotations

from typing import Protocol

from chat_relay.domain.entities.message import Message


class MessageWriter(Protocol):
    async def insert_message(self, message: Message) -> tuple[Message, bool]:
        """Insert message. Return (message, created). If the id already exists → return existing."""
        ...
