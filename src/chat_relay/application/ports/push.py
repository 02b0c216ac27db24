from __future__ import annotations

from typing import Protocol

from chat_relay.domain.value_objects.enums import PushResult


class PushChannel(Protocol):
    async def post(self, connection_id: str, payload: dict[str, str]) -> PushResult:
        """Deliver payload to a live connection and classify the outcome without raising."""
        ...
