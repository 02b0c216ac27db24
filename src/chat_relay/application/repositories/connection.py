from __future__ import annotations

from typing import Protocol


class ConnectionReader(Protocol):
    async def lookup_user_by_connection(self, connection_id: str) -> str | None: ...

    async def lookup_latest_connection_by_user(self, user_id: str) -> str | None:
        """Return the most recently established connection id, or None when offline."""
        ...


class ConnectionWriter(Protocol):
    async def remove_connection(self, connection_id: str) -> None: ...
