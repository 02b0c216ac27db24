from __future__ import annotations

from typing import Protocol


class FriendshipReader(Protocol):
    async def are_friends(self, user_a: str, user_b: str) -> bool:
        """True if an accepted friendship exists in either direction."""
        ...
