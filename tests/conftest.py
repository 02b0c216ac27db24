"""Shared test fixtures."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from chat_relay.domain.entities.connection import Connection
from chat_relay.domain.entities.message import Message
from chat_relay.domain.value_objects.enums import FriendshipStatus, PushResult

SENDER = "user-s"
RECIPIENT = "user-r"
STRANGER = "user-x"

FIXED_NOW = datetime(2024, 5, 1, 12, 30, 0, 123000, tzinfo=timezone.utc)


@dataclass
class FixedClock:
    at: datetime = FIXED_NOW

    def now(self) -> datetime:
        return self.at


@dataclass
class FakeConnectionReader:
    _connections: list[Connection] = field(default_factory=list)
    calls: list[str] = field(default_factory=list)

    def add(self, connection_id: str, user_id: str, age_seconds: int = 0) -> None:
        self._connections.append(
            Connection(
                connection_id=connection_id,
                user_id=user_id,
                connected_at=FIXED_NOW - timedelta(seconds=age_seconds),
            )
        )

    def ids(self) -> list[str]:
        return [c.connection_id for c in self._connections]

    async def lookup_user_by_connection(self, connection_id: str) -> str | None:
        self.calls.append("lookup_user_by_connection")
        for c in self._connections:
            if c.connection_id == connection_id:
                return c.user_id
        return None

    async def lookup_latest_connection_by_user(self, user_id: str) -> str | None:
        self.calls.append("lookup_latest_connection_by_user")
        owned = [c for c in self._connections if c.user_id == user_id]
        if not owned:
            return None
        return max(owned, key=lambda c: c.connected_at).connection_id


@dataclass
class FakeConnectionWriter:
    _reader: FakeConnectionReader
    removed: list[str] = field(default_factory=list)

    async def remove_connection(self, connection_id: str) -> None:
        self.removed.append(connection_id)
        self._reader._connections = [
            c for c in self._reader._connections if c.connection_id != connection_id
        ]


@dataclass
class FakeFriendshipReader:
    _rows: list[tuple[str, str, str]] = field(default_factory=list)

    def befriend(self, user_id: str, friend_id: str, status: str = FriendshipStatus.ACCEPTED) -> None:
        self._rows.append((user_id, friend_id, status))

    async def are_friends(self, user_a: str, user_b: str) -> bool:
        return any(
            status == FriendshipStatus.ACCEPTED and {u, f} == {user_a, user_b}
            for u, f, status in self._rows
        )


@dataclass
class FakeMessageWriter:
    _rows: dict[str, Message] = field(default_factory=dict)
    attempts: int = 0

    @property
    def rows(self) -> list[Message]:
        return list(self._rows.values())

    async def insert_message(self, message: Message) -> tuple[Message, bool]:
        self.attempts += 1
        existing = self._rows.get(message.id)
        if existing is not None:
            return existing, False
        self._rows[message.id] = message
        return message, True


@dataclass
class FakePushChannel:
    result: PushResult = PushResult.DELIVERED
    error: Exception | None = None
    sent: list[tuple[str, dict[str, str]]] = field(default_factory=list)

    async def post(self, connection_id: str, payload: dict[str, str]) -> PushResult:
        self.sent.append((connection_id, payload))
        if self.error is not None:
            raise self.error
        return self.result


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    connections: FakeConnectionReader = field(default_factory=FakeConnectionReader)
    connections_w: FakeConnectionWriter | None = None
    friends: FakeFriendshipReader = field(default_factory=FakeFriendshipReader)
    messages_w: FakeMessageWriter = field(default_factory=FakeMessageWriter)
    commits: int = 0
    rollbacks: int = 0

    def __post_init__(self) -> None:
        if self.connections_w is None:
            self.connections_w = FakeConnectionWriter(self.connections)

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1

    async def __aenter__(self) -> FakeUoW:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if exc_info[0] is not None:
            await self.rollback()


def make_uow() -> FakeUoW:
    """Sender on c1, recipient on c2, accepted friendship between them."""
    uow = FakeUoW()
    uow.connections.add("c1", SENDER)
    uow.connections.add("c2", RECIPIENT)
    uow.friends.befriend(SENDER, RECIPIENT)
    return uow


@pytest.fixture
def uow() -> FakeUoW:
    return make_uow()


@pytest.fixture
def push() -> FakePushChannel:
    return FakePushChannel()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()
