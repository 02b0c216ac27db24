from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol

from chat_relay.domain.value_objects.timestamps import truncate_to_millis


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock UTC time at millisecond precision (the resolution of wire timestamps)."""

    def now(self) -> datetime:
        return truncate_to_millis(datetime.now(timezone.utc))
