"""Sources of the current time."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


class SystemClock:
    """A clock that runs on system time."""

    def now(self) -> datetime:
        return datetime.now().astimezone()


@dataclass(frozen=True)
class StaticClock:
    """A clock that always returns the same time."""

    time: datetime

    def now(self) -> datetime:
        return self.time