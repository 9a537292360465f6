"""
Injectable time and randomness sources.

Services never call ``datetime.now`` or ``random`` directly; they receive a
``Clock`` and a ``RandomSource`` so tests can pin both.
"""

import random
from datetime import date, datetime, timezone
from typing import Optional, Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...

    def today(self) -> date: ...


class RandomSource(Protocol):
    def random(self) -> float: ...


class SystemClock:
    """Wall clock in UTC"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock pinned to a single instant"""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def today(self) -> date:
        return self._instant.date()

    def advance_to(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant


class SystemRandom:
    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def random(self) -> float:
        return self._rng.random()


def clock_from_settings(fixed: Optional[datetime]) -> Clock:
    return FixedClock(fixed) if fixed else SystemClock()
