# Injected time source. Server-side clocks only; client timestamps are never trusted.

from datetime import datetime, date, timedelta


class Clock:
    """Wall-clock time in naive UTC, matching the DateTime columns."""

    def now(self) -> datetime:
        return datetime.utcnow()

    def today(self) -> date:
        return self.now().date()


class FixedClock(Clock):
    """Deterministic clock for tests and replays."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current

    def set(self, current: datetime) -> None:
        self.current = current


system_clock = Clock()


def get_clock() -> Clock:
    """FastAPI dependency. Tests override it with a FixedClock."""
    return system_clock
