from datetime import datetime, timedelta, timezone
from anyapp.utils.helpers import utc_now


class Clock:
    """Source of the current time for jobs and conditions."""

    def now(self) -> datetime:
        return utc_now()

    def now_iso(self) -> str:
        return self.now().isoformat()


class FakeClock(Clock):
    """Manually driven clock for tests."""

    def __init__(self, start: datetime = None) -> None:
        self._now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def set_now(self, value: datetime) -> None:
        self._now = value

    def advance(self, seconds: float) -> None:
        self._now = self._now + timedelta(seconds=seconds)
