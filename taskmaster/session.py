"""Session context and the sign-in / sign-out notification interface."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from typing import Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from taskmaster.errors import StaleSessionError

logger = logging.getLogger(__name__)


def resolve_timezone(name: str | None, fallback: str = "UTC") -> ZoneInfo:
    for candidate in (name, fallback, "UTC"):
        if not candidate:
            continue
        try:
            return ZoneInfo(candidate)
        except (ZoneInfoNotFoundError, ValueError):
            logger.debug("Unknown timezone %r", candidate)
    return ZoneInfo("UTC")


class UserSession:
    """The acting user, their local timezone, and whether they are still signed in."""

    def __init__(self, user_id: str, timezone_name: str | None = None, fallback_timezone: str = "UTC"):
        if not user_id:
            raise ValueError("user_id is required")
        self.user_id = user_id
        self.tzinfo = resolve_timezone(timezone_name, fallback_timezone)
        self._active = True

    @property
    def timezone_name(self) -> str:
        return self.tzinfo.key

    @property
    def is_active(self) -> bool:
        return self._active

    def close(self) -> None:
        self._active = False

    def ensure_active(self) -> None:
        if not self._active:
            raise StaleSessionError(f"session for {self.user_id} has ended")

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def local_date(self, moment: datetime) -> date:
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(self.tzinfo).date()

    def today(self, now: datetime | None = None) -> date:
        return self.local_date(now or self.now())

    def start_of_day(self, day: date) -> datetime:
        """Local midnight of ``day`` as a UTC timestamp."""
        return datetime.combine(day, time.min, tzinfo=self.tzinfo).astimezone(timezone.utc)


AuthCallback = Callable[[str, "str | None", bool], None]


class AuthSignal:
    """Explicit sign-in / sign-out notifications.

    Subscribers are called as ``callback(user_id, timezone_name, signed_in)``.
    ``subscribe`` returns a disposer that removes the subscription.
    """

    def __init__(self):
        self._subscribers: list[AuthCallback] = []

    def subscribe(self, callback: AuthCallback) -> Callable[[], None]:
        self._subscribers.append(callback)

        def dispose() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return dispose

    def emit_sign_in(self, user_id: str, timezone_name: str | None = None) -> None:
        self._emit(user_id, timezone_name, True)

    def emit_sign_out(self, user_id: str) -> None:
        self._emit(user_id, None, False)

    def _emit(self, user_id: str, timezone_name: str | None, signed_in: bool) -> None:
        for callback in list(self._subscribers):
            callback(user_id, timezone_name, signed_in)

    def __len__(self) -> int:
        return len(self._subscribers)
