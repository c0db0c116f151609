"""Composition root: one TaskManager per signed-in user."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from taskmaster.manager import TaskManager
from taskmaster.notes import NoteBook
from taskmaster.session import AuthSignal, UserSession
from taskmaster.sync_adapter import RemoteSyncAdapter

logger = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(
        self,
        adapter: RemoteSyncAdapter,
        auth: AuthSignal | None = None,
        default_timezone: str = "UTC",
        clock: Callable[[], datetime] | None = None,
    ):
        self.adapter = adapter
        self.auth = auth if auth is not None else AuthSignal()
        self.default_timezone = default_timezone
        self.clock = clock
        self._managers: dict[str, TaskManager] = {}
        self._unsubscribe = self.auth.subscribe(self._on_auth_changed)

    def _on_auth_changed(self, user_id: str, timezone_name: str | None, signed_in: bool) -> None:
        if signed_in:
            if user_id in self._managers:
                return
            session = UserSession(user_id, timezone_name, fallback_timezone=self.default_timezone)
            self._managers[user_id] = TaskManager(session, self.adapter, clock=self.clock)
            logger.info("Session started for %s (%s)", user_id, session.timezone_name)
            return
        manager = self._managers.pop(user_id, None)
        if manager is not None:
            manager.close()
            logger.info("Session ended for %s", user_id)

    def peek(self, user_id: str) -> TaskManager | None:
        return self._managers.get(user_id)

    async def get(self, user_id: str, timezone_name: str | None = None, refresh: bool = True) -> TaskManager:
        """Return the user's manager, signing them in on first use.

        With ``refresh`` the manager is loaded if needed and the rollover check
        runs, so a session kept open past local midnight never serves
        yesterday's completions.
        """
        if user_id not in self._managers:
            self.auth.emit_sign_in(user_id, timezone_name)
        manager = self._managers[user_id]
        if refresh:
            await manager.activate()
        return manager

    async def notes(self, user_id: str, timezone_name: str | None = None) -> NoteBook:
        manager = await self.get(user_id, timezone_name, refresh=False)
        return NoteBook(manager.session, self.adapter)

    def sign_out(self, user_id: str) -> None:
        self.auth.emit_sign_out(user_id)

    def close(self) -> None:
        for user_id in list(self._managers):
            self.auth.emit_sign_out(user_id)
        self._unsubscribe()

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._managers

    def __len__(self) -> int:
        return len(self._managers)
