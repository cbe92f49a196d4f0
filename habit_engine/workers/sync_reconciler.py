from __future__ import annotations

import asyncio
import logging
from enum import Enum

import requests
from pydantic import ValidationError

from habit_engine.data.api_client import RemoteStateError
from habit_engine.data.snapshot import Snapshot, build_snapshot, state_from_snapshot

logger = logging.getLogger(__name__)

_REMOTE_ERRORS = (RemoteStateError, requests.RequestException)


class SyncState(str, Enum):
    UNHYDRATED = "unhydrated"
    HYDRATED = "hydrated"


class SyncStatus(str, Enum):
    DISABLED = "disabled"
    LOADING = "loading"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class SyncReconciler:
    """Pulls the remote snapshot once, then pushes debounced snapshots on mutation."""

    def __init__(self, store, remote=None, debounce_seconds=0.5):
        self._store = store
        self._remote = remote
        self._debounce_seconds = debounce_seconds
        self._state = SyncState.UNHYDRATED
        self._status = SyncStatus.LOADING if self.enabled else SyncStatus.DISABLED
        self._loop = None
        self._pending = None
        self._push_task = None
        self._dirty = False
        self._closed = False
        self.push_attempts = 0

    @property
    def enabled(self):
        return self._remote is not None and self._remote.is_enabled()

    @property
    def state(self):
        return self._state

    @property
    def status(self):
        return self._status

    @property
    def hydrated(self):
        return self._state is SyncState.HYDRATED

    @property
    def push_pending(self):
        return self._pending is not None

    async def hydrate(self) -> bool:
        """Move to HYDRATED; returns True only when a remote snapshot was applied."""
        if self.hydrated:
            return False
        self._loop = asyncio.get_running_loop()
        if not self.enabled:
            self._state = SyncState.HYDRATED
            self._status = SyncStatus.DISABLED
            logger.info("Remote sync disabled; using local state only.")
            return False

        self._status = SyncStatus.LOADING
        try:
            payload = await self._remote.fetch_state()
            snapshot = Snapshot.model_validate(payload)
        except _REMOTE_ERRORS as exc:
            logger.warning("State pull failed, keeping local state: %s", exc)
            self._state = SyncState.HYDRATED
            self._status = SyncStatus.DISCONNECTED
            return False
        except ValidationError as exc:
            logger.warning("Remote snapshot is malformed, keeping local state: %s", exc.errors()[:1])
            self._state = SyncState.HYDRATED
            self._status = SyncStatus.DISCONNECTED
            return False

        self._store.replace(state_from_snapshot(snapshot), source="hydrate")
        self._state = SyncState.HYDRATED
        self._status = SyncStatus.CONNECTED
        logger.info("Hydrated local state from remote snapshot.")
        return True

    def handle_mutation(self, event) -> None:
        if event.source == "hydrate":
            return
        self.schedule_push()

    def schedule_push(self) -> None:
        if self._closed or not self.hydrated or not self.enabled:
            return
        if self._pending is not None:
            self._pending.cancel()
        self._pending = self._loop.call_later(self._debounce_seconds, self._launch_push)

    def _launch_push(self) -> None:
        self._pending = None
        if self._push_task is not None:
            # Picked up with a fresh snapshot once the running push returns.
            self._dirty = True
            return
        self._push_task = self._loop.create_task(self._push_latest())

    async def _push_latest(self) -> None:
        try:
            while True:
                self._dirty = False
                await self._push(build_snapshot(self._store.state).to_wire())
                if not self._dirty or self._closed:
                    return
        finally:
            self._push_task = None

    async def _push(self, payload) -> None:
        self.push_attempts += 1
        try:
            await self._remote.save_state(payload)
        except _REMOTE_ERRORS as exc:
            self._status = SyncStatus.DISCONNECTED
            logger.error("State push failed: %s", exc)
            return
        self._status = SyncStatus.CONNECTED

    async def aclose(self) -> None:
        self._closed = True
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        if self._push_task is not None:
            await asyncio.gather(self._push_task, return_exceptions=True)
