from __future__ import annotations

import asyncio
import logging

from habit_engine.clock import Clock
from habit_engine.constants import MILESTONE_SKIN_SESSION
from habit_engine.data.api_client import RemoteStateClient
from habit_engine.data.local_store import LocalStore
from habit_engine.services.notifications import NotificationGateway, PlyerNotifier
from habit_engine.settings import Settings
from habit_engine.state.slices import PersistenceSink, load_state
from habit_engine.state.store import DomainStore
from habit_engine.workers.boundary_reset import BoundaryResetScheduler
from habit_engine.workers.reminders import ReminderEvaluator
from habit_engine.workers.sync_reconciler import SyncReconciler

logger = logging.getLogger(__name__)


class HabitEngine:
    """Owns the domain store and drives reset, reminder and sync work.

    ``start()`` hydrates from the remote service first, then applies the
    monthly boundary, then starts the recurring timers. Nothing timer-driven
    runs before hydration has finished.
    """

    def __init__(
        self,
        local_store,
        clock: Clock,
        gateway: NotificationGateway,
        remote=None,
        reset_interval: float = 60.0,
        reminder_interval: float = 30.0,
        debounce_seconds: float = 0.5,
        notifications_enabled: bool = True,
    ):
        self.local_store = local_store
        self.clock = clock
        self.gateway = gateway
        self.store = DomainStore(clock, load_state(local_store))
        self.scheduler = BoundaryResetScheduler(self.store, local_store, clock)
        self.evaluator = ReminderEvaluator(self.store, clock, gateway)
        self.reconciler = SyncReconciler(self.store, remote, debounce_seconds=debounce_seconds)
        self.notifications_enabled = notifications_enabled
        self._reset_interval = reset_interval
        self._reminder_interval = reminder_interval
        self._timers: list[asyncio.Task] = []
        self._started = False

        self.store.subscribe(PersistenceSink(local_store, self.store))
        self.store.subscribe(self.reconciler.handle_mutation)
        self.store.subscribe(self._announce_milestones)

    @classmethod
    def from_settings(cls, settings: Settings, host_notifier=None, local_store=None, remote=None):
        clock = Clock(settings.reference_timezone)
        if local_store is None:
            local_store = LocalStore(settings.local_store_url)
        if remote is None and settings.sync_enabled:
            remote = RemoteStateClient(
                settings.api_base_url,
                settings.user_id,
                token=settings.backend_token,
                timeout=settings.remote_timeout_seconds,
            )
        gateway = NotificationGateway(host=host_notifier if host_notifier is not None else PlyerNotifier())
        return cls(
            local_store,
            clock,
            gateway,
            remote=remote,
            reset_interval=settings.reset_interval_seconds,
            reminder_interval=settings.reminder_interval_seconds,
            debounce_seconds=settings.sync_debounce_seconds,
            notifications_enabled=settings.notifications_enabled,
        )

    @property
    def running(self):
        return self._started

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        if self.notifications_enabled:
            self.gateway.request_permission()
        await self.reconciler.hydrate()
        self.scheduler.check_month()

        self._timers.append(
            asyncio.create_task(
                self._run_periodic("boundary-reset", self.scheduler.run_once, self._reset_interval, immediate=True)
            )
        )
        if self.notifications_enabled:
            self._timers.append(
                asyncio.create_task(
                    self._run_periodic("reminders", self.evaluator.run_once, self._reminder_interval, immediate=False)
                )
            )
        logger.info("Habit engine started (sync: %s)", self.reconciler.status.value)

    async def stop(self) -> None:
        if not self._started:
            return
        for timer in self._timers:
            timer.cancel()
        await asyncio.gather(*self._timers, return_exceptions=True)
        self._timers = []
        await self.reconciler.aclose()
        self._started = False
        logger.info("Habit engine stopped")

    async def _run_periodic(self, name, tick, interval, immediate=True):
        if not immediate:
            await asyncio.sleep(interval)
        while True:
            try:
                tick()
            except Exception:
                logger.exception("%s tick failed", name)
            await asyncio.sleep(interval)

    def _announce_milestones(self, event) -> None:
        if MILESTONE_SKIN_SESSION in event.milestones:
            self.gateway.deliver(
                "✅ Skin Session Completed",
                "Nice! Your skin routine session has been recorded.",
            )
