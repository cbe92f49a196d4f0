from __future__ import annotations

import logging

from habit_engine.constants import DAILY_DOMAINS, DAY_KEY_STORAGE, MONTH_KEY_STORAGE

logger = logging.getLogger(__name__)


class BoundaryResetScheduler:
    """Resets completion state when the reference-zone day or month changes.

    Each daily domain keeps its own last-seen day key in the local store, so
    a domain is reset exactly once per day-key change and repeated runs on the
    same day are no-ops. A key that was never recorded (fresh install, cleared
    store) is only recorded, with no reset.
    """

    def __init__(self, store, local_store, clock):
        self._store = store
        self._local_store = local_store
        self._clock = clock

    def run_once(self) -> list[str]:
        today = self._clock.day_key()
        reset = []
        for domain in DAILY_DOMAINS:
            storage_key = DAY_KEY_STORAGE[domain]
            last_seen = self._local_store.get(storage_key)
            if last_seen == today:
                continue
            if last_seen:
                self._store.reset_daily(domain)
                reset.append(domain)
            self._local_store.set(storage_key, today)
        if reset:
            logger.info("Daily reset for %s on %s", ", ".join(reset), today)
        return reset

    def check_month(self) -> bool:
        current = self._clock.month_key()
        last_seen = self._local_store.get(MONTH_KEY_STORAGE)
        if last_seen == current:
            return False
        self._local_store.set(MONTH_KEY_STORAGE, current)
        if not last_seen:
            logger.info("Recorded month key %s without reset", current)
            return False
        self._store.reset_month()
        logger.info("Monthly reset for %s", current)
        return True
