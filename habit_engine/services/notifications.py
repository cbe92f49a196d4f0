from __future__ import annotations

import logging
import sys

from plyer import notification as plyer_notify

logger = logging.getLogger(__name__)

CHANNEL_HOST = "host"
CHANNEL_FALLBACK = "fallback"


class PlyerNotifier:
    """Desktop notifications through plyer."""

    def __init__(self, app_name="Habit Engine", timeout=10):
        self.app_name = app_name
        self.timeout = timeout

    def request_permission(self):
        # Desktop backends have no permission prompt; failures surface in show().
        return True

    def show(self, title, body):
        plyer_notify.notify(title=title, message=body, app_name=self.app_name, timeout=self.timeout)


def console_alert(title, body):
    sys.stderr.write(f"{title}\n\n{body}\n")
    sys.stderr.flush()


class NotificationGateway:
    def __init__(self, host=None, fallback=console_alert):
        self._host = host
        self._fallback = fallback
        self._permission_requested = False
        self._permitted = False

    @property
    def permitted(self):
        return self._permitted

    def request_permission(self):
        if self._permission_requested:
            return self._permitted
        self._permission_requested = True
        if self._host is None:
            return False
        try:
            self._permitted = bool(self._host.request_permission())
        except Exception as exc:
            logger.info("Notification permission request failed: %s", exc)
            self._permitted = False
        if not self._permitted:
            logger.info("Host notifications unavailable; reminders will use the fallback alert.")
        return self._permitted

    def deliver(self, title, body):
        if self._host is not None and self._permitted:
            try:
                self._host.show(title, body)
                return CHANNEL_HOST
            except Exception as exc:
                logger.warning("Host notification failed, using fallback alert: %s", exc)
        self._fallback(title, body)
        return CHANNEL_FALLBACK
