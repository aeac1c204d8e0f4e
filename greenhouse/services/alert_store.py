"""
Alert Store

In-memory registry of active alerts, newest first, with an unread counter.
One store is created per application (see ``create_app``) and shared by the
request handlers and the background monitor, so the list and the counter are
only ever changed together under a lock.
"""

import itertools
import logging
import threading
from dataclasses import replace

from greenhouse.services.records import Alert, utcnow

logger = logging.getLogger(__name__)


class AlertStore:
    """Holds alerts in most-recent-first order."""

    def __init__(self, alerts=None, clock=utcnow):
        self._lock = threading.RLock()
        self._clock = clock
        self._sequence = itertools.count(1)
        self._alerts = list(alerts or [])
        self._unread_count = sum(1 for alert in self._alerts if not alert.read)

    def __len__(self):
        with self._lock:
            return len(self._alerts)

    @property
    def alerts(self):
        with self._lock:
            return list(self._alerts)

    @property
    def unread_count(self):
        with self._lock:
            return self._unread_count

    def _next_id(self, now):
        return f'{int(now.timestamp() * 1000)}-{next(self._sequence)}'

    def add_alert(self, draft):
        """Register a draft as a new unread alert at the front of the list."""
        with self._lock:
            now = self._clock()
            alert = Alert(
                id=self._next_id(now),
                type=draft.type,
                message=draft.message,
                severity=draft.severity,
                timestamp=now,
                read=False,
            )
            self._alerts.insert(0, alert)
            self._unread_count += 1

        logger.info('Alert added: [%s] %s', alert.severity.value, alert.message)
        return alert

    def add_alerts(self, drafts):
        """Add drafts one after another, in the order given."""
        return [self.add_alert(draft) for draft in drafts]

    def _find(self, alert_id):
        for index, alert in enumerate(self._alerts):
            if alert.id == alert_id:
                return index, alert
        return None, None

    def mark_as_read(self, alert_id):
        """Mark one alert as read. Returns False if unknown or already read."""
        with self._lock:
            index, alert = self._find(alert_id)
            if alert is None or alert.read:
                return False
            self._alerts[index] = replace(alert, read=True)
            self._unread_count = max(0, self._unread_count - 1)
            return True

    def mark_all_as_read(self):
        """Mark every alert as read and return how many changed."""
        with self._lock:
            changed = self._unread_count
            self._alerts = [alert if alert.read else replace(alert, read=True)
                            for alert in self._alerts]
            self._unread_count = 0
            return changed

    def dismiss_alert(self, alert_id):
        """Remove an alert whatever its read state."""
        with self._lock:
            index, alert = self._find(alert_id)
            if alert is None:
                return False
            del self._alerts[index]
            if not alert.read:
                self._unread_count = max(0, self._unread_count - 1)
            return True

    def get_recent_alerts(self, limit=5):
        with self._lock:
            return self._alerts[:max(0, limit)]

    def get_unread_alerts(self):
        with self._lock:
            return [alert for alert in self._alerts if not alert.read]
