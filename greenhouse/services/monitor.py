"""
Periodic Alert Monitor

Uses APScheduler to re-evaluate alert rules in the background: a
missed-watering check that runs for the life of the application, and a
simulation job that generates a reading every few seconds while the
dashboard simulation is switched on.
"""

import logging
import threading

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from greenhouse.dashboard.services import (
    load_watering_schedules, record_current_reading, register_alerts,
)
from greenhouse.services.alert_rules import check_missed_watering

logger = logging.getLogger(__name__)

MISSED_WATERING_JOB = 'missed_watering_check'
SIMULATION_JOB = 'environment_simulation'


class AlertMonitor:
    """Schedules alert evaluation jobs for one Flask application."""

    def __init__(self, app, scheduler=None):
        self.app = app
        self.scheduler = scheduler or BackgroundScheduler(daemon=True)
        # schedule ids already reported as missed
        self._missed_ids = set()
        self._missed_lock = threading.Lock()

    @property
    def running(self):
        return self.scheduler.running

    @property
    def simulation_active(self):
        return self.scheduler.get_job(SIMULATION_JOB) is not None

    def start(self):
        """Start the scheduler with the missed-watering check."""
        if self.scheduler.running:
            return
        interval = self.app.config['MISSED_WATERING_INTERVAL_SECONDS']
        self.scheduler.add_job(
            self.run_missed_watering_check,
            trigger=IntervalTrigger(seconds=interval),
            id=MISSED_WATERING_JOB,
            name='Missed watering check',
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info('Alert monitor started (missed watering every %ss)', interval)

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info('Alert monitor stopped')

    def start_simulation(self, interval=None):
        """Generate a reading every ``interval`` seconds until stopped.

        Jobs added before ``start()`` stay pending until the scheduler runs.
        """
        interval = interval or self.app.config['SIMULATION_INTERVAL_SECONDS']
        self.stop_simulation()
        self.scheduler.add_job(
            self.run_simulation_tick,
            trigger=IntervalTrigger(seconds=interval),
            id=SIMULATION_JOB,
            name='Environment simulation',
            replace_existing=True,
        )
        logger.info('Simulation started (every %ss)', interval)
        return interval

    def stop_simulation(self):
        try:
            self.scheduler.remove_job(SIMULATION_JOB)
        except JobLookupError:
            return False
        logger.info('Simulation stopped')
        return True

    def run_simulation_tick(self):
        """Generate and store one reading and register its threshold alerts."""
        with self.app.app_context():
            reading, alerts = record_current_reading()
        logger.debug('Simulated reading %.1f°C / %s%% / %s%%, %d alert(s)',
                     reading.temperature, reading.humidity, reading.soil_moisture, len(alerts))
        return alerts

    def run_missed_watering_check(self):
        """Register one Missed Watering alert per overdue pending schedule.

        A schedule is reported once while it stays missed. Ids that are no
        longer missed are forgotten, so a later miss alerts again.
        """
        with self.app.app_context():
            schedules, source = load_watering_schedules()
            drafts = check_missed_watering(schedules)
            with self._missed_lock:
                missed = {draft.details['schedule_id'] for draft in drafts}
                self._missed_ids &= missed
                new = [d for d in drafts if d.details['schedule_id'] not in self._missed_ids]
                self._missed_ids.update(d.details['schedule_id'] for d in new)
            alerts = register_alerts(new)
        if alerts:
            logger.info('%d missed watering schedule(s) in %s data', len(alerts), source)
        return alerts
