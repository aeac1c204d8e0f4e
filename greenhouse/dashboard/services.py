"""
Dashboard Services

Loads records for the dashboard with a fallback to simulated data, registers
alerts, and applies schedule updates.
"""

import logging
import re
from datetime import timedelta

from flask import current_app

from greenhouse.extensions import get_alert_store
from greenhouse.services import repository
from greenhouse.services.alert_rules import evaluate_alerts, evaluate_thresholds
from greenhouse.services.records import (
    InvalidTransition, PlantingSchedule, Thresholds, WateringSchedule, is_legal_transition,
    utcnow,
)
from greenhouse.services.simulation import (
    generate_environment_reading, generate_historical_series, generate_planting_schedules,
    generate_watering_schedules,
)

logger = logging.getLogger(__name__)

RANGE_DAYS = {'24h': 1, '7d': 7, '30d': 30}

INVALID = 'invalid'

_CAMEL_BOUNDARY = re.compile(r'(?<!^)(?=[A-Z])')


def _with_fallback(result, fallback, label):
    """Use stored records when available, otherwise simulated ones."""
    if result['success'] and result['data']:
        return result['data'], 'stored'
    if not result['success']:
        logger.warning('Falling back to simulated %s: %s', label, result['error'])
    return fallback(), 'simulated'


def load_watering_schedules():
    return _with_fallback(repository.get_watering_schedules(),
                          generate_watering_schedules, 'watering schedules')


def load_planting_schedules():
    return _with_fallback(repository.get_planting_schedules(),
                          generate_planting_schedules, 'planting schedules')


def load_environment_history(days):
    since = utcnow() - timedelta(days=days + 1)
    return _with_fallback(repository.get_environment_readings(since=since),
                          lambda: generate_historical_series(days), 'environment history')


def load_thresholds():
    result = repository.get_settings()
    if result['success']:
        return result['data']
    logger.warning('Using default thresholds: %s', result['error'])
    return Thresholds()


def register_alerts(drafts):
    """Add drafts to the application's alert store and keep a stored copy."""
    store = get_alert_store()
    alerts = store.add_alerts(drafts)
    for alert in alerts:
        result = repository.add_alert(alert)
        if not result['success']:
            logger.warning('Alert %s kept in memory only: %s', alert.id, result['error'])
    return alerts


def record_current_reading():
    """Generate and store a reading, then raise threshold alerts for it."""
    reading = generate_environment_reading()
    result = repository.add_environment_reading(reading)
    if not result['success']:
        logger.warning('Reading not stored: %s', result['error'])

    alerts = register_alerts(evaluate_thresholds(reading, load_thresholds()))
    return reading, alerts


def check_all_alerts(reading=None):
    """Run every alert rule against current data and register the results."""
    watering, _ = load_watering_schedules()
    planting, _ = load_planting_schedules()
    drafts = evaluate_alerts(
        reading=reading,
        watering_schedules=watering,
        planting_schedules=planting,
        settings=load_thresholds(),
    )
    return register_alerts(drafts)


def snake_case_keys(payload):
    """Accept camelCase payload keys (plantedDate) alongside snake_case."""
    return {_CAMEL_BOUNDARY.sub('_', key).lower(): value for key, value in (payload or {}).items()}


def check_transition(old, new):
    """Validate a status change, rejecting it only when enforcement is on."""
    if is_legal_transition(old, new):
        return
    message = f'Status change {old.value} -> {new.value} is not allowed'
    if current_app.config.get('ENFORCE_STATUS_TRANSITIONS'):
        raise InvalidTransition(message)
    logger.warning('%s (allowed, enforcement disabled)', message)


_SCHEDULE_KINDS = {
    'watering': (WateringSchedule, 'time', repository.get_watering_schedule,
                 repository.update_watering_schedule),
    'planting': (PlantingSchedule, 'planted_date', repository.get_planting_schedule,
                 repository.update_planting_schedule),
}


def update_schedule(kind, schedule_id, payload):
    """Merge ``payload`` into a stored schedule and save it.

    A merge that loses the required date fails with code INVALID. Raises
    InvalidTransition when the status change is rejected.
    """
    record_cls, required, getter, updater = _SCHEDULE_KINDS[kind]

    current = getter(schedule_id)
    if not current['success']:
        return current

    existing = current['data']
    merged = record_cls.from_mapping({**existing.to_dict(), **snake_case_keys(payload), 'id': schedule_id})
    if getattr(merged, required) is None:
        return {'success': False, 'error': f'A valid {required} is required', 'code': INVALID}
    check_transition(existing.status, merged.status)
    return updater(merged)
