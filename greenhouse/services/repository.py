"""
Record Repository

CRUD access to stored readings, schedules, alerts and settings. Every call
returns a result dict: ``{'success': True, 'data': ...}`` (or ``'id'``) on
success and ``{'success': False, 'error': message}`` on failure, so callers
can decide whether to fall back to simulated data. Database errors are
rolled back and logged here, never raised.
"""

import logging

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from greenhouse.extensions import db
from greenhouse import models
from greenhouse.services.records import (
    Alert, EnvironmentReading, PlantingSchedule, Thresholds, WateringSchedule,
)

logger = logging.getLogger(__name__)

NOT_FOUND = 'not_found'


def _ok(**payload):
    return {'success': True, **payload}


def _failed(action, error):
    db.session.rollback()
    logger.error('%s failed: %s', action, error)
    return {'success': False, 'error': str(error)}


def _new_row(model, record_id):
    return model(id=record_id) if record_id else model()


def _not_found(kind, record_id):
    return {'success': False, 'error': f'{kind} {record_id} not found', 'code': NOT_FOUND}


# ---------------------------------------------------------------------------
# Environment readings
# ---------------------------------------------------------------------------

def get_environment_readings(since=None, limit=None):
    """Stored readings in chronological order, optionally since a datetime."""
    try:
        query = models.EnvironmentReading.query
        if since is not None:
            query = query.filter(models.EnvironmentReading.timestamp >= since)
        query = query.order_by(models.EnvironmentReading.timestamp.asc())
        if limit:
            query = query.limit(limit)
        return _ok(data=[EnvironmentReading.from_row(row) for row in query.all()])
    except SQLAlchemyError as e:
        return _failed('Loading environment readings', e)


def add_environment_reading(reading):
    try:
        row = models.EnvironmentReading(
            zone=reading.zone,
            timestamp=reading.timestamp,
            temperature=reading.temperature,
            humidity=reading.humidity,
            soil_moisture=reading.soil_moisture,
        )
        db.session.add(row)
        db.session.commit()
        return _ok(id=row.id)
    except SQLAlchemyError as e:
        return _failed('Saving environment reading', e)


# ---------------------------------------------------------------------------
# Watering schedules
# ---------------------------------------------------------------------------

def _apply_watering(row, schedule):
    row.zone = schedule.zone
    row.time = schedule.time
    row.duration = schedule.duration
    row.status = schedule.status.value


def get_watering_schedules():
    try:
        rows = models.WateringSchedule.query.order_by(models.WateringSchedule.time.asc()).all()
        return _ok(data=[WateringSchedule.from_row(row) for row in rows])
    except SQLAlchemyError as e:
        return _failed('Loading watering schedules', e)


def get_watering_schedule(schedule_id):
    try:
        row = db.session.get(models.WateringSchedule, schedule_id)
        if row is None:
            return _not_found('Watering schedule', schedule_id)
        return _ok(data=WateringSchedule.from_row(row))
    except SQLAlchemyError as e:
        return _failed('Loading watering schedule', e)


def add_watering_schedule(schedule):
    try:
        row = _new_row(models.WateringSchedule, schedule.id)
        _apply_watering(row, schedule)
        db.session.add(row)
        db.session.commit()
        return _ok(id=row.id)
    except SQLAlchemyError as e:
        return _failed('Saving watering schedule', e)


def update_watering_schedule(schedule):
    try:
        row = db.session.get(models.WateringSchedule, schedule.id)
        if row is None:
            return _not_found('Watering schedule', schedule.id)
        _apply_watering(row, schedule)
        db.session.commit()
        return _ok(data=WateringSchedule.from_row(row))
    except SQLAlchemyError as e:
        return _failed('Updating watering schedule', e)


def delete_watering_schedule(schedule_id):
    try:
        row = db.session.get(models.WateringSchedule, schedule_id)
        if row is None:
            return _not_found('Watering schedule', schedule_id)
        db.session.delete(row)
        db.session.commit()
        return _ok(id=schedule_id)
    except SQLAlchemyError as e:
        return _failed('Deleting watering schedule', e)


# ---------------------------------------------------------------------------
# Planting schedules
# ---------------------------------------------------------------------------

def _apply_planting(row, schedule):
    row.crop = schedule.crop
    row.zone = schedule.zone
    row.planted_date = schedule.planted_date
    row.harvest_date = schedule.harvest_date
    row.status = schedule.status.value
    row.quantity = schedule.quantity


def get_planting_schedules():
    try:
        rows = models.PlantingSchedule.query.order_by(models.PlantingSchedule.planted_date.desc()).all()
        return _ok(data=[PlantingSchedule.from_row(row) for row in rows])
    except SQLAlchemyError as e:
        return _failed('Loading planting schedules', e)


def get_planting_schedule(schedule_id):
    try:
        row = db.session.get(models.PlantingSchedule, schedule_id)
        if row is None:
            return _not_found('Planting schedule', schedule_id)
        return _ok(data=PlantingSchedule.from_row(row))
    except SQLAlchemyError as e:
        return _failed('Loading planting schedule', e)


def add_planting_schedule(schedule):
    try:
        row = _new_row(models.PlantingSchedule, schedule.id)
        _apply_planting(row, schedule)
        db.session.add(row)
        db.session.commit()
        return _ok(id=row.id)
    except SQLAlchemyError as e:
        return _failed('Saving planting schedule', e)


def update_planting_schedule(schedule):
    try:
        row = db.session.get(models.PlantingSchedule, schedule.id)
        if row is None:
            return _not_found('Planting schedule', schedule.id)
        _apply_planting(row, schedule)
        db.session.commit()
        return _ok(data=PlantingSchedule.from_row(row))
    except SQLAlchemyError as e:
        return _failed('Updating planting schedule', e)


def delete_planting_schedule(schedule_id):
    try:
        row = db.session.get(models.PlantingSchedule, schedule_id)
        if row is None:
            return _not_found('Planting schedule', schedule_id)
        db.session.delete(row)
        db.session.commit()
        return _ok(id=schedule_id)
    except SQLAlchemyError as e:
        return _failed('Deleting planting schedule', e)


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------

def get_alerts(limit=None):
    """Stored alerts, newest first."""
    try:
        query = models.AlertRecord.query.order_by(models.AlertRecord.timestamp.desc())
        if limit:
            query = query.limit(limit)
        return _ok(data=[Alert.from_row(row) for row in query.all()])
    except SQLAlchemyError as e:
        return _failed('Loading alerts', e)


def add_alert(alert):
    try:
        row = models.AlertRecord(
            id=alert.id,
            type=alert.type,
            message=alert.message,
            severity=alert.severity.value,
            timestamp=alert.timestamp,
            read=alert.read,
        )
        db.session.add(row)
        db.session.commit()
        return _ok(id=row.id)
    except SQLAlchemyError as e:
        return _failed('Saving alert', e)


def mark_alert_as_read(alert_id):
    try:
        row = db.session.get(models.AlertRecord, alert_id)
        if row is None:
            return _not_found('Alert', alert_id)
        row.read = True
        db.session.commit()
        return _ok(id=alert_id)
    except SQLAlchemyError as e:
        return _failed('Marking alert as read', e)


def delete_alert(alert_id):
    try:
        row = db.session.get(models.AlertRecord, alert_id)
        if row is None:
            return _not_found('Alert', alert_id)
        db.session.delete(row)
        db.session.commit()
        return _ok(id=alert_id)
    except SQLAlchemyError as e:
        return _failed('Deleting alert', e)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

def _thresholds(row):
    return Thresholds(
        temp_limit=row.temp_limit,
        humidity_limit=row.humidity_limit,
        moisture_limit=row.moisture_limit,
    )


def get_settings():
    """Current thresholds; the settings row is created from config if absent."""
    try:
        row = models.Settings.query.first()
        if row is None:
            config = current_app.config
            row = models.Settings(
                temp_limit=config['TEMP_LIMIT'],
                humidity_limit=config['HUMIDITY_LIMIT'],
                moisture_limit=config['MOISTURE_LIMIT'],
            )
            db.session.add(row)
            db.session.commit()
            logger.info('Created default settings row')
        return _ok(data=_thresholds(row))
    except SQLAlchemyError as e:
        return _failed('Loading settings', e)


def update_settings(thresholds):
    try:
        row = models.Settings.query.first() or models.Settings()
        row.temp_limit = thresholds.temp_limit
        row.humidity_limit = thresholds.humidity_limit
        row.moisture_limit = thresholds.moisture_limit
        db.session.add(row)
        db.session.commit()
        return _ok(data=_thresholds(row))
    except SQLAlchemyError as e:
        return _failed('Updating settings', e)


# ---------------------------------------------------------------------------
# Demo data
# ---------------------------------------------------------------------------

def count_records():
    try:
        return _ok(data={
            'users': models.User.query.count(),
            'readings': models.EnvironmentReading.query.count(),
            'watering_schedules': models.WateringSchedule.query.count(),
            'planting_schedules': models.PlantingSchedule.query.count(),
            'alerts': models.AlertRecord.query.count(),
        })
    except SQLAlchemyError as e:
        return _failed('Counting records', e)


def replace_demo_data(watering, planting, readings):
    """Replace all schedules and readings with the given records."""
    try:
        models.WateringSchedule.query.delete()
        models.PlantingSchedule.query.delete()
        models.EnvironmentReading.query.delete()

        for schedule in watering:
            row = _new_row(models.WateringSchedule, schedule.id)
            _apply_watering(row, schedule)
            db.session.add(row)
        for schedule in planting:
            row = _new_row(models.PlantingSchedule, schedule.id)
            _apply_planting(row, schedule)
            db.session.add(row)
        db.session.add_all([
            models.EnvironmentReading(
                zone=r.zone, timestamp=r.timestamp, temperature=r.temperature,
                humidity=r.humidity, soil_moisture=r.soil_moisture,
            )
            for r in readings
        ])

        db.session.commit()
        logger.info('Demo data replaced: %d watering, %d planting, %d readings',
                    len(watering), len(planting), len(readings))
        return _ok(data={
            'watering_schedules': len(watering),
            'planting_schedules': len(planting),
            'readings': len(readings),
        })
    except SQLAlchemyError as e:
        return _failed('Replacing demo data', e)
