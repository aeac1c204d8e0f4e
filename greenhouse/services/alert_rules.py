"""
Alert Rule Services

Threshold and schedule checks that turn the current greenhouse state into
alert drafts. The checks never touch the alert store; callers decide whether
to register what they return.
"""

from datetime import timedelta

from greenhouse.services.records import (
    DEFAULT_HUMIDITY_LIMIT, DEFAULT_MOISTURE_LIMIT, DEFAULT_TEMP_LIMIT, AlertDraft,
    EnvironmentReading,
    PlantingSchedule, PlantingStatus, Severity, Thresholds, WateringSchedule,
    WateringStatus, utcnow,
)


HIGH_TEMPERATURE = 'High Temperature'
HIGH_HUMIDITY = 'High Humidity'
LOW_MOISTURE = 'Low Moisture'
WATERING_DUE = 'Watering Due'
PLANTING_DUE = 'Planting Due'
MISSED_WATERING = 'Missed Watering'

SEVERITY_BY_TYPE = {
    HIGH_TEMPERATURE: Severity.HIGH,
    HIGH_HUMIDITY: Severity.MEDIUM,
    LOW_MOISTURE: Severity.HIGH,
    WATERING_DUE: Severity.MEDIUM,
    PLANTING_DUE: Severity.LOW,
    MISSED_WATERING: Severity.HIGH,
}

_SEVERITY_ORDER = {Severity.HIGH: 0, Severity.MEDIUM: 1, Severity.LOW: 2}

WATERING_DUE_WINDOW = timedelta(minutes=30)


def severity_rank(severity):
    """Sort key for severities: high first, unknown last."""
    try:
        return _SEVERITY_ORDER[Severity(severity)]
    except ValueError:
        return len(_SEVERITY_ORDER)


def format_number(value):
    """Format a reading without a trailing '.0' (36.0 -> '36', 36.5 -> '36.5')."""
    value = float(value)
    return '%d' % value if value.is_integer() else repr(value)


def _draft(alert_type, message, **details):
    return AlertDraft(
        type=alert_type,
        message=message,
        severity=SEVERITY_BY_TYPE[alert_type],
        details=details,
    )


def _watering(schedules):
    return [s if isinstance(s, WateringSchedule) else WateringSchedule.from_mapping(s)
            for s in schedules or []]


def _planting(schedules):
    return [s if isinstance(s, PlantingSchedule) else PlantingSchedule.from_mapping(s)
            for s in schedules or []]


def check_temperature(temperature, threshold=DEFAULT_TEMP_LIMIT):
    """High Temperature when the reading is strictly above the limit."""
    if temperature is None or temperature <= threshold:
        return None
    return _draft(
        HIGH_TEMPERATURE,
        f'Temperature {format_number(temperature)}°C is above threshold of {format_number(threshold)}°C',
        temperature=temperature, threshold=threshold,
    )


def check_humidity(humidity, threshold=DEFAULT_HUMIDITY_LIMIT):
    """High Humidity when the reading is strictly above the limit."""
    if humidity is None or humidity <= threshold:
        return None
    return _draft(
        HIGH_HUMIDITY,
        f'Humidity {format_number(humidity)}% is above threshold of {format_number(threshold)}%',
        humidity=humidity, threshold=threshold,
    )


def check_moisture(moisture, threshold=DEFAULT_MOISTURE_LIMIT):
    """Low Moisture when the reading is strictly below the limit."""
    if moisture is None or moisture >= threshold:
        return None
    return _draft(
        LOW_MOISTURE,
        f'Soil moisture {format_number(moisture)}% is below threshold of {format_number(threshold)}%',
        soil_moisture=moisture, threshold=threshold,
    )


def check_watering_due(schedules, now=None):
    """Pending watering starting within the next 30 minutes."""
    now = now or utcnow()
    due = [
        s for s in _watering(schedules)
        if s.status == WateringStatus.PENDING and s.time is not None
        and timedelta(0) < s.time - now <= WATERING_DUE_WINDOW
    ]
    if not due:
        return None
    return _draft(
        WATERING_DUE,
        f'{len(due)} watering schedule(s) due soon',
        schedule_ids=[s.id for s in due],
    )


def check_planting_due(schedules, today=None):
    """Seeded plantings whose planted date is today."""
    today = today or utcnow().date()
    due = [
        s for s in _planting(schedules)
        if s.planted_date == today and s.status == PlantingStatus.SEEDED
    ]
    if not due:
        return None
    return _draft(
        PLANTING_DUE,
        f'{len(due)} planting(s) scheduled for today',
        schedule_ids=[s.id for s in due],
    )


def check_missed_watering(schedules, now=None):
    """One draft per pending watering whose start time has passed."""
    now = now or utcnow()
    return [
        _draft(
            MISSED_WATERING,
            f'Watering schedule for Zone {s.zone} was missed at {s.time:%Y-%m-%d %H:%M}',
            schedule_id=s.id, zone=s.zone,
        )
        for s in _watering(schedules)
        if s.status == WateringStatus.PENDING and s.time is not None and s.time < now
    ]


def evaluate_thresholds(reading, settings=None):
    """Run the temperature, humidity and moisture rules against one reading."""
    if reading is None:
        return []
    if not isinstance(reading, EnvironmentReading):
        reading = EnvironmentReading.from_mapping(reading)
    if not isinstance(settings, Thresholds):
        settings = Thresholds.from_mapping(settings)

    checks = [
        check_temperature(reading.temperature, settings.temp_limit),
        check_humidity(reading.humidity, settings.humidity_limit),
        check_moisture(reading.soil_moisture, settings.moisture_limit),
    ]
    return [draft for draft in checks if draft is not None]


def evaluate_alerts(reading=None, watering_schedules=None, planting_schedules=None,
                    settings=None, now=None):
    """Evaluate every alert rule and return the drafts in rule order.

    Rule order: High Temperature, High Humidity, Low Moisture, Watering Due,
    Planting Due, Missed Watering. Any input may be omitted.
    """
    now = now or utcnow()
    drafts = evaluate_thresholds(reading, settings)

    if watering_schedules:
        watering = _watering(watering_schedules)
        due = check_watering_due(watering, now)
        if due:
            drafts.append(due)
    else:
        watering = []

    if planting_schedules:
        planting_due = check_planting_due(planting_schedules, now.date())
        if planting_due:
            drafts.append(planting_due)

    drafts.extend(check_missed_watering(watering, now))
    return drafts
