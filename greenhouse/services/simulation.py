"""
Greenhouse Data Simulation Service

Generates plausible readings, schedules and alerts when no real sensor feed
or stored records are available. Every generator takes an optional ``rng``
(anything with the ``random.Random`` interface) and an optional ``now`` so
that callers can make the output reproducible.
"""

import math
import random
from datetime import timedelta

from greenhouse.services.records import (
    Alert, EnvironmentReading, PlantingSchedule, PlantingStatus, WateringSchedule,
    WateringStatus, ZONES, utcnow,
)
from greenhouse.services.alert_rules import SEVERITY_BY_TYPE


CROPS = ['Tomato', 'Lettuce', 'Cucumber', 'Pepper', 'Spinach', 'Basil', 'Carrot', 'Broccoli']

BASE_TEMPERATURE = 25
BASE_HUMIDITY = 60
BASE_MOISTURE = 50

HUMIDITY_BOUNDS = (20, 90)
MOISTURE_BOUNDS = (10, 100)

# Canned alerts used to populate the store at start-up
SEED_ALERTS = [
    ('High Temperature', 'Temperature above 35°C detected'),
    ('Low Moisture', 'Soil moisture below 40%'),
    ('High Humidity', 'Humidity above 80%'),
    ('Watering Due', 'Scheduled watering time approaching'),
    ('Planting Due', 'Planting schedule due today'),
]

# Daily watering slots: (slot name, hour, zone, duration)
WATERING_SLOTS = [
    ('morning', 7, 'A', '15min'),
    ('evening', 18, 'B', '20min'),
]

DEFAULT_SIMULATION_RANGES = {
    'temperature': (20, 35),
    'humidity': (30, 80),
    'soil_moisture': (20, 70),
}


def _clamp(value, bounds):
    low, high = bounds
    return max(low, min(high, value))


def _daily_wave(hour, shift):
    """Sinusoid over a 24h day, peaking at ``shift + 6`` o'clock."""
    return math.sin((hour - shift) * math.pi / 12)


def _build_reading(timestamp, rng, temp_amplitude, zone='A'):
    hour = timestamp.hour

    temperature = BASE_TEMPERATURE + _daily_wave(hour, 6) * temp_amplitude + rng.uniform(-2, 2)
    humidity = BASE_HUMIDITY + _daily_wave(hour, 12) * 15 + rng.uniform(-10, 10)
    moisture = BASE_MOISTURE + _daily_wave(hour, 6) * 10 + rng.uniform(-10, 10)

    return EnvironmentReading(
        temperature=round(temperature, 1),
        humidity=_clamp(round(humidity), HUMIDITY_BOUNDS),
        soil_moisture=_clamp(round(moisture), MOISTURE_BOUNDS),
        timestamp=timestamp,
        zone=zone,
    )


def generate_environment_reading(now=None, rng=None, zone='A'):
    """Generate a single current reading.

    Temperature follows a +/-5 degC daily wave (warm at midday, cool at
    midnight) plus up to +/-2 degC of noise. Humidity and soil moisture are
    clamped to [20, 90] and [10, 100] percent.
    """
    now = now or utcnow()
    rng = rng or random
    return _build_reading(now, rng, temp_amplitude=5, zone=zone)


def generate_historical_series(days=7, now=None, rng=None):
    """Generate hourly readings covering ``days + 1`` days, ending at ``now``.

    Returns a list in chronological order.
    """
    now = now or utcnow()
    rng = rng or random
    days = max(0, int(days))

    end = now.replace(minute=0, second=0, microsecond=0)
    total_hours = (days + 1) * 24

    return [
        _build_reading(end - timedelta(hours=offset), rng, temp_amplitude=8)
        for offset in range(total_hours - 1, -1, -1)
    ]


def generate_watering_schedules(now=None):
    """Generate the morning/evening watering slots for the past and next week.

    Slots on days before today are completed, everything else is pending.
    """
    now = now or utcnow()
    schedules = []

    for day_offset in range(-7, 7):
        day = now + timedelta(days=day_offset)
        for slot, hour, zone, duration in WATERING_SLOTS:
            schedules.append(WateringSchedule(
                id=f'wtr_{day_offset}_{slot}',
                zone=zone,
                time=day.replace(hour=hour, minute=0, second=0, microsecond=0),
                duration=duration,
                status=WateringStatus.COMPLETED if day_offset < 0 else WateringStatus.PENDING,
            ))

    return schedules


def generate_planting_schedules(count=24, now=None, rng=None):
    """Generate random planting schedules planted within the last 60 days."""
    now = now or utcnow()
    rng = rng or random
    today = now.date()
    statuses = list(PlantingStatus)

    schedules = []
    for i in range(count):
        planted = today - timedelta(days=rng.randint(0, 59))
        harvest = planted + timedelta(days=60 + rng.randint(0, 29))
        schedules.append(PlantingSchedule(
            id=f'plant_{i + 1}',
            crop=rng.choice(CROPS),
            zone=rng.choice(ZONES),
            planted_date=planted,
            harvest_date=harvest,
            status=rng.choice(statuses),
            quantity=rng.randint(10, 59),
        ))

    return schedules


def generate_alert_seed(count=10, now=None, rng=None):
    """Generate a pool of historical alerts, newest first."""
    now = now or utcnow()
    rng = rng or random

    alerts = []
    for i in range(count):
        alert_type, message = rng.choice(SEED_ALERTS)
        timestamp = now - timedelta(hours=rng.randint(0, 47))
        alerts.append(Alert(
            id=f'seed-{i + 1}',
            type=alert_type,
            message=message,
            severity=SEVERITY_BY_TYPE[alert_type],
            timestamp=timestamp,
            read=rng.random() > 0.5,
        ))

    alerts.sort(key=lambda alert: alert.timestamp, reverse=True)
    return alerts


def simulate_range_reading(ranges=None, now=None, rng=None):
    """Draw a reading uniformly from configured min/max ranges.

    ``ranges`` maps ``temperature``, ``humidity`` and ``soil_moisture`` to
    ``(min, max)`` pairs; missing entries use DEFAULT_SIMULATION_RANGES.
    """
    rng = rng or random
    bounds = dict(DEFAULT_SIMULATION_RANGES)
    if ranges:
        bounds.update({key: tuple(value) for key, value in ranges.items() if key in bounds})

    def draw(key):
        low, high = bounds[key]
        return rng.uniform(min(low, high), max(low, high))

    return EnvironmentReading(
        temperature=round(draw('temperature'), 1),
        humidity=_clamp(round(draw('humidity')), HUMIDITY_BOUNDS),
        soil_moisture=_clamp(round(draw('soil_moisture')), MOISTURE_BOUNDS),
        timestamp=now or utcnow(),
    )
