import random
from datetime import timedelta

import pytest

from greenhouse.services.alert_rules import SEVERITY_BY_TYPE
from greenhouse.services.records import PlantingStatus, WateringStatus
from greenhouse.services.simulation import (
    generate_alert_seed,
    generate_environment_reading,
    generate_historical_series,
    generate_planting_schedules,
    generate_watering_schedules,
    simulate_range_reading,
)


@pytest.mark.parametrize('seed', range(20))
def test_current_reading_stays_in_bounds(seed, now):
    rng = random.Random(seed)
    for hour in range(24):
        reading = generate_environment_reading(now.replace(hour=hour), rng)
        assert 10 <= reading.temperature <= 45
        assert 20 <= reading.humidity <= 90
        assert 10 <= reading.soil_moisture <= 100
        assert reading.temperature == round(reading.temperature, 1)


def test_current_reading_is_reproducible(now):
    first = generate_environment_reading(now, random.Random(7))
    second = generate_environment_reading(now, random.Random(7))
    assert first == second
    assert first.timestamp == now
    assert first.zone == 'A'


def test_midday_is_warmer_than_midnight_on_average(now):
    rng = random.Random(1)
    noon = [generate_environment_reading(now.replace(hour=12), rng).temperature for _ in range(50)]
    midnight = [generate_environment_reading(now.replace(hour=0), rng).temperature for _ in range(50)]
    assert sum(noon) / len(noon) > sum(midnight) / len(midnight)


def test_historical_series_is_hourly_and_ascending(now, rng):
    series = generate_historical_series(7, now=now, rng=rng)
    assert len(series) == 8 * 24
    assert series[-1].timestamp == now
    assert series[0].timestamp == now - timedelta(hours=8 * 24 - 1)
    for earlier, later in zip(series, series[1:]):
        assert later.timestamp - earlier.timestamp == timedelta(hours=1)


def test_historical_series_bounds(now, rng):
    for reading in generate_historical_series(30, now=now.replace(minute=37), rng=rng):
        assert 10 <= reading.temperature <= 45
        assert 20 <= reading.humidity <= 90
        assert 10 <= reading.soil_moisture <= 100
        assert reading.timestamp.minute == 0


def test_historical_series_zero_days(now, rng):
    assert len(generate_historical_series(0, now=now, rng=rng)) == 24


def test_watering_schedules_cover_two_weeks(now):
    schedules = generate_watering_schedules(now)
    assert len(schedules) == 28

    by_id = {s.id: s for s in schedules}
    morning = by_id['wtr_-1_morning']
    assert morning.status == WateringStatus.COMPLETED
    assert morning.zone == 'A'
    assert morning.time.hour == 7
    assert morning.duration == '15min'

    evening = by_id['wtr_0_evening']
    assert evening.status == WateringStatus.PENDING
    assert evening.zone == 'B'
    assert evening.time.hour == 18
    assert evening.duration == '20min'


def test_planting_schedules(now, rng):
    schedules = generate_planting_schedules(count=50, now=now, rng=rng)
    assert len(schedules) == 50
    assert len({s.id for s in schedules}) == 50

    today = now.date()
    for s in schedules:
        assert 0 <= (today - s.planted_date).days <= 59
        assert 60 <= (s.harvest_date - s.planted_date).days <= 89
        assert s.status in PlantingStatus
        assert s.zone in ('A', 'B', 'C', 'D')
        assert 10 <= s.quantity <= 59


def test_planting_schedules_reproducible(now):
    first = generate_planting_schedules(now=now, rng=random.Random(3))
    second = generate_planting_schedules(now=now, rng=random.Random(3))
    assert first == second


def test_alert_seed_newest_first(now, rng):
    alerts = generate_alert_seed(count=10, now=now, rng=rng)
    assert len(alerts) == 10
    timestamps = [a.timestamp for a in alerts]
    assert timestamps == sorted(timestamps, reverse=True)
    for alert in alerts:
        assert alert.severity == SEVERITY_BY_TYPE[alert.type]
        assert now - timedelta(hours=47) <= alert.timestamp <= now


def test_range_reading_uses_configured_bounds(now, rng):
    ranges = {'temperature': (30, 31), 'humidity': (50, 55)}
    for _ in range(20):
        reading = simulate_range_reading(ranges, now=now, rng=rng)
        assert 30 <= reading.temperature <= 31
        assert 50 <= reading.humidity <= 55
        assert 20 <= reading.soil_moisture <= 70
