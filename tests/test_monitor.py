from datetime import timedelta

import pytest

from greenhouse.extensions import db
from greenhouse.models import EnvironmentReading as ReadingRow
from greenhouse.services import repository
from greenhouse.services.alert_rules import HIGH_TEMPERATURE, MISSED_WATERING
from greenhouse.services.monitor import MISSED_WATERING_JOB
from greenhouse.services.records import (
    EnvironmentReading, WateringSchedule, WateringStatus, utcnow,
)


@pytest.fixture()
def monitor(app):
    monitor = app.extensions['alert_monitor']
    yield monitor
    monitor.stop()


def test_monitor_not_started_under_test_config(monitor):
    assert monitor.running is False
    assert monitor.simulation_active is False


def test_simulation_tick_stores_reading_and_alerts(app, monitor, monkeypatch):
    hot = EnvironmentReading(temperature=41.5, humidity=50, soil_moisture=60, timestamp=utcnow())
    monkeypatch.setattr('greenhouse.dashboard.services.generate_environment_reading', lambda: hot)
    store = app.extensions['alert_store']
    unread_before = store.unread_count

    alerts = monitor.run_simulation_tick()

    assert [a.type for a in alerts] == [HIGH_TEMPERATURE]
    assert store.alerts[0].id == alerts[0].id
    assert store.unread_count == unread_before + 1
    with app.app_context():
        assert db.session.query(ReadingRow).count() == 1
        stored = repository.get_alerts()['data']
        assert alerts[0].id in {a.id for a in stored}


def test_missed_watering_check_uses_stored_schedules(app, monitor):
    with app.app_context():
        repository.add_watering_schedule(WateringSchedule(
            id='late', zone='D', time=utcnow() - timedelta(hours=1)))
        repository.add_watering_schedule(WateringSchedule(
            id='later', zone='A', time=utcnow() + timedelta(hours=3)))

    alerts = monitor.run_missed_watering_check()

    assert len(alerts) == 1
    assert alerts[0].type == MISSED_WATERING
    assert 'Zone D' in alerts[0].message


def test_simulation_start_and_stop(monitor):
    assert monitor.start_simulation(3) == 3
    assert monitor.simulation_active is True
    assert monitor.start_simulation() == 5
    assert monitor.stop_simulation() is True
    assert monitor.simulation_active is False
    assert monitor.stop_simulation() is False


def test_start_and_stop_scheduler(monitor):
    monitor.start()
    assert monitor.running is True
    assert monitor.scheduler.get_job(MISSED_WATERING_JOB) is not None
    monitor.start()
    monitor.stop()
    assert monitor.running is False


def test_missed_watering_alerts_once_per_schedule(app, monitor):
    store = app.extensions['alert_store']
    with app.app_context():
        repository.add_watering_schedule(WateringSchedule(
            id='late', zone='B', time=utcnow() - timedelta(minutes=30)))
    before = len(store.alerts)

    first = monitor.run_missed_watering_check()
    second = monitor.run_missed_watering_check()

    assert [a.type for a in first] == [MISSED_WATERING]
    assert second == []
    assert len(store.alerts) == before + 1


def test_missed_watering_alerts_again_after_recovery(app, monitor):
    late = utcnow() - timedelta(minutes=30)
    with app.app_context():
        repository.add_watering_schedule(WateringSchedule(id='late', zone='B', time=late))
    assert len(monitor.run_missed_watering_check()) == 1

    with app.app_context():
        repository.update_watering_schedule(WateringSchedule(
            id='late', zone='B', time=late, status=WateringStatus.COMPLETED))
    assert monitor.run_missed_watering_check() == []

    with app.app_context():
        repository.update_watering_schedule(WateringSchedule(id='late', zone='B', time=late))
    assert len(monitor.run_missed_watering_check()) == 1
