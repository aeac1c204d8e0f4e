"""
Dashboard Routes

JSON API for the greenhouse dashboard: current conditions, schedules,
alerts, reports and the live simulation switch.
"""

import logging

from flask import Response, abort, jsonify, request
from flask_login import login_required

from greenhouse.dashboard import dashboard_bp
from greenhouse.dashboard.services import (
    INVALID, RANGE_DAYS, check_all_alerts, load_environment_history, load_planting_schedules,
    load_watering_schedules, record_current_reading, snake_case_keys, update_schedule,
)
from greenhouse.extensions import get_alert_monitor, get_alert_store
from greenhouse.services import generate_environment_reading, repository
from greenhouse.services.export import report_rows, to_csv
from greenhouse.services.records import (
    EnvironmentReading, InvalidTransition, PlantingSchedule, PlantingStatus, WateringSchedule,
    WateringStatus, ZONES, utcnow,
)
from greenhouse.services.reports import (
    chart_bundle, compute_plant_summary, monthly_report, watering_sessions_by_day,
    weekly_report,
)

logger = logging.getLogger(__name__)

RECENT_ALERTS = 5

_SCHEDULES = {
    'watering': (WateringSchedule, WateringStatus, 'time',
                 repository.add_watering_schedule, repository.delete_watering_schedule),
    'planting': (PlantingSchedule, PlantingStatus, 'planted_date',
                 repository.add_planting_schedule, repository.delete_planting_schedule),
}


def _error(message, status):
    return jsonify({'error': message}), status


def _result_error(result):
    """Map a failed repository result onto an HTTP error response."""
    if result.get('code') == repository.NOT_FOUND:
        return _error(result['error'], 404)
    if result.get('code') == INVALID:
        return _error(result['error'], 400)
    return _error(result['error'], 500)


def _json_object():
    """The request's JSON body as a dict; empty when absent, 400 otherwise."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        abort(400, description='JSON object expected')
    return payload


def _invalid_status(status_enum, payload):
    status = payload.get('status')
    if status is None:
        return None
    if str(status).strip().lower() in {s.value for s in status_enum}:
        return None
    allowed = ', '.join(s.value for s in status_enum)
    return f'Invalid status {status!r}; expected one of: {allowed}'


def _invalid_zone(payload):
    zone = payload.get('zone')
    if zone is None or zone in ZONES:
        return None
    return f'Invalid zone {zone!r}; expected one of: {", ".join(ZONES)}'


def _serialize(records):
    return [record.to_dict() for record in records]


# ---------------------------------------------------------------------------
# Overview and environment
# ---------------------------------------------------------------------------

@dashboard_bp.route('/api/dashboard')
@login_required
def dashboard():
    """Current conditions, alert counts, next watering and plant totals."""
    store = get_alert_store()
    now = utcnow()
    watering, watering_source = load_watering_schedules()
    planting, planting_source = load_planting_schedules()

    upcoming = sorted(
        (s for s in watering
         if s.status == WateringStatus.PENDING and s.time is not None and s.time > now),
        key=lambda s: s.time,
    )
    summary = compute_plant_summary(planting, now.date())
    summary.pop('table_data')

    return jsonify({
        'environment': generate_environment_reading(now).to_dict(),
        'unread_alerts': store.unread_count,
        'recent_alerts': _serialize(store.get_recent_alerts(RECENT_ALERTS)),
        'next_watering': upcoming[0].to_dict() if upcoming else None,
        'plants': summary,
        'sources': {'watering': watering_source, 'planting': planting_source},
    })


@dashboard_bp.route('/api/environment/current', methods=['POST'])
@login_required
def environment_current():
    """Take a new reading and raise any threshold alerts for it."""
    reading, alerts = record_current_reading()
    return jsonify({'reading': reading.to_dict(), 'alerts': _serialize(alerts)})


@dashboard_bp.route('/api/environment/history')
@login_required
def environment_history():
    range_key = request.args.get('range', '24h')
    if range_key not in RANGE_DAYS:
        return _error(f'Unknown range {range_key!r}; expected one of: {", ".join(RANGE_DAYS)}', 400)

    readings, source = load_environment_history(RANGE_DAYS[range_key])
    return jsonify({'range': range_key, 'source': source, 'readings': _serialize(readings)})


# ---------------------------------------------------------------------------
# Schedules
# ---------------------------------------------------------------------------

def _list_schedules(kind):
    loader = load_watering_schedules if kind == 'watering' else load_planting_schedules
    schedules, source = loader()
    return jsonify({'source': source, 'schedules': _serialize(schedules)})


def _create_schedule(kind):
    record_cls, status_enum, required, add, _ = _SCHEDULES[kind]
    payload = snake_case_keys(_json_object())

    problem = _invalid_status(status_enum, payload) or _invalid_zone(payload)
    if problem:
        return _error(problem, 400)

    schedule = record_cls.from_mapping(payload)
    if getattr(schedule, required) is None:
        return _error(f'A valid {required} is required', 400)

    result = add(schedule)
    if not result['success']:
        return _result_error(result)

    logger.info('Created %s schedule %s', kind, result['id'])
    return jsonify({'id': result['id']}), 201


def _update_schedule(kind, schedule_id):
    _, status_enum, _, _, _ = _SCHEDULES[kind]
    payload = snake_case_keys(_json_object())

    problem = _invalid_status(status_enum, payload) or _invalid_zone(payload)
    if problem:
        return _error(problem, 400)

    try:
        result = update_schedule(kind, schedule_id, payload)
    except InvalidTransition as e:
        return _error(str(e), 409)

    if not result['success']:
        return _result_error(result)
    return jsonify(result['data'].to_dict())


def _delete_schedule(kind, schedule_id):
    _, _, _, _, delete = _SCHEDULES[kind]
    result = delete(schedule_id)
    if not result['success']:
        return _result_error(result)
    return jsonify({'id': result['id']})


@dashboard_bp.route('/api/watering', methods=['GET', 'POST'])
@login_required
def watering_schedules():
    if request.method == 'POST':
        return _create_schedule('watering')
    return _list_schedules('watering')


@dashboard_bp.route('/api/watering/<schedule_id>', methods=['PUT', 'DELETE'])
@login_required
def watering_schedule(schedule_id):
    if request.method == 'DELETE':
        return _delete_schedule('watering', schedule_id)
    return _update_schedule('watering', schedule_id)


@dashboard_bp.route('/api/planting', methods=['GET', 'POST'])
@login_required
def planting_schedules():
    if request.method == 'POST':
        return _create_schedule('planting')
    return _list_schedules('planting')


@dashboard_bp.route('/api/planting/<schedule_id>', methods=['PUT', 'DELETE'])
@login_required
def planting_schedule(schedule_id):
    if request.method == 'DELETE':
        return _delete_schedule('planting', schedule_id)
    return _update_schedule('planting', schedule_id)


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------

@dashboard_bp.route('/api/alerts')
@login_required
def alerts():
    store = get_alert_store()
    if request.args.get('unread') in ('1', 'true'):
        items = store.get_unread_alerts()
    else:
        items = store.alerts

    limit = request.args.get('limit', type=int)
    if limit is not None:
        items = items[:max(0, limit)]

    return jsonify({'alerts': _serialize(items), 'unread_count': store.unread_count})


@dashboard_bp.route('/api/alerts/check', methods=['POST'])
@login_required
def check_alerts():
    """Run every alert rule now, against a posted reading or a fresh one."""
    payload = _json_object()
    if 'temperature' in payload:
        reading = EnvironmentReading.from_mapping(snake_case_keys(payload))
    else:
        reading = generate_environment_reading()

    added = check_all_alerts(reading)
    return jsonify({
        'reading': reading.to_dict(),
        'alerts': _serialize(added),
        'unread_count': get_alert_store().unread_count,
    })


@dashboard_bp.route('/api/alerts/<alert_id>/read', methods=['POST'])
@login_required
def mark_alert_read(alert_id):
    store = get_alert_store()
    if not any(alert.id == alert_id for alert in store.alerts):
        return _error(f'Alert {alert_id} not found', 404)

    changed = store.mark_as_read(alert_id)
    if changed:
        repository.mark_alert_as_read(alert_id)
    return jsonify({'id': alert_id, 'changed': changed, 'unread_count': store.unread_count})


@dashboard_bp.route('/api/alerts/read-all', methods=['POST'])
@login_required
def mark_all_alerts_read():
    store = get_alert_store()
    for alert in store.get_unread_alerts():
        repository.mark_alert_as_read(alert.id)
    changed = store.mark_all_as_read()
    return jsonify({'changed': changed, 'unread_count': store.unread_count})


@dashboard_bp.route('/api/alerts/<alert_id>', methods=['DELETE'])
@login_required
def dismiss_alert(alert_id):
    store = get_alert_store()
    if not store.dismiss_alert(alert_id):
        return _error(f'Alert {alert_id} not found', 404)
    repository.delete_alert(alert_id)
    return jsonify({'id': alert_id, 'unread_count': store.unread_count})


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

def _build_report(period):
    days, builder = (7, weekly_report) if period == 'weekly' else (30, monthly_report)
    readings, env_source = load_environment_history(days)
    watering, watering_source = load_watering_schedules()
    planting, planting_source = load_planting_schedules()

    report = builder(readings, watering, planting)
    report['sources'] = {
        'environment': env_source,
        'watering': watering_source,
        'planting': planting_source,
    }
    return report


@dashboard_bp.route('/api/reports/<any(weekly, monthly):period>')
@login_required
def period_report(period):
    return jsonify(_build_report(period))


@dashboard_bp.route('/api/reports/plants')
@login_required
def plant_report():
    planting, source = load_planting_schedules()
    summary = compute_plant_summary(planting)
    summary['source'] = source
    return jsonify(summary)


@dashboard_bp.route('/api/reports/charts')
@login_required
def chart_report():
    planting, _ = load_planting_schedules()
    watering, _ = load_watering_schedules()
    charts = chart_bundle(planting)
    charts['watering_by_day'] = watering_sessions_by_day(watering)
    return jsonify(charts)


def _csv_rows(kind):
    if kind in ('weekly', 'monthly'):
        return report_rows(_build_report(kind)), ['metric', 'value']
    if kind == 'plants':
        planting, _ = load_planting_schedules()
        return compute_plant_summary(planting)['table_data'], None
    if kind == 'watering':
        watering, _ = load_watering_schedules()
        return _serialize(watering), None
    readings, _ = load_environment_history(RANGE_DAYS['7d'])
    return _serialize(readings), None


@dashboard_bp.route('/api/reports/<any(weekly, monthly, plants, watering, environment):kind>.csv')
@login_required
def csv_report(kind):
    rows, headers = _csv_rows(kind)
    filename = f'{kind}-report-{utcnow():%Y-%m-%d}.csv'
    return Response(
        to_csv(rows, headers),
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename={filename}'},
    )


# ---------------------------------------------------------------------------
# Live simulation
# ---------------------------------------------------------------------------

def _simulation_state(monitor):
    return {'active': monitor.simulation_active, 'scheduler_running': monitor.running}


@dashboard_bp.route('/api/simulation')
@login_required
def simulation_status():
    return jsonify(_simulation_state(get_alert_monitor()))


@dashboard_bp.route('/api/simulation/start', methods=['POST'])
@login_required
def simulation_start():
    payload = _json_object()
    interval = payload.get('interval')
    if interval is not None:
        try:
            interval = int(interval)
        except (TypeError, ValueError):
            return _error('interval must be a whole number of seconds', 400)
        if interval <= 0:
            return _error('interval must be positive', 400)

    monitor = get_alert_monitor()
    interval = monitor.start_simulation(interval)
    return jsonify({**_simulation_state(monitor), 'interval': interval})


@dashboard_bp.route('/api/simulation/stop', methods=['POST'])
@login_required
def simulation_stop():
    monitor = get_alert_monitor()
    stopped = monitor.stop_simulation()
    return jsonify({**_simulation_state(monitor), 'stopped': stopped})
