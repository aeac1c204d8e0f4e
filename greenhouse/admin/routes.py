"""
Admin Routes

Admin authentication is intentionally session-based and fully separated
from user authentication to reflect real-world access control systems.
"""

import logging

from flask import abort, current_app, jsonify, request, session
from werkzeug.security import check_password_hash

from greenhouse.admin import admin_bp
from greenhouse.admin.decorators import admin_required
from greenhouse.dashboard.services import snake_case_keys
from greenhouse.models import User
from greenhouse.services import (
    generate_historical_series, generate_planting_schedules, generate_watering_schedules,
    repository,
)
from greenhouse.services.records import Thresholds

logger = logging.getLogger(__name__)

THRESHOLD_FIELDS = ('temp_limit', 'humidity_limit', 'moisture_limit')


def _payload():
    payload = request.get_json(silent=True)
    if payload is None:
        return request.form.to_dict()
    if not isinstance(payload, dict):
        abort(400, description='JSON object expected')
    return payload


def _is_admin_login(username, password):
    config = current_app.config
    if username == config['ADMIN_USERNAME'] and password == config['ADMIN_PASSWORD']:
        return True
    user = User.query.filter((User.username == username) | (User.email == username)).first()
    return bool(user and user.is_admin and check_password_hash(user.password_hash, password))


@admin_bp.route('/login', methods=['POST'])
def admin_login():
    """Dedicated admin login - completely independent of user login."""
    data = _payload()
    username = str(data.get('username', '')).strip()
    password = str(data.get('password', ''))

    if not username or not password:
        return jsonify({'error': 'Please enter both username and password.'}), 400

    if not _is_admin_login(username, password):
        logger.warning('Rejected admin login for %s', username)
        return jsonify({'error': 'Invalid administrator credentials.'}), 401

    session.clear()
    session['is_admin'] = True
    session['admin_username'] = username
    return jsonify({'message': 'Welcome, Administrator!', 'admin': username})


@admin_bp.route('/logout', methods=['POST'])
def admin_logout():
    """Admin logout - clears entire session."""
    session.clear()
    return jsonify({'message': 'Logged out of the admin panel'})


@admin_bp.route('/dashboard')
@admin_required
def admin_dashboard():
    """System overview: record counts and current thresholds."""
    counts = repository.count_records()
    if not counts['success']:
        return jsonify({'error': counts['error']}), 500

    settings = repository.get_settings()
    return jsonify({
        'admin_username': session.get('admin_username', 'Admin'),
        'counts': counts['data'],
        'settings': settings['data'].to_dict() if settings['success'] else None,
    })


@admin_bp.route('/settings', methods=['GET', 'POST'])
@admin_required
def admin_settings():
    """Read or update the alert thresholds."""
    current = repository.get_settings()
    if not current['success']:
        return jsonify({'error': current['error']}), 500

    if request.method == 'GET':
        return jsonify(current['data'].to_dict())

    data = current['data'].to_dict()
    submitted = snake_case_keys(_payload())
    for key in THRESHOLD_FIELDS:
        value = submitted.get(key)
        if value is None or value == '':
            continue
        try:
            data[key] = float(value)
        except (TypeError, ValueError):
            return jsonify({'error': f'Please provide a valid numeric value for {key}.'}), 400

    result = repository.update_settings(Thresholds(**data))
    if not result['success']:
        return jsonify({'error': 'Could not update settings.'}), 500

    logger.info('Thresholds updated: %s', result['data'])
    return jsonify(result['data'].to_dict())


@admin_bp.route('/demo-data', methods=['POST'])
@admin_required
def admin_demo_data():
    """Replace stored schedules and readings with freshly generated demo data."""
    result = repository.replace_demo_data(
        generate_watering_schedules(),
        generate_planting_schedules(),
        generate_historical_series(7),
    )
    if not result['success']:
        return jsonify({'error': result['error']}), 500
    return jsonify(result['data'])
