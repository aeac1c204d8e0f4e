"""
Greenhouse Monitoring - Application Factory

This module provides the Flask application factory pattern for creating
and configuring the application instance.
"""

import logging
import os

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from werkzeug.security import generate_password_hash

from greenhouse.extensions import db, login_manager
from greenhouse.config import Config

logger = logging.getLogger(__name__)

# Placeholder accounts for the demo dashboard
DEMO_USERS = [
    {'username': 'admin', 'email': 'admin@demo.com', 'password': 'admin123', 'role': 'admin'},
    {'username': 'staff', 'email': 'staff@demo.com', 'password': 'staff123', 'role': 'staff'},
]


def create_app(config_class=Config):
    """Create and configure the Flask application.

    Args:
        config_class: Configuration class to use (default: Config)

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)

    # Register blueprints
    from greenhouse.auth import auth_bp
    from greenhouse.admin import admin_bp
    from greenhouse.dashboard import dashboard_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp, url_prefix='/admin')
    app.register_blueprint(dashboard_bp)

    # User loader for Flask-Login
    @login_manager.user_loader
    def load_user(user_id):
        from greenhouse.models import User
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'unauthorized', 'message': 'Login required'}), 401

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'error': error.name.lower().replace(' ', '_'),
                        'message': error.description}), error.code

    # Create database tables
    with app.app_context():
        if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite:///') \
                and ':memory:' not in app.config['SQLALCHEMY_DATABASE_URI']:
            os.makedirs(os.path.join(os.path.dirname(os.path.dirname(__file__)), 'instance'), exist_ok=True)
        db.create_all()
        _ensure_default_data(app)
        _init_alerting(app)

    return app


def _ensure_default_data(app):
    """Ensure the settings row and demo accounts exist."""
    from greenhouse.models import User
    from greenhouse.services import repository

    result = repository.get_settings()
    if not result['success']:
        logger.error('Could not create default settings row: %s', result['error'])

    if not app.config.get('SEED_DEMO_USERS'):
        return

    created = 0
    for demo in DEMO_USERS:
        if User.query.filter_by(email=demo['email']).first():
            continue
        db.session.add(User(
            username=demo['username'],
            email=demo['email'],
            password_hash=generate_password_hash(demo['password'], method='pbkdf2:sha256'),
            role=demo['role'],
        ))
        created += 1

    if created:
        db.session.commit()
        logger.info('Created %d demo user(s)', created)


def _init_alerting(app):
    """Create the application's alert store and background monitor."""
    from greenhouse.services import AlertStore, generate_alert_seed, repository
    from greenhouse.services.monitor import AlertMonitor

    result = repository.get_alerts()
    if result['success'] and result['data']:
        seed = result['data']
        logger.info('Alert store loaded %d stored alert(s)', len(seed))
    else:
        seed = generate_alert_seed()
        logger.info('Alert store seeded with %d simulated alert(s)', len(seed))

    app.extensions['alert_store'] = AlertStore(seed)

    monitor = AlertMonitor(app)
    app.extensions['alert_monitor'] = monitor
    if app.config.get('ALERT_MONITOR_ENABLED'):
        monitor.start()
