"""
Configuration settings for the Greenhouse Monitoring Dashboard
"""
import os


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Flask application configuration"""

    # Flask secret key for sessions
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production-12345'

    # Database configuration. Without DATABASE_URL the dashboard keeps its
    # records in a local SQLite file under instance/.
    basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance', 'greenhouse.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Default alert thresholds (used until an admin saves settings)
    TEMP_LIMIT = float(os.environ.get('TEMP_LIMIT') or 35.0)
    HUMIDITY_LIMIT = float(os.environ.get('HUMIDITY_LIMIT') or 80.0)
    MOISTURE_LIMIT = float(os.environ.get('MOISTURE_LIMIT') or 40.0)

    # Periodic alert evaluation
    ALERT_MONITOR_ENABLED = _env_flag('ALERT_MONITOR_ENABLED', True)
    SIMULATION_INTERVAL_SECONDS = int(os.environ.get('SIMULATION_INTERVAL_SECONDS') or 5)
    MISSED_WATERING_INTERVAL_SECONDS = int(os.environ.get('MISSED_WATERING_INTERVAL_SECONDS') or 60)

    # Reject watering/planting status changes outside the transition table
    ENFORCE_STATUS_TRANSITIONS = _env_flag('ENFORCE_STATUS_TRANSITIONS', False)

    # Demo accounts (placeholder credentials, not a security boundary)
    SEED_DEMO_USERS = _env_flag('SEED_DEMO_USERS', True)

    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'

    # Admin Credentials (session-based, separate from user auth)
    ADMIN_USERNAME = os.environ.get('ADMIN_USERNAME') or 'admin'
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD') or 'admin123'


class TestConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    ALERT_MONITOR_ENABLED = False
    SEED_DEMO_USERS = True
    ENFORCE_STATUS_TRANSITIONS = False
