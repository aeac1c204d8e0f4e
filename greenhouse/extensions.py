"""
Flask Extensions

Admin authentication is session-based and separate from user
authentication (Flask-Login).
"""

from flask import current_app
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager

# Database instance
db = SQLAlchemy()

# Login manager for user authentication (NOT for admin)
login_manager = LoginManager()


def get_alert_store():
    """Return the alert store owned by the current application."""
    return current_app.extensions['alert_store']


def get_alert_monitor():
    """Return the periodic alert monitor owned by the current application."""
    return current_app.extensions['alert_monitor']
