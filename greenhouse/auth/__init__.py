"""
Auth Blueprint

User authentication with Flask-Login.
"""

from flask import Blueprint

auth_bp = Blueprint('auth', __name__)

from greenhouse.auth import routes  # noqa: E402, F401
