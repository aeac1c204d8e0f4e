"""
Dashboard Blueprint

JSON API behind the greenhouse dashboard pages.
"""

from flask import Blueprint

dashboard_bp = Blueprint('dashboard', __name__)

from greenhouse.dashboard import routes  # noqa: E402, F401
