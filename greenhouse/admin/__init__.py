"""
Admin Blueprint

Admin authentication is intentionally session-based and fully separated
from user authentication to reflect real-world access control systems.
"""

from flask import Blueprint

admin_bp = Blueprint('admin', __name__)

from greenhouse.admin import routes  # noqa: E402, F401
