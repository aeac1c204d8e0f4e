"""
Auth Routes

User authentication routes using Flask-Login. Requests may be JSON or form
encoded; responses are JSON.
"""

import logging

from flask import abort, jsonify, request, session
from flask_login import login_user, logout_user, login_required, current_user
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import generate_password_hash, check_password_hash

from greenhouse.auth import auth_bp
from greenhouse.extensions import db
from greenhouse.models import User

logger = logging.getLogger(__name__)


def _payload():
    payload = request.get_json(silent=True)
    if payload is None:
        return request.form.to_dict()
    if not isinstance(payload, dict):
        abort(400, description='JSON object expected')
    return payload


def _error(message, status):
    return jsonify({'error': message}), status


@auth_bp.route('/register', methods=['POST'])
def register():
    """User registration route"""
    data = _payload()
    username = str(data.get('username', '')).strip()
    email = str(data.get('email', '')).strip()
    password = str(data.get('password', ''))
    confirm_password = str(data.get('confirm_password', password))

    # Validation
    if not username or len(username) < 3:
        return _error('Username must be at least 3 characters long.', 400)

    if not email or '@' not in email:
        return _error('Please provide a valid email address.', 400)

    if not password or len(password) < 6:
        return _error('Password must be at least 6 characters long.', 400)

    if password != confirm_password:
        return _error('Passwords do not match.', 400)

    if User.query.filter_by(username=username).first():
        return _error('Username already taken. Please choose another.', 409)

    if User.query.filter_by(email=email).first():
        return _error('Email already registered. Please login or use another email.', 409)

    hashed_password = generate_password_hash(password, method='pbkdf2:sha256')
    new_user = User(username=username, email=email, password_hash=hashed_password)

    try:
        db.session.add(new_user)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error('Registration error: %s', e)
        return _error('An error occurred during registration. Please try again.', 500)

    logger.info('Registered user %s', username)
    return jsonify({'user': new_user.to_dict()}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """Log in with a username or email address."""
    data = _payload()
    identifier = str(data.get('username') or data.get('email') or '').strip()
    password = str(data.get('password', ''))
    remember = bool(data.get('remember', False))

    if not identifier or not password:
        return _error('Please provide both username and password.', 400)

    user = User.query.filter(or_(User.username == identifier, User.email == identifier)).first()

    if user is None or not check_password_hash(user.password_hash, password):
        logger.info('Failed login for %s', identifier)
        return _error('Invalid username or password.', 401)

    login_user(user, remember=remember)
    # Regular user login never carries the admin panel flag
    session.pop('is_admin', None)
    return jsonify({'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """User logout route"""
    session.pop('is_admin', None)
    logout_user()
    return jsonify({'message': 'Logged out'})


@auth_bp.route('/me')
@login_required
def me():
    return jsonify({'user': current_user.to_dict()})
