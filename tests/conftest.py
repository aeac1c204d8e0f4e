import random
from datetime import datetime, timezone

import pytest

from greenhouse import create_app
from greenhouse.config import TestConfig
from greenhouse.extensions import db


@pytest.fixture()
def app():
    app = create_app(TestConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def auth_client(client):
    r = client.post('/login', json={'email': 'staff@demo.com', 'password': 'staff123'})
    assert r.status_code == 200
    return client


@pytest.fixture()
def admin_client(client):
    r = client.post('/admin/login', json={'username': 'admin', 'password': 'admin123'})
    assert r.status_code == 200
    return client


@pytest.fixture()
def rng():
    return random.Random(42)


@pytest.fixture()
def now():
    return datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
