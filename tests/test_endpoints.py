from datetime import timedelta

import pytest

from greenhouse.services.records import utcnow


def test_unauthenticated_api_is_rejected(client):
    r = client.get('/api/dashboard')
    assert r.status_code == 401
    assert r.get_json()['error'] == 'unauthorized'

    r = client.get('/api/alerts')
    assert r.status_code == 401


def test_login_by_username_or_email(client):
    r = client.post('/login', data={'username': 'staff', 'password': 'staff123'})
    assert r.status_code == 200
    assert r.get_json()['user']['role'] == 'staff'

    client.post('/logout')
    r = client.post('/login', json={'email': 'admin@demo.com', 'password': 'admin123'})
    assert r.status_code == 200
    assert r.get_json()['user']['role'] == 'admin'


def test_login_rejects_bad_password(client):
    r = client.post('/login', json={'email': 'staff@demo.com', 'password': 'nope'})
    assert r.status_code == 401
    r = client.post('/login', json={})
    assert r.status_code == 400


def test_register_then_me(client):
    r = client.post('/register', json={
        'username': 'grower', 'email': 'grower@example.com', 'password': 'secret1',
    })
    assert r.status_code == 201

    r = client.post('/register', json={
        'username': 'grower', 'email': 'other@example.com', 'password': 'secret1',
    })
    assert r.status_code == 409

    client.post('/login', json={'username': 'grower', 'password': 'secret1'})
    r = client.get('/me')
    assert r.status_code == 200
    assert r.get_json()['user']['email'] == 'grower@example.com'


def test_logout(auth_client):
    assert auth_client.post('/logout').status_code == 200
    assert auth_client.get('/me').status_code == 401


def test_dashboard_overview(auth_client):
    r = auth_client.get('/api/dashboard')
    assert r.status_code == 200
    data = r.get_json()
    for key in ('environment', 'unread_alerts', 'recent_alerts', 'next_watering', 'plants', 'sources'):
        assert key in data
    assert len(data['recent_alerts']) <= 5
    assert data['sources'] == {'watering': 'simulated', 'planting': 'simulated'}
    assert 'table_data' not in data['plants']


def test_current_environment_reading_is_stored(auth_client):
    r = auth_client.post('/api/environment/current')
    assert r.status_code == 200
    reading = r.get_json()['reading']
    assert 20 <= reading['humidity'] <= 90

    r = auth_client.get('/api/environment/history?range=24h')
    data = r.get_json()
    assert data['source'] == 'stored'
    assert len(data['readings']) == 1


def test_current_reading_requires_post(auth_client):
    assert auth_client.get('/api/environment/current').status_code == 405
    r = auth_client.get('/api/environment/history?range=24h')
    assert r.get_json()['source'] == 'simulated'


def test_environment_history_ranges(auth_client):
    r = auth_client.get('/api/environment/history?range=7d')
    assert r.status_code == 200
    data = r.get_json()
    assert data['source'] == 'simulated'
    assert len(data['readings']) == 8 * 24

    assert auth_client.get('/api/environment/history?range=1y').status_code == 400


def test_watering_crud(auth_client):
    r = auth_client.get('/api/watering')
    assert r.get_json()['source'] == 'simulated'

    when = (utcnow() + timedelta(hours=2)).isoformat()
    r = auth_client.post('/api/watering', json={'zone': 'C', 'time': when, 'duration': '10min'})
    assert r.status_code == 201
    schedule_id = r.get_json()['id']

    r = auth_client.get('/api/watering')
    data = r.get_json()
    assert data['source'] == 'stored'
    assert [s['id'] for s in data['schedules']] == [schedule_id]
    assert data['schedules'][0]['status'] == 'pending'

    r = auth_client.put(f'/api/watering/{schedule_id}', json={'status': 'in-progress'})
    assert r.status_code == 200
    assert r.get_json()['status'] == 'in-progress'
    assert r.get_json()['zone'] == 'C'

    assert auth_client.delete(f'/api/watering/{schedule_id}').status_code == 200
    assert auth_client.delete(f'/api/watering/{schedule_id}').status_code == 404


def test_watering_validation(auth_client):
    r = auth_client.post('/api/watering', json={'zone': 'A'})
    assert r.status_code == 400
    r = auth_client.post('/api/watering', json={'zone': 'A', 'time': utcnow().isoformat(),
                                                'status': 'flooded'})
    assert r.status_code == 400
    assert auth_client.put('/api/watering/missing', json={'status': 'completed'}).status_code == 404


def test_watering_zone_must_be_known(auth_client):
    when = (utcnow() + timedelta(hours=1)).isoformat()
    r = auth_client.post('/api/watering', json={'zone': 'Z', 'time': when})
    assert r.status_code == 400
    assert 'zone' in r.get_json()['error']

    r = auth_client.post('/api/watering', json={'zone': 'A', 'time': when})
    schedule_id = r.get_json()['id']
    assert auth_client.put(f'/api/watering/{schedule_id}', json={'zone': 'Q'}).status_code == 400
    assert auth_client.get('/api/watering').get_json()['schedules'][0]['zone'] == 'A'


def test_watering_update_keeps_time_when_unparseable(auth_client):
    when = (utcnow() + timedelta(hours=1)).isoformat()
    schedule_id = auth_client.post('/api/watering', json={'zone': 'A', 'time': when}).get_json()['id']
    before = auth_client.get('/api/watering').get_json()['schedules'][0]['time']

    r = auth_client.put(f'/api/watering/{schedule_id}', json={'time': 'not-a-date'})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'A valid time is required'
    assert auth_client.get('/api/watering').get_json()['schedules'][0]['time'] == before


@pytest.mark.parametrize('body', [[1, 2], 'zone', 7])
def test_schedule_endpoints_reject_non_object_json(auth_client, body):
    assert auth_client.post('/api/watering', json=body).status_code == 400
    assert auth_client.post('/api/planting', json=body).status_code == 400

    schedule_id = auth_client.post('/api/planting', json={
        'crop': 'Kale', 'plantedDate': '2024-05-01'}).get_json()['id']
    r = auth_client.put(f'/api/planting/{schedule_id}', json=body)
    assert r.status_code == 400
    assert r.get_json()['error'] == 'bad_request'


def test_planting_crud_accepts_camel_case(auth_client):
    r = auth_client.post('/api/planting', json={
        'crop': 'Lettuce', 'zone': 'B', 'plantedDate': '2024-05-01', 'harvestDate': '2024-07-01',
        'quantity': 20,
    })
    assert r.status_code == 201
    schedule_id = r.get_json()['id']

    r = auth_client.put(f'/api/planting/{schedule_id}', json={'status': 'growing', 'harvestDate': '2024-07-10'})
    assert r.status_code == 200
    data = r.get_json()
    assert data['status'] == 'growing'
    assert data['harvest_date'] == '2024-07-10'
    assert data['planted_date'] == '2024-05-01'
    assert data['quantity'] == 20


def test_planting_update_keeps_planted_date_when_unparseable(auth_client):
    r = auth_client.post('/api/planting', json={'crop': 'Chard', 'zone': 'C', 'plantedDate': '2024-05-01'})
    schedule_id = r.get_json()['id']

    r = auth_client.put(f'/api/planting/{schedule_id}', json={'plantedDate': 'garbage'})
    assert r.status_code == 400
    schedules = auth_client.get('/api/planting').get_json()['schedules']
    assert schedules[0]['planted_date'] == '2024-05-01'


def test_illegal_transition_allowed_by_default(auth_client):
    r = auth_client.post('/api/planting', json={'crop': 'Basil', 'plantedDate': '2024-05-01',
                                                'status': 'harvested'})
    schedule_id = r.get_json()['id']
    r = auth_client.put(f'/api/planting/{schedule_id}', json={'status': 'seeded'})
    assert r.status_code == 200


def test_illegal_transition_rejected_when_enforced(app, auth_client):
    app.config['ENFORCE_STATUS_TRANSITIONS'] = True
    r = auth_client.post('/api/planting', json={'crop': 'Basil', 'plantedDate': '2024-05-01',
                                                'status': 'harvested'})
    schedule_id = r.get_json()['id']

    r = auth_client.put(f'/api/planting/{schedule_id}', json={'status': 'seeded'})
    assert r.status_code == 409
    r = auth_client.put(f'/api/planting/{schedule_id}', json={'crop': 'Thai Basil'})
    assert r.status_code == 200


def test_alert_listing_and_read_flow(app, auth_client):
    store = app.extensions['alert_store']

    r = auth_client.get('/api/alerts?unread=1')
    data = r.get_json()
    assert all(not a['read'] for a in data['alerts'])
    assert data['unread_count'] == len(data['alerts']) == store.unread_count

    r = auth_client.post('/api/alerts/check', json={'temperature': 38, 'humidity': 50, 'soilMoisture': 60})
    assert r.status_code == 200
    added = r.get_json()['alerts']
    assert added[0]['type'] == 'High Temperature'
    alert_id = added[0]['id']

    r = auth_client.get('/api/alerts?limit=1')
    assert [a['id'] for a in r.get_json()['alerts']] == [added[-1]['id']]

    r = auth_client.post(f'/api/alerts/{alert_id}/read')
    assert r.get_json()['changed'] is True
    r = auth_client.post(f'/api/alerts/{alert_id}/read')
    assert r.get_json()['changed'] is False

    assert auth_client.delete(f'/api/alerts/{alert_id}').status_code == 200
    assert auth_client.delete(f'/api/alerts/{alert_id}').status_code == 404
    assert auth_client.post(f'/api/alerts/{alert_id}/read').status_code == 404

    r = auth_client.post('/api/alerts/read-all')
    assert r.get_json()['unread_count'] == 0


def test_alert_check_rejects_non_object_json(auth_client):
    r = auth_client.post('/api/alerts/check', json=['temperature'])
    assert r.status_code == 400
    assert r.get_json()['error'] == 'bad_request'


@pytest.mark.parametrize('period', ['weekly', 'monthly'])
def test_period_reports(auth_client, period):
    r = auth_client.get(f'/api/reports/{period}')
    assert r.status_code == 200
    data = r.get_json()
    assert set(data['environment']) == {
        'avg_temperature', 'avg_humidity', 'avg_moisture', 'temp_range', 'humidity_range',
        'moisture_range',
    }
    assert data['sources']['environment'] == 'simulated'


def test_plant_and_chart_reports(auth_client):
    r = auth_client.get('/api/reports/plants')
    data = r.get_json()
    assert data['total_plants'] == len(data['table_data']) == 24

    r = auth_client.get('/api/reports/charts')
    data = r.get_json()
    assert data['status_counts']['total'] == 24
    assert len(data['watering_by_day']) == 7


@pytest.mark.parametrize('kind,header', [
    ('weekly', 'metric,value'),
    ('plants', 'id,crop_name,zone,status,planted_date,harvest_date,days_remaining'),
    ('watering', 'id,zone,time,duration,status'),
    ('environment', 'temperature,humidity,soil_moisture,timestamp,zone'),
])
def test_csv_reports(auth_client, kind, header):
    r = auth_client.get(f'/api/reports/{kind}.csv')
    assert r.status_code == 200
    assert r.mimetype == 'text/csv'
    assert 'attachment' in r.headers['Content-Disposition']
    assert r.get_data(as_text=True).splitlines()[0] == header


def test_simulation_switch(auth_client):
    assert auth_client.get('/api/simulation').get_json()['active'] is False

    r = auth_client.post('/api/simulation/start', json={'interval': 2})
    data = r.get_json()
    assert data['active'] is True
    assert data['interval'] == 2

    assert auth_client.post('/api/simulation/start', json={'interval': 'soon'}).status_code == 400

    r = auth_client.post('/api/simulation/stop')
    assert r.get_json() == {'active': False, 'scheduler_running': False, 'stopped': True}


def test_unknown_api_route_returns_json(auth_client):
    r = auth_client.get('/api/nothing-here')
    assert r.status_code == 404
    assert r.get_json()['error'] == 'not_found'

    r = auth_client.delete('/api/watering')
    assert r.status_code == 405


def test_admin_access_control(client):
    assert client.get('/admin/dashboard').status_code == 403

    client.post('/login', json={'email': 'staff@demo.com', 'password': 'staff123'})
    assert client.get('/admin/dashboard').status_code == 403

    assert client.post('/admin/login', json={'username': 'staff', 'password': 'staff123'}).status_code == 401
    r = client.post('/admin/login', json={'username': 'admin@demo.com', 'password': 'admin123'})
    assert r.status_code == 200
    r = client.get('/admin/dashboard')
    assert r.status_code == 200
    assert r.get_json()['counts']['users'] == 2


def test_admin_settings_drive_alerts(admin_client):
    r = admin_client.get('/admin/settings')
    assert r.get_json() == {'temp_limit': 35.0, 'humidity_limit': 80.0, 'moisture_limit': 40.0}

    r = admin_client.post('/admin/settings', json={'tempLimit': 30})
    assert r.status_code == 200
    assert r.get_json()['temp_limit'] == 30.0
    assert r.get_json()['humidity_limit'] == 80.0

    assert admin_client.post('/admin/settings', json={'temp_limit': 'hot'}).status_code == 400
    assert admin_client.post('/admin/settings', json=[30, 80, 40]).status_code == 400
    assert admin_client.get('/admin/settings').get_json()['temp_limit'] == 30.0

    admin_client.post('/login', json={'email': 'staff@demo.com', 'password': 'staff123'})
    r = admin_client.post('/api/alerts/check', json={'temperature': 32, 'humidity': 50, 'soil_moisture': 60})
    assert [a['type'] for a in r.get_json()['alerts']][0] == 'High Temperature'


def test_admin_demo_data(admin_client):
    r = admin_client.post('/admin/demo-data')
    assert r.status_code == 200
    assert r.get_json() == {'watering_schedules': 28, 'planting_schedules': 24, 'readings': 8 * 24}

    r = admin_client.get('/admin/dashboard')
    counts = r.get_json()['counts']
    assert counts['watering_schedules'] == 28
    assert counts['readings'] == 8 * 24

    assert admin_client.post('/admin/logout').status_code == 200
    assert admin_client.get('/admin/dashboard').status_code == 403
