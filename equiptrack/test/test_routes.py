"""
Tests for the JSON command and workflow endpoints
"""
from datetime import timedelta

import pytest

from equiptrack.data.core.user import UserRole


@pytest.fixture
def ball(tenant, make_equipment):
    return make_equipment(tenant, 'Basketball 1', 'BB1-001')


def test_unauthenticated_requests_get_401(client):
    response = client.post('/api/commands/process', json={'command': 'help'})
    assert response.status_code == 401
    assert response.get_json()['error'] == 'UNAUTHORIZED'

    response = client.get('/api/workflow/equipment/1/transitions')
    assert response.status_code == 401


def test_security_headers(client):
    response = client.post('/api/commands/process', json={'command': 'help'})
    assert response.headers['X-Content-Type-Options'] == 'nosniff'
    assert response.headers['X-Frame-Options'] == 'SAMEORIGIN'


def test_process_validates_input(login, staff):
    client = login(staff)

    response = client.post('/api/commands/process', json={})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'VALIDATION_ERROR'

    response = client.post('/api/commands/process', json={'command': 'x' * 501})
    assert response.status_code == 400

    response = client.post('/api/commands/process', data='not json', content_type='text/plain')
    assert response.status_code == 400
    assert response.get_json()['success'] is False


def test_process_checkout(login, staff, ball):
    client = login(staff)

    response = client.post('/api/commands/process', json={'command': 'check out basketball'})

    assert response.status_code == 200
    body = response.get_json()
    assert body['success'] is True, body['message']
    assert body['stage'] == 'EXECUTED'
    assert body['command'] == 'check out basketball'
    assert body['processed_at']
    assert ball.status == 'CHECKED_OUT'


def test_recoverable_failure_is_200_with_structure(login, staff, ball):
    client = login(staff)

    response = client.post('/api/commands/process', json={'command': 'asdkjasdj'})

    assert response.status_code == 200
    body = response.get_json()
    assert body['success'] is False
    assert body['error'] == 'LOW_CONFIDENCE'
    assert body['stage'] == 'UNKNOWN'
    assert body['suggestions']


def test_interpret_does_not_execute(login, staff, ball):
    client = login(staff)

    response = client.post('/api/commands/interpret', json={'command': 'check out basketball'})

    body = response.get_json()
    assert body['success'] is True
    assert body['data']['intent'] == 'CHECKOUT'
    assert body['data']['entities']['EQUIPMENT']['equipment']['code'] == 'BB1-001'
    assert ball.status == 'AVAILABLE'


def test_batch(login, make_user, tenant, staff, ball):
    student = make_user(tenant, role=UserRole.STUDENT, username='sam')

    response = login(student).post('/api/commands/batch', json={'commands': ['help']})
    assert response.status_code == 403
    assert response.get_json()['error'] == 'FORBIDDEN'

    client = login(staff)
    response = client.post('/api/commands/batch', json={'commands': ['help', 'asdkjasdj']})
    data = response.get_json()['data']
    assert data['total_processed'] == 2
    assert data['success_count'] == 1
    assert data['failure_count'] == 1

    response = client.post('/api/commands/batch', json={'commands': ['help'] * 11})
    assert response.status_code == 400


def test_help_and_intents(login, staff, admin):
    response = login(staff).get('/api/commands/help')
    assert response.status_code == 200
    assert response.get_json()['data']['commands']

    assert login(staff).get('/api/commands/intents').status_code == 403

    response = login(admin).get('/api/commands/intents')
    body = response.get_json()
    assert response.status_code == 200
    assert body['data']['status_synonyms']['broken'] == 'DAMAGED'


def test_stats_and_cache(login, admin, ball):
    client = login(admin)
    client.post('/api/commands/process', json={'command': 'where is basketball 1'})
    client.post('/api/commands/process', json={'command': 'asdkjasdj'})

    stats = client.get('/api/commands/stats').get_json()['data']
    assert stats['total_commands'] == 2
    assert stats['success_rate'] == 50.0
    assert stats['intent_breakdown'] == {'FIND': 1, 'UNKNOWN': 1}

    response = client.delete('/api/commands/cache')
    assert response.status_code == 200
    assert response.get_json()['data']['tenants'] == {}


def test_change_status_endpoint(login, staff, ball):
    client = login(staff)
    url = f'/api/workflow/equipment/{ball.id}/status'

    assert client.post(url, json={}).status_code == 400
    assert client.post(url, json={'status': 'MAINTENANCE', 'metadata': 'urgent'}).status_code == 400

    response = client.post(url, json={'status': 'LOST'})
    body = response.get_json()
    assert response.status_code == 200
    assert body['success'] is False
    assert body['error'] == 'INVALID_TRANSITION'

    response = client.post(url, json={'status': 'maintenance', 'reason': 'Flat'})
    body = response.get_json()
    assert body['success'] is True
    assert body['data']['new_status'] == 'MAINTENANCE'
    assert body['data']['actor'] == str(staff.id)


def test_other_tenants_equipment_is_not_found(login, make_tenant, make_user, make_equipment):
    home = make_tenant('Home')
    other = make_tenant('Other')
    user = make_user(home)
    projector = make_equipment(other, 'Projector', 'PJ-001')

    response = login(user).post(f'/api/workflow/equipment/{projector.id}/status', json={'status': 'MAINTENANCE'})

    assert response.get_json()['error'] == 'NOT_FOUND'
    assert projector.status == 'AVAILABLE'


def test_transitions_and_history(login, staff, ball):
    client = login(staff)
    client.post(f'/api/workflow/equipment/{ball.id}/status', json={'status': 'RESERVED'})

    data = client.get(f'/api/workflow/equipment/{ball.id}/transitions').get_json()['data']
    assert data['current_status'] == 'RESERVED'
    assert data['allowed_transitions'] == ['AVAILABLE', 'CHECKED_OUT']

    history = client.get(f'/api/workflow/equipment/{ball.id}/history').get_json()['data']['history']
    assert len(history) == 1
    assert history[0]['previous_status'] == 'AVAILABLE'
    assert history[0]['new_status'] == 'RESERVED'
    assert history[0]['automatic'] is False


def test_sweep_endpoint_requires_admin(login, staff, admin, tenant, make_equipment, clock):
    make_equipment(tenant, 'Basketball 2', 'BB1-002', last_maintenance_date=clock.now - timedelta(days=60))

    assert login(staff).post('/api/workflow/sweep').status_code == 403

    response = login(admin).post('/api/workflow/sweep')
    body = response.get_json()
    assert response.status_code == 200
    assert body['data']['maintenance_count'] == 1
    assert body['data']['overdue_count'] == 0
