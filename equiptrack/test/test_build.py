"""
Tests for the database build and debug data insertion
"""
from equiptrack.build import build_database
from equiptrack.data.core.tenant import Tenant
from equiptrack.data.core.user import User
from equiptrack.data.equipment.equipment import Equipment


def test_build_with_debug_data_is_idempotent(app):
    summary = build_database(app, enable_debug_data=True)

    assert summary['tenants'] == 2
    assert summary['equipment'] == Equipment.query.count()
    assert Equipment.query.filter_by(code='BB1-001').one().name == 'Basketball 1'
    assert User.query.filter_by(username='admin').one().role == 'ADMIN'

    again = build_database(app, enable_debug_data=True)

    assert again == {'status': 'skipped', 'reason': 'data_present'}
    assert Tenant.query.count() == 2


def test_build_without_debug_data(app):
    assert build_database(app, enable_debug_data=False) == {}
    assert Equipment.query.count() == 0


def test_debug_data_supports_voice_commands(app, pipeline):
    build_database(app, enable_debug_data=True)
    tenant = Tenant.query.filter_by(name='Lincoln High School').one()
    coach = User.query.filter_by(username='coach').one()

    result = pipeline.executor.process('check out basketball 1', coach.id, tenant.id)

    assert result.success, result.message
