"""
Tests for the command executor: end-to-end command processing, structured failures
and the voice command audit trail
"""
from datetime import timedelta

import pytest

from equiptrack.data.audit.audit_log import AuditLog, AuditAction
from equiptrack.data.equipment.transaction import EquipmentTransaction
from equiptrack.buisness.core.audit_sink import AuditSink
from equiptrack.buisness.commands.executor import CommandExecutor, GENERIC_FAILURE_MESSAGE
from equiptrack.buisness.commands.intents import Intent, IntentKind, CommandStage
from equiptrack.buisness.workflow.errors import WorkflowFatalError


def _voice_entries():
    return AuditLog.query.filter_by(action=AuditAction.VOICE_COMMAND).order_by(AuditLog.id).all()


@pytest.fixture
def inventory(tenant, make_equipment):
    return {
        'ball': make_equipment(tenant, 'Basketball 1', 'BB1-001'),
        'racket_a': make_equipment(tenant, 'Tennis Racket A', 'TR-001'),
        'racket_b': make_equipment(tenant, 'Tennis Racket B', 'TR-002'),
    }


def test_checkout_then_return_round_trip(pipeline, tenant, staff, inventory, clock):
    ball = inventory['ball']

    result = pipeline.executor.process('check out basketball', staff.id, tenant.id)

    assert result.success, result.message
    assert result.stage == CommandStage.EXECUTED
    assert 'Basketball 1' in result.message
    assert ball.status == 'CHECKED_OUT'
    transaction = EquipmentTransaction.query.filter_by(equipment_id=ball.id).one()
    assert transaction.holder_id == staff.id
    assert transaction.due_date == clock.now + timedelta(days=7)
    assert 'check out basketball' in transaction.notes

    found = pipeline.executor.process('where is basketball 1', staff.id, tenant.id)
    assert found.success
    assert 'checked out by Casey Coach' in found.message

    returned = pipeline.executor.process('return basketball 1', staff.id, tenant.id)

    assert returned.success, returned.message
    assert ball.status == 'AVAILABLE'
    assert transaction.status == 'RETURNED'
    assert transaction.returned_by_id == staff.id
    assert 'return basketball 1' in transaction.notes

    entries = _voice_entries()
    assert [e.details['intent'] for e in entries] == ['CHECKOUT', 'FIND', 'CHECKIN']
    assert all(e.entity_id == ball.id for e in entries)
    assert all(e.actor == str(staff.id) for e in entries)


def test_vague_reference_asks_for_disambiguation(pipeline, tenant, staff, inventory):
    result = pipeline.executor.process('find racket', staff.id, tenant.id)

    assert not result.success
    assert result.error == 'AMBIGUOUS_ENTITY'
    codes = sorted(c['code'] for c in result.data['candidates'])
    assert codes == ['TR-001', 'TR-002']
    assert result.suggestions
    assert len(_voice_entries()) == 1


@pytest.mark.parametrize('command', ['check out racket', 'set racket to damaged'])
def test_ambiguous_reference_changes_nothing(pipeline, tenant, staff, inventory, command):
    result = pipeline.executor.process(command, staff.id, tenant.id)

    assert not result.success
    assert result.error == 'AMBIGUOUS_ENTITY'
    assert sorted(c['code'] for c in result.data['candidates']) == ['TR-001', 'TR-002']
    assert inventory['racket_a'].status == 'AVAILABLE'
    assert inventory['racket_b'].status == 'AVAILABLE'
    assert EquipmentTransaction.query.count() == 0
    assert AuditLog.query.filter_by(action=AuditAction.STATUS_CHANGE).count() == 0


def test_gibberish_is_low_confidence(pipeline, tenant, staff, inventory):
    result = pipeline.executor.process('asdkjasdj', staff.id, tenant.id)

    assert not result.success
    assert result.error == 'LOW_CONFIDENCE'
    assert result.stage == CommandStage.UNKNOWN
    assert result.suggestions

    entries = _voice_entries()
    assert len(entries) == 1
    assert entries[0].details['intent'] == 'UNKNOWN'
    assert entries[0].details['success'] is False
    assert entries[0].entity_id is None


def test_unknown_equipment_is_not_found(pipeline, make_tenant, make_user, make_equipment):
    home = make_tenant('Home')
    other = make_tenant('Other')
    user = make_user(home)
    make_equipment(other, 'Projector', 'PJ-001')

    result = pipeline.executor.process('find projector', user.id, home.id)

    assert not result.success
    assert result.error == 'NOT_FOUND'


def test_return_of_available_equipment(pipeline, tenant, staff, inventory):
    result = pipeline.executor.process('return basketball 1', staff.id, tenant.id)

    assert not result.success
    assert result.error == 'NOT_CHECKED_OUT'
    assert result.stage == CommandStage.EXECUTED


def test_checkout_needs_a_user_actor(pipeline, tenant, inventory):
    result = pipeline.executor.process('check out basketball 1', 'SYSTEM', tenant.id)

    assert not result.success
    assert result.error == 'INVALID_ACTOR'
    assert inventory['ball'].status == 'AVAILABLE'


def test_double_checkout_is_refused(pipeline, tenant, staff, make_user, inventory):
    other = make_user(tenant, username='sam')
    pipeline.executor.process('check out basketball 1', staff.id, tenant.id)

    result = pipeline.executor.process('check out basketball 1', other.id, tenant.id)

    assert not result.success
    assert result.error == 'BUSINESS_RULE_VIOLATION'
    assert "couldn't check out" in result.message


def test_set_status_goes_through_workflow(pipeline, tenant, staff, inventory):
    result = pipeline.executor.process('set basketball 1 to broken', staff.id, tenant.id)

    assert result.success, result.message
    assert inventory['ball'].status == 'DAMAGED'
    assert result.data['new_status'] == 'DAMAGED'
    change = AuditLog.query.filter_by(action=AuditAction.STATUS_CHANGE).one()
    assert change.details['metadata'] == {'source': 'voice_command'}
    assert 'set basketball 1 to broken' in change.details['reason']


def test_set_status_outside_graph_fails_cleanly(pipeline, tenant, staff, inventory):
    result = pipeline.executor.process('set basketball 1 to lost', staff.id, tenant.id)

    assert not result.success
    assert result.error == 'INVALID_TRANSITION'
    assert inventory['ball'].status == 'AVAILABLE'


def test_set_status_to_checked_out_opens_a_loan(pipeline, tenant, staff, inventory, clock):
    ball = inventory['ball']

    result = pipeline.executor.process('set basketball 1 to checked out', staff.id, tenant.id)

    assert result.success, result.message
    assert ball.status == 'CHECKED_OUT'
    transaction = EquipmentTransaction.query.filter_by(equipment_id=ball.id).one()
    assert transaction.holder_id == staff.id
    assert transaction.due_date == clock.now + timedelta(days=7)

    returned = pipeline.executor.process('return basketball 1', staff.id, tenant.id)

    assert returned.success, returned.message
    assert ball.status == 'AVAILABLE'
    assert [e.details['intent'] for e in _voice_entries()] == ['SET_STATUS', 'CHECKIN']


def test_set_status_reports_approval_flag(pipeline, tenant, staff, make_equipment):
    projector = make_equipment(tenant, 'Projector', 'PJ-001', status='CHECKED_OUT', purchase_price=899.0)

    result = pipeline.executor.process('mark projector as missing', staff.id, tenant.id)

    assert result.success, result.message
    assert projector.status == 'LOST'
    assert 'flagged for approval' in result.message
    assert result.data['requires_approval'] is True


def test_missing_entity_asks_follow_up(pipeline, tenant, staff):
    intent = Intent(kind=IntentKind.CHECKOUT, confidence=0.85, transcript='check out')

    result = pipeline.executor.execute(intent, staff.id, tenant.id)

    assert not result.success
    assert result.error == 'MISSING_ENTITY'
    assert result.follow_up
    assert len(_voice_entries()) == 1


def test_list_and_help(pipeline, tenant, staff, inventory):
    listing = pipeline.executor.process('list all equipment', staff.id, tenant.id)
    assert listing.success
    assert listing.data['total'] == 3
    assert listing.data['status_breakdown'] == {'AVAILABLE': 3}
    assert listing.message == 'You have 3 equipment items: 3 available.'

    help_result = pipeline.executor.process('help', staff.id, tenant.id)
    assert help_result.success
    assert help_result.data['commands']


def test_fatal_failure_gets_generic_message(pipeline, tenant, staff, inventory, monkeypatch):
    def explode(*args, **kwargs):
        raise WorkflowFatalError("Checkout failed for equipment 1")

    monkeypatch.setattr(pipeline.transactions, 'checkout', explode)

    result = pipeline.executor.process('check out basketball 1', staff.id, tenant.id)

    assert not result.success
    assert result.error == 'FATAL'
    assert result.message == GENERIC_FAILURE_MESSAGE
    assert len(_voice_entries()) == 1


def test_unexpected_error_is_contained(pipeline, tenant, staff, inventory, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(pipeline.store, 'find_equipment', explode)

    result = pipeline.executor.process('list all equipment', staff.id, tenant.id)

    assert not result.success
    assert result.error == 'INTERNAL_ERROR'
    assert result.message == GENERIC_FAILURE_MESSAGE


class BrokenAuditSink(AuditSink):
    def record(self, event):
        raise RuntimeError("audit store offline")


def test_audit_failure_does_not_break_command(pipeline, tenant, staff, inventory):
    executor = CommandExecutor(pipeline.interpreter, pipeline.workflow, pipeline.transactions,
                               audit_sink=BrokenAuditSink())

    result = executor.process('help', staff.id, tenant.id)

    assert result.success
    assert _voice_entries() == []
