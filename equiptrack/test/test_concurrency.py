"""
Tests for optimistic concurrency on equipment status changes
"""
import pytest
from sqlalchemy import text

from equiptrack.data.audit.audit_log import AuditLog, AuditAction
from equiptrack.buisness.workflow.errors import (
    ConcurrentTransitionError,
    InvalidTransitionError,
    BusinessRuleViolation,
)


def _bump_version_behind_the_session(db, equipment_id):
    """Simulate another writer committing a change to the same row"""
    db.session.connection().execute(
        text("UPDATE equipment SET version_id = version_id + 1 WHERE id = :id"),
        {'id': equipment_id},
    )


def test_stale_equipment_is_rejected(pipeline, db, tenant, make_equipment):
    item = make_equipment(tenant, 'Basketball 1', 'BB1-001')
    item_id = item.id
    pipeline.workflow.load_equipment(item_id)

    _bump_version_behind_the_session(db, item_id)

    with pytest.raises(ConcurrentTransitionError) as exc_info:
        pipeline.workflow.attempt_transition(item_id, 'MAINTENANCE', '1')

    assert exc_info.value.error_code == 'CONCURRENT_MODIFICATION'
    assert AuditLog.query.filter_by(action=AuditAction.STATUS_CHANGE).count() == 0


def test_concurrent_error_is_an_invalid_transition():
    assert issubclass(ConcurrentTransitionError, InvalidTransitionError)


def test_version_counter_advances_on_each_transition(pipeline, tenant, make_equipment):
    item = make_equipment(tenant, 'Basketball 1', 'BB1-001')
    start = item.version_id

    pipeline.workflow.attempt_transition(item.id, 'MAINTENANCE', '1')
    pipeline.workflow.attempt_transition(item.id, 'AVAILABLE', '1')

    assert item.version_id == start + 2


def test_second_of_two_racing_checkouts_fails(pipeline, db, tenant, staff, make_user, make_equipment):
    """The first checkout wins; the second sees the open transaction and is rejected"""
    other = make_user(tenant, username='sam')
    item = make_equipment(tenant, 'Basketball 1', 'BB1-001')

    pipeline.transactions.checkout(item.id, staff.id)

    with pytest.raises(BusinessRuleViolation):
        pipeline.transactions.checkout(item.id, other.id)

    assert item.status == 'CHECKED_OUT'
