"""
Tests for the equipment status graph and transition rules
"""
import pytest

from equiptrack.data.equipment.statuses import EquipmentStatus
from equiptrack.buisness.workflow.errors import InvalidTransitionError, BusinessRuleViolation
from equiptrack.buisness.workflow.rules import TransitionRulesPolicy
from equiptrack.buisness.workflow.state_machine import EquipmentStateMachine


class _Item:
    def __init__(self, status, purchase_price=None):
        self.status = status
        self.purchase_price = purchase_price


def test_transition_table_is_consistent():
    """Every status has an entry, no self edges, terminal states have no exits"""
    ok, errors = EquipmentStateMachine.validate_rules()
    assert ok, f"Transition table errors: {errors}"


def test_graph_edges():
    assert EquipmentStateMachine.can_transition('AVAILABLE', 'CHECKED_OUT')
    assert EquipmentStateMachine.can_transition('CHECKED_OUT', 'OVERDUE')
    assert EquipmentStateMachine.can_transition('OVERDUE', 'LOST')
    assert EquipmentStateMachine.can_transition('DAMAGED', 'MAINTENANCE')
    assert EquipmentStateMachine.can_transition('RESERVED', 'CHECKED_OUT')
    assert not EquipmentStateMachine.can_transition('AVAILABLE', 'LOST')
    assert not EquipmentStateMachine.can_transition('AVAILABLE', 'OVERDUE')
    assert not EquipmentStateMachine.can_transition('LOST', 'CHECKED_OUT')


def test_same_state_is_never_allowed():
    for status in EquipmentStatus:
        assert not EquipmentStateMachine.can_transition(status.value, status.value), status


def test_retired_is_terminal():
    assert EquipmentStateMachine.get_allowed_transitions('RETIRED') == set()
    for status in EquipmentStatus:
        assert not EquipmentStateMachine.can_transition('RETIRED', status.value)


def test_enum_members_are_accepted():
    assert EquipmentStateMachine.can_transition(EquipmentStatus.AVAILABLE, EquipmentStatus.MAINTENANCE)


def test_validate_transition_lists_allowed_targets():
    with pytest.raises(InvalidTransitionError) as exc_info:
        EquipmentStateMachine.validate_transition('LOST', 'CHECKED_OUT')
    message = str(exc_info.value)
    assert 'AVAILABLE' in message and 'RETIRED' in message


def test_status_parse():
    assert EquipmentStatus.parse(' checked_out ') is EquipmentStatus.CHECKED_OUT
    assert EquipmentStatus.parse(EquipmentStatus.LOST) is EquipmentStatus.LOST
    assert EquipmentStatus.parse('BROKEN') is None
    assert EquipmentStatus.parse(None) is None


def test_rules_reject_redundant_moves():
    policy = TransitionRulesPolicy()
    with pytest.raises(BusinessRuleViolation):
        policy.reject_redundant(_Item('CHECKED_OUT'), EquipmentStatus.CHECKED_OUT)
    with pytest.raises(BusinessRuleViolation):
        policy.reject_redundant(_Item('AVAILABLE'), EquipmentStatus.AVAILABLE)


def test_rules_require_damage_reason():
    policy = TransitionRulesPolicy()
    with pytest.raises(BusinessRuleViolation) as exc_info:
        policy.check(_Item('AVAILABLE'), EquipmentStatus.DAMAGED, reason='   ')
    assert 'reason' in exc_info.value.reason
    assert not policy.check(_Item('AVAILABLE'), EquipmentStatus.DAMAGED, reason='Cracked').requires_approval


def test_rules_flag_expensive_lost_equipment():
    policy = TransitionRulesPolicy(lost_approval_value_threshold=500)
    assert policy.check(_Item('CHECKED_OUT', purchase_price=899.0), EquipmentStatus.LOST).requires_approval
    assert not policy.check(_Item('CHECKED_OUT', purchase_price=500.0), EquipmentStatus.LOST).requires_approval
    assert not policy.check(_Item('CHECKED_OUT'), EquipmentStatus.LOST).requires_approval


def test_rules_flag_retirement():
    outcome = TransitionRulesPolicy().check(_Item('MAINTENANCE'), EquipmentStatus.RETIRED)
    assert outcome.requires_approval
    assert outcome.approval_reason
