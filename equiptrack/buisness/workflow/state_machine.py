"""
State machine for the equipment status lifecycle

Encodes valid transitions only. Business rules live in rules.py and persistence in
workflow_manager.py.
"""

from typing import Dict, List, Set, Tuple

from equiptrack.data.equipment.statuses import EquipmentStatus
from equiptrack.buisness.workflow.errors import InvalidTransitionError


class EquipmentStateMachine:
    """
    State machine for Equipment.status transitions.

    Unlike request workflows, staying in the same state is not a no-op here: a
    same-state move is never in the graph and is rejected.
    """

    AVAILABLE = EquipmentStatus.AVAILABLE.value
    CHECKED_OUT = EquipmentStatus.CHECKED_OUT.value
    MAINTENANCE = EquipmentStatus.MAINTENANCE.value
    DAMAGED = EquipmentStatus.DAMAGED.value
    LOST = EquipmentStatus.LOST.value
    RETIRED = EquipmentStatus.RETIRED.value
    RESERVED = EquipmentStatus.RESERVED.value
    OVERDUE = EquipmentStatus.OVERDUE.value

    # Terminal states (cannot transition from these)
    TERMINAL_STATES = {RETIRED}

    # Valid transitions: from_status -> set of allowed to_status values
    TRANSITIONS: Dict[str, Set[str]] = {
        AVAILABLE: {CHECKED_OUT, MAINTENANCE, DAMAGED, RESERVED},
        CHECKED_OUT: {AVAILABLE, OVERDUE, LOST, DAMAGED},
        MAINTENANCE: {AVAILABLE, DAMAGED, RETIRED},
        DAMAGED: {MAINTENANCE, RETIRED, AVAILABLE},
        LOST: {AVAILABLE, RETIRED},
        RESERVED: {AVAILABLE, CHECKED_OUT},
        OVERDUE: {AVAILABLE, LOST, DAMAGED},
        RETIRED: set(),
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """
        Check if transition is valid.

        Args:
            from_status: Current status
            to_status: Target status

        Returns:
            bool: True if transition is allowed
        """
        from_status = str(getattr(from_status, 'value', from_status))
        to_status = str(getattr(to_status, 'value', to_status))

        if from_status in cls.TERMINAL_STATES:
            return False

        return to_status in cls.TRANSITIONS.get(from_status, set())

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """
        Validate transition and raise exception if invalid.

        Raises:
            InvalidTransitionError: If transition is not allowed
        """
        if not cls.can_transition(from_status, to_status):
            allowed = sorted(cls.get_allowed_transitions(from_status))
            raise InvalidTransitionError(
                f"Invalid status transition: {getattr(from_status, 'value', from_status)} → "
                f"{getattr(to_status, 'value', to_status)}. "
                f"Allowed: {', '.join(allowed) if allowed else 'none'}"
            )

    @classmethod
    def get_allowed_transitions(cls, from_status: str) -> Set[str]:
        """Get set of allowed target statuses from current status"""
        from_status = str(getattr(from_status, 'value', from_status))
        if from_status in cls.TERMINAL_STATES:
            return set()
        return set(cls.TRANSITIONS.get(from_status, set()))

    @classmethod
    def validate_rules(cls) -> Tuple[bool, List[str]]:
        """
        Check the transition table itself.

        Every status must have an entry, no status may list itself, and terminal
        statuses must have no outgoing edges.
        """
        errors = []
        for status in EquipmentStatus:
            if status.value not in cls.TRANSITIONS:
                errors.append(f"Missing transitions for {status.value}")
        for from_status, targets in cls.TRANSITIONS.items():
            if from_status in targets:
                errors.append(f"Self-transition not allowed: {from_status}")
            unknown = {t for t in targets if EquipmentStatus.parse(t) is None}
            if unknown:
                errors.append(f"Unknown targets from {from_status}: {', '.join(sorted(unknown))}")
        for terminal in cls.TERMINAL_STATES:
            if cls.TRANSITIONS.get(terminal):
                errors.append(f"{terminal} is terminal but has outgoing transitions")
        return len(errors) == 0, errors
