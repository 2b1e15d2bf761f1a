"""
Transition rules policy

Business rules evaluated around the graph check. Redundant same-state moves are
rejected before the graph is consulted because the rule message is more useful to
an operator; every other rule runs only on moves the graph allows.
"""

from dataclasses import dataclass
from typing import Optional

from equiptrack.data.equipment.statuses import EquipmentStatus
from equiptrack.buisness.workflow.errors import BusinessRuleViolation


@dataclass
class RuleOutcome:
    requires_approval: bool = False
    approval_reason: Optional[str] = None


class TransitionRulesPolicy:

    def __init__(self, lost_approval_value_threshold: float = 500.0):
        self.lost_approval_value_threshold = lost_approval_value_threshold

    def reject_redundant(self, equipment, target: EquipmentStatus) -> None:
        """
        Reject moves into the status the equipment already has.

        Raises:
            BusinessRuleViolation: If the equipment is already checked out or available
        """
        current = equipment.status

        if target == EquipmentStatus.CHECKED_OUT and current == EquipmentStatus.CHECKED_OUT:
            raise BusinessRuleViolation("Equipment is already checked out")

        if target == EquipmentStatus.AVAILABLE and current == EquipmentStatus.AVAILABLE:
            raise BusinessRuleViolation("Equipment is already available")

    def check(self, equipment, target: EquipmentStatus, reason: Optional[str] = None) -> RuleOutcome:
        """
        Apply the rules for a move the graph allows.

        Raises:
            BusinessRuleViolation: If a rule rejects the transition
        """
        if target == EquipmentStatus.DAMAGED and not (reason or '').strip():
            raise BusinessRuleViolation("A reason is required when marking equipment as damaged")

        if target == EquipmentStatus.LOST and (equipment.purchase_price or 0) > self.lost_approval_value_threshold:
            return RuleOutcome(
                requires_approval=True,
                approval_reason=(
                    f"Lost equipment valued above {self.lost_approval_value_threshold:g} requires approval"
                ),
            )

        if target == EquipmentStatus.RETIRED:
            return RuleOutcome(requires_approval=True, approval_reason="Retirement requires approval")

        return RuleOutcome()
