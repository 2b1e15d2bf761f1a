"""
WorkflowManager - Executes equipment status transitions

Validation (rules, then graph), the status write, the audit event and the status
side effect form one unit of work. Notifications go out only after commit.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm.exc import StaleDataError

from equiptrack import db
from equiptrack.data.audit.audit_log import AuditLog, AuditAction
from equiptrack.data.audit.notification import NotificationAudience
from equiptrack.data.equipment.equipment import Equipment
from equiptrack.data.equipment.statuses import EquipmentStatus
from equiptrack.buisness.core.settings import WorkflowSettings
from equiptrack.buisness.core.equipment_store import EquipmentStore
from equiptrack.buisness.core.audit_sink import AuditSink, SqlAuditSink
from equiptrack.buisness.core.notification_sink import NotificationSink, SqlNotificationSink
from equiptrack.buisness.core.events import StatusTransitionEvent
from equiptrack.buisness.workflow.errors import (
    WorkflowDomainError,
    EquipmentNotFoundError,
    InvalidTransitionError,
    ConcurrentTransitionError,
    WorkflowFatalError,
)
from equiptrack.buisness.workflow.narrator import WorkflowNarrator
from equiptrack.buisness.workflow.results import TransitionResult, PendingNotification
from equiptrack.buisness.workflow.rules import TransitionRulesPolicy
from equiptrack.buisness.workflow.side_effects import StatusSideEffects, TransitionContext
from equiptrack.buisness.workflow.state_machine import EquipmentStateMachine
from equiptrack.utils.clock import utcnow
from equiptrack.utils.logger import get_logger
from equiptrack.utils.logging_sanitizer import sanitize_dict, sanitize_exception_message

logger = get_logger("equiptrack.buisness.workflow")


class WorkflowManager:
    """
    Applies status transitions to equipment.

    ``apply_transition`` works inside the caller's unit of work and never commits.
    ``attempt_transition`` wraps it in its own commit/rollback and sends notifications.
    """

    def __init__(self, store: Optional[EquipmentStore] = None,
                 audit_sink: Optional[AuditSink] = None,
                 notification_sink: Optional[NotificationSink] = None,
                 settings: Optional[WorkflowSettings] = None,
                 clock=utcnow,
                 side_effects: Optional[StatusSideEffects] = None):
        self.settings = settings or WorkflowSettings()
        self.store = store or EquipmentStore()
        self.audit_sink = audit_sink or SqlAuditSink()
        self.notification_sink = notification_sink or SqlNotificationSink()
        self.side_effects = side_effects or StatusSideEffects()
        self.rules = TransitionRulesPolicy(self.settings.lost_approval_value_threshold)
        self.clock = clock

    def load_equipment(self, equipment_id: int, tenant_id: Optional[int] = None) -> Equipment:
        equipment = self.store.get(equipment_id, tenant_id)
        if equipment is None:
            raise EquipmentNotFoundError(f"Equipment {equipment_id} not found")
        return equipment

    @staticmethod
    def _parse_status(target_status) -> EquipmentStatus:
        status = EquipmentStatus.parse(target_status)
        if status is None:
            raise InvalidTransitionError(f"Unknown status: {target_status}")
        return status

    def _assert_unchanged(self, equipment: Equipment) -> None:
        """Re-read the version counter inside the unit of work."""
        stored_version = (
            db.session.query(Equipment.version_id)
            .filter(Equipment.id == equipment.id)
            .scalar()
        )
        if stored_version != equipment.version_id:
            raise ConcurrentTransitionError(
                f"Equipment {equipment.id} was modified by another operation; reload and retry"
            )

    def apply_transition(self, equipment_id: int, target_status, actor, reason: Optional[str] = None,
                         metadata: Optional[Dict[str, Any]] = None,
                         tenant_id: Optional[int] = None) -> TransitionResult:
        """
        Validate and apply a transition without committing.

        Raises:
            EquipmentNotFoundError: Equipment missing, deleted or outside the tenant
            InvalidTransitionError: Unknown status or move not in the graph
            BusinessRuleViolation: A transition rule rejected the move
            ConcurrentTransitionError: The row changed since it was loaded
        """
        metadata = dict(metadata or {})
        actor = str(actor)
        equipment = self.load_equipment(equipment_id, tenant_id)
        target = self._parse_status(target_status)
        previous_status = equipment.status

        self.rules.reject_redundant(equipment, target)
        EquipmentStateMachine.validate_transition(previous_status, target.value)
        outcome = self.rules.check(equipment, target, reason)

        self._assert_unchanged(equipment)

        now = self.clock()
        open_transaction = self.store.open_transaction(equipment.id)
        self.store.update_status(equipment, target.value, changed_at=now)

        self.audit_sink.record(StatusTransitionEvent(
            equipment_id=equipment.id,
            previous_status=previous_status,
            new_status=target.value,
            actor=actor,
            reason=reason,
            metadata=metadata,
            timestamp=now,
            tenant_id=equipment.tenant_id,
            requires_approval=outcome.requires_approval,
        ))

        side_effect = self.side_effects.run(target.value, TransitionContext(
            equipment=equipment,
            previous_status=previous_status,
            open_transaction=open_transaction,
            actor=actor,
            reason=reason,
            metadata=metadata,
            now=now,
        ))

        # Flush so a version conflict surfaces inside this unit of work
        db.session.flush()

        logger.info(
            f"Equipment {equipment.id} transition {previous_status} -> {target.value} by {actor}",
            extra={"context": {
                "equipment_id": equipment.id,
                "tenant_id": equipment.tenant_id,
                "requires_approval": outcome.requires_approval,
                "metadata": sanitize_dict(metadata),
            }}
        )

        return TransitionResult(
            equipment_id=equipment.id,
            previous_status=previous_status,
            new_status=target.value,
            actor=actor,
            reason=reason,
            timestamp=now,
            message=WorkflowNarrator.status_changed(equipment, previous_status, target.value, reason),
            requires_approval=outcome.requires_approval,
            approval_reason=outcome.approval_reason,
            side_effect=side_effect,
            pending_notifications=self._notifications_for(equipment, target, reason, actor),
            tenant_id=equipment.tenant_id,
        )

    def attempt_transition(self, equipment_id: int, target_status, actor, reason: Optional[str] = None,
                           metadata: Optional[Dict[str, Any]] = None,
                           tenant_id: Optional[int] = None) -> TransitionResult:
        """
        Apply a transition as its own unit of work and send its notifications.

        Recoverable domain errors propagate unchanged after rollback. A version
        conflict becomes ConcurrentTransitionError; any other failure is rolled back
        and raised as WorkflowFatalError.
        """
        try:
            result = self.apply_transition(equipment_id, target_status, actor, reason, metadata, tenant_id)
            db.session.commit()
        except WorkflowDomainError:
            db.session.rollback()
            raise
        except StaleDataError as e:
            db.session.rollback()
            logger.warning(f"Concurrent modification of equipment {equipment_id}: {e}")
            raise ConcurrentTransitionError(
                f"Equipment {equipment_id} was modified by another operation; reload and retry"
            ) from e
        except Exception as e:
            db.session.rollback()
            logger.error(
                f"Transition of equipment {equipment_id} to {target_status} failed: "
                f"{sanitize_exception_message(e)}",
                exc_info=True,
                extra={"context": {"equipment_id": equipment_id, "actor": str(actor), "tenant_id": tenant_id}}
            )
            raise WorkflowFatalError(f"Status transition failed for equipment {equipment_id}") from e

        self.send_notifications(result)
        return result

    def send_notifications(self, result: TransitionResult) -> List[str]:
        """Deliver a committed transition's notifications. Failures are logged and skipped."""
        for pending in result.pending_notifications:
            try:
                self.notification_sink.notify(
                    pending.audience,
                    pending.title,
                    pending.message,
                    metadata=pending.metadata,
                    tenant_id=result.tenant_id,
                    notification_type=pending.notification_type,
                )
                result.notifications.append(pending.describe())
            except Exception as e:
                logger.error(
                    f"Notification '{pending.title}' for equipment {result.equipment_id} failed: "
                    f"{sanitize_exception_message(e)}"
                )
        result.pending_notifications = []
        return result.notifications

    def _notifications_for(self, equipment: Equipment, target: EquipmentStatus,
                           reason: Optional[str], actor: str) -> List[PendingNotification]:
        metadata = {'equipment_id': equipment.id, 'equipment_code': equipment.code, 'actor': actor}
        if target == EquipmentStatus.DAMAGED:
            return [PendingNotification(
                audience=NotificationAudience.ADMINS,
                title="Equipment Damaged",
                message=WorkflowNarrator.damaged_notification(equipment, reason),
                notification_type='ALERT',
                metadata=metadata,
            )]
        if target == EquipmentStatus.LOST:
            return [PendingNotification(
                audience=NotificationAudience.ADMINS,
                title="Equipment Lost",
                message=WorkflowNarrator.lost_notification(equipment),
                notification_type='ALERT',
                metadata=metadata,
            )]
        if target == EquipmentStatus.MAINTENANCE:
            return [PendingNotification(
                audience=NotificationAudience.MAINTENANCE_TEAM,
                title="Equipment Under Maintenance",
                message=WorkflowNarrator.maintenance_notification(equipment),
                notification_type='INFO',
                metadata=metadata,
            )]
        return []

    def allowed_transitions(self, equipment_id: int, tenant_id: Optional[int] = None) -> Dict[str, Any]:
        equipment = self.load_equipment(equipment_id, tenant_id)
        return {
            'equipment_id': equipment.id,
            'current_status': equipment.status,
            'allowed_transitions': sorted(EquipmentStateMachine.get_allowed_transitions(equipment.status)),
        }

    def get_history(self, equipment_id: int, tenant_id: Optional[int] = None) -> List[AuditLog]:
        """STATUS_CHANGE audit entries for the equipment, newest first."""
        self.load_equipment(equipment_id, tenant_id)
        return (
            AuditLog.query
            .filter(
                AuditLog.action == AuditAction.STATUS_CHANGE,
                AuditLog.entity_type == SqlAuditSink.ENTITY_TYPE,
                AuditLog.entity_id == equipment_id,
            )
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .all()
        )
