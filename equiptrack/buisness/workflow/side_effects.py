"""
Status side effects

One handler per target status. Handlers run inside the transition's unit of work and
only add or modify rows in the session; the workflow manager owns commit and rollback.
Each handler returns a short description of what it did, or None.
"""

from typing import Any, Callable, Dict, Optional

from equiptrack import db
from equiptrack.data.equipment.records import MaintenanceRequest, DamageReport
from equiptrack.data.equipment.statuses import EquipmentStatus, TransactionStatus
from equiptrack.buisness.workflow.narrator import WorkflowNarrator


def actor_user_id(actor) -> Optional[int]:
    """User id for an actor string, or None for system actors."""
    text = str(actor)
    return int(text) if text.isdigit() else None


class TransitionContext:
    """Everything a side effect handler may look at."""

    def __init__(self, equipment, previous_status: str, open_transaction, actor: str,
                 reason: Optional[str], metadata: Dict[str, Any], now):
        self.equipment = equipment
        self.previous_status = previous_status
        self.open_transaction = open_transaction
        self.actor = actor
        self.reason = reason
        self.metadata = metadata
        self.now = now


class StatusSideEffects:

    def __init__(self):
        self._handlers: Dict[str, Callable[[TransitionContext], Optional[str]]] = {
            EquipmentStatus.MAINTENANCE.value: self.create_maintenance_request,
            EquipmentStatus.DAMAGED.value: self.create_damage_report,
            EquipmentStatus.RETIRED.value: self.stamp_retirement,
            EquipmentStatus.AVAILABLE.value: self.close_open_transaction,
            EquipmentStatus.OVERDUE.value: self.mark_transaction_overdue,
        }

    def run(self, target_status: str, ctx: TransitionContext) -> Optional[str]:
        handler = self._handlers.get(str(getattr(target_status, 'value', target_status)))
        if handler is None:
            return None
        return handler(ctx)

    def create_maintenance_request(self, ctx: TransitionContext) -> str:
        request = MaintenanceRequest(
            tenant_id=ctx.equipment.tenant_id,
            equipment_id=ctx.equipment.id,
            requested_by=str(ctx.actor),
            description=ctx.reason or WorkflowNarrator.DEFAULT_MAINTENANCE_DESCRIPTION,
            maintenance_type=ctx.metadata.get('maintenance_type', 'CORRECTIVE'),
            priority=ctx.metadata.get('priority', 'MEDIUM'),
            status='PENDING',
            created_at=ctx.now,
        )
        db.session.add(request)
        db.session.flush()
        return f"Maintenance request {request.id} created"

    def create_damage_report(self, ctx: TransitionContext) -> str:
        report = DamageReport(
            tenant_id=ctx.equipment.tenant_id,
            equipment_id=ctx.equipment.id,
            reported_by=str(ctx.actor),
            description=ctx.reason,
            severity=ctx.metadata.get('severity', 'MEDIUM'),
            repair_required=ctx.metadata.get('repair_required', True),
            created_at=ctx.now,
        )
        db.session.add(report)
        db.session.flush()
        return f"Damage report {report.id} created"

    def stamp_retirement(self, ctx: TransitionContext) -> str:
        ctx.equipment.retired_at = ctx.now
        ctx.equipment.retired_reason = ctx.reason
        return "Retirement recorded"

    def close_open_transaction(self, ctx: TransitionContext) -> Optional[str]:
        description = None
        if ctx.previous_status == EquipmentStatus.MAINTENANCE:
            ctx.equipment.last_maintenance_date = ctx.now
            description = "Maintenance date updated"

        transaction = ctx.open_transaction
        if transaction is None:
            return description

        transaction.status = TransactionStatus.RETURNED.value
        transaction.returned_at = ctx.now
        transaction.returned_by_id = actor_user_id(ctx.actor)
        notes = ctx.metadata.get('return_notes')
        if notes:
            transaction.notes = f"{transaction.notes}\n{notes}" if transaction.notes else notes
        return f"Transaction {transaction.id} closed"

    def mark_transaction_overdue(self, ctx: TransitionContext) -> Optional[str]:
        transaction = ctx.open_transaction
        if transaction is None:
            return None
        transaction.status = TransactionStatus.OVERDUE.value
        return f"Transaction {transaction.id} marked overdue"
