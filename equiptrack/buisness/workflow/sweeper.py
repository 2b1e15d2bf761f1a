"""
Automatic Transition Sweeper

Time-based status transitions, run once per external trigger (cron via
``app.py --sweep`` or the admin sweep endpoint). Thresholds are compared strictly
at trigger time, so an item crosses into OVERDUE at most one trigger interval after
its threshold.
"""

from datetime import timedelta
from typing import Dict, List, Optional

from equiptrack import db
from equiptrack.data.core.tenant import Tenant
from equiptrack.data.equipment.equipment import Equipment
from equiptrack.data.equipment.transaction import EquipmentTransaction
from equiptrack.data.equipment.statuses import EquipmentStatus, OPEN_TRANSACTION_STATUSES
from equiptrack.buisness.core.events import SYSTEM_ACTOR
from equiptrack.buisness.workflow.narrator import WorkflowNarrator
from equiptrack.buisness.workflow.results import SweepResult, SweepFailure
from equiptrack.buisness.workflow.workflow_manager import WorkflowManager
from equiptrack.utils.clock import utcnow
from equiptrack.utils.logger import get_logger
from equiptrack.utils.logging_sanitizer import sanitize_exception_message

logger = get_logger("equiptrack.buisness.workflow.sweeper")


class AutomaticTransitionSweeper:
    """
    Scans tenants for overdue loans and maintenance that has come due.
    """

    def __init__(self, workflow: WorkflowManager, clock=None):
        self.workflow = workflow
        self.settings = workflow.settings
        self.clock = clock or workflow.clock or utcnow

    def find_overdue(self, tenant_id: Optional[int]) -> List[int]:
        """Ids of CHECKED_OUT equipment whose open transaction is past the overdue threshold"""
        cutoff = self.clock() - timedelta(hours=self.settings.overdue_threshold_hours)
        query = (
            db.session.query(Equipment.id)
            .join(EquipmentTransaction, EquipmentTransaction.equipment_id == Equipment.id)
            .filter(
                Equipment.status == EquipmentStatus.CHECKED_OUT.value,
                Equipment.is_deleted.is_(False),
                EquipmentTransaction.status.in_(OPEN_TRANSACTION_STATUSES),
                EquipmentTransaction.due_date < cutoff,
            )
        )
        if tenant_id is not None:
            query = query.filter(Equipment.tenant_id == tenant_id)
        return [row[0] for row in query.distinct().order_by(Equipment.id).all()]

    def find_maintenance_due(self, tenant_id: Optional[int]) -> List[int]:
        """Ids of AVAILABLE equipment whose last maintenance is older than the interval"""
        cutoff = self.clock() - timedelta(days=self.settings.maintenance_due_days)
        query = (
            db.session.query(Equipment.id)
            .filter(
                Equipment.status == EquipmentStatus.AVAILABLE.value,
                Equipment.is_deleted.is_(False),
                Equipment.last_maintenance_date.isnot(None),
                Equipment.last_maintenance_date < cutoff,
            )
        )
        if tenant_id is not None:
            query = query.filter(Equipment.tenant_id == tenant_id)
        return [row[0] for row in query.order_by(Equipment.id).all()]

    def _transition_each(self, equipment_ids: List[int], target: EquipmentStatus, reason: str,
                         metadata: Dict, tenant_id: Optional[int], result: SweepResult) -> int:
        succeeded = 0
        for equipment_id in equipment_ids:
            try:
                self.workflow.attempt_transition(
                    equipment_id,
                    target,
                    SYSTEM_ACTOR,
                    reason=reason,
                    metadata=dict(metadata),
                    tenant_id=tenant_id,
                )
                succeeded += 1
            except Exception as e:
                # Log error but continue with other equipment
                message = sanitize_exception_message(e)
                logger.error(f"Automatic {target.value} transition failed for equipment {equipment_id}: {message}")
                result.failures.append(SweepFailure(equipment_id, target.value, message))
        return succeeded

    def sweep(self, tenant_id: Optional[int]) -> SweepResult:
        """
        Run both time-based checks for one tenant.

        Returns:
            SweepResult: Counts of successful transitions plus per-item failures
        """
        result = SweepResult(tenant_id=tenant_id)

        overdue_ids = self.find_overdue(tenant_id)
        result.overdue_count = self._transition_each(
            overdue_ids,
            EquipmentStatus.OVERDUE,
            WorkflowNarrator.OVERDUE_SWEEP_REASON,
            {'auto_transition': True},
            tenant_id,
            result,
        )

        maintenance_ids = self.find_maintenance_due(tenant_id)
        result.maintenance_count = self._transition_each(
            maintenance_ids,
            EquipmentStatus.MAINTENANCE,
            WorkflowNarrator.MAINTENANCE_SWEEP_REASON,
            {'auto_transition': True, 'maintenance_type': 'SCHEDULED'},
            tenant_id,
            result,
        )

        logger.info(
            f"Sweep for tenant {tenant_id}: {result.overdue_count} overdue, "
            f"{result.maintenance_count} maintenance, {len(result.failures)} failed"
        )
        return result

    def sweep_all(self) -> Dict[int, SweepResult]:
        """
        Sweep every active tenant in turn. A tenant that fails is logged and recorded,
        and the scan moves on.
        """
        results: Dict[int, SweepResult] = {}
        tenant_ids = [t.id for t in Tenant.query.filter_by(is_active=True).order_by(Tenant.id).all()]
        logger.info(f"Starting automatic transition sweep for {len(tenant_ids)} tenants")

        for tenant_id in tenant_ids:
            try:
                results[tenant_id] = self.sweep(tenant_id)
            except Exception as e:
                db.session.rollback()
                message = sanitize_exception_message(e)
                logger.error(f"Sweep failed for tenant {tenant_id}: {message}", exc_info=True)
                results[tenant_id] = SweepResult(tenant_id=tenant_id, error=message)

        return results
