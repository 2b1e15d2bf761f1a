"""
Transaction Service - checkout and checkin of equipment

Both operations go through the workflow manager so the custody record, the status
change and its audit event commit together.
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm.exc import StaleDataError

from equiptrack import db
from equiptrack.data.core.user import User
from equiptrack.data.equipment.transaction import EquipmentTransaction
from equiptrack.data.equipment.statuses import EquipmentStatus, TransactionStatus
from equiptrack.buisness.workflow.errors import (
    WorkflowDomainError,
    BusinessRuleViolation,
    EquipmentNotFoundError,
    ConcurrentTransitionError,
    WorkflowFatalError,
)
from equiptrack.buisness.workflow.side_effects import actor_user_id
from equiptrack.buisness.workflow.workflow_manager import WorkflowManager
from equiptrack.utils.logger import get_logger
from equiptrack.utils.logging_sanitizer import sanitize_exception_message

logger = get_logger("equiptrack.buisness.transactions")


class TransactionService:

    def __init__(self, workflow: WorkflowManager):
        self.workflow = workflow
        self.store = workflow.store
        self.settings = workflow.settings

    def find_open_transaction(self, equipment_id: int) -> Optional[EquipmentTransaction]:
        return self.store.open_transaction(equipment_id)

    def _run(self, equipment_id: int, operation: str, work):
        """Run ``work`` as one unit of work with the workflow manager's error policy."""
        try:
            transaction, result = work()
            db.session.commit()
        except WorkflowDomainError:
            db.session.rollback()
            raise
        except StaleDataError as e:
            db.session.rollback()
            raise ConcurrentTransitionError(
                f"Equipment {equipment_id} was modified by another operation; reload and retry"
            ) from e
        except Exception as e:
            db.session.rollback()
            logger.error(
                f"{operation} failed for equipment {equipment_id}: {sanitize_exception_message(e)}",
                exc_info=True
            )
            raise WorkflowFatalError(f"{operation} failed for equipment {equipment_id}") from e

        self.workflow.send_notifications(result)
        return transaction

    def checkout(self, equipment_id: int, user_id: int, due_date: Optional[datetime] = None,
                 checked_out_by=None, notes: Optional[str] = None,
                 tenant_id: Optional[int] = None) -> EquipmentTransaction:
        """
        Check equipment out to a user.

        Raises:
            EquipmentNotFoundError: Equipment or holder missing
            BusinessRuleViolation: Equipment already has an open transaction
            InvalidTransitionError: CHECKED_OUT is not reachable from the current status
        """
        def work():
            equipment = self.workflow.load_equipment(equipment_id, tenant_id)
            holder = db.session.get(User, user_id)
            if holder is None or (tenant_id is not None and holder.tenant_id != tenant_id):
                raise EquipmentNotFoundError(f"User {user_id} not found")
            if self.store.open_transaction(equipment.id) is not None:
                raise BusinessRuleViolation("Equipment is already checked out")

            actor = checked_out_by if checked_out_by is not None else user_id
            now = self.workflow.clock()
            transaction = EquipmentTransaction(
                tenant_id=equipment.tenant_id,
                equipment_id=equipment.id,
                holder_id=holder.id,
                checked_out_by_id=actor_user_id(actor),
                status=TransactionStatus.CHECKED_OUT.value,
                checked_out_at=now,
                due_date=due_date or now + timedelta(days=self.settings.default_loan_days),
                notes=notes,
            )
            db.session.add(transaction)
            db.session.flush()

            result = self.workflow.apply_transition(
                equipment.id,
                EquipmentStatus.CHECKED_OUT,
                actor,
                reason=f"Checked out to {holder.full_name}",
                metadata={'transaction_id': transaction.id, 'due_date': transaction.due_date.isoformat()},
                tenant_id=tenant_id,
            )
            return transaction, result

        transaction = self._run(equipment_id, "Checkout", work)
        logger.info(f"Equipment {equipment_id} checked out to user {user_id} (transaction {transaction.id})")
        return transaction

    def checkin(self, transaction_id: int, returned_by, notes: Optional[str] = None,
                tenant_id: Optional[int] = None) -> EquipmentTransaction:
        """
        Return equipment. The AVAILABLE transition's side effect closes the transaction.

        Raises:
            EquipmentNotFoundError: Transaction missing or outside the tenant
            BusinessRuleViolation: Transaction is already closed
        """
        transaction = db.session.get(EquipmentTransaction, transaction_id)
        if transaction is None or (tenant_id is not None and transaction.tenant_id != tenant_id):
            raise EquipmentNotFoundError(f"Transaction {transaction_id} not found")
        equipment_id = transaction.equipment_id

        def work():
            if not transaction.is_open:
                raise BusinessRuleViolation("Equipment is not currently checked out")
            metadata = {'transaction_id': transaction.id}
            if notes:
                metadata['return_notes'] = notes
            result = self.workflow.apply_transition(
                equipment_id,
                EquipmentStatus.AVAILABLE,
                returned_by,
                reason="Checked in",
                metadata=metadata,
                tenant_id=tenant_id,
            )
            return transaction, result

        transaction = self._run(equipment_id, "Checkin", work)
        logger.info(f"Transaction {transaction_id} checked in by {returned_by}")
        return transaction
