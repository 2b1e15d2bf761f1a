"""
Command Executor

Maps a classified Intent to a concrete action. Recoverable domain errors become an
unsuccessful CommandResult; nothing is raised past ``execute``. Every call records
exactly one VOICE_COMMAND audit event, whatever the outcome.
"""

from collections import Counter
from datetime import timedelta
from typing import Callable, Dict, Optional

from equiptrack import db
from equiptrack.data.equipment.equipment import Equipment
from equiptrack.data.equipment.statuses import EquipmentStatus
from equiptrack.buisness.core.audit_sink import AuditSink, SqlAuditSink
from equiptrack.buisness.core.events import VoiceCommandEvent
from equiptrack.buisness.commands.intents import (
    Intent,
    IntentKind,
    CommandStage,
    EquipmentRef,
    FreeText,
)
from equiptrack.buisness.commands.interpreter import CommandInterpreter
from equiptrack.buisness.commands.results import CommandResult
from equiptrack.buisness.transactions.transaction_service import TransactionService
from equiptrack.buisness.workflow.errors import (
    WorkflowDomainError,
    EquipmentNotFoundError,
    AmbiguousEntityError,
    LowConfidenceError,
    WorkflowFatalError,
)
from equiptrack.buisness.workflow.narrator import WorkflowNarrator
from equiptrack.buisness.workflow.side_effects import actor_user_id
from equiptrack.buisness.workflow.workflow_manager import WorkflowManager
from equiptrack.utils.logger import get_logger
from equiptrack.utils.logging_sanitizer import sanitize_exception_message

logger = get_logger("equiptrack.buisness.commands.executor")

MIN_EXECUTION_CONFIDENCE = 0.5
MAX_DISAMBIGUATION_CANDIDATES = 5
LIST_LIMIT = 20

GENERIC_FAILURE_MESSAGE = "Sorry, I encountered an error processing your command. Please try again."

CLARIFICATION_SUGGESTIONS = [
    "Try saying 'check out basketball'",
    "Or 'return tennis racket'",
    "Or 'find volleyball net'",
]

HELP_COMMANDS = [
    "Check out [equipment name] - Borrow equipment",
    "Return [equipment name] - Return equipment",
    "Find [equipment name] - Locate equipment",
    "Status of [equipment name] - Check equipment status",
    "Set [equipment name] to [status] - Change equipment status",
    "List all equipment - Show inventory overview",
]

HELP_SUGGESTIONS = [
    "Try saying 'check out basketball'",
    "Or 'where is the volleyball net'",
    "Or 'list all equipment'",
]


def _readable(status: str) -> str:
    return str(status).lower().replace('_', ' ')


class CommandExecutor:

    def __init__(self, interpreter: CommandInterpreter, workflow: WorkflowManager,
                 transactions: TransactionService, audit_sink: Optional[AuditSink] = None):
        self.interpreter = interpreter
        self.resolver = interpreter.resolver
        self.workflow = workflow
        self.store = workflow.store
        self.settings = workflow.settings
        self.transactions = transactions
        self.audit_sink = audit_sink or SqlAuditSink()
        self._handlers: Dict[IntentKind, Callable[[Intent, str, Optional[int]], CommandResult]] = {
            IntentKind.CHECKOUT: self._checkout,
            IntentKind.CHECKIN: self._checkin,
            IntentKind.FIND: self._find,
            IntentKind.GET_STATUS: self._get_status,
            IntentKind.SET_STATUS: self._set_status,
            IntentKind.LIST: self._list,
            IntentKind.HELP: self._help,
        }

    def process(self, transcript: str, actor, tenant_id: Optional[int] = None) -> CommandResult:
        """Interpret and execute one transcript."""
        intent = self.interpreter.interpret(transcript, tenant_id)
        return self.execute(intent, actor, tenant_id)

    def execute(self, intent: Intent, actor, tenant_id: Optional[int] = None) -> CommandResult:
        actor = str(actor)
        try:
            if intent.kind == IntentKind.UNKNOWN or intent.confidence < MIN_EXECUTION_CONFIDENCE:
                raise LowConfidenceError(
                    "I'm not sure what you meant. Could you please rephrase that?",
                    confidence=intent.confidence,
                )
            result = self._handlers[intent.kind](intent, actor, tenant_id)
        except LowConfidenceError as e:
            result = CommandResult(
                success=False,
                message=str(e),
                suggestions=list(CLARIFICATION_SUGGESTIONS),
                stage=CommandStage.UNKNOWN,
                error=e.error_code,
            )
        except AmbiguousEntityError as e:
            result = CommandResult(
                success=False,
                message=str(e),
                data={'candidates': e.candidates},
                suggestions=["Try using the equipment code", "Or be more specific with the name"],
                error=e.error_code,
            )
        except WorkflowFatalError as e:
            logger.error(
                f"Command failed: {sanitize_exception_message(e)}",
                exc_info=True,
                extra={"context": {"transcript": intent.transcript, "intent": intent.kind.value,
                                   "actor": actor, "tenant_id": tenant_id}}
            )
            result = CommandResult(success=False, message=GENERIC_FAILURE_MESSAGE, error=e.error_code)
        except WorkflowDomainError as e:
            result = CommandResult(success=False, message=str(e), error=e.error_code)
        except Exception as e:
            db.session.rollback()
            logger.error(
                f"Unexpected error executing command: {sanitize_exception_message(e)}",
                exc_info=True,
                extra={"context": {"transcript": intent.transcript, "intent": intent.kind.value,
                                   "actor": actor, "tenant_id": tenant_id}}
            )
            result = CommandResult(success=False, message=GENERIC_FAILURE_MESSAGE, error='INTERNAL_ERROR')

        if result.stage != CommandStage.UNKNOWN:
            result.stage = CommandStage.EXECUTED
        self._record(intent, result, actor, tenant_id)
        return result

    def _record(self, intent: Intent, result: CommandResult, actor: str, tenant_id: Optional[int]) -> None:
        """Append the VOICE_COMMAND audit event. Failures are logged, never raised."""
        equipment_id = result.equipment_id
        if equipment_id is None and isinstance(intent.equipment, EquipmentRef):
            equipment_id = intent.equipment.equipment.id
        event = VoiceCommandEvent(
            transcript=intent.transcript,
            intent=intent.kind.value,
            confidence=intent.confidence,
            entities=intent.entities_dict(),
            success=result.success,
            message=result.message,
            actor=actor,
            timestamp=self.workflow.clock(),
            tenant_id=tenant_id,
            equipment_id=equipment_id,
            error=result.error,
        )
        try:
            self.audit_sink.record(event)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.error(f"Failed to record voice command audit event: {sanitize_exception_message(e)}")

    def _resolve_equipment(self, intent: Intent, tenant_id: Optional[int]) -> Equipment:
        """
        Turn the intent's equipment entity into a live record.

        Raises:
            EquipmentNotFoundError: Nothing matches
            AmbiguousEntityError: Free text matches more than one item
        """
        entity = intent.equipment
        if isinstance(entity, EquipmentRef):
            equipment = self.store.get(entity.equipment.id, tenant_id)
            if equipment is None:
                raise EquipmentNotFoundError("I couldn't find that equipment.")
            return equipment

        text = entity.text if isinstance(entity, FreeText) else ''
        matches = self.resolver.search(text, tenant_id=tenant_id)
        if not matches:
            raise EquipmentNotFoundError(f'I couldn\'t find any equipment matching "{text}".')
        if len(matches) > 1:
            raise AmbiguousEntityError(
                f'I found {len(matches)} equipment items matching "{text}". Please be more specific.',
                candidates=[{'id': e.id, 'name': e.name, 'code': e.code}
                            for e in matches[:MAX_DISAMBIGUATION_CANDIDATES]],
            )
        return matches[0]

    @staticmethod
    def _follow_up(message: str) -> CommandResult:
        return CommandResult(
            success=False,
            message=message,
            follow_up="Please specify the equipment name or code.",
            error='MISSING_ENTITY',
        )

    def _checkout(self, intent: Intent, actor: str, tenant_id: Optional[int]) -> CommandResult:
        if intent.equipment is None:
            return self._follow_up("What equipment would you like to check out?")
        equipment = self._resolve_equipment(intent, tenant_id)
        name, code, equipment_id = equipment.name, equipment.code, equipment.id

        user_id = actor_user_id(actor)
        if user_id is None:
            return CommandResult(success=False, message="Only a signed-in user can check out equipment.",
                                 error='INVALID_ACTOR', equipment_id=equipment_id)

        loan_days = self.settings.default_loan_days
        try:
            transaction = self.transactions.checkout(
                equipment_id,
                user_id,
                due_date=self.workflow.clock() + timedelta(days=loan_days),
                checked_out_by=actor,
                notes=WorkflowNarrator.voice_checkout_notes(intent.transcript),
                tenant_id=tenant_id,
            )
        except WorkflowFatalError:
            raise
        except WorkflowDomainError as e:
            return CommandResult(
                success=False,
                message=f"I couldn't check out {name}. {e}",
                error=e.error_code,
                equipment_id=equipment_id,
            )

        return CommandResult(
            success=True,
            message=f"Successfully checked out {name} ({code}). Due back in {loan_days} days.",
            data={'transaction': transaction.to_dict()},
            equipment_id=equipment_id,
        )

    def _checkin(self, intent: Intent, actor: str, tenant_id: Optional[int]) -> CommandResult:
        if intent.equipment is None:
            return self._follow_up("What equipment would you like to return?")
        equipment = self._resolve_equipment(intent, tenant_id)
        name, code, equipment_id = equipment.name, equipment.code, equipment.id

        transaction = self.transactions.find_open_transaction(equipment_id)
        if transaction is None:
            return CommandResult(
                success=False,
                message=f"{name} is not currently checked out.",
                error='NOT_CHECKED_OUT',
                equipment_id=equipment_id,
            )

        try:
            transaction = self.transactions.checkin(
                transaction.id,
                actor,
                notes=WorkflowNarrator.voice_checkin_notes(intent.transcript),
                tenant_id=tenant_id,
            )
        except WorkflowFatalError:
            raise
        except WorkflowDomainError as e:
            return CommandResult(
                success=False,
                message=f"I couldn't return {name}. {e}",
                error=e.error_code,
                equipment_id=equipment_id,
            )

        return CommandResult(
            success=True,
            message=f"Successfully returned {name} ({code}).",
            data={'transaction': transaction.to_dict()},
            equipment_id=equipment_id,
        )

    def _find(self, intent: Intent, actor: str, tenant_id: Optional[int]) -> CommandResult:
        if intent.equipment is None:
            return self._follow_up("What equipment are you looking for?")
        equipment = self._resolve_equipment(intent, tenant_id)

        message = f"{equipment.name} ({equipment.code}) is currently {_readable(equipment.status)}"
        if equipment.location:
            message += f" and located in {equipment.location.name}"

        transaction = self.transactions.find_open_transaction(equipment.id)
        if transaction is not None and transaction.holder is not None:
            message += f". It's checked out by {transaction.holder.full_name}"

        data = equipment.to_dict()
        data['current_transaction'] = transaction.to_dict() if transaction else None
        return CommandResult(
            success=True,
            message=message,
            data={'equipment': data},
            equipment_id=equipment.id,
        )

    def _get_status(self, intent: Intent, actor: str, tenant_id: Optional[int]) -> CommandResult:
        if intent.equipment is None:
            return self._follow_up("Which equipment's status do you want to check?")
        return self._find(intent, actor, tenant_id)

    def _set_status(self, intent: Intent, actor: str, tenant_id: Optional[int]) -> CommandResult:
        if intent.equipment is None or intent.status is None:
            return CommandResult(
                success=False,
                message="Please specify both the equipment and the status you want to set.",
                error='MISSING_ENTITY',
            )
        # A loan needs an open transaction for the sweep and for returns
        if intent.status.status == EquipmentStatus.CHECKED_OUT.value:
            return self._checkout(intent, actor, tenant_id)

        equipment = self._resolve_equipment(intent, tenant_id)
        name, equipment_id = equipment.name, equipment.id
        status = intent.status.status

        result = self.workflow.attempt_transition(
            equipment_id,
            status,
            actor,
            reason=WorkflowNarrator.voice_status_reason(intent.transcript),
            metadata={'source': 'voice_command'},
            tenant_id=tenant_id,
        )

        message = f"Successfully set {name} status to {_readable(result.new_status)}."
        if result.requires_approval:
            message += " This change has been flagged for approval."
        return CommandResult(
            success=True,
            message=message,
            data=result.to_dict(),
            equipment_id=equipment_id,
        )

    def _list(self, intent: Intent, actor: str, tenant_id: Optional[int]) -> CommandResult:
        equipment = self.store.find_equipment(tenant_id=tenant_id, limit=LIST_LIMIT)
        counts = Counter(item.status for item in equipment)

        if equipment:
            summary = ', '.join(f"{count} {_readable(status)}" for status, count in sorted(counts.items()))
            message = f"You have {len(equipment)} equipment items: {summary}."
        else:
            message = "You have no equipment items."

        return CommandResult(
            success=True,
            message=message,
            data={
                'total': len(equipment),
                'status_breakdown': dict(counts),
                'equipment': [
                    {'name': item.name, 'code': item.code, 'status': item.status,
                     'category': item.category.name if item.category else None}
                    for item in equipment
                ],
            },
        )

    def _help(self, intent: Intent, actor: str, tenant_id: Optional[int]) -> CommandResult:
        return CommandResult(
            success=True,
            message="I can help you manage equipment with voice commands. Here's what I can do:",
            data={'commands': list(HELP_COMMANDS)},
            suggestions=list(HELP_SUGGESTIONS),
        )
