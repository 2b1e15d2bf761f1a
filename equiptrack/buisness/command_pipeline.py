"""
Command pipeline wiring

Builds the business objects once per process. Everything here is stateless apart
from the resolver's corpus cache, and every database call goes through the
request-scoped ``db.session``, so one pipeline can serve every request.
"""

from typing import Any, Mapping, Optional

from flask import current_app

from equiptrack.buisness.core.settings import WorkflowSettings
from equiptrack.buisness.core.equipment_store import EquipmentStore
from equiptrack.buisness.core.audit_sink import AuditSink, SqlAuditSink
from equiptrack.buisness.core.notification_sink import NotificationSink, SqlNotificationSink
from equiptrack.buisness.commands.resolver import EquipmentCorpusCache, EquipmentResolver
from equiptrack.buisness.commands.interpreter import CommandInterpreter
from equiptrack.buisness.commands.executor import CommandExecutor
from equiptrack.buisness.transactions.transaction_service import TransactionService
from equiptrack.buisness.workflow.workflow_manager import WorkflowManager
from equiptrack.buisness.workflow.sweeper import AutomaticTransitionSweeper
from equiptrack.utils.clock import utcnow


class CommandPipeline:

    def __init__(self, settings: Optional[WorkflowSettings] = None, clock=utcnow,
                 store: Optional[EquipmentStore] = None,
                 audit_sink: Optional[AuditSink] = None,
                 notification_sink: Optional[NotificationSink] = None):
        self.settings = settings or WorkflowSettings()
        self.clock = clock
        self.store = store or EquipmentStore()
        self.audit_sink = audit_sink or SqlAuditSink()
        self.notification_sink = notification_sink or SqlNotificationSink()

        self.corpus_cache = EquipmentCorpusCache(
            self.store.load_corpus,
            ttl_seconds=self.settings.resolver_cache_ttl_seconds,
            clock=clock,
        )
        self.resolver = EquipmentResolver(self.corpus_cache, self.store)
        self.interpreter = CommandInterpreter(self.resolver)
        self.workflow = WorkflowManager(
            store=self.store,
            audit_sink=self.audit_sink,
            notification_sink=self.notification_sink,
            settings=self.settings,
            clock=clock,
        )
        self.transactions = TransactionService(self.workflow)
        self.executor = CommandExecutor(self.interpreter, self.workflow, self.transactions, self.audit_sink)
        self.sweeper = AutomaticTransitionSweeper(self.workflow, clock=clock)

    @classmethod
    def from_config(cls, config: Mapping[str, Any], **kwargs) -> 'CommandPipeline':
        return cls(settings=WorkflowSettings.from_config(config), **kwargs)


def get_pipeline() -> CommandPipeline:
    """The pipeline registered on the current Flask app."""
    return current_app.extensions['equiptrack']
