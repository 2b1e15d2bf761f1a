"""
Audit sink

Writes status transitions and voice commands to the audit trail. The SQL sink adds
rows to the caller's session and flushes; it never commits, so an audit row is part of
the same unit of work as the change it records.
"""

from abc import ABC, abstractmethod
from typing import Union

from equiptrack import db
from equiptrack.data.audit.audit_log import AuditLog, AuditAction
from equiptrack.buisness.core.events import StatusTransitionEvent, VoiceCommandEvent


class AuditSink(ABC):

    @abstractmethod
    def record(self, event: Union[StatusTransitionEvent, VoiceCommandEvent]) -> None:
        """Append one audit entry for ``event``."""


class SqlAuditSink(AuditSink):

    ENTITY_TYPE = 'EQUIPMENT'

    def record(self, event: Union[StatusTransitionEvent, VoiceCommandEvent]) -> None:
        if isinstance(event, StatusTransitionEvent):
            entry = AuditLog(
                action=AuditAction.STATUS_CHANGE,
                entity_type=self.ENTITY_TYPE,
                entity_id=event.equipment_id,
                actor=str(event.actor),
                tenant_id=event.tenant_id,
                details=event.details(),
                created_at=event.timestamp,
            )
        elif isinstance(event, VoiceCommandEvent):
            entry = AuditLog(
                action=AuditAction.VOICE_COMMAND,
                entity_type=self.ENTITY_TYPE,
                entity_id=event.equipment_id,
                actor=str(event.actor),
                tenant_id=event.tenant_id,
                details=event.details(),
                created_at=event.timestamp,
            )
        else:
            raise TypeError(f"Unsupported audit event: {type(event).__name__}")

        db.session.add(entry)
        db.session.flush()
