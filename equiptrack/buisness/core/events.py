"""
Audit events

Ephemeral records handed to the audit sink. Both are flattened into ``AuditLog`` rows.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

SYSTEM_ACTOR = 'SYSTEM'


@dataclass
class StatusTransitionEvent:
    equipment_id: int
    previous_status: str
    new_status: str
    actor: str
    timestamp: datetime
    reason: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    tenant_id: Optional[int] = None
    requires_approval: bool = False

    def details(self) -> Dict[str, Any]:
        return {
            'previous_status': self.previous_status,
            'new_status': self.new_status,
            'reason': self.reason,
            'metadata': self.metadata,
            'requires_approval': self.requires_approval,
            'timestamp': self.timestamp.isoformat(),
        }


@dataclass
class VoiceCommandEvent:
    transcript: str
    intent: str
    confidence: float
    entities: Dict[str, Any]
    success: bool
    message: str
    actor: str
    timestamp: datetime
    tenant_id: Optional[int] = None
    equipment_id: Optional[int] = None
    error: Optional[str] = None

    def details(self) -> Dict[str, Any]:
        return {
            'transcript': self.transcript,
            'intent': self.intent,
            'confidence': self.confidence,
            'entities': self.entities,
            'success': self.success,
            'message': self.message,
            'error': self.error,
            'timestamp': self.timestamp.isoformat(),
        }
