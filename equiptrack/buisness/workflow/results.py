"""
Result objects for workflow operations
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class PendingNotification:
    audience: str
    title: str
    message: str
    notification_type: str = 'INFO'
    metadata: Dict[str, Any] = field(default_factory=dict)

    def describe(self) -> str:
        return f"{self.audience}: {self.title}"


@dataclass
class TransitionResult:
    equipment_id: int
    previous_status: str
    new_status: str
    actor: str
    timestamp: datetime
    message: str = ''
    reason: Optional[str] = None
    requires_approval: bool = False
    approval_reason: Optional[str] = None
    side_effect: Optional[str] = None
    notifications: List[str] = field(default_factory=list)
    pending_notifications: List[PendingNotification] = field(default_factory=list, repr=False)
    tenant_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'equipment_id': self.equipment_id,
            'previous_status': self.previous_status,
            'new_status': self.new_status,
            'actor': self.actor,
            'reason': self.reason,
            'timestamp': self.timestamp.isoformat(),
            'requires_approval': self.requires_approval,
            'approval_reason': self.approval_reason,
            'side_effect': self.side_effect,
            'notifications': list(self.notifications),
            'message': self.message,
        }


@dataclass
class SweepFailure:
    equipment_id: Optional[int]
    target_status: str
    error: str

    def to_dict(self) -> Dict[str, Any]:
        return {'equipment_id': self.equipment_id, 'target_status': self.target_status, 'error': self.error}


@dataclass
class SweepResult:
    """
    Result of one sweep over a tenant.
    """
    tenant_id: Optional[int]
    overdue_count: int = 0
    maintenance_count: int = 0
    failures: List[SweepFailure] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tenant_id': self.tenant_id,
            'overdue_count': self.overdue_count,
            'maintenance_count': self.maintenance_count,
            'failures': [f.to_dict() for f in self.failures],
            'error': self.error,
            'success': self.success,
        }
