"""
Equipment History Service
Presentation service for an equipment item's status history.
"""

from typing import Any, Dict, List

from equiptrack.data.audit.audit_log import AuditLog


class EquipmentHistoryService:

    @staticmethod
    def format_entry(entry: AuditLog) -> Dict[str, Any]:
        details = entry.details or {}
        return {
            'id': entry.id,
            'timestamp': entry.created_at.isoformat() if entry.created_at else None,
            'actor': entry.actor,
            'previous_status': details.get('previous_status'),
            'new_status': details.get('new_status'),
            'reason': details.get('reason'),
            'requires_approval': bool(details.get('requires_approval')),
            'automatic': bool((details.get('metadata') or {}).get('auto_transition')),
        }

    @staticmethod
    def format_history(entries: List[AuditLog]) -> List[Dict[str, Any]]:
        return [EquipmentHistoryService.format_entry(entry) for entry in entries]
