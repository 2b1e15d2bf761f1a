"""
Voice Stats Service
Presentation service for voice command statistics.

Aggregates VOICE_COMMAND audit entries over a trailing window: volume, success
rate, average confidence and a per-intent breakdown.
"""

from collections import Counter
from datetime import timedelta
from typing import Any, Dict, Optional

from equiptrack.data.audit.audit_log import AuditLog, AuditAction
from equiptrack.utils.clock import utcnow


class VoiceStatsService:
    """
    Service for voice command statistics.
    """

    DEFAULT_WINDOW_DAYS = 30

    @staticmethod
    def get_stats(tenant_id: Optional[int], window_days: int = DEFAULT_WINDOW_DAYS, now=None) -> Dict[str, Any]:
        """
        Statistics for the tenant's voice commands in the trailing window.

        Args:
            tenant_id: Tenant to report on (None for every tenant)
            window_days: Length of the window in days
            now: Reference time, defaults to the current UTC time

        Returns:
            Dictionary with total_commands, success_rate (percent), average_confidence,
            intent_breakdown and period
        """
        since = (now or utcnow()) - timedelta(days=window_days)
        query = AuditLog.query.filter(
            AuditLog.action == AuditAction.VOICE_COMMAND,
            AuditLog.created_at >= since,
        )
        if tenant_id is not None:
            query = query.filter(AuditLog.tenant_id == tenant_id)
        entries = query.all()

        details = [entry.details or {} for entry in entries]
        total = len(details)
        intents = Counter(d.get('intent', 'UNKNOWN') for d in details)
        successes = sum(1 for d in details if d.get('success'))
        confidence_sum = sum(float(d.get('confidence') or 0) for d in details)

        return {
            'total_commands': total,
            'success_rate': round(successes / total * 100, 2) if total else 0,
            'average_confidence': round(confidence_sum / total, 3) if total else 0,
            'intent_breakdown': dict(intents),
            'period': f'{window_days} days',
        }
