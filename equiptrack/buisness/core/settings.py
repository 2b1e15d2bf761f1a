"""
Workflow settings

Thresholds and defaults used by the workflow, sweeper and command pipeline, lifted
out of the Flask config so the business layer never reads ``current_app`` directly.
"""

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class WorkflowSettings:
    overdue_threshold_hours: int = 72
    maintenance_due_days: int = 30
    lost_approval_value_threshold: float = 500.0
    default_loan_days: int = 7
    resolver_cache_ttl_seconds: int = 300

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'WorkflowSettings':
        defaults = cls()
        return cls(
            overdue_threshold_hours=int(config.get('OVERDUE_THRESHOLD_HOURS', defaults.overdue_threshold_hours)),
            maintenance_due_days=int(config.get('MAINTENANCE_DUE_DAYS', defaults.maintenance_due_days)),
            lost_approval_value_threshold=float(
                config.get('LOST_APPROVAL_VALUE_THRESHOLD', defaults.lost_approval_value_threshold)
            ),
            default_loan_days=int(config.get('DEFAULT_LOAN_DAYS', defaults.default_loan_days)),
            resolver_cache_ttl_seconds=int(
                config.get('RESOLVER_CACHE_TTL_SECONDS', defaults.resolver_cache_ttl_seconds)
            ),
        )
