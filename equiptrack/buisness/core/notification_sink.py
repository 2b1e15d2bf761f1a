"""
Notification sink

Delivers workflow notifications to an audience (a role group or a single user id).
Callers treat delivery as fire-and-forget.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from equiptrack import db
from equiptrack.data.audit.notification import Notification


class NotificationSink(ABC):

    @abstractmethod
    def notify(self, audience: str, title: str, message: str,
               metadata: Optional[Dict[str, Any]] = None, tenant_id: Optional[int] = None,
               notification_type: str = 'INFO') -> None:
        """Deliver one notification."""


class SqlNotificationSink(NotificationSink):
    """Stores notifications in the ``notifications`` table, committed on its own."""

    def notify(self, audience, title, message, metadata=None, tenant_id=None, notification_type='INFO'):
        notification = Notification(
            tenant_id=tenant_id,
            audience=audience,
            title=title,
            message=message,
            type=notification_type,
            details=metadata or {},
        )
        db.session.add(notification)
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
