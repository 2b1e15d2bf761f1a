from equiptrack import db
from equiptrack.utils.clock import utcnow


class AuditAction:
    STATUS_CHANGE = 'STATUS_CHANGE'
    VOICE_COMMAND = 'VOICE_COMMAND'


class AuditLog(db.Model):
    """
    Append-only audit trail.

    Rows are keyed by ``(entity_type, action)``; ``entity_id`` is empty for voice
    commands that never resolved an equipment item.
    """
    __tablename__ = 'audit_logs'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id'), nullable=True, index=True)
    action = db.Column(db.String(30), nullable=False, index=True)
    entity_type = db.Column(db.String(30), nullable=False, default='EQUIPMENT')
    entity_id = db.Column(db.Integer, nullable=True, index=True)
    actor = db.Column(db.String(50), nullable=False)
    details = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'action': self.action,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'actor': self.actor,
            'details': self.details or {},
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<AuditLog {self.action} {self.entity_type}:{self.entity_id}>'
