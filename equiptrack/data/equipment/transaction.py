from equiptrack import db
from equiptrack.utils.clock import utcnow
from equiptrack.data.equipment.statuses import TransactionStatus, OPEN_TRANSACTION_STATUSES


class EquipmentTransaction(db.Model):
    """
    A custody record: who holds an equipment item and until when.

    At most one transaction per equipment may be open (CHECKED_OUT or OVERDUE).
    """
    __tablename__ = 'transactions'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id'), nullable=False, index=True)
    equipment_id = db.Column(db.Integer, db.ForeignKey('equipment.id'), nullable=False, index=True)
    holder_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    checked_out_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    status = db.Column(db.String(20), nullable=False, default=TransactionStatus.CHECKED_OUT.value)
    checked_out_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    due_date = db.Column(db.DateTime, nullable=False)
    returned_at = db.Column(db.DateTime, nullable=True)
    returned_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    # Relationships (no backrefs)
    equipment = db.relationship('Equipment')
    holder = db.relationship('User', foreign_keys=[holder_id])
    checked_out_by = db.relationship('User', foreign_keys=[checked_out_by_id])
    returned_by = db.relationship('User', foreign_keys=[returned_by_id])

    @property
    def is_open(self):
        return self.status in OPEN_TRANSACTION_STATUSES

    def to_dict(self):
        return {
            'id': self.id,
            'equipment_id': self.equipment_id,
            'holder_id': self.holder_id,
            'status': self.status,
            'checked_out_at': self.checked_out_at.isoformat() if self.checked_out_at else None,
            'due_date': self.due_date.isoformat() if self.due_date else None,
            'returned_at': self.returned_at.isoformat() if self.returned_at else None,
            'notes': self.notes,
        }

    def __repr__(self):
        return f'<EquipmentTransaction {self.id}: equipment={self.equipment_id} {self.status}>'
