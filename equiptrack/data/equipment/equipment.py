from equiptrack import db
from equiptrack.data.core.user_created_base import UserCreatedBase
from equiptrack.data.equipment.statuses import EquipmentStatus, EquipmentCondition


class Equipment(UserCreatedBase):
    """
    A physical item tracked through custody and condition states.

    ``status`` is only written by the workflow state machine. ``version_id`` is the
    optimistic concurrency counter: a flush that finds the row already bumped by another
    writer raises ``StaleDataError``.
    """
    __tablename__ = 'equipment'
    __table_args__ = (
        db.UniqueConstraint('tenant_id', 'code', name='uq_equipment_tenant_code'),
    )

    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id'), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    code = db.Column(db.String(40), nullable=False)
    description = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default=EquipmentStatus.AVAILABLE.value, index=True)
    condition = db.Column(db.String(20), nullable=False, default=EquipmentCondition.GOOD.value)
    location_id = db.Column(db.Integer, db.ForeignKey('locations.id'), nullable=True)
    category_id = db.Column(db.Integer, db.ForeignKey('categories.id'), nullable=True)
    purchase_price = db.Column(db.Float, nullable=True)
    last_maintenance_date = db.Column(db.DateTime, nullable=True)
    last_status_change = db.Column(db.DateTime, nullable=True)
    retired_at = db.Column(db.DateTime, nullable=True)
    retired_reason = db.Column(db.Text, nullable=True)
    is_deleted = db.Column(db.Boolean, default=False, nullable=False)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {'version_id_col': version_id}

    # Relationships (no backrefs)
    tenant = db.relationship('Tenant')
    location = db.relationship('Location')
    category = db.relationship('Category')

    def to_dict(self):
        return {
            'id': self.id,
            'tenant_id': self.tenant_id,
            'name': self.name,
            'code': self.code,
            'description': self.description,
            'status': self.status,
            'condition': self.condition,
            'location': self.location.name if self.location else None,
            'category': self.category.name if self.category else None,
            'purchase_price': self.purchase_price,
            'last_maintenance_date': self.last_maintenance_date.isoformat() if self.last_maintenance_date else None,
            'last_status_change': self.last_status_change.isoformat() if self.last_status_change else None,
        }

    def __repr__(self):
        return f'<Equipment {self.code}: {self.name} ({self.status})>'
