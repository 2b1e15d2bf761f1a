"""
Side-effect records created by workflow transitions.
"""

from equiptrack import db
from equiptrack.utils.clock import utcnow


class MaintenanceRequest(db.Model):
    __tablename__ = 'maintenance_requests'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id'), nullable=False)
    equipment_id = db.Column(db.Integer, db.ForeignKey('equipment.id'), nullable=False, index=True)
    requested_by = db.Column(db.String(50), nullable=False)
    description = db.Column(db.Text, nullable=False)
    maintenance_type = db.Column(db.String(20), nullable=False, default='CORRECTIVE')
    priority = db.Column(db.String(20), nullable=False, default='MEDIUM')
    status = db.Column(db.String(20), nullable=False, default='PENDING')
    created_at = db.Column(db.DateTime, default=utcnow)

    equipment = db.relationship('Equipment')

    def __repr__(self):
        return f'<MaintenanceRequest {self.id}: equipment={self.equipment_id} {self.status}>'


class DamageReport(db.Model):
    __tablename__ = 'damage_reports'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id'), nullable=False)
    equipment_id = db.Column(db.Integer, db.ForeignKey('equipment.id'), nullable=False, index=True)
    reported_by = db.Column(db.String(50), nullable=False)
    description = db.Column(db.Text, nullable=False)
    severity = db.Column(db.String(20), nullable=False, default='MEDIUM')
    repair_required = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    equipment = db.relationship('Equipment')

    def __repr__(self):
        return f'<DamageReport {self.id}: equipment={self.equipment_id} {self.severity}>'
