from equiptrack import db
from equiptrack.utils.clock import utcnow


class Tenant(db.Model):
    """A school or organization. Every equipment record belongs to exactly one tenant."""
    __tablename__ = 'tenants'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    def __repr__(self):
        return f'<Tenant {self.name}>'
