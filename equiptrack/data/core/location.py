from equiptrack import db
from equiptrack.data.core.user_created_base import UserCreatedBase


class Location(UserCreatedBase):
    __tablename__ = 'locations'

    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id'), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    is_active = db.Column(db.Boolean, default=True)

    def __repr__(self):
        return f'<Location {self.name}>'


class Category(UserCreatedBase):
    __tablename__ = 'categories'

    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id'), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)

    def __repr__(self):
        return f'<Category {self.name}>'
