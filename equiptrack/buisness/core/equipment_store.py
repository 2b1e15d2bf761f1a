"""
Equipment store

Read/write access to equipment records and their open transactions. All queries
exclude soft-deleted equipment unless asked otherwise and are tenant scoped when a
tenant id is given (``None`` means every tenant, used by system jobs).
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, or_

from equiptrack import db
from equiptrack.data.equipment.equipment import Equipment
from equiptrack.data.equipment.transaction import EquipmentTransaction
from equiptrack.data.equipment.statuses import OPEN_TRANSACTION_STATUSES


@dataclass(frozen=True)
class EquipmentSummary:
    """Snapshot of the fields the resolver matches against."""
    id: int
    tenant_id: int
    name: str
    code: str
    status: str
    location: Optional[str] = None

    @classmethod
    def from_equipment(cls, equipment: Equipment) -> 'EquipmentSummary':
        return cls(
            id=equipment.id,
            tenant_id=equipment.tenant_id,
            name=equipment.name,
            code=equipment.code,
            status=equipment.status,
            location=equipment.location.name if equipment.location else None,
        )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'code': self.code,
            'status': self.status,
            'location': self.location,
        }


class EquipmentStore:

    def _base_query(self, tenant_id=None, include_deleted=False):
        query = Equipment.query
        if tenant_id is not None:
            query = query.filter(Equipment.tenant_id == tenant_id)
        if not include_deleted:
            query = query.filter(Equipment.is_deleted.is_(False))
        return query

    def get(self, equipment_id: int, tenant_id: Optional[int] = None) -> Optional[Equipment]:
        """Fetch one live equipment record, or None if missing, deleted or in another tenant."""
        equipment = db.session.get(Equipment, equipment_id)
        if equipment is None or equipment.is_deleted:
            return None
        if tenant_id is not None and equipment.tenant_id != tenant_id:
            return None
        return equipment

    def find_equipment(self, tenant_id: Optional[int] = None, status: Optional[str] = None,
                       ids: Optional[Iterable[int]] = None, include_deleted: bool = False,
                       limit: Optional[int] = None) -> List[Equipment]:
        query = self._base_query(tenant_id, include_deleted)
        if status is not None:
            query = query.filter(Equipment.status == str(getattr(status, 'value', status)))
        if ids is not None:
            query = query.filter(Equipment.id.in_(list(ids)))
        query = query.order_by(Equipment.name, Equipment.id)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def update_status(self, equipment: Equipment, status: str, changed_at=None) -> Equipment:
        equipment.status = str(getattr(status, 'value', status))
        if changed_at is not None:
            equipment.last_status_change = changed_at
        return equipment

    def search(self, query: str, tenant_id: Optional[int] = None, limit: int = 10) -> List[Equipment]:
        """Case-insensitive substring match on name, code or description."""
        text = (query or '').strip()
        if not text:
            return []
        return (
            self._base_query(tenant_id)
            .filter(or_(
                Equipment.name.icontains(text, autoescape=True),
                Equipment.code.icontains(text, autoescape=True),
                Equipment.description.icontains(text, autoescape=True),
            ))
            .order_by(Equipment.name, Equipment.id)
            .limit(limit)
            .all()
        )

    def load_corpus(self, tenant_id: Optional[int] = None) -> List[EquipmentSummary]:
        return [EquipmentSummary.from_equipment(e) for e in self.find_equipment(tenant_id=tenant_id)]

    def count_by_status(self, tenant_id: Optional[int] = None) -> Dict[str, int]:
        query = db.session.query(Equipment.status, func.count(Equipment.id)).filter(
            Equipment.is_deleted.is_(False)
        )
        if tenant_id is not None:
            query = query.filter(Equipment.tenant_id == tenant_id)
        return {status: count for status, count in query.group_by(Equipment.status).all()}

    def open_transaction(self, equipment_id: int) -> Optional[EquipmentTransaction]:
        """Most recent CHECKED_OUT or OVERDUE transaction for the equipment."""
        return (
            EquipmentTransaction.query
            .filter(
                EquipmentTransaction.equipment_id == equipment_id,
                EquipmentTransaction.status.in_(OPEN_TRANSACTION_STATUSES),
            )
            .order_by(EquipmentTransaction.checked_out_at.desc(), EquipmentTransaction.id.desc())
            .first()
        )
