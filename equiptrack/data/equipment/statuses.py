"""
Enumerations for equipment and transaction lifecycles.

Values are persisted as plain strings; members compare equal to their stored text.
"""

from enum import Enum


class EquipmentStatus(str, Enum):
    AVAILABLE = 'AVAILABLE'
    CHECKED_OUT = 'CHECKED_OUT'
    MAINTENANCE = 'MAINTENANCE'
    DAMAGED = 'DAMAGED'
    LOST = 'LOST'
    RETIRED = 'RETIRED'
    RESERVED = 'RESERVED'
    OVERDUE = 'OVERDUE'

    @classmethod
    def parse(cls, value):
        """Return the member for ``value`` (member or text), or None if it is not a status."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


class EquipmentCondition(str, Enum):
    EXCELLENT = 'EXCELLENT'
    GOOD = 'GOOD'
    FAIR = 'FAIR'
    POOR = 'POOR'
    DAMAGED = 'DAMAGED'


class TransactionStatus(str, Enum):
    CHECKED_OUT = 'CHECKED_OUT'
    RETURNED = 'RETURNED'
    OVERDUE = 'OVERDUE'
    LOST = 'LOST'
    DAMAGED = 'DAMAGED'


# A transaction is open while the holder still has the item
OPEN_TRANSACTION_STATUSES = (TransactionStatus.CHECKED_OUT.value, TransactionStatus.OVERDUE.value)
