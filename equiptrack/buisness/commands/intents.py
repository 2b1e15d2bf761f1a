"""
Intent types for the command pipeline

An Intent is the classified purpose of one utterance. Entities are a tagged union:
an equipment reference the resolver was confident about, a normalised status, or
free text still needing disambiguation.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

from equiptrack.buisness.core.equipment_store import EquipmentSummary


class IntentKind(str, Enum):
    CHECKOUT = 'CHECKOUT'
    CHECKIN = 'CHECKIN'
    FIND = 'FIND'
    SET_STATUS = 'SET_STATUS'
    GET_STATUS = 'GET_STATUS'
    LIST = 'LIST'
    HELP = 'HELP'
    UNKNOWN = 'UNKNOWN'


class EntityKind(str, Enum):
    EQUIPMENT = 'EQUIPMENT'
    STATUS = 'STATUS'


class CommandStage(str, Enum):
    """INITIAL -> PARSED -> RESOLVED -> EXECUTED, or INITIAL -> UNKNOWN."""
    INITIAL = 'INITIAL'
    PARSED = 'PARSED'
    RESOLVED = 'RESOLVED'
    EXECUTED = 'EXECUTED'
    UNKNOWN = 'UNKNOWN'


@dataclass(frozen=True)
class EquipmentRef:
    equipment: EquipmentSummary
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {'type': 'equipment', 'equipment': self.equipment.to_dict(), 'score': round(self.score, 4)}


@dataclass(frozen=True)
class StatusRef:
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return {'type': 'status', 'status': self.status}


@dataclass(frozen=True)
class FreeText:
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {'type': 'free_text', 'text': self.text}


Entity = Union[EquipmentRef, StatusRef, FreeText]


# Spoken status phrases -> stored status values
STATUS_SYNONYMS: Dict[str, str] = {
    'available': 'AVAILABLE',
    'checked out': 'CHECKED_OUT',
    'checked-out': 'CHECKED_OUT',
    'maintenance': 'MAINTENANCE',
    'in maintenance': 'MAINTENANCE',
    'under maintenance': 'MAINTENANCE',
    'damaged': 'DAMAGED',
    'broken': 'DAMAGED',
    'lost': 'LOST',
    'missing': 'LOST',
    'retired': 'RETIRED',
    'reserved': 'RESERVED',
    'overdue': 'OVERDUE',
}


def normalize_status(text: str) -> str:
    """Map spoken status text to a status value. Unmapped text is uppercased unchanged."""
    cleaned = ' '.join((text or '').strip().lower().split())
    return STATUS_SYNONYMS.get(cleaned, (text or '').strip().upper())


@dataclass
class Intent:
    kind: IntentKind
    confidence: float
    transcript: str
    entities: Dict[EntityKind, Entity] = field(default_factory=dict)
    stage: CommandStage = CommandStage.INITIAL

    @property
    def equipment(self) -> Optional[Entity]:
        return self.entities.get(EntityKind.EQUIPMENT)

    @property
    def status(self) -> Optional[StatusRef]:
        return self.entities.get(EntityKind.STATUS)

    def entities_dict(self) -> Dict[str, Any]:
        return {kind.value: entity.to_dict() for kind, entity in self.entities.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'intent': self.kind.value,
            'confidence': round(self.confidence, 4),
            'transcript': self.transcript,
            'entities': self.entities_dict(),
            'stage': self.stage.value,
        }
