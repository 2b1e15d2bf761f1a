from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from equiptrack.buisness.commands.intents import CommandStage


@dataclass
class CommandResult:
    """Structured outcome of one command. Never raised, always returned."""
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None
    suggestions: List[str] = field(default_factory=list)
    follow_up: Optional[str] = None
    stage: CommandStage = CommandStage.EXECUTED
    error: Optional[str] = None
    equipment_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'message': self.message,
            'data': self.data,
            'suggestions': list(self.suggestions),
            'follow_up': self.follow_up,
            'stage': self.stage.value,
            'error': self.error,
        }
