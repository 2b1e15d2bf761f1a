"""
WorkflowNarrator - Message composer for workflow events

Keeps user-facing and notification wording out of the transition logic.
"""

from typing import Optional


class WorkflowNarrator:
    """
    Composes messages for status transitions, notifications and sweeps.
    """

    OVERDUE_SWEEP_REASON = "Automatic transition - equipment overdue"
    MAINTENANCE_SWEEP_REASON = "Automatic transition - scheduled maintenance due"
    DEFAULT_MAINTENANCE_DESCRIPTION = "Routine maintenance"

    @staticmethod
    def status_changed(equipment, from_status: str, to_status: str, reason: Optional[str] = None) -> str:
        """Message for a completed transition"""
        message = f"{equipment.name} status changed: {from_status} → {to_status}"
        if reason:
            message += f" | Reason: {reason}"
        return message

    @staticmethod
    def damaged_notification(equipment, reason: Optional[str]) -> str:
        return f"{equipment.name} ({equipment.code}) has been marked as damaged: {reason}"

    @staticmethod
    def lost_notification(equipment) -> str:
        return f"{equipment.name} ({equipment.code}) has been reported as lost"

    @staticmethod
    def maintenance_notification(equipment) -> str:
        return f"{equipment.name} ({equipment.code}) requires maintenance"

    @staticmethod
    def voice_status_reason(transcript: str) -> str:
        return f'Status changed via voice command: "{transcript}"'

    @staticmethod
    def voice_checkout_notes(transcript: str) -> str:
        return f'Checked out via voice command: "{transcript}"'

    @staticmethod
    def voice_checkin_notes(transcript: str) -> str:
        return f'Returned via voice command: "{transcript}"'
