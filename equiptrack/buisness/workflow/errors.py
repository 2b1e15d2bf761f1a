"""
Domain exceptions for the equipment workflow and command pipeline

Everything except WorkflowFatalError is recoverable: the command executor turns it
into an unsuccessful CommandResult. ``error_code`` is the stable identifier used in
structured responses.
"""


class WorkflowDomainError(Exception):
    """Base exception for all workflow domain errors"""
    error_code = 'WORKFLOW_ERROR'


class EquipmentNotFoundError(WorkflowDomainError):
    """Raised when equipment is missing, deleted, or belongs to another tenant"""
    error_code = 'NOT_FOUND'


class InvalidTransitionError(WorkflowDomainError):
    """Raised when a status transition is not in the transition graph"""
    error_code = 'INVALID_TRANSITION'


class ConcurrentTransitionError(InvalidTransitionError):
    """Raised when another writer changed the equipment inside our unit of work"""
    error_code = 'CONCURRENT_MODIFICATION'


class BusinessRuleViolation(WorkflowDomainError):
    """Raised when a business rule rejects an otherwise legal transition"""
    error_code = 'BUSINESS_RULE_VIOLATION'

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class AmbiguousEntityError(WorkflowDomainError):
    """Raised when free text matches more than one equipment item"""
    error_code = 'AMBIGUOUS_ENTITY'

    def __init__(self, message: str, candidates=None):
        super().__init__(message)
        self.candidates = list(candidates or [])


class LowConfidenceError(WorkflowDomainError):
    """Raised when an intent is too uncertain to act on"""
    error_code = 'LOW_CONFIDENCE'

    def __init__(self, message: str, confidence: float = 0.0):
        super().__init__(message)
        self.confidence = confidence


class WorkflowFatalError(WorkflowDomainError):
    """Raised when persistence or a side effect fails; the unit of work was rolled back"""
    error_code = 'FATAL'
