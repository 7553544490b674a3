"""
Base domain exceptions.
"""

from typing import Any, Dict, Optional


class TresorierException(Exception):
    """Base exception for all Tresorier domain errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(TresorierException):
    """Raised when entity is not found in repository."""

    def __init__(self, entity_type: str, entity_id: str, code: str = "NOT_FOUND"):
        message = f"{entity_type} with ID {entity_id} not found"
        super().__init__(message, code=code)
        self.entity_type = entity_type
        self.entity_id = entity_id


class ConflictError(TresorierException):
    """Raised when an operation conflicts with current state."""

    def __init__(self, message: str):
        super().__init__(message, code="CONFLICT")


class ValidationError(TresorierException):
    """Raised when entity validation fails."""

    def __init__(self, field: str, reason: str):
        message = f"Validation failed for {field}: {reason}"
        super().__init__(message, code="VALIDATION_ERROR", details={"field": field})
        self.field = field
        self.reason = reason


class InvalidStateTransitionError(TresorierException):
    """Raised when an entity is moved to a status it cannot reach."""

    def __init__(self, entity_type: str, current: str, target: str):
        message = f"{entity_type} cannot transition from {current} to {target}"
        super().__init__(message, code="INVALID_STATE_TRANSITION")
        self.current = current
        self.target = target
