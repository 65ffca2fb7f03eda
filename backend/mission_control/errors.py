"""
Domain errors raised by the service layer.

Every error carries the HTTP status and machine-readable code the API
exception handler renders, so routes never translate them by hand.
"""
from typing import Optional


class MissionControlError(Exception):
    """Base class for all domain failures."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "error": self.code}


class NotFoundError(MissionControlError):
    """Referenced id is absent."""

    status_code = 404
    code = "not_found"

    def __init__(self, entity: str, entity_id=None):
        self.entity = entity
        self.entity_id = entity_id
        if entity_id is None:
            message = f"{entity} not found"
        else:
            message = f"{entity} {entity_id} not found"
        super().__init__(message)


class UnauthorizedError(MissionControlError):
    """No resolvable acting identity."""

    status_code = 401
    code = "unauthorized"


class PermissionDeniedError(MissionControlError):
    """Acting identity lacks the privilege level the operation needs."""

    status_code = 403
    code = "permission_denied"


class InvalidStateError(MissionControlError):
    """Operation is not allowed from the record's current state."""

    status_code = 409
    code = "invalid_state"


class InvalidTransitionError(InvalidStateError):
    """Raised when a deliverable status transition is not in the workflow table."""

    code = "invalid_transition"

    def __init__(self, current: str, target: str, reason: Optional[str] = None):
        self.current = current
        self.target = target
        super().__init__(reason or f"Invalid transition: {current} → {target}")


class VersionConflictError(InvalidStateError):
    """Another writer bumped the deliverable version between read and write."""

    code = "version_conflict"

    def __init__(self, deliverable_id: int, observed_version: int):
        self.deliverable_id = deliverable_id
        self.observed_version = observed_version
        super().__init__(
            f"Deliverable {deliverable_id} changed concurrently (observed version {observed_version})"
        )


class ValidationError(MissionControlError):
    """Malformed enum value or missing required field."""

    status_code = 422
    code = "validation_error"
