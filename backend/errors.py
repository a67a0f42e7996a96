"""Error taxonomy for the tasting core.

Every error carries a human-readable reason that is passed straight to the
client, plus the HTTP status it maps to.
"""


class TastingError(Exception):
    status_code = 400
    code = "error"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

    def to_dict(self) -> dict:
        return {"detail": self.reason, "error": self.code}


class NotFound(TastingError):
    status_code = 404
    code = "not_found"


class PermissionDenied(TastingError):
    status_code = 403
    code = "permission_denied"


class InvalidState(TastingError):
    status_code = 400
    code = "invalid_state"


class InvalidOperation(TastingError):
    status_code = 400
    code = "invalid_operation"


class ResourceExhausted(TastingError):
    status_code = 500
    code = "resource_exhausted"


class ValidationError(TastingError):
    status_code = 422
    code = "validation_error"
