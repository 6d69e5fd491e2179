from typing import Any, Dict, Optional


class PredictorError(Exception):
    """
    Base class for expected, recoverable failures.

    Each subclass names a failure kind and the HTTP status the API layer
    renders it with. Anything else raised from a service is unexpected.
    """

    kind = "Error"
    status_code = 400

    def __init__(self, message: str, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": self.kind,
            "message": self.message,
            **self.detail,
        }


class NotFound(PredictorError):
    kind = "NotFound"
    status_code = 404


class InvalidInput(PredictorError):
    kind = "InvalidInput"
    status_code = 422


class FixtureNotOpen(PredictorError):
    kind = "FixtureNotOpen"
    status_code = 409


class Locked(PredictorError):
    kind = "Locked"
    status_code = 423


class EligibilityDenied(PredictorError):
    kind = "EligibilityDenied"
    status_code = 403

    def __init__(self, message: str, completed: int, total: int):
        super().__init__(message, {"progress": {"completed": completed, "total": total}})
        self.completed = completed
        self.total = total


class NotReady(PredictorError):
    kind = "NotReady"
    status_code = 409


class Unauthorized(PredictorError):
    kind = "Unauthorized"
    status_code = 403


class Conflict(PredictorError):
    kind = "Conflict"
    status_code = 409
