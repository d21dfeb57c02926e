"""Map domain exceptions to HTTP-style status codes for the outer request layer."""

from taskflow.domain.exceptions import TaskflowException

_ERROR_CODE_STATUS: dict[str, int] = {
    "VALIDATION_ERROR": 400,
    "IMMUTABLE_FIELD": 400,
    "PERMISSION_DENIED": 403,
    "RESOURCE_NOT_FOUND": 404,
    "SERVICE_UNAVAILABLE": 503,
}


def status_code_for(exc: Exception) -> int:
    """Return the status for a domain exception; 400 for unknown codes, 500 for anything else."""
    if isinstance(exc, TaskflowException):
        return _ERROR_CODE_STATUS.get(exc.error_code, 400)
    return 500


def error_response(exc: Exception, debug: bool = False) -> tuple[int, dict]:
    """Return (status, body). Non-domain errors only expose their message when debug is on."""
    status = status_code_for(exc)
    if isinstance(exc, TaskflowException):
        return status, exc.to_dict()
    return status, {
        "error": "INTERNAL_ERROR",
        "message": str(exc) if debug else "Internal server error",
        "details": {},
    }
