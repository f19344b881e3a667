"""
Error taxonomy for the mentoring API

Every failure the API reports carries a stable machine-readable code, a
human-readable message and the HTTP status it maps to.
"""
from typing import Optional

# code -> (default message, HTTP status)
ERRORS = {
    "improper-payload": (
        "The request body did not contain valid data needed to perform the operation.",
        400,
    ),
    "invalid-token": (
        "Could not find a valid access token in the 'Authorization' header. "
        "Please place a valid bearer token in the 'Authorization' header.",
        401,
    ),
    "not-allowed": (
        "You cannot perform this operation.",
        403,
    ),
    "entity-not-found": (
        "The requested entity was not found.",
        404,
    ),
    "route-not-found": (
        "The requested route was not found. Take a look at the documentation for a list of valid endpoints.",
        404,
    ),
    "entity-already-exists": (
        "An entity with the same ID already exists.",
        409,
    ),
    "precondition-failed": (
        "To perform this action, certain preconditions need to be met. "
        "One or more of these conditions have not been met.",
        412,
    ),
    "backend-error": (
        "An unexpected error occurred while interacting with the backend. "
        "Please try again in a few seconds or report this issue.",
        500,
    ),
    "server-crash": (
        "An unexpected error occurred. Please try again in a few seconds or report this issue.",
        500,
    ),
}


class ServerError(Exception):
    """An error with a code, message and status that is safe to return to the client"""

    code = "server-crash"

    def __init__(self, code: Optional[str] = None, message: Optional[str] = None, status: Optional[int] = None):
        code = code or self.code
        if code not in ERRORS:
            raise ValueError(f"Unknown error code: {code}")

        default_message, default_status = ERRORS[code]
        self.code = code
        self.message = message or default_message
        self.status = status or default_status
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "status": self.status}


class ImproperPayload(ServerError):
    code = "improper-payload"

    def __init__(self, message: Optional[str] = None):
        super().__init__(self.code, message)


class InvalidToken(ServerError):
    code = "invalid-token"

    def __init__(self, message: Optional[str] = None):
        super().__init__(self.code, message)


class NotAllowed(ServerError):
    code = "not-allowed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(self.code, message)


class EntityNotFound(ServerError):
    code = "entity-not-found"

    def __init__(self, message: Optional[str] = None):
        super().__init__(self.code, message)


class EntityAlreadyExists(ServerError):
    code = "entity-already-exists"

    def __init__(self, message: Optional[str] = None):
        super().__init__(self.code, message)


class PreconditionFailed(ServerError):
    code = "precondition-failed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(self.code, message)


class BackendError(ServerError):
    code = "backend-error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(self.code, message)
