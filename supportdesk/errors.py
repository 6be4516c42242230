# supportdesk/errors.py
"""Error taxonomy shared by the services and the API.

Every error carries a short human-readable message and the HTTP status
it maps to. The ``errors`` blueprint turns them into JSON responses.
"""


class SupportError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(SupportError):
    status_code = 400
    message = "Invalid request"


class Unauthorized(SupportError):
    status_code = 401
    message = "Authentication required"


class Forbidden(SupportError):
    status_code = 403
    message = "Unauthorized"


class NotFound(SupportError):
    status_code = 404
    message = "Not found"


class InternalError(SupportError):
    status_code = 500
    message = "Internal server error"
