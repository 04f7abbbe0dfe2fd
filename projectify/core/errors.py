"""
Error taxonomy.

Services raise these; the handlers registered in ``create_app`` turn them into
``{"success": false, "message": ...}`` responses with the matching status code.
"""

from typing import Optional


class ProjectifyError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, error: Optional[str] = None):
        self.message = message or self.default_message
        # Field-level detail (validation failures only)
        self.error = error
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"success": False, "message": self.message}
        if self.error:
            body["error"] = self.error
        return body


class ValidationError(ProjectifyError):
    status_code = 400
    default_message = "Validation error"


class AuthenticationError(ProjectifyError):
    status_code = 401
    default_message = "Invalid or expired token"


class AuthorizationError(ProjectifyError):
    status_code = 403
    default_message = "Access denied"


class NotFoundError(ProjectifyError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(ProjectifyError):
    status_code = 409
    default_message = "Resource already exists"


class UnexpectedError(ProjectifyError):
    status_code = 500
    default_message = "Internal server error"
