# server/core/errors.py

"""
Domain errors raised by the stores and the authorization gate.

Routes let these propagate; the handlers registered in main.py turn each one
into a {"error": message} body with the matching status code.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(AppError):
    status_code = 400


class ConflictError(AppError):
    status_code = 400


class AuthError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class UpstreamError(AppError):
    """The AI delegate failed. The message is logged, never returned."""

    status_code = 500
    public_message = "AI service failed to process the request"
