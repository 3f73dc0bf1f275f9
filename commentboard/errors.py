"""
Error taxonomy shared by every service.

Services raise these exceptions; `register_error_handlers` turns them into the
standard JSON envelope:

    { "success": false, "message": "...", "errors": [...] }
"""

import logging
from typing import List, Optional, Tuple

from flask import Flask, Response
from werkzeug.exceptions import HTTPException

from commentboard.responses import error_response


class AppError(Exception):
    """Base class for errors that map onto an HTTP status code."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[str]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Validation failed"


class AuthError(AppError):
    status_code = 401
    default_message = "Invalid credentials"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Permission denied"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Resource already exists"


class InternalError(AppError):
    status_code = 500


def register_error_handlers(app: Flask) -> None:
    """
    Attach the error handlers that map exceptions to JSON responses.

    Args:
        app (Flask): The application to configure.
    """

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError) -> Tuple[Response, int]:
        if isinstance(error, InternalError):
            logging.error(f"Internal error: {error.message}")
        return error_response(error.message, error.status_code, error.errors)

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException) -> Tuple[Response, int]:
        if error.code == 404:
            return error_response("Route not found", 404)
        if error.code == 405:
            return error_response("Method not allowed", 405)
        return error_response(error.description or error.name, error.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception) -> Tuple[Response, int]:
        logging.exception(f"Unhandled error: {error}")
        return error_response("Internal server error", 500)
