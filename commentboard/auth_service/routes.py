"""
Authentication service route handlers.

Provides routes for:
- User registration
- User login (username or email)
- Profile retrieval and update
- Email/username availability checks

Credential handling is delegated to `auth_service.users` and JWT logic to
`auth_service.utils`. Errors raised there are turned into JSON responses by
the application's error handlers.
"""

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, g, request, Response

from commentboard.auth_service import users
from commentboard.auth_service.policy import authenticate_token
from commentboard.responses import success_response

auth_bp = Blueprint("auth", __name__)


# --- REQUEST LOGGING ---
@auth_bp.before_request
def before_request() -> None:
    """Log the method and path of every request to the authentication service."""
    logging.info(f"[Auth] Incoming {request.method} {request.path}")


@auth_bp.after_request
def after_request(response: Response) -> Response:
    """
    Log the response status code for every request.

    Args:
        response (Response): The Flask response object.

    Returns:
        Response: The passed-through response object.
    """
    logging.info(f"[Auth] Response {response.status}")
    return response


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


# --- REGISTER ---
@auth_bp.route("/register", methods=["POST"])
def register() -> Tuple[Response, int]:
    """
    Register a new user.

    Expects a JSON body with:
    - username (str): 3-30 letters, digits or underscores.
    - email (str): Unique, stored lowercased.
    - password (str): Minimum 6 characters.
    - firstName (str)
    - lastName (str)

    Returns:
        201: { user, token }
        400: Missing or malformed fields.
        409: Email or username already registered.
    """
    data = _json_body()

    user, token = users.register_user(
        data.get("username"),
        data.get("email"),
        data.get("password"),
        data.get("firstName"),
        data.get("lastName"),
    )

    return success_response("User registered successfully", {"user": user, "token": token}, 201)


# --- LOGIN ---
@auth_bp.route("/login", methods=["POST"])
def login() -> Tuple[Response, int]:
    """
    Authenticate a user and return a JWT.

    Expects a JSON body with:
    - identifier (str): username or email
    - password (str)

    Returns:
        200: { user, token }
        400: Missing credentials.
        401: Invalid credentials.
    """
    data = _json_body()

    user, token = users.authenticate(data.get("identifier"), data.get("password"))

    return success_response("Login successful", {"user": user, "token": token})


# --- GET CURRENT USER ---
@auth_bp.route("/profile", methods=["GET"])
@authenticate_token
def get_profile() -> Tuple[Response, int]:
    """
    Return the authenticated user's profile.

    Requires Authorization header: Bearer <token>
    """
    return success_response("Profile retrieved successfully", {"user": users.public_user(g.current_user)})


# --- UPDATE CURRENT USER ---
@auth_bp.route("/profile", methods=["PUT"])
@authenticate_token
def update_profile() -> Tuple[Response, int]:
    """
    Update the authenticated user's first and/or last name.

    Existing comments keep the author name they were posted with.

    Returns:
        200: { user }
        400: No valid fields provided, or invalid values.
    """
    data = _json_body()

    user = users.update_profile(
        g.current_user["user_id"],
        first_name=data.get("firstName"),
        last_name=data.get("lastName"),
    )

    return success_response("Profile updated successfully", {"user": user})


# --- CHECK AVAILABILITY ---
@auth_bp.route("/check-availability", methods=["POST"])
def check_availability() -> Tuple[Response, int]:
    """
    Check whether an email and/or username can still be registered.

    Expects a JSON body with either or both of:
    - email (str)
    - username (str)

    Returns:
        200: { email?: {available, reason}, username?: {available, reason} }
    """
    data = _json_body()

    checks = users.check_availability(email=data.get("email"), username=data.get("username"))

    return success_response("Availability check completed", checks)
