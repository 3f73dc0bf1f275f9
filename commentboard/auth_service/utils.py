"""
Shared authentication helpers.
Provides bearer token creation and verification.
"""

import os
import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional
from flask import request
from dotenv import load_dotenv

from commentboard.errors import AuthError

# Load .env only once here
load_dotenv()

# Load secrets & configs
JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:
    raise RuntimeError("JWT_SECRET is missing. Set it in .env")

JWT_ALGORITHM = "HS256"
TOKEN_EXPIRATION_MINUTES = int(os.getenv("TOKEN_EXPIRATION_MINUTES", 10080))  # Default 7 days


# --- JWT CREATION ---
def create_token(user_id: int) -> str:
    """
    Generates a new JWT for a given user.

    Args:
        user_id (int): The unique ID of the user.

    Returns:
        str: Encoded JWT string.
    """
    now = datetime.now(timezone.utc)

    payload = {
        "sub": str(user_id),
        "exp": now + timedelta(minutes=TOKEN_EXPIRATION_MINUTES),
        "iat": now
    }

    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


# --- JWT VALIDATION ---
def decode_token(token: str) -> int:
    """
    Verify a JWT and return the user id it was issued for.

    Args:
        token (str): JWT string.

    Returns:
        int: The user id from the `sub` claim.

    Raises:
        AuthError: If the token is malformed, tampered with, or expired.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthError("Invalid token")

    try:
        return int(payload["sub"])
    except (TypeError, ValueError):
        raise AuthError("Invalid token")


def verify_token(token: str) -> Optional[int]:
    """
    Validate a JWT without raising.

    Returns:
        int: user_id if valid, None otherwise.
    """
    try:
        return decode_token(token)
    except AuthError:
        return None


def get_bearer_token() -> Optional[str]:
    """
    Read the token from the `Authorization: Bearer <token>` header of the
    current request.

    Returns:
        str: The raw token, or None if the header is absent or malformed.
    """
    auth = request.headers.get("Authorization", "")

    if not auth.startswith("Bearer "):
        return None

    token = auth.split(" ", 1)[1].strip()
    return token or None
