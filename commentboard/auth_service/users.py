"""
Credential store.

Persists users, enforces unique usernames/emails, and hashes and verifies
passwords with Argon2. Route handlers call the service functions
(`register_user`, `authenticate`, `check_availability`, `update_profile`);
those in turn call the small SQL helpers below, which are the only code that
touches the `users` table.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

import psycopg2.errors
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from commentboard.auth_service.utils import create_token
from commentboard.database.db_connection import db_cursor
from commentboard.errors import AuthError, ConflictError, ValidationError

ph = PasswordHasher()

# --- CONSTANTS FOR VALIDATION ---
PASSWORD_MIN_LENGTH = 6
NAME_MAX_LENGTH = 50
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]{3,30}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

EMAIL_TAKEN = "User already registered with this email address"
USERNAME_TAKEN = "Username is already taken"
INVALID_CREDENTIALS = "Invalid credentials"

USER_COLUMNS = """
    user_id, username, email, password_hash, first_name, last_name,
    is_active, last_login, created_at
"""


def _iso(value: Any) -> Optional[str]:
    return value.isoformat() if value is not None else None


def full_name(user: Dict[str, Any]) -> str:
    return f"{user['first_name']} {user['last_name']}"


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """
    Outward-facing representation of a user row. Never includes the
    password hash.
    """
    return {
        "id": user["user_id"],
        "username": user["username"],
        "email": user["email"],
        "firstName": user["first_name"],
        "lastName": user["last_name"],
        "fullName": full_name(user),
        "isActive": user["is_active"],
        "lastLogin": _iso(user.get("last_login")),
        "createdAt": _iso(user.get("created_at")),
    }


# --- SQL HELPERS ---
def _conflict_message(error: psycopg2.errors.UniqueViolation) -> str:
    constraint = getattr(error.diag, "constraint_name", None) or str(error)
    return USERNAME_TAKEN if "username" in constraint else EMAIL_TAKEN


def insert_user(username: str, email: str, password_hash: str,
                first_name: str, last_name: str) -> Dict[str, Any]:
    """
    Insert a user row.

    Raises:
        ConflictError: If the username or email violates a UNIQUE constraint.
    """
    sql = f"""
        INSERT INTO users (username, email, password_hash, first_name, last_name)
        VALUES (%s, %s, %s, %s, %s)
        RETURNING {USER_COLUMNS};
    """
    try:
        with db_cursor() as cur:
            cur.execute(sql, (username, email, password_hash, first_name, last_name))
            return dict(cur.fetchone())
    except psycopg2.errors.UniqueViolation as e:
        raise ConflictError(_conflict_message(e))


def find_user_by_identifier(identifier: str) -> Optional[Dict[str, Any]]:
    """Match the identifier against username OR lowercased email in one query."""
    sql = f"""
        SELECT {USER_COLUMNS}
        FROM users
        WHERE username = %s OR email = %s
        LIMIT 1;
    """
    with db_cursor() as cur:
        cur.execute(sql, (identifier, identifier.lower()))
        row = cur.fetchone()
    return dict(row) if row else None


def get_user_by_id(user_id: int) -> Optional[Dict[str, Any]]:
    sql = f"SELECT {USER_COLUMNS} FROM users WHERE user_id = %s;"
    with db_cursor() as cur:
        cur.execute(sql, (user_id,))
        row = cur.fetchone()
    return dict(row) if row else None


def record_login(user_id: int, new_password_hash: Optional[str] = None) -> Dict[str, Any]:
    """Stamp last_login, optionally replacing an outdated password hash."""
    sql = f"""
        UPDATE users
        SET last_login = CURRENT_TIMESTAMP,
            password_hash = COALESCE(%s, password_hash)
        WHERE user_id = %s
        RETURNING {USER_COLUMNS};
    """
    with db_cursor() as cur:
        cur.execute(sql, (new_password_hash, user_id))
        return dict(cur.fetchone())


def email_exists(email: str) -> bool:
    with db_cursor() as cur:
        cur.execute("SELECT 1 FROM users WHERE email = %s;", (email,))
        return cur.fetchone() is not None


def username_exists(username: str) -> bool:
    with db_cursor() as cur:
        cur.execute("SELECT 1 FROM users WHERE username = %s;", (username,))
        return cur.fetchone() is not None


def update_user_names(user_id: int, fields: Dict[str, str]) -> Optional[Dict[str, Any]]:
    set_clause = ", ".join(f"{k} = %s" for k in fields)
    set_clause += ", updated_at = CURRENT_TIMESTAMP"
    values = list(fields.values()) + [user_id]

    sql = f"UPDATE users SET {set_clause} WHERE user_id = %s RETURNING {USER_COLUMNS};"

    with db_cursor() as cur:
        cur.execute(sql, values)
        row = cur.fetchone()
    return dict(row) if row else None


# --- VALIDATION ---
def _clean(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _name_errors(label: str, value: str) -> List[str]:
    if not value:
        return [f"{label} is required"]
    if len(value) > NAME_MAX_LENGTH:
        return [f"{label} cannot exceed {NAME_MAX_LENGTH} characters"]
    return []


def validate_registration(username: Any, email: Any, password: Any,
                          first_name: Any, last_name: Any) -> Dict[str, str]:
    """
    Normalise and validate registration input.

    Returns:
        dict: Cleaned values (trimmed names, lowercased email).

    Raises:
        ValidationError: With one message per offending field.
    """
    cleaned = {
        "username": _clean(username),
        "email": _clean(email).lower(),
        "password": password if isinstance(password, str) else "",
        "first_name": _clean(first_name),
        "last_name": _clean(last_name),
    }

    if not all(cleaned.values()):
        missing = [f"{field} is required" for field, value in cleaned.items() if not value]
        raise ValidationError("All fields are required", missing)

    errors: List[str] = []
    if not USERNAME_PATTERN.match(cleaned["username"]):
        errors.append("Username must be 3-30 characters of letters, numbers and underscores")
    if not EMAIL_PATTERN.match(cleaned["email"]):
        errors.append("Please enter a valid email address")
    if len(cleaned["password"]) < PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    errors += _name_errors("First name", cleaned["first_name"])
    errors += _name_errors("Last name", cleaned["last_name"])

    if errors:
        raise ValidationError("Validation failed", errors)
    return cleaned


# --- SERVICE OPERATIONS ---
def register_user(username: Any, email: Any, password: Any,
                  first_name: Any, last_name: Any) -> Tuple[Dict[str, Any], str]:
    """
    Create an account and issue its first token.

    Returns:
        tuple: (public user dict, token)

    Raises:
        ValidationError: Missing or malformed fields.
        ConflictError: Email or username already registered.
    """
    data = validate_registration(username, email, password, first_name, last_name)

    user = insert_user(
        data["username"],
        data["email"],
        ph.hash(data["password"]),
        data["first_name"],
        data["last_name"],
    )
    logging.info(f"[Auth] Registered user {user['user_id']} ({user['username']})")

    return public_user(user), create_token(user["user_id"])


def authenticate(identifier: Any, password: Any) -> Tuple[Dict[str, Any], str]:
    """
    Log in with a username or email plus password.

    Every failure (unknown identifier, deactivated account, wrong password)
    raises the same AuthError so callers cannot tell which one occurred.

    Returns:
        tuple: (public user dict, token)
    """
    identifier = _clean(identifier)
    if not identifier or not isinstance(password, str) or not password:
        raise ValidationError("Email/username and password are required")

    user = find_user_by_identifier(identifier)
    if not user or not user["is_active"]:
        logging.warning(f"[Auth] Failed login for identifier={identifier!r}")
        raise AuthError(INVALID_CREDENTIALS)

    try:
        ph.verify(user["password_hash"], password)
    except (VerificationError, InvalidHashError):
        logging.warning(f"[Auth] Failed login for identifier={identifier!r}")
        raise AuthError(INVALID_CREDENTIALS)

    new_hash = ph.hash(password) if ph.check_needs_rehash(user["password_hash"]) else None
    user = record_login(user["user_id"], new_hash)

    return public_user(user), create_token(user["user_id"])


def check_availability(email: Any = None, username: Any = None) -> Dict[str, Dict[str, Any]]:
    """
    Report whether an email and/or username is free. Each field is checked
    only when provided.

    Raises:
        ValidationError: If a provided value is not a string.
    """
    for label, value in (("email", email), ("username", username)):
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"{label} must be a string")

    checks: Dict[str, Dict[str, Any]] = {}

    if email and email.strip():
        taken = email_exists(email.strip().lower())
        checks["email"] = {
            "available": not taken,
            "reason": "Email is already registered" if taken else "Email is available",
        }

    if username and username.strip():
        taken = username_exists(username.strip())
        checks["username"] = {
            "available": not taken,
            "reason": USERNAME_TAKEN if taken else "Username is available",
        }

    return checks


def update_profile(user_id: int, first_name: Any = None, last_name: Any = None) -> Dict[str, Any]:
    """
    Change the display name of a user. Comments keep the name they were
    posted under.
    """
    fields: Dict[str, str] = {}
    errors: List[str] = []

    if first_name is not None:
        fields["first_name"] = _clean(first_name)
        errors += _name_errors("First name", fields["first_name"])
    if last_name is not None:
        fields["last_name"] = _clean(last_name)
        errors += _name_errors("Last name", fields["last_name"])

    if not fields:
        raise ValidationError("No valid fields provided")
    if errors:
        raise ValidationError("Validation failed", errors)

    user = update_user_names(user_id, fields)
    if not user:
        raise AuthError("User not found")
    return public_user(user)
