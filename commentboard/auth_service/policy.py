"""
Access policy decorators.

    @authenticate_token  -> request must carry a valid token for an active user
    @optional_auth       -> identify the caller if possible, otherwise anonymous

Both leave the resolved user row in `flask.g.current_user` (None when
anonymous). Ownership checks live with the resource they protect.
"""

from functools import wraps
from typing import Any, Callable, Dict, Optional

from flask import g

from commentboard.auth_service import users
from commentboard.auth_service.utils import decode_token, get_bearer_token
from commentboard.errors import AuthError


def _resolve_user(token: str) -> Dict[str, Any]:
    user_id = decode_token(token)
    user = users.get_user_by_id(user_id)
    if not user or not user["is_active"]:
        raise AuthError("Invalid token")
    return user


def authenticate_token(view: Callable) -> Callable:
    @wraps(view)
    def wrapper(*args, **kwargs):
        token = get_bearer_token()
        if not token:
            raise AuthError("Access token required")
        g.current_user = _resolve_user(token)
        return view(*args, **kwargs)

    return wrapper


def optional_auth(view: Callable) -> Callable:
    @wraps(view)
    def wrapper(*args, **kwargs):
        g.current_user = None
        token = get_bearer_token()
        if token:
            try:
                g.current_user = _resolve_user(token)
            except AuthError:
                g.current_user = None
        return view(*args, **kwargs)

    return wrapper


def current_user_id() -> Optional[int]:
    user = g.get("current_user")
    return user["user_id"] if user else None
