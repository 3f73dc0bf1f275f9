"""
Client-side session manager.

State machine:

    UNINITIALIZED --start()--> LOADING --> AUTHENTICATED   (stored token + user)
                                       `-> ANONYMOUS       (nothing stored)

    ANONYMOUS --login()/register()--> LOADING --> AUTHENTICATED
                                              `-> ERROR (message set)
    AUTHENTICATED --logout() or any 401--> ANONYMOUS
    ERROR --clear_error()--> ANONYMOUS

A restored session is trusted without contacting the server; an expired
token is discovered by the first request that gets a 401, which clears the
stored session through the API client's unauthorized hook.
"""

import enum
import json
import logging
from typing import Any, Callable, Dict, List, Optional

from commentboard.client.api import ApiClient, ApiError
from commentboard.client.storage import TOKEN_KEY, USER_KEY


class SessionState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"
    ERROR = "error"


class SessionManager:
    def __init__(self, api: ApiClient, storage=None):
        # The client reads the bearer token from the same storage the session writes to.
        if storage is not None:
            api.storage = storage
        self.api = api
        self.storage = api.storage
        self.api.on_unauthorized = self.handle_unauthorized

        self.state = SessionState.UNINITIALIZED
        self.user: Optional[Dict[str, Any]] = None
        self.token: Optional[str] = None
        self.error: Optional[str] = None
        self._listeners: List[Callable[["SessionManager"], None]] = []

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    @property
    def is_loading(self) -> bool:
        return self.state in (SessionState.UNINITIALIZED, SessionState.LOADING)

    def subscribe(self, listener: Callable[["SessionManager"], None]) -> Callable[[], None]:
        """Register a state-change listener; returns a function that removes it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _transition(self, state: SessionState, user: Optional[Dict[str, Any]] = None,
                    token: Optional[str] = None, error: Optional[str] = None) -> None:
        self.state = state
        self.user = user
        self.token = token
        self.error = error
        for listener in list(self._listeners):
            listener(self)

    def _persist(self, token: str, user: Dict[str, Any]) -> None:
        self.storage.set_item(TOKEN_KEY, token)
        self.storage.set_item(USER_KEY, json.dumps(user))

    def _clear_storage(self) -> None:
        self.storage.remove_item(TOKEN_KEY)
        self.storage.remove_item(USER_KEY)

    # --- TRANSITIONS ---
    def start(self) -> SessionState:
        """Restore a stored session, if there is one."""
        self._transition(SessionState.LOADING)

        token = self.storage.get_item(TOKEN_KEY)
        raw_user = self.storage.get_item(USER_KEY)

        if token and raw_user:
            try:
                user = json.loads(raw_user)
            except ValueError as e:
                logging.error(f"Error restoring session: {e}")
                self._clear_storage()
                self._transition(SessionState.ANONYMOUS)
                return self.state
            self._transition(SessionState.AUTHENTICATED, user=user, token=token)
        else:
            self._transition(SessionState.ANONYMOUS)
        return self.state

    def _authenticate(self, call: Callable[[], Dict[str, Any]], fallback: str) -> Dict[str, Any]:
        self._transition(SessionState.LOADING)
        try:
            response = call()
            data = response["data"]
            user, token = data["user"], data["token"]
        except ApiError as e:
            message = e.message or fallback
            self._transition(SessionState.ERROR, error=message)
            return {"success": False, "error": message, "errors": e.errors}
        except (KeyError, TypeError):
            self._transition(SessionState.ERROR, error=fallback)
            return {"success": False, "error": fallback, "errors": []}

        self._persist(token, user)
        self._transition(SessionState.AUTHENTICATED, user=user, token=token)
        return {"success": True, "data": data}

    def login(self, identifier: str, password: str) -> Dict[str, Any]:
        return self._authenticate(lambda: self.api.login(identifier, password), "Login failed")

    def register(self, username: str, email: str, password: str,
                 first_name: str, last_name: str) -> Dict[str, Any]:
        return self._authenticate(
            lambda: self.api.register(username, email, password, first_name, last_name),
            "Registration failed",
        )

    def logout(self) -> None:
        self._clear_storage()
        self._transition(SessionState.ANONYMOUS)

    def clear_error(self) -> None:
        if self.state is SessionState.ERROR:
            self._transition(SessionState.ANONYMOUS)

    def handle_unauthorized(self) -> None:
        """Called by the API client on any 401 response."""
        self._clear_storage()
        self._transition(SessionState.ANONYMOUS)
