"""
HTTP client for the comment board API.

Attaches the stored bearer token to every request. Any 401 response clears
the stored session and calls the `on_unauthorized` hook, whichever call
triggered it.
"""

import os
from typing import Any, Callable, Dict, List, Optional

import requests
from dotenv import load_dotenv

from commentboard.client.storage import MemoryStorage, TOKEN_KEY, USER_KEY

load_dotenv()

API_BASE_URL = os.getenv("COMMENTBOARD_API_URL", "http://localhost:3000/api")
REQUEST_TIMEOUT_SECONDS = 10


class ApiError(Exception):
    """An API call failed; carries the server's message and field errors."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or []


class ApiClient:
    def __init__(self, base_url: Optional[str] = None, storage=None,
                 on_unauthorized: Optional[Callable[[], None]] = None,
                 http: Optional[requests.Session] = None):
        self.base_url = (base_url or API_BASE_URL).rstrip("/")
        self.storage = storage if storage is not None else MemoryStorage()
        self.on_unauthorized = on_unauthorized
        self.http = http or requests.Session()
        self.http.headers.update({"Content-Type": "application/json"})

    def _handle_unauthorized(self) -> None:
        self.storage.remove_item(TOKEN_KEY)
        self.storage.remove_item(USER_KEY)
        if self.on_unauthorized:
            self.on_unauthorized()

    def _request(self, method: str, path: str, fallback_message: str, **kwargs) -> Dict[str, Any]:
        headers = {}
        token = self.storage.get_item(TOKEN_KEY)
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = self.http.request(
                method,
                f"{self.base_url}{path}",
                headers=headers,
                timeout=REQUEST_TIMEOUT_SECONDS,
                **kwargs,
            )
        except requests.RequestException as e:
            raise ApiError(fallback_message) from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.status_code == 401:
            self._handle_unauthorized()

        if response.status_code >= 400 or not body.get("success", False):
            raise ApiError(
                body.get("message") or fallback_message,
                response.status_code,
                body.get("errors"),
            )
        return body

    # --- AUTH ---
    def register(self, username: str, email: str, password: str,
                 first_name: str, last_name: str) -> Dict[str, Any]:
        return self._request("POST", "/auth/register", "Registration failed", json={
            "username": username,
            "email": email,
            "password": password,
            "firstName": first_name,
            "lastName": last_name,
        })

    def login(self, identifier: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/auth/login", "Login failed",
                             json={"identifier": identifier, "password": password})

    def get_profile(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/profile", "Failed to get profile")

    def update_profile(self, first_name: Optional[str] = None,
                       last_name: Optional[str] = None) -> Dict[str, Any]:
        payload = {}
        if first_name is not None:
            payload["firstName"] = first_name
        if last_name is not None:
            payload["lastName"] = last_name
        return self._request("PUT", "/auth/profile", "Failed to update profile", json=payload)

    def check_availability(self, email: Optional[str] = None,
                           username: Optional[str] = None) -> Dict[str, Any]:
        payload = {}
        if email:
            payload["email"] = email
        if username:
            payload["username"] = username
        return self._request("POST", "/auth/check-availability", "Availability check failed", json=payload)

    # --- COMMENTS ---
    def get_comments(self, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        return self._request("GET", "/comments", "Failed to get comments",
                             params={"page": page, "limit": limit})

    def get_user_comments(self, user_id: int, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        return self._request("GET", f"/comments/user/{user_id}", "Failed to get user comments",
                             params={"page": page, "limit": limit})

    def create_comment(self, content: str) -> Dict[str, Any]:
        return self._request("POST", "/comments", "Failed to create comment", json={"content": content})

    def delete_comment(self, comment_id: int) -> Dict[str, Any]:
        return self._request("DELETE", f"/comments/{comment_id}", "Failed to delete comment")

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health", "Health check failed")
