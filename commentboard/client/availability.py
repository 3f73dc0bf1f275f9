"""
Debounced email/username availability checks for registration forms.

Each call to `schedule` cancels the pending timer, so only the last input
within `delay` seconds reaches the server. A request that has already been
sent is not cancelled; its result is still delivered.
"""

import logging
import threading
from typing import Any, Callable, Dict, Optional

from commentboard.client.api import ApiClient, ApiError

DEBOUNCE_SECONDS = 0.5


class AvailabilityChecker:
    def __init__(self, api: ApiClient, callback: Callable[[Dict[str, Any]], None],
                 delay: float = DEBOUNCE_SECONDS):
        self.api = api
        self.callback = callback
        self.delay = delay
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    def schedule(self, email: Optional[str] = None, username: Optional[str] = None) -> None:
        with self._lock:
            self._cancel_locked()
            if not email and not username:
                return
            self._timer = threading.Timer(self.delay, self._run, args=(email, username))
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _run(self, email: Optional[str], username: Optional[str]) -> None:
        try:
            response = self.api.check_availability(email=email, username=username)
        except ApiError as e:
            logging.warning(f"Availability check failed: {e.message}")
            return
        self.callback(response.get("data", {}))
