"""
Durable client-side storage for the session.

The session occupies two named slots:
    TOKEN_KEY -> the bearer token
    USER_KEY  -> the user profile serialised as JSON
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

load_dotenv()

TOKEN_KEY = "authToken"
USER_KEY = "user"

DEFAULT_SESSION_FILE = os.path.join("~", ".commentboard", "session.json")


class MemoryStorage:
    """Non-persistent storage, useful for scripts and tests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileStorage:
    """
    Key/value storage persisted as a JSON object on disk.

    Every write rewrites the whole file; a missing or unreadable file reads
    as empty.
    """

    def __init__(self, path: Optional[str] = None):
        raw = path or os.getenv("COMMENTBOARD_SESSION_FILE", DEFAULT_SESSION_FILE)
        self.path = Path(raw).expanduser()

    def _load(self) -> Dict[str, str]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logging.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f)
        os.replace(tmp, self.path)

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)
