"""
profile_store.py — Local persisted login (static variant)

The static portal keeps the logged-in profile under a single storage key
instead of a server session. Here that storage is a small JSON file in
DATA_DIR; the CLI reads and writes it.
"""

import json
import logging
import os

from src.core.auth import UserProfile

log = logging.getLogger("portal.profile_store")

STORAGE_KEY = "apotek_alpro_user"


class LocalProfileStore:
    def __init__(self, path=None):
        if path is None:
            from src.core.paths import LOCAL_PROFILE_PATH
            path = LOCAL_PROFILE_PATH
        self.path = path

    def _read(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            log.warning("Unreadable profile file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, user: UserProfile):
        data = self._read()
        data[STORAGE_KEY] = json.dumps(user.to_dict())
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)

    def load(self):
        raw = self._read().get(STORAGE_KEY)
        if not raw:
            return None
        try:
            return UserProfile.from_dict(json.loads(raw))
        except (TypeError, json.JSONDecodeError):
            log.warning("Discarding malformed stored profile")
            return None

    def clear(self):
        data = self._read()
        if data.pop(STORAGE_KEY, None) is None:
            return False
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)
        return True
