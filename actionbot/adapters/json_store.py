"""JSON-file persistence — tokens, currency, hitman records and credentials."""

import json
import sys
import threading
from pathlib import Path
from typing import Any, Dict, Tuple

from actionbot.domain.models import HitmanRecord
from actionbot.errors import NotFoundError, PersistenceError


def _log(msg: str):
    print(msg, file=sys.stderr)


_SECTIONS = ("spotify_tokens", "currency", "hitman", "credentials")


class JsonStore:
    """PersistencePort implementation kept in a single JSON document.

    Every write is flushed to disk before returning. All operations hold one
    lock, so take_hitman_protection is a true check-and-clear.
    """

    def __init__(self, path: str = "memory/actionbot.json"):
        self._path = Path(path)
        self._lock = threading.Lock()
        self._data: Dict[str, Dict[str, Any]] = {name: {} for name in _SECTIONS}
        self._load()

    # ------------------------------------------------------------------
    # Music service tokens
    # ------------------------------------------------------------------
    def set_spotify_tokens(self, channel: str, access_token: str, refresh_token: str = ""):
        with self._lock:
            self._data["spotify_tokens"][channel] = {
                "access_token": access_token,
                "refresh_token": refresh_token,
            }
            self._save()

    def get_spotify_access_token(self, channel: str) -> Tuple[str, str]:
        with self._lock:
            entry = self._data["spotify_tokens"].get(channel)
        if not entry:
            raise NotFoundError(f"no spotify token for #{channel}")
        if not isinstance(entry, dict) or not isinstance(entry.get("access_token"), str):
            raise PersistenceError(f"malformed spotify token entry for #{channel}")
        refresh_token = entry.get("refresh_token") or ""
        if not isinstance(refresh_token, str):
            raise PersistenceError(f"malformed spotify token entry for #{channel}")
        return entry["access_token"], refresh_token

    # ------------------------------------------------------------------
    # Currency
    # ------------------------------------------------------------------
    def increment_currency(self, username: str) -> None:
        with self._lock:
            currency = self._data["currency"]
            currency[username] = self._count(currency.get(username, 0), username) + 1
            self._save()

    def get_currency(self, username: str) -> int:
        with self._lock:
            return self._count(self._data["currency"].get(username, 0), username)

    # ------------------------------------------------------------------
    # Hitman records
    # ------------------------------------------------------------------
    def add_hitman(self, channel: str, user: str) -> None:
        with self._lock:
            self._data["hitman"].setdefault(channel, {})[user] = False
            self._save()

    def set_hitman_protection(self, channel: str, user: str, protected: bool) -> None:
        with self._lock:
            self._data["hitman"].setdefault(channel, {})[user] = bool(protected)
            self._save()

    # Inspection helpers; the hitman flow itself only uses take_hitman_protection
    def get_hitman_protected(self, channel: str, user: str) -> bool:
        return self.get_hitman_record(channel, user).protected

    def get_hitman_record(self, channel: str, user: str) -> HitmanRecord:
        with self._lock:
            records = self._data["hitman"].get(channel, {})
            if user not in records:
                raise NotFoundError(f"no hitman record for {user} in #{channel}")
            return HitmanRecord(channel=channel, user=user, protected=bool(records[user]))

    def take_hitman_protection(self, channel: str, user: str) -> bool:
        with self._lock:
            records = self._data["hitman"].get(channel, {})
            protected = bool(records.get(user, False))
            if protected:
                records[user] = False
                self._save()
            return protected

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------
    def set_credential(self, key: str, value: str):
        with self._lock:
            self._data["credentials"][key] = value
            self._save()

    def get_credential(self, key: str) -> str:
        with self._lock:
            value = self._data["credentials"].get(key)
        if not value:
            raise NotFoundError(f"no credential {key!r}")
        return value

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _count(value: Any, username: str) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise PersistenceError(f"malformed currency entry for {username}")
        return value

    def _load(self):
        """Load the document. A missing file starts empty; a broken one is an error."""
        if not self._path.exists():
            return
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise PersistenceError(f"load failed: {e}") from e
        if not isinstance(raw, dict):
            raise PersistenceError(f"load failed: expected an object in {self._path}")
        for name in _SECTIONS:
            section = raw.get(name)
            if isinstance(section, dict):
                self._data[name] = section

    def _save(self):
        """Persist to a temp file, then swap it in."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(".tmp")
            tmp.write_text(json.dumps(self._data, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp.replace(self._path)
        except OSError as e:
            _log(f"[JsonStore] save failed: {e}")
            raise PersistenceError(f"save failed: {e}") from e
