"""
Local preference store.

A small JSON file that plays the part of browser ``localStorage``: each key
maps to a JSON-encoded string, values are mirrored in memory, and storage
problems never surface to the caller.
"""

import json
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class LocalPreferenceStore:
    """Durably remember small JSON-serializable values across runs."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.logger = logger.bind(component="preferences", path=str(self.path))
        self._mirror: dict[str, str] | None = None

    def _load(self) -> dict[str, str]:
        if self._mirror is not None:
            return self._mirror
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            self._mirror = {k: v for k, v in raw.items() if isinstance(v, str)}
        except FileNotFoundError:
            self._mirror = {}
        except (OSError, ValueError, AttributeError) as e:
            self.logger.warning("preferences_unreadable", error=str(e))
            self._mirror = {}
        return self._mirror

    def read(self, key: str, fallback: Any = None) -> Any:
        """Return the decoded value for ``key``, or ``fallback`` if absent or undecodable."""
        encoded = self._load().get(key)
        if encoded is None:
            return fallback
        try:
            return json.loads(encoded)
        except ValueError:
            self.logger.warning("preference_decode_failed", key=key)
            return fallback

    def write(self, key: str, value: Any) -> None:
        """Encode and store ``value``. Write failures are logged and otherwise ignored."""
        mirror = self._load()
        try:
            mirror[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            self.logger.warning("preference_encode_failed", key=key, error=str(e))
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(mirror, indent=2), encoding="utf-8")
        except OSError as e:
            self.logger.warning("preference_write_failed", key=key, error=str(e))
