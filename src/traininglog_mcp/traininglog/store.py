"""File-backed key-value store standing in for browser local storage."""

import json
import logging
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

from traininglog_mcp.traininglog.exceptions import StorageError

logger = logging.getLogger(__name__)

WORKOUT_HISTORY_KEY = "tl_workout_history_v1"
TIMER_KEY = "tl_workout_timer_v1"
DAYS_KEY = "tl_days_v1"
LAST_TIMING_KEY = "tl_last_workout_timing"
LEGACY_HISTORY_KEY = "workoutHistory"
RESISTANCE_LOGS_KEY = "resistanceLogs"
GROUPS_KEY = "communityGroups"
TOKEN_KEY = "token"


class LocalStore:
    """JSON values stored under string keys in a single file.

    Every read goes back to disk, so two stores opened on the same path see
    each other's writes. A missing or unreadable file reads as empty.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable store %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring store %s: top level is not an object", self.path)
            return {}
        return data

    def _write_all(self, data: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps(data, indent=2, sort_keys=True) + "\n"
            with NamedTemporaryFile("w", dir=self.path.parent, delete=False, encoding="utf-8") as tmp:
                tmp.write(payload)
                temp_path = Path(tmp.name)
            temp_path.replace(self.path)
        except OSError as exc:
            raise StorageError(f"Could not write {self.path}: {exc}") from exc

    def get(self, key: str, default: Any = None) -> Any:
        return self._read_all().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)

    def keys(self) -> list[str]:
        return list(self._read_all().keys())
