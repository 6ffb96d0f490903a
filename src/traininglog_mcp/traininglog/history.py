"""Workout history: local log, remote sync and reconciliation."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Literal

from pydantic import BaseModel, ValidationError

from traininglog_mcp.traininglog.client import TrainingLogClient
from traininglog_mcp.traininglog.models import Ok, SyncResult, WorkoutRecord
from traininglog_mcp.traininglog.store import LocalStore, WORKOUT_HISTORY_KEY

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _raw_id(item: Any) -> str | None:
    if isinstance(item, dict) and item.get("id") not in (None, ""):
        return str(item["id"])
    return None


def merge(remote: Iterable[WorkoutRecord], local: Iterable[WorkoutRecord]) -> list[WorkoutRecord]:
    """Remote records first, then local records the remote side does not have.

    A local record is already on the remote side when its ``id`` matches a
    remote ``id``, or when one of the two has no ``id`` and their
    ``createdAt`` values are equal. Remote wins on every match.
    """
    remote = list(remote)
    remote_ids = {r.id for r in remote if r.id}
    remote_created = {r.created_at for r in remote if r.created_at}
    idless_created = {r.created_at for r in remote if r.created_at and not r.id}

    def seen(record: WorkoutRecord) -> bool:
        if record.id and record.id in remote_ids:
            return True
        if not record.created_at:
            return False
        if not record.id:
            return record.created_at in remote_created
        return record.created_at in idless_created

    return remote + [r for r in local if not seen(r)]


class HistoryResult(BaseModel):
    items: list[WorkoutRecord]
    source: Literal["backend", "local"]


class WorkoutHistory:
    """The workout log kept in the local store, optionally synced to a server."""

    def __init__(self, store: LocalStore, client: TrainingLogClient | None = None):
        self.store = store
        self.client = client

    def _load_raw(self) -> list[Any]:
        raw = self.store.get(WORKOUT_HISTORY_KEY)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Stored workout history is not a list, ignoring it")
            return []
        return raw

    @staticmethod
    def _parse(raw: list[Any]) -> tuple[list[WorkoutRecord], list[Any]]:
        """Split stored entries into readable records and entries kept as-is."""
        records, unreadable = [], []
        for item in raw:
            try:
                records.append(WorkoutRecord.model_validate(item))
            except ValidationError as exc:
                logger.warning("Skipping unreadable stored workout: %s", exc)
                unreadable.append(item)
        return records, unreadable

    def load_all(self) -> list[WorkoutRecord]:
        return self._parse(self._load_raw())[0]

    def save(self, record: WorkoutRecord) -> WorkoutRecord:
        """Store a record at the head of the log, replacing any with its id.

        Other stored entries are written back exactly as they were read.
        """
        update = {}
        if not record.id:
            update["id"] = str(uuid.uuid4())
        if not record.created_at:
            update["created_at"] = _now_iso()
        entry = record.model_copy(update=update) if update else record

        rest = [item for item in self._load_raw() if _raw_id(item) != entry.id]
        self.store.set(WORKOUT_HISTORY_KEY, [entry.to_json()] + rest)
        return entry

    def replace(self, old_id: str, record: WorkoutRecord) -> None:
        """Swap the record stored under ``old_id`` for ``record`` in place."""
        out = []
        placed = False
        for item in self._load_raw():
            item_id = _raw_id(item)
            if item_id == old_id and not placed:
                out.append(record.to_json())
                placed = True
            elif item_id == record.id:
                continue
            elif item_id != old_id:
                out.append(item)
        if not placed:
            out.insert(0, record.to_json())
        self.store.set(WORKOUT_HISTORY_KEY, out)

    async def fetch_remote(self) -> SyncResult | None:
        if self.client is None:
            return None
        return await self.client.fetch_workouts()

    async def load(self) -> HistoryResult:
        """Merged history when the server answers, local history otherwise."""
        local, unreadable = self._parse(self._load_raw())
        result = await self.fetch_remote()
        if not isinstance(result, Ok):
            return HistoryResult(items=local, source="local")

        merged = merge(result.value, local)
        self.store.set(WORKOUT_HISTORY_KEY, [r.to_json() for r in merged] + unreadable)
        logger.debug("Merged %d remote and %d local workouts", len(result.value), len(local))
        return HistoryResult(items=merged, source="backend")

    async def log_workout(self, record: WorkoutRecord) -> tuple[WorkoutRecord, SyncResult | None]:
        """Save locally, then offer the record to the server.

        When the server accepts it, its id and fields replace the local ones.
        A failed post leaves the local copy as is; the result says why.
        """
        entry = self.save(record)
        if self.client is None:
            return entry, None

        result = await self.client.post_workout(entry)
        if not isinstance(result, Ok):
            return entry, result

        canonical = WorkoutRecord.model_validate({**entry.to_json(), **result.value.to_json()})
        self.replace(entry.id, canonical)
        return canonical, result
