"""Workout timer and day-keyed workout records."""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable

from pydantic import ValidationError

from traininglog_mcp.traininglog.client import TrainingLogClient
from traininglog_mcp.traininglog.exceptions import StorageError
from traininglog_mcp.traininglog.models import SyncResult, TimerState, WorkoutTiming
from traininglog_mcp.traininglog.store import DAYS_KEY, LAST_TIMING_KEY, LocalStore, TIMER_KEY

logger = logging.getLogger(__name__)


def local_date_key(dt: datetime | None = None) -> str:
    dt = dt or datetime.now()
    return dt.strftime("%Y-%m-%d")


def format_hhmmss(ms: int) -> str:
    total_seconds = max(0, ms) // 1000
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def _clean_meta(meta: dict[str, Any] | None) -> dict[str, Any]:
    return {k: v for k, v in (meta or {}).items() if v is not None}


def _iso_from_ms(ms: int) -> str:
    dt = datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class WorkoutTimer:
    """A single running workout timer persisted in the local store.

    The timer survives restarts: ``start`` on an already running timer returns
    the stored start time instead of resetting it.
    """

    def __init__(
        self,
        store: LocalStore,
        client: TrainingLogClient | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.client = client
        self._clock = clock
        self._ticker: asyncio.Task | None = None

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _read(self) -> TimerState | None:
        raw = self.store.get(TIMER_KEY)
        if not isinstance(raw, dict):
            return None
        try:
            return TimerState.model_validate(raw)
        except ValidationError:
            return None

    @property
    def is_running(self) -> bool:
        return self._read() is not None

    def start(self) -> TimerState:
        active = self._read()
        if active is not None:
            return active
        state = TimerState(start_time_ms=self._now_ms())
        self.store.set(TIMER_KEY, state.model_dump(by_alias=True))
        return state

    def elapsed_ms(self) -> int:
        active = self._read()
        if active is None:
            return 0
        return max(0, self._now_ms() - active.start_time_ms)

    def attach_display(self, render: Callable[[str], Any], interval: float = 1.0) -> asyncio.Task:
        """Call ``render`` with the elapsed ``HH:MM:SS`` every ``interval`` seconds."""
        self.detach_display()

        async def tick():
            while True:
                try:
                    render(format_hhmmss(self.elapsed_ms()))
                except Exception:
                    logger.exception("Timer display failed, stopping it")
                    return
                await asyncio.sleep(interval)

        self._ticker = asyncio.get_running_loop().create_task(tick())
        return self._ticker

    def detach_display(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    async def stop_and_save(self, meta: dict[str, Any] | None = None) -> WorkoutTiming | None:
        """Stop the timer and record its timing on today's day record."""
        active = self._read()
        if active is None:
            return None

        end_ms = self._now_ms()
        timing = WorkoutTiming(
            start_time_iso=_iso_from_ms(active.start_time_ms),
            end_time_iso=_iso_from_ms(end_ms),
            duration_min=max(0, (end_ms - active.start_time_ms + 30000) // 60000),
        )

        self.store.remove(TIMER_KEY)
        self.detach_display()

        date = local_date_key(datetime.fromtimestamp(end_ms / 1000))
        workout = {**timing.to_json(), **_clean_meta(meta)}
        try:
            await self.upsert_day({"date": date, "workout": workout})
        except StorageError as exc:
            logger.warning("Failed to persist workout timing: %s", exc)
            try:
                self.store.set(LAST_TIMING_KEY, {"date": date, "workout": workout})
            except StorageError:
                logger.warning("Failed to keep last workout timing")
        return timing

    def load_days(self) -> dict[str, dict[str, Any]]:
        days = self.store.get(DAYS_KEY, {})
        return days if isinstance(days, dict) else {}

    async def upsert_day(self, partial_day: dict[str, Any]) -> tuple[dict[str, Any] | None, SyncResult | None]:
        """Merge ``partial_day`` into the stored day with the same date.

        Top-level fields are replaced; the ``workout`` dicts are merged with
        the incoming values winning. The merged day is then sent to the server.
        """
        if not partial_day or not partial_day.get("date"):
            return None, None

        days = self.load_days()
        existing = days.get(partial_day["date"]) or {}
        workout = {**(existing.get("workout") or {}), **_clean_meta(partial_day.get("workout"))}
        merged = {**existing, **partial_day, "workout": workout}

        days[partial_day["date"]] = merged
        self.store.set(DAYS_KEY, days)

        if self.client is None:
            return merged, None
        return merged, await self.client.post_day(merged)
