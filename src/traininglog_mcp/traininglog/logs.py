"""Legacy resistance logs and training volume calculations."""

import logging
from datetime import datetime, timezone
from typing import Any

from traininglog_mcp.traininglog.exceptions import StorageError
from traininglog_mcp.traininglog.models import ResistanceExercise, ResistanceLog, WorkoutRecord
from traininglog_mcp.traininglog.store import LEGACY_HISTORY_KEY, LocalStore, RESISTANCE_LOGS_KEY

logger = logging.getLogger(__name__)

EXERCISE_MUSCLE_MAP = {
    "bench press": "chest",
    "incline bench press": "chest",
    "dumbbell fly": "chest",
    "push up": "chest",
    "squat": "legs",
    "front squat": "legs",
    "leg press": "legs",
    "lunge": "legs",
    "deadlift": "back",
    "barbell row": "back",
    "pull up": "back",
    "lat pulldown": "back",
    "overhead press": "shoulders",
    "lateral raise": "shoulders",
    "bicep curl": "arms",
    "tricep extension": "arms",
    "plank": "core",
    "crunch": "core",
}


def get_muscle_group(exercise: Any) -> str:
    if not isinstance(exercise, str):
        return "other"
    return EXERCISE_MUSCLE_MAP.get(exercise.strip().lower(), "other")


def _number(value: Any) -> int | float:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


def _normalize_exercise(raw: Any) -> ResistanceExercise:
    raw = raw if isinstance(raw, dict) else {}
    name = raw.get("name")
    reps = raw.get("repsArray")
    weights = raw.get("weightsArray")
    return ResistanceExercise(
        name=name if isinstance(name, str) and name.strip() else "Exercise",
        reps_array=[_number(n) for n in reps] if isinstance(reps, list) else [],
        weights_array=[_number(n) for n in weights] if isinstance(weights, list) else [],
    )


def _normalize_log(raw: Any) -> ResistanceLog:
    raw = raw if isinstance(raw, dict) else {}
    date = None
    for field in ("date", "performedAt", "createdAt"):
        if isinstance(raw.get(field), str):
            date = raw[field]
            break
    if date is None:
        date = datetime.now(timezone.utc).isoformat()
    exercises = raw.get("exercises")
    return ResistanceLog(
        date=date,
        exercises=[_normalize_exercise(e) for e in exercises] if isinstance(exercises, list) else [],
    )


def load_resistance_logs(store: LocalStore) -> list[ResistanceLog]:
    raw = store.get(LEGACY_HISTORY_KEY)
    if raw is None:
        raw = store.get(RESISTANCE_LOGS_KEY)
    if not isinstance(raw, list):
        return []
    return [_normalize_log(entry) for entry in raw]


def save_resistance_log(store: LocalStore, log: dict[str, Any] | ResistanceLog) -> ResistanceLog | None:
    if isinstance(log, ResistanceLog):
        log = log.to_json()
    entry = _normalize_log(log)
    logs = load_resistance_logs(store)
    logs.append(entry)
    try:
        store.set(LEGACY_HISTORY_KEY, [item.to_json() for item in logs])
    except StorageError as exc:
        logger.warning("Unable to save resistance log locally: %s", exc)
        return None
    return entry


def _entry_volume(entry: dict[str, Any]) -> float:
    reps = entry.get("repsArray") or []
    weights = entry.get("weightsArray") or []
    total = 0
    for i, rep in enumerate(reps):
        weight = weights[i] if i < len(weights) else 0
        total += _number(rep) * _number(weight or 0)
    return total


def calculate_workout_volume(workout: dict[str, Any] | None) -> float:
    """Total reps x weight over a workout's ``log`` entries."""
    if not workout or not isinstance(workout.get("log"), list):
        return 0
    return sum(_entry_volume(entry) for entry in workout["log"] if isinstance(entry, dict))


def calculate_volume_by_muscle(workout: dict[str, Any] | None) -> dict[str, float]:
    volume: dict[str, float] = {}
    if not workout or not isinstance(workout.get("log"), list):
        return volume
    for entry in workout["log"]:
        if not isinstance(entry, dict):
            continue
        muscle = get_muscle_group(entry.get("exercise"))
        volume[muscle] = volume.get(muscle, 0) + _entry_volume(entry)
    return volume


def record_volume_by_muscle(record: WorkoutRecord) -> dict[str, float]:
    volume: dict[str, float] = {}
    for s in record.sets:
        muscle = get_muscle_group(s.exercise)
        volume[muscle] = volume.get(muscle, 0) + s.volume
    return volume
