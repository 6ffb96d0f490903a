from traininglog_mcp.traininglog.logs import (
    calculate_volume_by_muscle,
    calculate_workout_volume,
    get_muscle_group,
    load_resistance_logs,
    record_volume_by_muscle,
    save_resistance_log,
)
from traininglog_mcp.traininglog.models import WorkoutRecord
from traininglog_mcp.traininglog.store import LEGACY_HISTORY_KEY, RESISTANCE_LOGS_KEY


def test_get_muscle_group_is_case_insensitive():
    assert get_muscle_group("bench press") == "chest"
    assert get_muscle_group("  BENCH PRESS  ") == "chest"


def test_get_muscle_group_unknown_is_other():
    assert get_muscle_group("Unknown Move") == "other"
    assert get_muscle_group(None) == "other"


def test_calculate_workout_volume():
    workout = {"log": [
        {"exercise": "Squat", "repsArray": [5, 5], "weightsArray": [100, 110]},
        {"exercise": "Plank", "repsArray": [1], "weightsArray": []},
    ]}

    assert calculate_workout_volume(workout) == 1050
    assert calculate_workout_volume({}) == 0
    assert calculate_workout_volume(None) == 0


def test_calculate_volume_by_muscle():
    workout = {"log": [
        {"exercise": "Squat", "repsArray": [5], "weightsArray": [100]},
        {"exercise": "Bench Press", "repsArray": [5], "weightsArray": [80]},
        {"exercise": "Mystery", "repsArray": [10], "weightsArray": [10]},
        {"exercise": "Leg Press", "repsArray": [10], "weightsArray": [50]},
    ]}

    assert calculate_volume_by_muscle(workout) == {"legs": 1000, "chest": 400, "other": 100}


def test_record_volume_by_muscle():
    record = WorkoutRecord.model_validate({"sets": [
        {"exercise": "Deadlift", "weight": 140, "reps": 3},
        {"exercise": "Barbell Row", "weight": 60, "reps": 10},
    ]})

    assert record_volume_by_muscle(record) == {"back": 1020}
    assert record.total_volume == 1020


def test_load_falls_back_to_resistance_logs_key(store):
    store.set(RESISTANCE_LOGS_KEY, [
        {"performedAt": "2024-02-01", "exercises": [{"name": " ", "repsArray": ["5", "x"], "weightsArray": [60]}]},
    ])

    logs = load_resistance_logs(store)

    assert logs[0].date == "2024-02-01"
    exercise = logs[0].exercises[0]
    assert exercise.name == "Exercise"
    assert exercise.reps_array == [5, 0]
    assert exercise.weights_array == [60]


def test_load_prefers_workout_history_key(store):
    store.set(RESISTANCE_LOGS_KEY, [{"date": "old"}])
    store.set(LEGACY_HISTORY_KEY, [{"date": "new"}])

    assert [log.date for log in load_resistance_logs(store)] == ["new"]


def test_load_non_list_is_empty(store):
    store.set(LEGACY_HISTORY_KEY, {"date": "x"})

    assert load_resistance_logs(store) == []


def test_save_appends_normalized_log(store):
    save_resistance_log(store, {"date": "2024-01-01", "exercises": [{"name": "Squat", "repsArray": [5], "weightsArray": [100]}]})
    saved = save_resistance_log(store, {"createdAt": "2024-01-02"})

    assert saved.date == "2024-01-02"
    assert store.get(LEGACY_HISTORY_KEY) == [
        {"date": "2024-01-01", "exercises": [{"name": "Squat", "repsArray": [5], "weightsArray": [100]}]},
        {"date": "2024-01-02", "exercises": []},
    ]
