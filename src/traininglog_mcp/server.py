"""TrainingLog MCP Server."""

import logging

import httpx
from mcp.server.fastmcp import FastMCP

from traininglog_mcp.traininglog.app import TrainingLog
from traininglog_mcp.traininglog.community import rank_groups, sort_groups
from traininglog_mcp.traininglog.config import Settings, resolve_server_url
from traininglog_mcp.traininglog.exceptions import APIError
from traininglog_mcp.traininglog.logs import load_resistance_logs, record_volume_by_muscle
from traininglog_mcp.traininglog.models import Err, SetEntry, WorkoutRecord
from traininglog_mcp.traininglog.timer import format_hhmmss

logger = logging.getLogger(__name__)

mcp = FastMCP("traininglog")
_log: TrainingLog | None = None


async def _get_log(transport: httpx.AsyncBaseTransport | None = None) -> TrainingLog:
    """Build the TrainingLog from env vars on first use, logging in if asked to.

    An unreachable server leaves the log usable locally; rejected
    credentials raise ``AuthenticationError``.
    """
    global _log
    if _log is not None:
        return _log

    settings = await resolve_server_url(Settings.from_env(), transport=transport)
    log = TrainingLog(settings, transport=transport)
    if log.client is not None and not log.auth.is_authenticated:
        if settings.username and settings.password:
            try:
                await log.client.login(settings.username, settings.password)
            except APIError as exc:
                logger.warning("Login failed, continuing without a token: %s", exc)
    _log = log
    return log


def _user_id(log: TrainingLog) -> str | None:
    return log.settings.username


def format_workout(w: WorkoutRecord) -> list[str]:
    header = f"## {w.name or 'Workout'} — {w.created_at or 'Unknown date'}"
    details = []
    for s in w.sets:
        if not s.exercise:
            continue
        weight = f"{s.weight}{w.units}" if s.weight else ""
        reps = f" × {s.reps}" if s.reps else ""
        details.append(f"{s.exercise}: {weight}{reps}".strip() if weight or reps else s.exercise)
    lines = [header, " · ".join(details) if details else "No set data logged"]
    if w.notes:
        lines.append(w.notes)
    return lines


@mcp.tool()
async def log_workout(
    name: str,
    sets: list[dict],
    notes: str = "",
    units: str = "kg",
) -> str:
    """Log a completed workout.

    Args:
        name: Workout name, e.g. "Leg Day".
        sets: Ordered sets, each {"exercise": str, "weight": number, "reps": int}.
        notes: Free text notes.
        units: Weight units (default kg).
    """
    log = await _get_log()
    record = WorkoutRecord(
        name=name,
        notes=notes,
        units=units,
        sets=[SetEntry.model_validate(s) for s in sets],
    )
    saved, result = await log.history.log_workout(record)

    if result is None:
        status = "saved locally"
    elif isinstance(result, Err):
        status = f"saved locally, server sync failed ({result.reason})"
    else:
        status = "saved and synced"
    return f"Workout {saved.id} {status}. Volume: {saved.total_volume:.0f} {units}"


@mcp.tool()
async def get_history(limit: int = 20) -> str:
    """Show logged workouts, merged with the server's list when it is reachable.

    Args:
        limit: Maximum number of workouts to return (default 20).
    """
    log = await _get_log()
    history = await log.history.load()

    if not history.items:
        return f"No workouts yet ({history.source})."

    lines = [f"{len(history.items)} workouts ({history.source}):\n"]
    for w in history.items[:limit]:
        lines.extend(format_workout(w))
        lines.append("")
    return "\n".join(lines)


@mcp.tool()
async def get_workout_volume(workout_id: str) -> str:
    """Break a logged workout's volume down by muscle group.

    Args:
        workout_id: The workout id (from get_history).
    """
    log = await _get_log()
    record = next((w for w in log.history.load_all() if w.id == workout_id), None)
    if record is None:
        return f"No workout with id {workout_id}."

    lines = [f"# {record.name or 'Workout'}: {record.total_volume:.0f} {record.units}"]
    for muscle, volume in sorted(record_volume_by_muscle(record).items(), key=lambda x: -x[1]):
        lines.append(f"- {muscle}: {volume:.0f}")
    return "\n".join(lines)


@mcp.tool()
async def get_resistance_logs() -> str:
    """List resistance sessions saved in the older per-exercise format."""
    log = await _get_log()
    logs = load_resistance_logs(log.store)
    if not logs:
        return "No resistance logs found."

    lines = []
    for entry in logs:
        lines.append(f"## {entry.date}")
        for ex in entry.exercises:
            weights = ex.weights_array
            pairs = ", ".join(
                f"{weights[i] if i < len(weights) else 0}x{r}" for i, r in enumerate(ex.reps_array)
            )
            lines.append(f"  {ex.name}: {pairs or 'no sets'}")
    return "\n".join(lines)


@mcp.tool()
async def start_workout_timer() -> str:
    """Start the workout timer, or report the one already running."""
    log = await _get_log()
    already = log.timer.is_running
    log.timer.start()
    elapsed = format_hhmmss(log.timer.elapsed_ms())
    return f"Timer already running ({elapsed})." if already else "Timer started."


@mcp.tool()
async def stop_workout_timer(name: str | None = None, notes: str | None = None) -> str:
    """Stop the workout timer and record the session on today's entry.

    Args:
        name: Optional workout name to store with the timing.
        notes: Optional notes.
    """
    log = await _get_log()
    timing = await log.timer.stop_and_save({"name": name, "notes": notes})
    if timing is None:
        return "No timer running."
    return f"Workout took {timing.duration_min} min ({timing.start_time_iso} → {timing.end_time_iso})."


@mcp.tool()
async def list_groups(
    goal: str | None = None,
    tag: str | None = None,
    search: str | None = None,
    sort: str | None = None,
) -> str:
    """List community groups.

    Args:
        goal: Only groups whose goal contains this text.
        tag: Only groups with a tag containing this text.
        search: Text to find in name, goal or tags.
        sort: "alpha", "members" or "active".
    """
    log = await _get_log()
    groups = await log.community.fetch_groups(goal=goal, tag=tag, search=search)
    groups = sort_groups(groups, sort)

    if not groups:
        return "No groups found."

    lines = [f"Found {len(groups)} groups:\n"]
    for g in groups:
        tags = f" [{', '.join(g.tags)}]" if g.tags else ""
        lines.append(f"- **{g.name}** (id: {g.id}, {len(g.members)} members) — {g.goal or 'No description'}{tags}")
    return "\n".join(lines)


@mcp.tool()
async def create_group(name: str, goal: str = "", tags: list[str] | None = None) -> str:
    """Create a community group.

    Args:
        name: Group name.
        goal: What the group trains for.
        tags: Free-form tags.
    """
    log = await _get_log()
    group = await log.community.create_group(name, _user_id(log), goal=goal, tags=tags)
    if group is None:
        return "A group needs a name."
    return f"Created group {group.name} (id: {group.id})."


@mcp.tool()
async def join_group(group_id: str) -> str:
    """Join a community group as the configured user.

    Args:
        group_id: The group id (from list_groups).
    """
    log = await _get_log()
    user_id = _user_id(log)
    if not user_id:
        return "Set TRAININGLOG_USERNAME to join groups."
    group = log.community.join_group(group_id, user_id)
    if group is None:
        return f"No group with id {group_id}."
    return f"You are a member of {group.name}."


@mcp.tool()
async def post_to_group(group_id: str, text: str) -> str:
    """Post a message to a community group.

    Args:
        group_id: The group id.
        text: Message text.
    """
    log = await _get_log()
    post, result = await log.community.add_post(group_id, _user_id(log) or "anonymous", text)
    if post is None:
        return f"No group with id {group_id}."
    if isinstance(result, Err):
        return f"Posted locally; server did not accept it ({result.reason})."
    return "Posted."


@mcp.tool()
async def group_leaderboard(group_id: str | None = None, metric: str = "workouts") -> str:
    """Show a group's top members, or rank all known groups.

    Args:
        group_id: Group to show; omit to rank groups against each other.
        metric: For group ranking: "workouts", "studyHours" or "engagement".
    """
    log = await _get_log()

    if group_id is None:
        rows = rank_groups(log.community.groups.load(), metric)
        if not rows:
            return "No groups to rank."
        return "\n".join(f"#{i + 1} {r['name']}: {r.get(metric, 0)}" for i, r in enumerate(rows))

    board = await log.community.leaderboard(group_id)
    leaders = board.get("leaderboard", {})
    lines = [f"# Group {group_id}"]
    lines.append("Most consistent: " + (", ".join(map(str, leaders.get("consistent", []))) or "-"))
    lines.append("Most improved: " + (", ".join(map(str, leaders.get("improving", []))) or "-"))
    return "\n".join(lines)


def main():
    mcp.run()


if __name__ == "__main__":
    main()
