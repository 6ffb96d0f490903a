"""TrainingLog data models."""

from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")


class SetEntry(BaseModel):
    """A single set within a logged workout."""
    model_config = ConfigDict(extra="allow")

    exercise: str = ""
    weight: int | float = 0
    reps: int | float = 0

    @field_validator("exercise", mode="before")
    @classmethod
    def _blank_exercise(cls, v):
        return "" if v is None else v

    @field_validator("weight", "reps", mode="before")
    @classmethod
    def _blank_number(cls, v):
        return 0 if v is None or v == "" else v

    @property
    def volume(self) -> float:
        return self.weight * self.reps


class WorkoutRecord(BaseModel):
    """One logged workout session.

    Unknown fields sent by the server or written by older clients are kept,
    so a record read from either side is written back unchanged.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")
    name: str = ""
    notes: str = ""
    units: str = ""
    sets: list[SetEntry] = []

    @field_validator("id", mode="before")
    @classmethod
    def _numeric_id(cls, v):
        return str(v) if isinstance(v, int) and not isinstance(v, bool) else v

    @field_validator("name", "notes", "units", mode="before")
    @classmethod
    def _blank_text(cls, v):
        return "" if v is None else v

    @field_validator("sets", mode="before")
    @classmethod
    def _no_sets(cls, v):
        return [] if v is None else v

    @property
    def total_volume(self) -> float:
        return sum(s.volume for s in self.sets)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class Ok(BaseModel, Generic[T]):
    """Successful remote call."""
    value: T
    ok: Literal[True] = True


class Err(BaseModel):
    """Failed remote call; the caller decides whether to retry."""
    reason: str
    status_code: int | None = None
    ok: Literal[False] = False


SyncResult = Ok | Err


class TimerState(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_time_ms: int = Field(alias="startTimeMs")


class WorkoutTiming(BaseModel):
    """Start, end and duration of a finished timed workout."""
    model_config = ConfigDict(populate_by_name=True)

    start_time_iso: str = Field(alias="startTimeISO")
    end_time_iso: str = Field(alias="endTimeISO")
    duration_min: int = Field(alias="durationMin")

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ResistanceExercise(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = "Exercise"
    reps_array: list[int | float] = Field(default=[], alias="repsArray")
    weights_array: list[int | float] = Field(default=[], alias="weightsArray")


class ResistanceLog(BaseModel):
    """A resistance session in the legacy per-exercise array format."""
    date: str
    exercises: list[ResistanceExercise] = []

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def normalize_member(raw: Any) -> dict[str, Any] | None:
    """Coerce a stored member (bare user id or object) into member form."""
    if not raw:
        return None
    if isinstance(raw, BaseModel):
        return raw.model_dump(by_alias=True)
    if isinstance(raw, str):
        return {"userId": raw}
    if isinstance(raw, dict):
        member = dict(raw)
        if not member.get("userId"):
            if member.get("id"):
                member["userId"] = member["id"]
            if member.get("username"):
                member["userId"] = member["username"]
        return member
    return None


class Member(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    user_id: str | int | None = Field(default=None, alias="userId")
    joined_at: str | None = Field(default=None, alias="joinedAt")
    invited_at: str | None = Field(default=None, alias="invitedAt")

    def matches(self, user_id: str | int) -> bool:
        extra = self.model_extra or {}
        return user_id in (self.user_id, extra.get("id"), extra.get("username"))


class Post(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    user_id: str | int | None = Field(default=None, alias="userId")
    text: str = ""
    date: str | None = None

    @field_validator("user_id", mode="before")
    @classmethod
    def _blank_user(cls, v):
        return v if v != "" else None


class Group(BaseModel):
    """A community group as stored locally or returned by the server."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int | str
    name: str = ""
    goal: str = ""
    tags: list[str] = []
    members: list[Member] = []
    posts: list[Post] = []
    progress: dict[str, dict[str, Any]] = {}
    shared_programs: list[dict[str, Any]] = Field(default=[], alias="sharedPrograms")
    program_id: int | str | None = Field(default=None, alias="programId")

    @field_validator("members", mode="before")
    @classmethod
    def _normalize_members(cls, v):
        if not isinstance(v, list):
            return []
        return [m for m in (normalize_member(x) for x in v) if m is not None]

    @field_validator("posts", mode="before")
    @classmethod
    def _normalize_posts(cls, v):
        if not isinstance(v, list):
            return []
        posts = []
        for p in v:
            if isinstance(p, BaseModel):
                p = p.model_dump(by_alias=True)
            if not isinstance(p, dict):
                continue
            if "userId" not in p and "user" in p:
                p = {**p, "userId": p["user"]}
            posts.append(p)
        return posts

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
