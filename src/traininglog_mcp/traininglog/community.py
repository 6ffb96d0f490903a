"""Community groups, posts and leaderboards."""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Iterable

from pydantic import ValidationError

from traininglog_mcp.traininglog.client import TrainingLogClient
from traininglog_mcp.traininglog.models import Group, Member, Ok, Post, SyncResult
from traininglog_mcp.traininglog.store import GROUPS_KEY, LocalStore

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class GroupStore:
    """Groups cached in the local store.

    Nothing is kept between calls; ``load`` reads the store and ``save``
    writes the given list back.
    """

    def __init__(self, store: LocalStore):
        self.store = store

    def load(self) -> list[Group]:
        raw = self.store.get(GROUPS_KEY)
        if not isinstance(raw, list):
            return []
        groups = []
        for item in raw:
            try:
                groups.append(Group.model_validate(item))
            except ValidationError as exc:
                logger.warning("Skipping unreadable stored group: %s", exc)
        return groups

    def save(self, groups: Iterable[Group]) -> None:
        self.store.set(GROUPS_KEY, [g.to_json() for g in groups])

    def get(self, group_id: int | str) -> Group | None:
        for g in self.load():
            if str(g.id) == str(group_id):
                return g
        return None

    def add(self, group: Group) -> Group:
        groups = self.load()
        groups.append(group)
        self.save(groups)
        return group

    def update(self, group: Group) -> None:
        self.save([group if str(g.id) == str(group.id) else g for g in self.load()])


def _contains(haystack: str | None, needle: str) -> bool:
    return needle.lower() in (haystack or "").lower()


def filter_groups(
    groups: Iterable[Group],
    goal: str | None = None,
    tag: str | None = None,
    search: str | None = None,
) -> list[Group]:
    """Case-insensitive substring filters; ``search`` looks at name, goal and tags."""
    result = []
    for g in groups:
        if goal and not _contains(g.goal, goal):
            continue
        if tag and not any(_contains(t, tag) for t in g.tags):
            continue
        if search:
            if not (_contains(g.name, search) or _contains(g.goal, search)
                    or any(_contains(t, search) for t in g.tags)):
                continue
        result.append(g)
    return result


def _last_active(group: Group) -> float:
    if not group.posts or not group.posts[-1].date:
        return 0
    try:
        dt = datetime.fromisoformat(group.posts[-1].date.replace("Z", "+00:00"))
    except ValueError:
        return 0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def sort_groups(groups: Iterable[Group], mode: str | None = None) -> list[Group]:
    """Sort by ``alpha``, ``members`` or ``active``; any other mode keeps order."""
    groups = list(groups)
    if mode == "members":
        groups.sort(key=lambda g: len(g.members), reverse=True)
    elif mode == "active":
        groups.sort(key=_last_active, reverse=True)
    elif mode == "alpha":
        groups.sort(key=lambda g: (g.name or "").lower())
    return groups


def is_member(group: Group, user_id: str | int | None) -> bool:
    if not user_id:
        return False
    return any(m.matches(user_id) for m in group.members)


def calculate_leaderboard(members: Any) -> dict[str, list]:
    """Top three member names by consistency and by improvement."""
    if not isinstance(members, list):
        return {"consistent": [], "improving": []}
    by_consistent = sorted(members, key=lambda m: m.get("consistencyScore") or 0, reverse=True)
    by_improve = sorted(members, key=lambda m: m.get("improvementScore") or 0, reverse=True)
    return {
        "consistent": [m.get("name") for m in by_consistent[:3]],
        "improving": [m.get("name") for m in by_improve[:3]],
    }


def group_stats(group: Group) -> dict[str, int | float]:
    members = group.progress.values()
    return {
        "workouts": sum(m.get("workouts") or 0 for m in members),
        "studyHours": sum(m.get("studyHours") or 0 for m in members),
        "engagement": len(group.posts),
    }


def rank_entries(entries: Iterable[dict[str, Any]], key: str) -> list[dict[str, Any]]:
    return sorted(entries, key=lambda e: e.get(key) or 0, reverse=True)


def rank_groups(groups: Iterable[Group], metric: str = "workouts") -> list[dict[str, Any]]:
    rows = [{"id": g.id, "name": g.name, **group_stats(g)} for g in groups]
    return rank_entries(rows, metric)


class Community:
    """Group operations against the server with the local store as fallback."""

    def __init__(self, groups: GroupStore, client: TrainingLogClient | None = None):
        self.groups = groups
        self.client = client

    async def fetch_groups(
        self,
        user_id: str | None = None,
        goal: str | None = None,
        tag: str | None = None,
        search: str | None = None,
    ) -> list[Group]:
        if self.client is not None:
            result = await self.client.fetch_groups(user_id=user_id, goal=goal, tag=tag, search=search)
            if isinstance(result, Ok):
                self.groups.save(result.value)
                return result.value
        return filter_groups(self.groups.load(), goal=goal, tag=tag, search=search)

    async def create_group(
        self,
        name: str,
        creator_id: str | None = None,
        goal: str = "",
        tags: list[str] | None = None,
    ) -> Group | None:
        if not name:
            return None
        if self.client is not None and creator_id:
            result = await self.client.create_group(name, creator_id, goal=goal, tags=tags)
            if isinstance(result, Ok):
                return self.groups.add(result.value)
        group = Group(id=int(time.time() * 1000), name=name, goal=goal, tags=tags or [])
        return self.groups.add(group)

    def join_group(self, group_id: int | str, user_id: str) -> Group | None:
        group = self.groups.get(group_id)
        if group is None or not user_id:
            return None
        if not is_member(group, user_id):
            group.members.append(Member(user_id=user_id, joined_at=_now_iso()))
            self.groups.update(group)
        return group

    async def add_post(self, group_id: int | str, user_id: str, text: str) -> tuple[Post | None, SyncResult | None]:
        """Post to a group; the post is kept locally whatever the server says."""
        group = self.groups.get(group_id)
        if group is None:
            return None, None
        result = None
        if self.client is not None:
            result = await self.client.add_post(group.id, user_id, text)
        post = Post(user_id=user_id, text=text, date=_now_iso())
        group.posts.append(post)
        self.groups.update(group)
        return post, result

    async def fetch_posts(self, group_id: int | str) -> list[Post]:
        group = self.groups.get(group_id)
        if self.client is not None:
            result = await self.client.fetch_posts(group_id)
            if isinstance(result, Ok):
                if group is not None:
                    group.posts = result.value
                    self.groups.update(group)
                return result.value
        return group.posts if group is not None else []

    async def invite_user(self, group_id: int | str, invited_user_id: str) -> SyncResult | None:
        if not invited_user_id or self.client is None:
            return None
        result = await self.client.invite_user(group_id, invited_user_id)
        if isinstance(result, Ok):
            group = self.groups.get(group_id)
            if group is not None and not is_member(group, invited_user_id):
                group.members.append(Member(user_id=invited_user_id, invited_at=_now_iso()))
                self.groups.update(group)
        return result

    async def share_program(self, group_id: int | str, sender_id: str, program_data: dict) -> SyncResult | None:
        if not program_data or not sender_id or self.client is None:
            return None
        return await self.client.share_program(group_id, sender_id, program_data)

    async def leaderboard(self, group_id: int | str) -> dict[str, Any]:
        """Member progress and top performers for a group."""
        if self.client is not None:
            result = await self.client.fetch_progress(group_id)
            if isinstance(result, Ok):
                return result.value
        group = self.groups.get(group_id)
        members = [{"userId": uid, **data} for uid, data in (group.progress if group else {}).items()]
        return {"members": members, "leaderboard": calculate_leaderboard(members)}
