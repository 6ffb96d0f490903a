"""TrainingLog server API client."""

import logging
from typing import Any, Callable

import httpx
from pydantic import ValidationError

from traininglog_mcp.traininglog.auth import TokenAuth
from traininglog_mcp.traininglog.models import Err, Group, Ok, Post, SyncResult, WorkoutRecord
from traininglog_mcp.traininglog.exceptions import APIError, AuthenticationError

logger = logging.getLogger(__name__)


class TrainingLogClient:
    """Client for the TrainingLog backend.

    Workout, day and community calls never raise: they return ``Ok`` with the
    parsed payload or ``Err`` with the reason, and the caller picks the
    fallback.
    """

    def __init__(
        self,
        server_url: str,
        auth: TokenAuth | None = None,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.server_url = server_url.rstrip("/")
        self._auth = auth or TokenAuth()
        self._timeout = timeout
        self._transport = transport

    @property
    def auth(self) -> TokenAuth:
        return self._auth

    async def _request(self, method: str, path: str, expect_json: bool = True, **kwargs) -> Any:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.request(
                    method,
                    f"{self.server_url}{path}",
                    headers=self._auth.get_auth_header(),
                    **kwargs,
                )
            except httpx.HTTPError as exc:
                raise APIError(f"{method} {path} failed: {exc}") from exc

            if not response.is_success:
                raise APIError(
                    f"{method} {path} returned HTTP {response.status_code}",
                    status_code=response.status_code,
                )

            if not expect_json:
                return None
            try:
                return response.json()
            except ValueError as exc:
                raise APIError(
                    f"{method} {path}: invalid JSON response from server",
                    status_code=response.status_code,
                ) from exc

    async def _call(
        self,
        method: str,
        path: str,
        parse: Callable[[Any], Any] | None = None,
        **kwargs,
    ) -> SyncResult:
        try:
            data = await self._request(method, path, expect_json=parse is not None, **kwargs)
        except APIError as exc:
            logger.warning("Remote call failed: %s", exc)
            return Err(reason=str(exc), status_code=exc.status_code)

        if parse is None:
            return Ok(value=None)
        try:
            return Ok(value=parse(data))
        except (ValidationError, TypeError, ValueError) as exc:
            logger.warning("Malformed payload from %s %s: %s", method, path, exc)
            return Err(reason=f"{method} {path}: malformed payload")

    @staticmethod
    def _parse_list(model):
        def parse(data: Any) -> list:
            if not isinstance(data, list):
                raise TypeError(f"expected a list, got {type(data).__name__}")
            items = []
            for item in data:
                try:
                    items.append(model.model_validate(item))
                except ValidationError as exc:
                    logger.warning("Skipping unreadable %s from server: %s", model.__name__, exc)
            return items
        return parse

    # --- Workouts ---

    async def fetch_workouts(self) -> SyncResult:
        """Fetch the authoritative workout list."""
        return await self._call("GET", "/workouts", self._parse_list(WorkoutRecord))

    async def post_workout(self, record: WorkoutRecord) -> SyncResult:
        """Send a workout; on success the value is the server's copy."""
        body = record.to_json()
        body.pop("id", None)
        return await self._call("POST", "/workouts", WorkoutRecord.model_validate, json=body)

    async def post_day(self, day: dict[str, Any]) -> SyncResult:
        return await self._call("POST", "/days", json=day)

    # --- Config & auth ---

    async def fetch_config(self) -> SyncResult:
        def parse(data: Any) -> dict:
            if not isinstance(data, dict):
                raise TypeError("config must be an object")
            return data
        return await self._call("GET", "/config", parse)

    async def login(self, username: str, password: str) -> str | None:
        """Log in and keep the returned token, if any."""
        try:
            data = await self._request("POST", "/login", json={"username": username, "password": password})
        except APIError as exc:
            if exc.status_code == 401:
                raise AuthenticationError("Login failed: invalid credentials") from exc
            raise

        if not isinstance(data, dict) or not data.get("success"):
            message = data.get("message") if isinstance(data, dict) else None
            raise AuthenticationError(f"Login failed: {message or 'rejected by server'}")

        token = data.get("token")
        if token:
            self._auth.set_token(token)
        return token

    # --- Community ---

    async def fetch_groups(
        self,
        user_id: str | None = None,
        goal: str | None = None,
        tag: str | None = None,
        search: str | None = None,
    ) -> SyncResult:
        params = {
            k: v for k, v in
            {"userId": user_id, "goal": goal, "tag": tag, "search": search}.items()
            if v
        }
        return await self._call("GET", "/community/groups", self._parse_list(Group), params=params)

    async def create_group(
        self,
        name: str,
        creator_id: str,
        goal: str = "",
        tags: list[str] | None = None,
    ) -> SyncResult:
        return await self._call(
            "POST",
            "/community/groups",
            Group.model_validate,
            json={"name": name, "creatorId": creator_id, "goal": goal, "tags": tags or []},
        )

    async def fetch_posts(self, group_id: int | str) -> SyncResult:
        return await self._call("GET", f"/community/groups/{group_id}/posts", self._parse_list(Post))

    async def add_post(self, group_id: int | str, user_id: str, text: str) -> SyncResult:
        return await self._call(
            "POST",
            f"/community/groups/{group_id}/posts",
            json={"userId": user_id, "text": text},
        )

    async def invite_user(self, group_id: int | str, invited_user_id: str) -> SyncResult:
        return await self._call(
            "POST",
            f"/community/groups/{group_id}/invite",
            json={"invitedUserId": invited_user_id},
        )

    async def share_program(self, group_id: int | str, sender_id: str, program_data: dict) -> SyncResult:
        return await self._call(
            "POST",
            f"/community/groups/{group_id}/share",
            json={"senderId": sender_id, "programData": program_data},
        )

    async def fetch_progress(self, group_id: int | str) -> SyncResult:
        def parse(data: Any) -> dict:
            if not isinstance(data, dict):
                raise TypeError("progress must be an object")
            return data
        return await self._call("GET", f"/community/groups/{group_id}/progress", parse)
