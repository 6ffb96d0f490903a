"""Wiring of store, client and services for one user."""

import httpx

from traininglog_mcp.traininglog.auth import TokenAuth
from traininglog_mcp.traininglog.client import TrainingLogClient
from traininglog_mcp.traininglog.community import Community, GroupStore
from traininglog_mcp.traininglog.config import Settings
from traininglog_mcp.traininglog.history import WorkoutHistory
from traininglog_mcp.traininglog.store import LocalStore
from traininglog_mcp.traininglog.timer import WorkoutTimer


class TrainingLog:
    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self.store = LocalStore(settings.store_path)
        self.auth = TokenAuth(self.store, token=settings.token)
        self.client = None
        if not settings.local_only:
            self.client = TrainingLogClient(
                settings.server_url,
                auth=self.auth,
                timeout=settings.timeout,
                transport=transport,
            )
        self.history = WorkoutHistory(self.store, self.client)
        self.timer = WorkoutTimer(self.store, self.client)
        self.community = Community(GroupStore(self.store), self.client)
