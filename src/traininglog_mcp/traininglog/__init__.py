from traininglog_mcp.traininglog.app import TrainingLog
from traininglog_mcp.traininglog.client import TrainingLogClient
from traininglog_mcp.traininglog.config import Settings
from traininglog_mcp.traininglog.history import WorkoutHistory, merge
from traininglog_mcp.traininglog.models import (
    WorkoutRecord, SetEntry, Group, Member, Post, Ok, Err,
)
from traininglog_mcp.traininglog.exceptions import (
    TrainingLogError, AuthenticationError, APIError, StorageError,
)
from traininglog_mcp.traininglog.store import LocalStore

__all__ = [
    "TrainingLog", "TrainingLogClient", "Settings", "LocalStore",
    "WorkoutHistory", "merge",
    "WorkoutRecord", "SetEntry", "Group", "Member", "Post", "Ok", "Err",
    "TrainingLogError", "AuthenticationError", "APIError", "StorageError",
]
