"""TrainingLog configuration."""

import logging
import os
from pathlib import Path

import httpx
from pydantic import BaseModel

from traininglog_mcp.traininglog.client import TrainingLogClient
from traininglog_mcp.traininglog.models import Ok

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = "~/.traininglog"
STORE_FILENAME = "store.json"


class Settings(BaseModel):
    """Runtime settings. Without ``server_url`` everything stays local."""
    server_url: str | None = None
    data_dir: Path = Path(DEFAULT_DATA_DIR)
    token: str | None = None
    username: str | None = None
    password: str | None = None
    timeout: float = 30

    @property
    def store_path(self) -> Path:
        return self.data_dir.expanduser() / STORE_FILENAME

    @property
    def local_only(self) -> bool:
        return not self.server_url

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            server_url=env.get("TRAININGLOG_SERVER_URL") or None,
            data_dir=Path(env.get("TRAININGLOG_DATA_DIR") or DEFAULT_DATA_DIR),
            token=env.get("TRAININGLOG_TOKEN") or None,
            username=env.get("TRAININGLOG_USERNAME") or None,
            password=env.get("TRAININGLOG_PASSWORD") or None,
            timeout=float(env.get("TRAININGLOG_TIMEOUT") or 30),
        )


async def resolve_server_url(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Settings:
    """Ask the configured server for ``/config`` and apply its ``serverUrl``.

    The returned settings are unchanged when there is no server or the
    config endpoint does not answer.
    """
    if settings.local_only:
        return settings

    client = TrainingLogClient(settings.server_url, timeout=settings.timeout, transport=transport)
    result = await client.fetch_config()
    if not isinstance(result, Ok):
        logger.warning("Could not load remote config, keeping %s", settings.server_url)
        return settings

    server_url = result.value.get("serverUrl")
    if isinstance(server_url, str) and server_url:
        logger.debug("Remote config moved server to %s", server_url)
        return settings.model_copy(update={"server_url": server_url})
    return settings
