import json

import httpx
import pytest

from traininglog_mcp.traininglog.client import TrainingLogClient
from traininglog_mcp.traininglog.store import LocalStore

SERVER_URL = "https://traininglog.test"


@pytest.fixture
def store(tmp_path):
    return LocalStore(tmp_path / "store.json")


class FakeServer:
    """Records requests and answers them from a route table."""

    def __init__(self):
        self.routes: dict[tuple[str, str], object] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, response):
        self.routes[(method, path)] = response

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get((request.method, request.url.path))
        if response is None:
            return httpx.Response(404, json={"error": "not found"})
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(request)
        return response

    def json_body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def client(server):
    return TrainingLogClient(SERVER_URL, transport=server.transport)
