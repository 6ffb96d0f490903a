import httpx
import pytest

from traininglog_mcp.traininglog.auth import TokenAuth
from traininglog_mcp.traininglog.client import TrainingLogClient
from traininglog_mcp.traininglog.exceptions import APIError, AuthenticationError
from traininglog_mcp.traininglog.models import Err, Group, Ok, WorkoutRecord

SERVER_URL = "https://traininglog.test"


async def test_fetch_workouts_parses_records(server, client):
    server.on("GET", "/workouts", httpx.Response(200, json=[
        {"id": "a", "createdAt": "2024-01-01T00:00:00Z", "name": "Leg Day",
         "sets": [{"exercise": "Squat", "weight": 100, "reps": 5}]},
    ]))

    result = await client.fetch_workouts()

    assert isinstance(result, Ok)
    assert result.value[0].created_at == "2024-01-01T00:00:00Z"
    assert result.value[0].sets[0].volume == 500


async def test_fetch_workouts_rejects_non_list(server, client):
    server.on("GET", "/workouts", httpx.Response(200, json={"items": []}))

    result = await client.fetch_workouts()

    assert isinstance(result, Err)
    assert "malformed" in result.reason


async def test_fetch_workouts_skips_unreadable_records(server, client):
    server.on("GET", "/workouts", httpx.Response(200, json=[
        {"id": "a", "name": None, "sets": [{"exercise": "Squat", "weight": 60, "reps": None}]},
        {"id": "b", "sets": "nope"},
        {"id": "c"},
    ]))

    result = await client.fetch_workouts()

    assert isinstance(result, Ok)
    assert [r.id for r in result.value] == ["a", "c"]
    assert result.value[0].name == ""


async def test_fetch_workouts_network_error(server, client):
    server.on("GET", "/workouts", httpx.ConnectError("connection refused"))

    result = await client.fetch_workouts()

    assert isinstance(result, Err)
    assert result.status_code is None


async def test_fetch_workouts_http_error_keeps_status(server, client):
    server.on("GET", "/workouts", httpx.Response(401))

    result = await client.fetch_workouts()

    assert isinstance(result, Err)
    assert result.status_code == 401


async def test_requests_carry_bearer_token(server, store):
    client = TrainingLogClient(SERVER_URL, auth=TokenAuth(store, token="abc"), transport=server.transport)
    server.on("GET", "/workouts", httpx.Response(200, json=[]))

    await client.fetch_workouts()

    assert server.requests[0].headers["Authorization"] == "Bearer abc"


async def test_requests_without_token_have_no_auth_header(server, client):
    server.on("GET", "/workouts", httpx.Response(200, json=[]))

    await client.fetch_workouts()

    assert "Authorization" not in server.requests[0].headers


async def test_post_workout_sends_record_without_id(server, client):
    server.on("POST", "/workouts", httpx.Response(200, json={"id": "s1", "name": "Push"}))
    record = WorkoutRecord(id="local", created_at="2024-01-01T00:00:00Z", name="Push")

    result = await client.post_workout(record)

    assert server.json_body() == {"createdAt": "2024-01-01T00:00:00Z", "name": "Push"}
    assert isinstance(result, Ok)
    assert result.value.id == "s1"


async def test_post_day_ignores_response_body(server, client):
    server.on("POST", "/days", httpx.Response(204))

    result = await client.post_day({"date": "2024-01-01", "workout": {}})

    assert isinstance(result, Ok)
    assert server.json_body()["date"] == "2024-01-01"


async def test_login_stores_token(server, store):
    auth = TokenAuth(store)
    client = TrainingLogClient(SERVER_URL, auth=auth, transport=server.transport)
    server.on("POST", "/login", httpx.Response(200, json={"success": True, "token": "tok"}))

    token = await client.login("alice", "secret")

    assert token == "tok"
    assert auth.get_auth_header() == {"Authorization": "Bearer tok"}
    assert server.json_body() == {"username": "alice", "password": "secret"}


async def test_login_rejected(server, client):
    server.on("POST", "/login", httpx.Response(401, json={"success": False, "message": "Invalid credentials"}))

    with pytest.raises(AuthenticationError):
        await client.login("alice", "wrong")


async def test_login_unsuccessful_body(server, client):
    server.on("POST", "/login", httpx.Response(200, json={"success": False, "message": "nope"}))

    with pytest.raises(AuthenticationError, match="nope"):
        await client.login("alice", "wrong")


async def test_login_server_error_is_api_error(server, client):
    server.on("POST", "/login", httpx.Response(500))

    with pytest.raises(APIError):
        await client.login("alice", "secret")


async def test_fetch_groups_passes_filters_and_normalizes_members(server, client):
    server.on("GET", "/community/groups", httpx.Response(200, json=[
        {"id": 1, "name": "Alpha", "members": ["u1", {"username": "u2"}, None]},
    ]))

    result = await client.fetch_groups(user_id="u1", tag="strength")

    params = server.requests[0].url.params
    assert params["userId"] == "u1"
    assert params["tag"] == "strength"
    assert "goal" not in params
    group = result.value[0]
    assert isinstance(group, Group)
    assert [m.user_id for m in group.members] == ["u1", "u2"]


async def test_create_group_body(server, client):
    server.on("POST", "/community/groups", httpx.Response(200, json={"id": 7, "name": "Alpha", "members": ["u1"]}))

    result = await client.create_group("Alpha", "u1", goal="Strength", tags=["power"])

    assert server.json_body() == {"name": "Alpha", "creatorId": "u1", "goal": "Strength", "tags": ["power"]}
    assert result.value.id == 7
