import pytest
from unittest import mock
from fastapi.testclient import TestClient

from amplifier import database
from amplifier.api import app, limiter
from amplifier.dependencies import get_chat_client, get_submission_service

# Disable rate limiting for all tests
limiter.enabled = False


class FakeChatClient:
    """Stands in for ChatClient; replies are consumed in order, exceptions are raised."""

    url = "http://llm.test/v1/chat/completions"

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.calls = []

    async def complete(self, messages, max_tokens=None, temperature=None):
        self.calls.append({"messages": messages, "max_tokens": max_tokens})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def stream(self, messages, max_tokens=None, temperature=None):
        self.calls.append({"messages": messages, "max_tokens": max_tokens})
        for chunk in self.replies.pop(0):
            yield chunk


class FakeSubmissionService:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def run(self, source_code, language_id, stdin=""):
        self.calls.append((source_code, language_id, stdin))
        if self.error:
            raise self.error
        return self.result


@pytest.fixture(autouse=True)
def temp_db(tmp_path):
    db_path = tmp_path / "test_amplifier.db"
    with mock.patch("amplifier.database.DB_NAME", str(db_path)):
        database.init_db()
        yield str(db_path)


@pytest.fixture(scope="module")
def client():
    return TestClient(app)


@pytest.fixture
def fake_chat():
    chat = FakeChatClient()
    app.dependency_overrides[get_chat_client] = lambda: chat
    yield chat
    app.dependency_overrides.pop(get_chat_client, None)


@pytest.fixture
def fake_runner():
    runner = FakeSubmissionService()
    app.dependency_overrides[get_submission_service] = lambda: runner
    yield runner
    app.dependency_overrides.pop(get_submission_service, None)


def register_and_login(client, username="alice", email="alice@example.com", password="s3cretpass"):
    response = client.post(
        "/api/register",
        json={"username": username, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    response = client.post("/api/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    body = response.json()
    return body["user"]["id"], {"Authorization": f"Bearer {body['token']}"}


@pytest.fixture
def auth(client):
    return register_and_login(client)


@pytest.fixture
def base_files():
    return [
        {"name": "main.py", "path": "src/main.py", "content": "print('hi')", "extension": "py"},
        {"name": "util.js", "path": "src/lib/util.js", "content": "console.log(1)", "extension": "js"},
    ]
