import asyncio

import pytest

from clc_exec.config import Settings, get_settings
from clc_exec.provisioner import ENV_OVERRIDES, ResourceConfig
from clc_exec.schemas import Link, ServerOperation, StatusResponse

VALID_CONFIG = {
    "username": "u",
    "password": "p",
    "account": "a",
    "package": "PKG1",
    "parameters": {"foo": "bar"},
}


class RecordingOutput:
    """UIOutput that keeps every message."""

    def __init__(self):
        self.messages: list[str] = []

    def output(self, message: str) -> None:
        self.messages.append(message)


class FakeStatusService:
    def __init__(self, result: StatusResponse | None = None, poll_error: Exception | None = None):
        self.result = result or StatusResponse(status="succeeded")
        self.poll_error = poll_error
        self.polled: list[str] = []

    async def poll(self, status_id, channel):
        self.polled.append(status_id)
        if self.poll_error is not None:
            raise self.poll_error

        async def deliver():
            await channel.put(self.result)

        return asyncio.create_task(deliver())


class FakeCLCClient:
    """In-memory stand-in for CLCClient."""

    def __init__(
        self,
        *,
        auth_error: Exception | None = None,
        execute_error: Exception | None = None,
        results: list[ServerOperation] | None = None,
        status: FakeStatusService | None = None,
    ):
        self.auth_error = auth_error
        self.execute_error = execute_error
        self.results = (
            results
            if results is not None
            else [queued_operation("job-42")]
        )
        self.status = status or FakeStatusService()
        self.calls: list[tuple] = []
        self.closed = False

    async def authenticate(self):
        self.calls.append(("authenticate",))
        if self.auth_error is not None:
            raise self.auth_error

    async def execute_package(self, package, *server_ids):
        self.calls.append(("execute_package", package, server_ids))
        if self.execute_error is not None:
            raise self.execute_error
        return self.results

    async def aclose(self):
        self.closed = True


class RecordingFactory:
    """Client factory that hands out a prepared client and records its arguments."""

    def __init__(self, client: FakeCLCClient):
        self.client = client
        self.calls: list[tuple[str, str, str, str]] = []

    def __call__(self, username, password, account, region):
        self.calls.append((username, password, account, region))
        return self.client


def queued_operation(status_id: str | None, queued: bool = True) -> ServerOperation:
    links = [Link(rel="self", href="/v2/servers/a/srv-1")]
    if status_id is not None:
        links.append(Link(rel="status", href=f"/v2/operations/a/status/{status_id}", id=status_id))
    return ServerOperation(server="srv-1", is_queued=queued, links=links)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep real CLC credentials and cached settings out of tests."""
    for env in ENV_OVERRIDES:
        monkeypatch.delenv(env, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    return Settings(poll_interval=0.01, poll_timeout=5.0)


@pytest.fixture
def output():
    return RecordingOutput()


@pytest.fixture
def valid_config():
    return ResourceConfig.from_mapping(VALID_CONFIG)


@pytest.fixture
def fake_client():
    return FakeCLCClient()


@pytest.fixture
def make_client():
    return FakeCLCClient


@pytest.fixture
def make_status():
    return FakeStatusService


@pytest.fixture
def make_operation():
    return queued_operation


@pytest.fixture
def factory(fake_client):
    return RecordingFactory(fake_client)


@pytest.fixture
def make_factory():
    return RecordingFactory
