"""CenturyLink Cloud v2 API client."""

import asyncio
from typing import Any
from urllib.parse import urlparse

import httpx
from pydantic import BaseModel, ConfigDict, Field

from clc_exec.config import DEFAULT_BASE_URL, Settings, get_settings
from clc_exec.logging_config import get_logger
from clc_exec.schemas import (
    ExecutePackageRequest,
    LoginRequest,
    LoginResponse,
    PackageSpec,
    ServerOperation,
    StatusResponse,
)

logger = get_logger(__name__)


class CLCConfig(BaseModel):
    """Connection details for one CLC account."""

    model_config = ConfigDict(frozen=True)

    username: str
    password: str = Field(..., repr=False)
    alias: str = ""
    region: str = ""
    base_url: str = DEFAULT_BASE_URL

    @classmethod
    def new(
        cls,
        username: str,
        password: str,
        alias: str,
        region: str = "",
        base_url: str = DEFAULT_BASE_URL,
    ) -> "CLCConfig":
        """Build a config, rejecting unusable credentials or base URL.

        Raises:
            ValueError: If a credential is empty or base_url is not an absolute http(s) URL.
        """
        if not username or not password:
            raise ValueError("CLC username and password must both be set")

        parsed = urlparse(base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Invalid CLC base URL: {base_url!r}")

        return cls(
            username=username,
            password=password,
            alias=alias,
            region=region,
            base_url=base_url.rstrip("/"),
        )

    def with_alias(self, alias: str) -> "CLCConfig":
        return self.model_copy(update={"alias": alias})


def _is_transient(exc: Exception) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    return isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code >= 500


class StatusService:
    """Access to the asynchronous job status queue."""

    def __init__(self, client: "CLCClient", poll_interval: float = 5.0):
        self._client = client
        self.poll_interval = poll_interval

    async def get(self, status_id: str) -> StatusResponse:
        """Get the current status of a queued job."""
        resp = await self._client._request(
            "GET", f"/operations/{self._client.config.alias}/status/{status_id}"
        )
        return StatusResponse.model_validate(resp.json())

    async def poll(
        self, status_id: str, channel: "asyncio.Queue[StatusResponse]"
    ) -> "asyncio.Task[None]":
        """Register a channel that receives the terminal status of a job.

        The first status lookup happens inline so that an unknown ID or a
        rejected request surfaces to the caller. Polling then continues in a
        background task which puts exactly one terminal response into channel.

        Returns:
            The background polling task.

        Raises:
            httpx.HTTPError: If the initial status lookup fails.
        """
        status = await self.get(status_id)
        logger.debug("clc_status_registered", status_id=status_id, status=status.status)
        return asyncio.create_task(
            self._watch(status_id, status, channel), name=f"clc-status-{status_id}"
        )

    async def _watch(
        self,
        status_id: str,
        status: StatusResponse,
        channel: "asyncio.Queue[StatusResponse]",
    ) -> None:
        while status.is_running:
            logger.debug(
                "clc_status_waiting",
                status_id=status_id,
                status=status.status,
                poll_interval=self.poll_interval,
            )
            await asyncio.sleep(self.poll_interval)
            try:
                status = await self.get(status_id)
            except httpx.HTTPError as e:
                if not _is_transient(e):
                    logger.error("clc_status_poll_failed", status_id=status_id, error=str(e))
                    raise
                logger.warning("clc_status_poll_retry", status_id=status_id, error=str(e))

        logger.info("clc_status_terminal", status_id=status_id, status=status.status)
        await channel.put(status)


class CLCClient:
    """Client for the CLC v2 API."""

    def __init__(
        self,
        config: CLCConfig,
        *,
        poll_interval: float = 5.0,
        timeout: float = 30.0,
    ):
        self.config = config
        self.timeout = timeout
        self.status = StatusService(self, poll_interval=poll_interval)
        self._bearer_token: str | None = None
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_credentials(
        cls,
        username: str,
        password: str,
        account: str,
        region: str = "",
        settings: Settings | None = None,
    ) -> "CLCClient":
        """Build a client from credentials and runtime settings.

        Raises:
            ValueError: If the credentials or configured base URL are unusable.
        """
        settings = settings or get_settings()
        config = CLCConfig.new(
            username,
            password,
            account,
            region or settings.clc_region,
            base_url=settings.clc_base_url,
        )
        return cls(config, poll_interval=settings.poll_interval, timeout=settings.http_timeout)

    @property
    def is_authenticated(self) -> bool:
        return self._bearer_token is not None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                follow_redirects=True,
                timeout=self.timeout,
            )
        return self._client

    def _auth_header(self) -> dict[str, str]:
        if not self._bearer_token:
            raise RuntimeError("CLC client is not authenticated; call authenticate() first")
        return {"Authorization": f"Bearer {self._bearer_token}"}

    async def _request(
        self, method: str, path: str, *, authenticated: bool = True, **kwargs: Any
    ) -> httpx.Response:
        headers = self._auth_header() if authenticated else {}
        client = await self._get_client()
        resp = await client.request(method, path, headers=headers, **kwargs)
        resp.raise_for_status()
        return resp

    async def authenticate(self) -> LoginResponse:
        """Log in and keep the bearer token for subsequent calls.

        An empty account alias in the config is filled from the login response.
        """
        body = LoginRequest(username=self.config.username, password=self.config.password)
        resp = await self._request(
            "POST", "/authentication/login", authenticated=False, json=body.model_dump()
        )
        login = LoginResponse.model_validate(resp.json())
        self._bearer_token = login.bearer_token

        if not self.config.alias:
            self.config = self.config.with_alias(login.account_alias)

        logger.info(
            "clc_authenticated",
            username=login.username or self.config.username,
            account=self.config.alias,
            location=login.location_alias,
        )
        return login

    async def execute_package(
        self, package: PackageSpec, *server_ids: str
    ) -> list[ServerOperation]:
        """Queue execution of a package on the given servers.

        Returns:
            One entry per server, each carrying the queued flag and a status link.

        Raises:
            ValueError: If the response is not a list.
        """
        body = ExecutePackageRequest(servers=list(server_ids), package=package)
        logger.info(
            "clc_execute_package_triggered",
            package_id=package.package_id,
            servers=list(server_ids),
            parameter_keys=sorted(package.parameters),
        )

        resp = await self._request(
            "POST",
            f"/operations/{self.config.alias}/servers/executePackage",
            json=body.model_dump(by_alias=True),
        )
        result = resp.json()
        logger.debug("clc_execute_package_response", response=result)

        if not isinstance(result, list):
            logger.error("clc_execute_package_unexpected_response", response=result)
            raise ValueError(f"Expected a list from executePackage, got: {result}")

        return [ServerOperation.model_validate(item) for item in result]

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
