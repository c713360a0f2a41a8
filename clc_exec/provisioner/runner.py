"""Provisioner that executes a CLC package on an existing server."""

import asyncio
from collections.abc import Callable, Mapping
from functools import partial
from typing import Any, Protocol

import structlog

from clc_exec.clients.clc import CLCClient
from clc_exec.config import Settings, get_settings
from clc_exec.logging_config import get_logger
from clc_exec.provisioner.config import ProvisionerConfig, decode_config, merge_env_overrides
from clc_exec.provisioner.errors import (
    AuthenticationError,
    ClientConfigError,
    JobFailedError,
    PackageExecutionError,
    ProvisionerError,
    StatusExtractionError,
    StatusPollError,
    StatusTimeoutError,
)
from clc_exec.provisioner.types import InstanceState, ResourceConfig, UIOutput
from clc_exec.provisioner.validator import Validator
from clc_exec.schemas import PackageSpec, ServerOperation, StatusResponse

logger = get_logger(__name__)


class StatusPoller(Protocol):
    async def poll(
        self, status_id: str, channel: "asyncio.Queue[StatusResponse]"
    ) -> "asyncio.Task[None]": ...


class PackageClient(Protocol):
    """The subset of CLCClient the provisioner relies on."""

    status: StatusPoller

    async def authenticate(self) -> Any: ...

    async def execute_package(
        self, package: PackageSpec, *server_ids: str
    ) -> list[ServerOperation]: ...

    async def aclose(self) -> None: ...


# (username, password, account, region) -> client
ClientFactory = Callable[[str, str, str, str], PackageClient]


def build_validator() -> Validator:
    return Validator(
        required=["username", "password", "account", "package"],
        optional=["parameters.*"],
    )


async def wait_status(
    client: PackageClient, status_id: str, timeout: float | None = None
) -> StatusResponse:
    """Block until the job behind status_id reaches a terminal status.

    Args:
        client: Client whose status service is polled
        status_id: Job status ID from an execution response
        timeout: Maximum wait in seconds, None to wait indefinitely

    Returns:
        The terminal, successful status

    Raises:
        StatusPollError: If polling cannot be registered or the poller dies
        StatusTimeoutError: If no terminal status arrives within timeout
        JobFailedError: If the job finished in the failed state
    """
    channel: asyncio.Queue[StatusResponse] = asyncio.Queue(maxsize=1)

    try:
        poller = await client.status.poll(status_id, channel)
    except Exception as e:
        raise StatusPollError(f"Failed to start polling status of job {status_id}: {e}") from e

    getter = asyncio.ensure_future(channel.get())
    try:
        done, _ = await asyncio.wait(
            {getter, poller}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
        )
        if getter in done:
            status = getter.result()
        elif poller in done:
            if poller.exception() is not None:
                exc = poller.exception()
                raise StatusPollError(f"Polling status of job {status_id} failed: {exc}") from exc
            if not getter.done() and channel.empty():
                raise StatusPollError(
                    f"Polling status of job {status_id} ended without a terminal status"
                )
            status = await getter
        else:
            raise StatusTimeoutError(status_id, timeout)
    finally:
        pending = [task for task in (getter, poller) if not task.done()]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    logger.debug("job_status_received", status_id=status_id, status=status.status)
    if status.is_failed:
        raise JobFailedError(status_id, status.status)
    return status


class ResourceProvisioner:
    """Executes a CLC package on the server the provisioner is attached to."""

    def __init__(
        self,
        client_factory: ClientFactory | None = None,
        *,
        settings: Settings | None = None,
        environ: Mapping[str, str] | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ):
        self.settings = settings or get_settings()
        self.client_factory = client_factory or partial(
            CLCClient.from_credentials, settings=self.settings
        )
        self.environ = environ
        self.logger = logger or get_logger(__name__)
        self.validator = build_validator()

    def decode_config(self, config: ResourceConfig) -> ProvisionerConfig:
        return decode_config(config, self.environ)

    def validate(self, config: ResourceConfig) -> tuple[list[str], list[str]]:
        """Validate config, retrying once with credentials from the environment.

        Returns:
            (warnings, errors) of the first pass when it is clean, otherwise
            of the second pass.
        """
        warnings, errors = self.validator.validate(config)
        if not warnings and not errors:
            self.logger.debug("config_valid")
            return [], []

        self.logger.info("config_validation_issues", warnings=warnings, errors=errors)
        merged = merge_env_overrides(config, self.environ)
        self.logger.info("config_revalidating")
        return self.validator.validate(merged)

    async def apply(self, output: UIOutput, state: InstanceState, config: ResourceConfig) -> None:
        """Execute the configured package on the server in state and wait for it.

        Raises:
            ProvisionerError: On any failure; later steps are not attempted.
        """
        self.logger.debug("apply_started", state=state)
        provisioner = self.decode_config(config)

        server_id = state.id
        if not server_id:
            raise ProvisionerError("Instance state has no server ID to execute the package on")

        with structlog.contextvars.bound_contextvars(
            server_id=server_id, package=provisioner.package
        ):
            self.logger.info(
                "package_execution_requested",
                account=provisioner.account,
                username=provisioner.username,
                parameters=provisioner.parameters,
            )
            output.output(f"Executing package '{provisioner.package}' on server '{server_id}'")

            try:
                client = self.client_factory(
                    provisioner.username, provisioner.password, provisioner.account, ""
                )
            except ValueError as e:
                raise ClientConfigError(
                    f"Failed to create CLC config with provided details: {e}"
                ) from e

            try:
                await self._execute(client, provisioner, server_id)
            finally:
                await client.aclose()

            self.logger.info("package_execution_succeeded")
            output.output(
                f"Package {provisioner.package} successfully executed on {server_id}"
            )

    async def _execute(
        self, client: PackageClient, provisioner: ProvisionerConfig, server_id: str
    ) -> None:
        try:
            await client.authenticate()
        except Exception as e:
            raise AuthenticationError(
                f"Failed to authenticate with provided credentials: {e}"
            ) from e

        package = PackageSpec(package_id=provisioner.package, parameters=provisioner.parameters)
        try:
            results = await client.execute_package(package, server_id)
        except Exception as e:
            raise PackageExecutionError(f"Failed executing package: {e}") from e

        if not results:
            raise PackageExecutionError("Failed executing package: empty response")

        first = results[0]
        self.logger.debug("package_execution_response", result=first.model_dump())
        if not first.is_queued:
            reason = first.error_message or "request was not queued"
            raise PackageExecutionError(f"Failed executing package: {reason}")

        status_id = first.get_status_id()
        if status_id is None:
            raise StatusExtractionError(
                f"Failed extracting status to poll on {first.model_dump(by_alias=True)}"
            )

        self.logger.info("package_execution_queued", status_id=status_id)
        await wait_status(client, status_id, timeout=self.settings.poll_timeout)
