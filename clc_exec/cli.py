"""Command line host for the package provisioner."""

import asyncio
import json
from pathlib import Path
from typing import Any

from rich.console import Console
import typer

from clc_exec.config import get_settings
from clc_exec.logging_config import setup_logging
from clc_exec.provisioner import (
    InstanceState,
    ProvisionerError,
    ResourceConfig,
    ResourceProvisioner,
    merge_parameter_blocks,
)

app = typer.Typer(
    name="clc-exec",
    help="Execute CenturyLink Cloud packages on existing servers",
    add_completion=False,
)
console = Console()


class ConsoleOutput:
    """UIOutput that prints provisioner messages to the terminal."""

    def __init__(self, console: Console):
        self.console = console

    def output(self, message: str) -> None:
        self.console.print(f"[cyan]clc-exec:[/cyan] {message}")


def parse_params(params: list[str]) -> dict[str, str]:
    """Parse KEY=VALUE pairs into a dict."""
    parsed = {}
    for item in params:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected KEY=VALUE, got {item!r}", param_hint="--param")
        parsed[key] = value
    return parsed


def build_resource_config(
    config_file: Path | None,
    username: str | None,
    password: str | None,
    account: str | None,
    package: str | None,
    params: list[str],
) -> ResourceConfig:
    """Combine a JSON config file with CLI options. Options win."""
    data: dict[str, Any] = {}
    if config_file is not None:
        try:
            data = json.loads(config_file.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise typer.BadParameter(str(e), param_hint="--config") from None
        if not isinstance(data, dict):
            raise typer.BadParameter("config file must hold a JSON object", param_hint="--config")

    options = {"username": username, "password": password, "account": account, "package": package}
    data.update({key: value for key, value in options.items() if value is not None})

    if params:
        try:
            parameters = merge_parameter_blocks(data.get("parameters"))
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="--config") from None
        parameters.update(parse_params(params))
        data["parameters"] = parameters

    return ResourceConfig.from_mapping(data)


ConfigOption = typer.Option(None, "--config", "-c", help="JSON file with provisioner config")
UsernameOption = typer.Option(None, "--username", help="CLC username (or CLC_USERNAME)")
PasswordOption = typer.Option(None, "--password", help="CLC password (or CLC_PASSWORD)")
AccountOption = typer.Option(None, "--account", help="CLC account alias (or CLC_ACCOUNT)")
PackageOption = typer.Option(None, "--package", "-p", help="Package ID to execute")
ParamOption = typer.Option([], "--param", help="Package parameter as KEY=VALUE")


@app.command()
def validate(
    config_file: Path | None = ConfigOption,
    username: str | None = UsernameOption,
    password: str | None = PasswordOption,
    account: str | None = AccountOption,
    package: str | None = PackageOption,
    param: list[str] = ParamOption,
):
    """Validate provisioner configuration."""
    settings = get_settings()
    setup_logging(settings)

    config = build_resource_config(config_file, username, password, account, package, param)
    warnings, errors = ResourceProvisioner(settings=settings).validate(config)

    for warning in warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")
    for error in errors:
        console.print(f"[bold red]Error:[/bold red] {error}")

    if errors:
        raise typer.Exit(code=1)
    console.print("[bold green]✓ Configuration is valid[/bold green]")


@app.command()
def apply(
    server_id: str = typer.Option(..., "--server-id", "-s", help="Target server ID"),
    config_file: Path | None = ConfigOption,
    username: str | None = UsernameOption,
    password: str | None = PasswordOption,
    account: str | None = AccountOption,
    package: str | None = PackageOption,
    param: list[str] = ParamOption,
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON"),
):
    """Execute a package on a server and wait for it to finish."""
    settings = get_settings()
    setup_logging(settings, log_format="json" if json_logs else None)

    config = build_resource_config(config_file, username, password, account, package, param)
    provisioner = ResourceProvisioner(settings=settings)

    try:
        asyncio.run(
            provisioner.apply(ConsoleOutput(console), InstanceState(id=server_id), config)
        )
    except ProvisionerError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1) from None


if __name__ == "__main__":
    app()
