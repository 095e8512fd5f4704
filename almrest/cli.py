"""
Copyright (c) 2025 Eric C.

Mumford (@heymumford) This file is part of ALMREST, licensed under the MIT License.
See LICENSE file for details.

"""

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.table import Table

from almrest import __version__
from almrest.alm_auth import ALMAuthenticator
from almrest.alm_client import ALMClient
from almrest.alm_connector import RestConnector
from almrest.alm_models import ALMEntity
from almrest.core.config import ALMConfig, get_app_config, init_app_config
from almrest.core.logging import correlation_id, get_logger
from almrest.exceptions import ALMError, TransportError

# Initialize console for rich output
console = Console()

# Initialize the CLI app
app = typer.Typer(help="ALMREST - ALM REST API client")

logger = get_logger("almrest.cli")


def configure_app(debug: bool = False):
    """
    Configure the application with the specified settings.

    Args:
    ----
        debug: Whether to enable debug mode

    """
    config = init_app_config(debug=debug, app_version=__version__)
    config.configure_logging()
    return config


@app.callback(invoke_without_command=True)
def callback(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Enable debug mode with verbose logging"),
    version: bool = typer.Option(False, "--version", help="Show the application version and exit"),
):
    """
    ALMREST - read and write ALM test-management entities.

    Connection settings default to the ALMREST_ALM_* environment variables.
    """
    if version:
        console.print(f"ALMREST version: {__version__}")
        raise typer.Exit()

    try:
        configure_app(debug=debug)
    except ValueError as e:
        fail(e)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit()


def build_config(
    base_url: str | None,
    domain: str | None,
    project: str | None,
    username: str | None,
    password: str | None,
) -> ALMConfig:
    """Merge command-line options over the ALM settings of the application configuration."""
    overrides = {
        "base_url": base_url,
        "domain": domain,
        "project": project,
        "username": username,
        "password": password,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}

    alm_config = get_app_config().alm
    if alm_config is None:
        return ALMConfig.from_env(**overrides)
    return ALMConfig(**{**alm_config.model_dump(), **overrides})


@contextmanager
def alm_session(config: ALMConfig) -> Iterator[ALMClient]:
    """Log in, hand out a client, and always log out afterwards."""
    client = ALMClient(RestConnector(config))
    with correlation_id():
        client.login()
        try:
            yield client
        finally:
            client.logout()


def print_entity(entity: ALMEntity, title: str) -> None:
    table = Table(title=title)
    table.add_column("Field")
    table.add_column("Value")
    for name, value in entity.model_dump(by_alias=True, exclude_none=True).items():
        table.add_row(name, str(value))
    console.print(table)


def print_entities(entities: list[ALMEntity], title: str, columns: list[str]) -> None:
    table = Table(title=title)
    for column in columns:
        table.add_column(column)
    for entity in entities:
        table.add_row(*[str(entity.get_field(column) or "") for column in columns])
    console.print(table)


def write_json(output_file: Path, data) -> None:
    with open(output_file, "w") as f:
        json.dump(data, f, indent=2)
    console.print(f"Results written to {output_file}", style="green")


def fail(error: Exception) -> NoReturn:
    logger.debug(f"Command failed with {type(error).__name__}")
    console.print(f"Error: {error}", style="red")
    raise typer.Exit(code=1)


BASE_URL_OPTION = typer.Option(None, "--base-url", help="ALM server root, e.g. https://alm.example.com")
DOMAIN_OPTION = typer.Option(None, "--domain", help="ALM domain")
PROJECT_OPTION = typer.Option(None, "--project", help="ALM project")
USERNAME_OPTION = typer.Option(None, "--username", help="ALM username")
PASSWORD_OPTION = typer.Option(None, "--password", help="ALM password")
OUTPUT_OPTION = typer.Option(None, "--output-file", help="Write the result as JSON to this file")


@app.command("check-auth")
def check_auth(base_url: str | None = BASE_URL_OPTION):
    """
    Probe the server and show where it expects credentials.
    """
    try:
        config = build_config(base_url, None, None, None, None)
        result = ALMAuthenticator(RestConnector(config)).probe_authentication()
    except (ALMError, TransportError, ValueError) as e:
        fail(e)

    if result.is_authenticated:
        console.print("Session is authenticated", style="green")
    else:
        console.print(f"Authentication required at: {result.authentication_point}")


@app.command("login")
def login(
    base_url: str | None = BASE_URL_OPTION,
    username: str | None = USERNAME_OPTION,
    password: str | None = PASSWORD_OPTION,
):
    """
    Verify credentials by logging in and out again.
    """
    try:
        config = build_config(base_url, None, None, username, password)
        with alm_session(config):
            console.print(f"✅ Logged in to {config.base_url} as {config.username}", style="green")
    except (ALMError, TransportError, ValueError) as e:
        fail(e)


@app.command("get-test")
def get_test(
    test_id: str = typer.Argument(..., help="ID of the test"),
    base_url: str | None = BASE_URL_OPTION,
    domain: str | None = DOMAIN_OPTION,
    project: str | None = PROJECT_OPTION,
    username: str | None = USERNAME_OPTION,
    password: str | None = PASSWORD_OPTION,
    output_file: Path | None = OUTPUT_OPTION,
):
    """
    Read a test.
    """
    try:
        with alm_session(build_config(base_url, domain, project, username, password)) as client:
            test = client.read_test(test_id)
    except (ALMError, TransportError, ValueError) as e:
        fail(e)

    if output_file:
        write_json(output_file, test.model_dump(by_alias=True, exclude_none=True))
    else:
        print_entity(test, f"Test {test_id}")


@app.command("get-test-set")
def get_test_set(
    test_set_id: str = typer.Argument(..., help="ID of the test set"),
    base_url: str | None = BASE_URL_OPTION,
    domain: str | None = DOMAIN_OPTION,
    project: str | None = PROJECT_OPTION,
    username: str | None = USERNAME_OPTION,
    password: str | None = PASSWORD_OPTION,
    output_file: Path | None = OUTPUT_OPTION,
):
    """
    Read a test set.
    """
    try:
        with alm_session(build_config(base_url, domain, project, username, password)) as client:
            test_set = client.read_test_set(test_set_id)
    except (ALMError, TransportError, ValueError) as e:
        fail(e)

    if output_file:
        write_json(output_file, test_set.model_dump(by_alias=True, exclude_none=True))
    else:
        print_entity(test_set, f"Test Set {test_set_id}")


@app.command("get-test-instances")
def get_test_instances(
    test_set_id: str = typer.Argument(..., help="ID of the test set"),
    base_url: str | None = BASE_URL_OPTION,
    domain: str | None = DOMAIN_OPTION,
    project: str | None = PROJECT_OPTION,
    username: str | None = USERNAME_OPTION,
    password: str | None = PASSWORD_OPTION,
    output_file: Path | None = OUTPUT_OPTION,
):
    """
    List the test instances of a test set.
    """
    try:
        with alm_session(build_config(base_url, domain, project, username, password)) as client:
            instances = client.read_test_instances(test_set_id)
    except (ALMError, TransportError, ValueError) as e:
        fail(e)

    console.print(f"Found {len(instances)} test instances")
    if output_file:
        write_json(
            output_file,
            [entity.model_dump(by_alias=True, exclude_none=True) for entity in instances.entities],
        )
    else:
        print_entities(
            instances.entities,
            f"Test Instances of Test Set {test_set_id}",
            ["id", "test-id", "status", "actual-tester"],
        )


@app.command("get-run")
def get_run(
    run_id: str = typer.Argument(..., help="ID of the run"),
    base_url: str | None = BASE_URL_OPTION,
    domain: str | None = DOMAIN_OPTION,
    project: str | None = PROJECT_OPTION,
    username: str | None = USERNAME_OPTION,
    password: str | None = PASSWORD_OPTION,
    output_file: Path | None = OUTPUT_OPTION,
):
    """
    Read a run.
    """
    try:
        with alm_session(build_config(base_url, domain, project, username, password)) as client:
            run = client.read_run(run_id)
    except (ALMError, TransportError, ValueError) as e:
        fail(e)

    if output_file:
        write_json(output_file, run.model_dump(by_alias=True, exclude_none=True))
    else:
        print_entity(run, f"Run {run_id}")


@app.command("get-run-steps")
def get_run_steps(
    run_id: str = typer.Argument(..., help="ID of the run"),
    base_url: str | None = BASE_URL_OPTION,
    domain: str | None = DOMAIN_OPTION,
    project: str | None = PROJECT_OPTION,
    username: str | None = USERNAME_OPTION,
    password: str | None = PASSWORD_OPTION,
    output_file: Path | None = OUTPUT_OPTION,
):
    """
    List the steps of a run.
    """
    try:
        with alm_session(build_config(base_url, domain, project, username, password)) as client:
            steps = client.read_run_steps(run_id)
    except (ALMError, TransportError, ValueError) as e:
        fail(e)

    console.print(f"Found {len(steps)} run steps")
    if output_file:
        write_json(
            output_file,
            [entity.model_dump(by_alias=True, exclude_none=True) for entity in steps.entities],
        )
    else:
        print_entities(steps.entities, f"Steps of Run {run_id}", ["id", "name", "status", "actual"])


@app.command("upload-attachment")
def upload_attachment(
    file_path: Path = typer.Argument(..., help="File to upload", exists=True, dir_okay=False),
    run_id: str | None = typer.Option(None, "--run-id", help="Attach to this run"),
    run_step_id: str | None = typer.Option(None, "--run-step-id", help="Attach to this run step"),
    file_name: str | None = typer.Option(None, "--file-name", help="Name to use on the server"),
    base_url: str | None = BASE_URL_OPTION,
    domain: str | None = DOMAIN_OPTION,
    project: str | None = PROJECT_OPTION,
    username: str | None = USERNAME_OPTION,
    password: str | None = PASSWORD_OPTION,
):
    """
    Attach a file to a run or a run step.
    """
    if bool(run_id) == bool(run_step_id):
        console.print("Error: give exactly one of --run-id or --run-step-id", style="red")
        raise typer.Exit(code=1)

    name = file_name or file_path.name
    data = file_path.read_bytes()

    try:
        with alm_session(build_config(base_url, domain, project, username, password)) as client:
            if run_id:
                attachment = client.create_run_attachment(run_id, name, data)
            else:
                attachment = client.create_run_step_attachment(run_step_id, name, data)
    except (ALMError, TransportError, ValueError) as e:
        fail(e)

    console.print(f"Uploaded {name} ({len(data)} bytes), attachment ID: {attachment.id}", style="green")
