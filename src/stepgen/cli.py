"""CLI app definition: builds the stores and the client, then runs a configuration."""

import os
from typing import Annotated

import typer

from stepgen.ai import AI
from stepgen.config import (
    API_KEY_ENV_VAR,
    DEFAULT_MODEL,
    DEFAULT_PROJECT_PATH,
    DEFAULT_TEMPERATURE,
    LOGS_DIR,
    MEMORY_DIR,
    PREPROMPTS_DIR,
    RUN_LOG_FILE,
    WORKSPACE_DIR,
)
from stepgen.db import DB, DBs, reset_namespaces
from stepgen.errors import StepgenError
from stepgen.pipeline import Config, requires_backend, resolve_config, run
from stepgen.utils import configure_logging, console, error, log, logging_level
from stepgen.version import get_version


def _version_callback(value: bool):
    if value:
        console.print(get_version())
        raise typer.Exit()


app = typer.Typer(
    help="Generate a codebase from a project prompt by running a pipeline of chat-completion steps.",
    add_completion=False,
)


def project_paths(project_path: str, run_prefix: str = "") -> tuple[str, str, str]:
    """Return (input, memory, workspace) directories for a project.

    Memory and workspace directories are named with *run_prefix* in front, so
    several runs can share one project directory.
    """
    input_path = os.path.abspath(project_path)
    memory_path = os.path.join(input_path, f"{run_prefix}{MEMORY_DIR}")
    workspace_path = os.path.join(input_path, f"{run_prefix}{WORKSPACE_DIR}")
    return input_path, memory_path, workspace_path


def build_dbs(project_path: str, run_prefix: str = "", preprompts_path: str = PREPROMPTS_DIR) -> DBs:
    """Construct the store bundle for a project directory."""
    input_path, memory_path, workspace_path = project_paths(project_path, run_prefix)
    return DBs(
        memory=DB(memory_path),
        logs=DB(os.path.join(memory_path, LOGS_DIR)),
        preprompts=DB(preprompts_path),
        input=DB(input_path),
        workspace=DB(workspace_path),
    )


def start(
    project_path: Annotated[
        str, typer.Argument(help="Project directory containing the `prompt` file.")
    ] = DEFAULT_PROJECT_PATH,
    delete_existing: Annotated[
        bool, typer.Option("--delete-existing", help="Wipe memory and workspace before running.")
    ] = False,
    model: Annotated[str, typer.Option("--model", help="Chat-completion model name.")] = DEFAULT_MODEL,
    temperature: Annotated[
        float, typer.Option("--temperature", help="Sampling temperature.")
    ] = DEFAULT_TEMPERATURE,
    run_prefix: Annotated[
        str, typer.Option("--run-prefix", help="Prefix for the memory and workspace directory names.")
    ] = "",
    verbose: Annotated[bool, typer.Option("--verbose", help="Log full requests and transcripts.")] = False,
    steps: Annotated[
        str,
        typer.Option(
            "--steps",
            "-s",
            help=f"Step configuration: {', '.join(c.value for c in Config)}.",
        ),
    ] = Config.DEFAULT.value,
    preprompts: Annotated[
        str, typer.Option("--preprompts", help="Directory of preprompt templates.", show_default=False)
    ] = PREPROMPTS_DIR,
    api_key: Annotated[
        str,
        typer.Option("--api-key", envvar=API_KEY_ENV_VAR, help="Backend API key.", show_default=False),
    ] = "",
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=_version_callback, is_eager=True),
    ] = False,
) -> None:
    """Run a step configuration against a project directory."""
    try:
        config = resolve_config(steps)

        _, memory_path, workspace_path = project_paths(project_path, run_prefix)

        if delete_existing:
            reset_namespaces(memory_path, workspace_path)

        configure_logging(verbose, os.path.join(memory_path, RUN_LOG_FILE))
        log(f"Logging Level: {logging_level()}", style="dim")

        if requires_backend(config) and not api_key:
            error(f"{API_KEY_ENV_VAR} is not set. Export it or pass --api-key.")
            raise typer.Exit(code=1)

        ai = AI(model=model, temperature=temperature, api_key=api_key)
        dbs = build_dbs(project_path, run_prefix, preprompts)
        run(config, dbs, ai)
    except StepgenError as exc:
        error(str(exc))
        raise typer.Exit(code=1) from exc


app.command()(start)
