"""Command line interface for grantflow."""

from __future__ import annotations

import asyncio
import base64
import logging
import mimetypes
from pathlib import Path
from typing import Optional

import typer
import yaml
from pydantic import ValidationError

from grantflow import ApplicationOrchestrator, load_config
from grantflow.constants import INDEX_STEP
from grantflow.contracts import ApplicationInput, StepStatus, WorkflowStep
from grantflow.errors import ConfigError, GrantflowError, IndexTimeoutError
from grantflow.indexing import IndexConfirmer
from grantflow.services import get_chain_directory, get_index_client, load_strategy_factory
from grantflow.tracker import StepEvent, StepTracker

app = typer.Typer(help="CLI for grantflow application workflows")

chains_app = typer.Typer(help="Commands for configured chains")
index_app = typer.Typer(help="Commands for the indexer")

app.add_typer(chains_app, name="chains")
app.add_typer(index_app, name="index")

_STATUS_COLORS = {
    StepStatus.NOT_STARTED: typer.colors.WHITE,
    StepStatus.IN_PROGRESS: typer.colors.YELLOW,
    StepStatus.SUCCESS: typer.colors.GREEN,
    StepStatus.ERROR: typer.colors.RED,
}


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", help="Logging level for grantflow"),
) -> None:
    """grantflow CLI entry point."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _echo_step(step: WorkflowStep) -> None:
    label = f"{step.description}{step.target}".strip()
    line = f"[{step.status.value}] {label}"
    if step.href:
        line += f" ({step.href})"
    typer.secho(line, fg=_STATUS_COLORS[step.status])


def _encode_image(path: Path) -> str:
    mime = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    encoded = base64.b64encode(path.read_bytes()).decode()
    return f"data:{mime};base64,{encoded}"


def _load_application(path: Path, image: Optional[Path]) -> ApplicationInput:
    data = yaml.safe_load(path.read_text()) or {}
    if image is not None:
        data["image"] = _encode_image(image)
    return ApplicationInput(**data)


@chains_app.command("list")
def chains_list(config: Optional[Path] = typer.Option(None, help="Config file")) -> None:
    """List chains known to the configured chain directory."""
    directory = get_chain_directory(load_config(str(config) if config else None))
    for chain in directory.all():
        typer.echo(f"{chain.id}\t{chain.name}\t{chain.explorer_base_url}")


@app.command("apply")
def apply(
    application_file: Path,
    chain: int = typer.Option(..., help="Chain id hosting the pool"),
    pool: int = typer.Option(..., help="Pool id to apply to"),
    strategy: Optional[str] = typer.Option(
        None, help="Registration strategy factory as 'module:attribute'"
    ),
    image: Optional[Path] = typer.Option(
        None, exists=True, dir_okay=False, help="Image file to embed"
    ),
    config: Optional[Path] = typer.Option(None, help="Config file"),
) -> None:
    """
    Submit an application: publish metadata, register it and wait for indexing.

    Prints every step change as it happens followed by the final step states.
    Exits with code 1 when any step did not succeed.

    Example:
        grantflow apply application.yaml --chain 11155111 --pool 5 \\
            --strategy my_strategies:MicroGrantsStrategy
    """
    if not application_file.exists():
        typer.secho("Application file does not exist", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    try:
        application = _load_application(application_file, image)
    except (ValidationError, yaml.YAMLError) as e:
        typer.secho(f"Invalid application: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    def on_change(event: StepEvent) -> None:
        if event.field == "status":
            _echo_step(event.steps[event.index])

    async def run():
        cfg = load_config(str(config) if config else None)
        factory = load_strategy_factory(strategy) if strategy else None
        async with ApplicationOrchestrator.from_config(cfg, factory) as orchestrator:
            return await orchestrator.create_application(
                application, chain, pool, listener=on_change
            )

    try:
        outcome = asyncio.run(run())
    except GrantflowError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(code=1)

    typer.echo("")
    for step in outcome.steps:
        _echo_step(step)
    if outcome.recipient_id:
        typer.echo(f"Recipient id: {outcome.recipient_id}")
    if not outcome.succeeded:
        raise typer.Exit(code=1)


@index_app.command("check")
def index_check(
    chain: int = typer.Option(..., help="Chain id"),
    pool: int = typer.Option(..., help="Pool id"),
    recipient: str = typer.Option(..., help="Recipient id to look up"),
    attempts: Optional[int] = typer.Option(None, help="Override polling attempts"),
    config: Optional[Path] = typer.Option(None, help="Config file"),
) -> None:
    """Poll the indexer until the recipient appears."""
    try:
        cfg = load_config(str(config) if config else None)
        client = get_index_client(cfg)
    except ConfigError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(code=1)

    tracker = StepTracker()
    confirmer = IndexConfirmer(
        client,
        tracker,
        interval=cfg.indexer.interval,
        max_attempts=attempts or cfg.indexer.max_attempts,
        timeout=cfg.indexer.timeout,
    )

    async def run() -> int:
        try:
            return await confirmer.confirm(chain, pool, recipient, entity=cfg.indexer.entity)
        finally:
            await client.aclose()

    try:
        count = asyncio.run(run())
    except IndexTimeoutError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    finally:
        _echo_step(tracker.snapshot()[INDEX_STEP])
    typer.echo(f"Indexed after {count} attempt(s)")
