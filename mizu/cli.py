"""
Command line interface for mizu.

    mizu flows                          list the named flows
    mizu run FLOW [--actor] [--from]    run a flow against the actor's store
    mizu show [--actor]                 print the actor's store snapshot
    mizu set KEY VALUE [--actor]        seed a store key by hand

Exit codes:
    0  every stage committed
    1  a stage failed (the diagnostic names the stage and the missing
       key or expected type)
    2  the run could not start (unknown flow or stage, bad settings or
       parameters, no signing key)
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import typer
import yaml
from typer import Typer

from mizu import __version__
from mizu.config import FlowParameters, Settings, get_settings, load_flow_parameters
from mizu.integrations.sui import Keypair, SuiClient, SuiConfig
from mizu.integrations.sui.keypair import DEFAULT_KEY_VARIABLES
from mizu.pipeline import (
    JsonFileStateStore,
    MissingCredential,
    Pipeline,
    PipelineLogger,
    PipelineResult,
    SessionContext,
    StoreFlushFailed,
    StoreKeyConflict,
)
from mizu.pipeline.store import commit
from mizu.stages import FLOWS, get_flow
from mizu.stages.common import PAYMENT_COIN

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_STAGE_FAILED = 1
EXIT_STARTUP = 2

app = Typer(
    name="mizu",
    help="Run staged Mizu contract transactions on Sui.",
    no_args_is_help=True,
)


# ── Helpers ───────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"mizu {__version__}")
        raise typer.Exit()


def _fail(message: str, code: int = EXIT_STARTUP) -> typer.Exit:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    return typer.Exit(code)


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(message)s" if settings.log_json else "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _settings() -> Settings:
    try:
        settings = get_settings()
    except ValueError as e:
        raise _fail(f"invalid settings: {e}") from e
    _configure_logging(settings)
    return settings


def _parameters(settings: Settings) -> FlowParameters:
    try:
        return load_flow_parameters(settings.params_file)
    except (yaml.YAMLError, ValueError) as e:
        raise _fail(f"invalid parameters file {settings.params_file}: {e}") from e


def _open_store(
    settings: Settings,
    actor: str,
    params: FlowParameters | None = None,
) -> JsonFileStateStore:
    """
    Open an actor's store.

    User stores fall back to the admin deployment snapshot for package
    level ids; the payment coin from the parameters file is a default.
    """
    defaults: dict[str, Any] = {}
    if params is not None and params.payment_coin:
        defaults[PAYMENT_COIN] = params.payment_coin

    try:
        if actor == "admin":
            return JsonFileStateStore(settings.store_path("admin"), name="admin", defaults=defaults)
        admin = JsonFileStateStore(settings.store_path("admin"), name="admin")
        return JsonFileStateStore(
            settings.store_path(actor), name=actor, fallback=admin, defaults=defaults
        )
    except (OSError, ValueError) as e:
        raise _fail(f"could not open store for '{actor}': {e}") from e


def _signer(settings: Settings) -> Keypair:
    if settings.private_key is None:
        raise MissingCredential(" or ".join(DEFAULT_KEY_VARIABLES))
    try:
        return Keypair.from_base64(settings.private_key.get_secret_value())
    except ValueError as e:
        raise MissingCredential(DEFAULT_KEY_VARIABLES[0], f"is invalid: {e}") from e


async def _execute(
    pipeline: Pipeline,
    settings: Settings,
    store: JsonFileStateStore,
    signer: Keypair,
    actor: str,
    params: FlowParameters,
) -> PipelineResult:
    config = SuiConfig(
        base_url=settings.fullnode_url,
        timeout=settings.request_timeout,
        max_retries=settings.max_retries,
        gas_budget=settings.gas_budget,
    )
    async with SuiClient(config) as client:
        ctx = SessionContext(
            store=store,
            submitter=client,
            signer=signer,
            actor=actor,
            params=params,
        )
        ctx.logger = PipelineLogger(request_id=str(ctx.execution_id), actor=actor)
        return await pipeline.run(ctx, stage_timeout=settings.stage_timeout)


def _report(result: PipelineResult, flow: str, as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return

    for stage in result.stage_results:
        typer.secho(f"[ok] {stage.stage}  digest={stage.log.digest}", fg=typer.colors.GREEN)
        for key, value in sorted(stage.writes.items()):
            typer.echo(f"     {key} = {value}")

    failure = result.failure
    if failure is None:
        typer.echo(f"Completed {len(result.stage_results)} stage(s) as '{result.context.actor}'")
        return

    typer.secho(f"[failed] {failure.stage}: {failure.kind}", fg=typer.colors.RED, err=True)
    typer.echo(f"  {failure.message}", err=True)
    if failure.key:
        typer.echo(f"  key: {failure.key}", err=True)
    if failure.expected_type:
        typer.echo(f"  expected type: {failure.expected_type}", err=True)
    if result.skipped:
        typer.echo(f"  not run: {', '.join(result.skipped)}", err=True)
        typer.echo(f"  resume with: mizu run {flow} --from {failure.stage}", err=True)


# ── Commands ──────────────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """mizu: publish the Mizu contracts and drive coolers and mints."""


@app.command("flows")
def list_flows() -> None:
    """List the named flows and their stages."""
    for flow in FLOWS.values():
        stages = " -> ".join(stage.name for stage in flow.build().stages)
        typer.echo(f"{flow.name:<14} [{flow.default_actor}] {stages}")
        typer.echo(f"{'':<14} {flow.description}")


@app.command()
def run(
    flow: str = typer.Argument(..., help="Flow name (see `mizu flows`)"),
    actor: str | None = typer.Option(None, "--actor", "-a", help="Store owner; defaults per flow"),
    start: str | None = typer.Option(None, "--from", help="Resume from this stage"),
    json_out: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Run a flow, committing each stage's discovered ids to the actor's store."""
    settings = _settings()

    try:
        selected = get_flow(flow)
    except KeyError as e:
        raise _fail(e.args[0]) from e

    pipeline = selected.build()
    if start:
        try:
            pipeline = pipeline.starting_at(start)
        except ValueError as e:
            raise _fail(str(e)) from e

    actor = actor or selected.default_actor
    params = _parameters(settings)
    store = _open_store(settings, actor, params)

    try:
        signer = _signer(settings)
    except MissingCredential as e:
        raise _fail(f"no signing key: {e}") from e

    logger.info(f"Running '{flow}' as {actor} ({signer.address}) on {settings.fullnode_url}")
    result = asyncio.run(_execute(pipeline, settings, store, signer, actor, params))

    _report(result, flow, json_out)
    raise typer.Exit(EXIT_OK if result.success else EXIT_STAGE_FAILED)


@app.command()
def show(
    actor: str = typer.Option("admin", "--actor", "-a"),
) -> None:
    """Print an actor's store snapshot."""
    settings = _settings()
    store = _open_store(settings, actor)
    typer.echo(json.dumps(store.snapshot(), indent=4))


@app.command("set")
def set_key(
    key: str = typer.Argument(..., help="Dotted store key, e.g. water_cooler_cap"),
    value: str = typer.Argument(..., help="Value, usually an object id"),
    actor: str = typer.Option("admin", "--actor", "-a"),
) -> None:
    """Seed a key that no stage writes (caps and shared objects created elsewhere)."""
    settings = _settings()
    store = _open_store(settings, actor)
    try:
        commit(store, {key: value})
    except (StoreKeyConflict, StoreFlushFailed) as e:
        raise _fail(str(e)) from e
    except ValueError as e:
        raise _fail(f"invalid key: {e}") from e
    typer.echo(f"{actor}: {key} = {value}")


if __name__ == "__main__":
    app()
