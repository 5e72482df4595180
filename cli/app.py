from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List, Optional

import typer

from app.schemas import PipelineOutcome
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import echo_key_values, emit_error, emit_event, render_reading
from datastore.device_state import DeviceStateStore
from logging_config import configure_logging
from models.records import AdvertisementRecord
from services.decoder import DecodeError, decode
from services.event_bus import ERROR_CHANNEL, EVENT_CHANNEL, EventBus
from services.filters import FilterConfig
from services.pipeline import EventPipeline
from settings import get_settings
from sources.fixtures import FIXTURE_DEVICE_ID, FixtureSource
from sources.jsonl import iter_jsonl_records


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Decode and filter OMRON environment sensor advertisements.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Ingest API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds before an API request is abandoned.",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging()
    config = load_config(base_url=base_url, request_timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("decode")
def decode_command(
    payload: str = typer.Argument(..., help="Hex-encoded manufacturer data frame."),
    device_id: str = typer.Option("unknown", "--device-id", "-d", help="Transmitter id to attach."),
) -> None:
    """Decode a single frame and print its readings."""
    try:
        event = decode(payload.strip(), device_id)
    except DecodeError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    render_reading(event)


@app.command("listen")
def listen_command(
    source: typer.FileText = typer.Argument(
        "-",
        help="JSON-lines file of advertisement records; '-' reads stdin.",
    ),
    whitelist: Optional[List[str]] = typer.Option(
        None,
        "--whitelist",
        "-w",
        help="Only admit these transmitter ids. Repeat for several devices.",
    ),
    cooldown: Optional[float] = typer.Option(
        None,
        "--cooldown",
        min=0,
        help="Minimum seconds between events per device and message type.",
    ),
    test_mode: bool = typer.Option(
        False,
        "--test-mode",
        help="Feed canned fixtures instead of the input and keep duplicate sequences.",
    ),
    count: Optional[int] = typer.Option(
        None,
        "--count",
        min=0,
        help="Number of fixture records to emit in test mode (default: unlimited).",
    ),
) -> None:
    """Run the pipeline and print published events as JSON lines."""
    settings = get_settings()
    testing = test_mode or settings.test_mode
    config = FilterConfig.build(
        whitelist=whitelist if whitelist else settings.whitelist,
        cooldown_seconds=cooldown if cooldown is not None else settings.cooldown_seconds,
        test_mode=testing,
    )

    bus = EventBus()
    bus.subscribe(EVENT_CHANNEL, emit_event)
    bus.subscribe(ERROR_CHANNEL, emit_error)
    pipeline = EventPipeline(
        config=config,
        state=DeviceStateStore(max_devices=settings.state_max_devices),
        bus=bus,
    )

    records: Iterable[AdvertisementRecord]
    if testing:
        records = FixtureSource(device_id=FIXTURE_DEVICE_ID, limit=count)
    else:
        records = iter_jsonl_records(source)
    pipeline.run(records)


@app.command("forward")
def forward_command(
    ctx: typer.Context,
    source: typer.FileText = typer.Argument(
        ...,
        help="JSON-lines file of advertisement records; '-' reads stdin.",
    ),
) -> None:
    """Submit advertisement records to a running ingest service."""
    state = _get_state(ctx)
    typer.echo(f"Forwarding records to {state.config.base_url} ...")
    outcomes: Counter[str] = Counter()
    for record in iter_jsonl_records(source):
        outcomes[state.client.submit(record)] += 1
    echo_key_values((outcome.value, outcomes.get(outcome.value, 0)) for outcome in PipelineOutcome)
