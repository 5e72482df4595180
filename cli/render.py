from __future__ import annotations

from typing import Any, Iterable

import typer

from app.schemas import DecodedEvent, PipelineError


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_reading(event: DecodedEvent) -> None:
    echo_heading(f"{event.message_type.value.capitalize()} Reading")
    echo_key_values([("device_id", event.device_id)])
    fields = event.reading.model_dump(mode="json", exclude={"message_type"})
    echo_key_values(fields.items())


def emit_event(event: DecodedEvent) -> None:
    """Write one published event as a JSON line on stdout."""
    typer.echo(event.model_dump_json())


def emit_error(error: PipelineError) -> None:
    typer.secho(error.model_dump_json(), fg=typer.colors.RED, err=True)
