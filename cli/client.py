from __future__ import annotations

from typing import Any, Dict

import httpx
import typer

from cli.config import CLIConfig
from models.records import AdvertisementRecord


class ApiClient:
    """Minimal HTTP client for the ingest service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.request_timeout)

    def close(self) -> None:
        self._client.close()

    def submit(self, record: AdvertisementRecord) -> str:
        try:
            response = self._client.post("/advertisements", json=record.to_dict())
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(f"Could not reach {self._config.base_url}: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1) from exc
        payload: Dict[str, Any] = response.json()
        outcome = payload.get("outcome")
        if not isinstance(outcome, str):
            raise typer.BadParameter("Unexpected response payload when submitting a record.")
        return outcome

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
