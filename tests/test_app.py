import struct
from datetime import datetime, timezone
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from datastore.device_state import DeviceStateStore
from services.filters import FilterConfig
from services.pipeline import EventPipeline, build_default_pipeline


def _sensor_hex(sequence: int) -> str:
    body = struct.pack("<BBHHHIHHH", 1, sequence, 2200, 5000, 80, 1000000, 3000, 5, 420)
    return body.ljust(38, b"\x00").hex()


def _payload(data: str | None, transmitter_id: str = "AA:BB", company: str = "OMRON Corporation") -> dict:
    return {
        "transmitterId": transmitter_id,
        "manufacturerSpecificData": {"companyName": company, "data": data},
    }


@pytest.fixture
def pipeline() -> EventPipeline:
    return EventPipeline(
        config=FilterConfig(),
        state=DeviceStateStore(),
        clock=lambda: datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def api_client(pipeline: EventPipeline, monkeypatch) -> Iterator[TestClient]:
    def build_test_pipeline() -> EventPipeline:
        return pipeline

    build_test_pipeline.cache_clear = lambda: None  # type: ignore[attr-defined]

    monkeypatch.setattr("app.main.build_default_pipeline", build_test_pipeline)
    monkeypatch.setattr("app.api.build_default_pipeline", build_test_pipeline)

    app = create_app()
    with TestClient(app) as client:
        yield client


def test_lifespan_clears_pipeline_cache() -> None:
    app = create_app()

    with TestClient(app):
        during = build_default_pipeline()

    after = build_default_pipeline()
    try:
        assert after is not during
    finally:
        build_default_pipeline.cache_clear()


def test_health_endpoints(api_client: TestClient) -> None:
    assert api_client.get("/health").json() == {"status": "ok"}
    assert api_client.get("/").json()["status"] == "ok"


def test_ingest_publishes_and_tracks_device(api_client: TestClient, pipeline: EventPipeline) -> None:
    published = []
    pipeline.bus.subscribe("sensor", published.append)

    response = api_client.post("/advertisements", json=_payload(_sensor_hex(1)))

    assert response.status_code == 202
    assert response.json() == {"outcome": "published"}
    assert len(published) == 1

    devices = api_client.get("/devices").json()["devices"]
    assert devices == [
        {
            "device_id": "AA:BB",
            "message_type": "sensor",
            "last_emitted_at": "2024-01-01T00:00:00Z",
            "last_sequence_number": 1,
        }
    ]


def test_ingest_duplicate_is_dropped(api_client: TestClient) -> None:
    api_client.post("/advertisements", json=_payload(_sensor_hex(4)))

    response = api_client.post("/advertisements", json=_payload(_sensor_hex(4)))

    assert response.status_code == 202
    assert response.json() == {"outcome": "dropped"}


def test_ingest_non_omron_is_dropped(api_client: TestClient) -> None:
    response = api_client.post("/advertisements", json=_payload(_sensor_hex(1), company="Other Corp"))

    assert response.json() == {"outcome": "dropped"}
    assert api_client.get("/devices").json() == {"devices": []}


def test_ingest_bad_frame_reports_error(api_client: TestClient, pipeline: EventPipeline) -> None:
    errors = []
    pipeline.bus.subscribe("error", errors.append)

    response = api_client.post("/advertisements", json=_payload("abcd"))

    assert response.status_code == 202
    assert response.json() == {"outcome": "error"}
    assert errors[0].kind.value == "unrecognized_frame_length"


def test_ingest_without_manufacturer_data_is_dropped(api_client: TestClient) -> None:
    response = api_client.post("/advertisements", json={"transmitterId": "AA:BB"})

    assert response.json() == {"outcome": "dropped"}


def test_ingest_blank_transmitter_is_bad_request(api_client: TestClient) -> None:
    response = api_client.post("/advertisements", json={"transmitterId": "   "})

    assert response.status_code == 400
    assert "transmitterId" in response.json()["detail"]


def test_ingest_missing_transmitter_is_bad_request(api_client: TestClient) -> None:
    response = api_client.post("/advertisements", json={"manufacturerSpecificData": {}})

    assert response.status_code == 400
    assert "transmitterId" in response.json()["detail"]


def test_ingest_non_string_transmitter_is_unprocessable(api_client: TestClient) -> None:
    response = api_client.post("/advertisements", json={"transmitterId": ["AA:BB"]})

    assert response.status_code == 422


def test_ingest_accepts_tiraid_shape(api_client: TestClient, pipeline: EventPipeline) -> None:
    tiraid = {
        "value": "CC:DD",
        "advData": {
            "manufacturerSpecificData": {
                "companyName": "OMRON Corporation",
                "data": _sensor_hex(3),
            }
        },
    }

    response = api_client.post("/advertisements", json=tiraid)

    assert response.status_code == 202
    assert response.json() == {"outcome": "published"}
    [device] = api_client.get("/devices").json()["devices"]
    assert device["device_id"] == "CC:DD"
    assert device["last_sequence_number"] == 3
