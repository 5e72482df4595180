"""Tests for advertisement record parsing and record sources."""

from __future__ import annotations

import io
import json
from itertools import islice

import pytest

from app.schemas import MessageType
from models.records import AdvertisementRecord
from services.decoder import decode_frame
from services.identity import is_omron_source
from sources.fixtures import FixtureSource, calculation_fixture, sensor_fixture
from sources.jsonl import iter_jsonl_records


def test_from_dict_flat_shape() -> None:
    record = AdvertisementRecord.from_dict(
        {
            "transmitterId": "aa:bb",
            "manufacturerSpecificData": {"companyName": "OMRON Corporation", "data": "00"},
        }
    )

    assert record.transmitter_id == "aa:bb"
    assert record.manufacturer_data is not None
    assert record.manufacturer_data.company_name == "OMRON Corporation"
    assert record.payload == "00"


def test_from_dict_tiraid_shape() -> None:
    record = AdvertisementRecord.from_dict(
        {
            "type": "ADVA-48",
            "value": "fee150bada55",
            "advData": {
                "manufacturerSpecificData": {
                    "companyName": "OMRON Corporation",
                    "companyIdentifierCode": "02d5",
                    "data": "abcd",
                }
            },
        }
    )

    assert record.transmitter_id == "fee150bada55"
    assert record.manufacturer_data is not None
    assert record.manufacturer_data.company_identifier_code == "02d5"
    assert record.payload == "abcd"


def test_from_dict_without_manufacturer_block() -> None:
    record = AdvertisementRecord.from_dict({"transmitterId": "aa:bb"})

    assert record.manufacturer_data is None
    assert record.payload is None
    assert record.to_dict() == {"transmitterId": "aa:bb"}


@pytest.mark.parametrize("payload", [{}, {"transmitterId": ""}, {"transmitterId": 5}, []])
def test_from_dict_requires_transmitter_id(payload) -> None:
    with pytest.raises(ValueError):
        AdvertisementRecord.from_dict(payload)


def test_to_dict_round_trips() -> None:
    record = sensor_fixture("AA:BB")

    assert AdvertisementRecord.from_dict(record.to_dict()) == record


def test_jsonl_source_skips_blank_and_invalid_lines(caplog) -> None:
    lines = [
        json.dumps({"transmitterId": "one"}),
        "",
        "{not json",
        json.dumps({"nope": True}),
        json.dumps({"value": "two"}),
    ]
    stream = io.StringIO("\n".join(lines) + "\n")

    records = list(iter_jsonl_records(stream))

    assert [record.transmitter_id for record in records] == ["one", "two"]
    assert sum("Skipping line" in message for message in caplog.messages) == 2


def test_fixtures_are_omron_and_decodable() -> None:
    sensor = sensor_fixture()
    calculation = calculation_fixture()

    assert is_omron_source(sensor)
    assert is_omron_source(calculation)
    assert calculation.manufacturer_data.company_name.startswith("\u200b")  # type: ignore[union-attr]
    assert decode_frame(sensor.payload).message_type is MessageType.sensor  # type: ignore[arg-type]
    assert decode_frame(calculation.payload).message_type is MessageType.calculation  # type: ignore[arg-type]


def test_fixture_source_alternates_starting_with_sensor() -> None:
    records = list(FixtureSource(device_id="fixture", limit=4))

    kinds = [decode_frame(record.payload).message_type for record in records]  # type: ignore[arg-type]
    assert kinds == [
        MessageType.sensor,
        MessageType.calculation,
        MessageType.sensor,
        MessageType.calculation,
    ]
    assert {record.transmitter_id for record in records} == {"fixture"}


def test_fixture_source_unbounded_without_limit() -> None:
    assert len(list(islice(FixtureSource(), 25))) == 25


def test_fixture_source_rejects_negative_limit() -> None:
    with pytest.raises(ValueError):
        FixtureSource(limit=-1)
