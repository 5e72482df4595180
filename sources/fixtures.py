"""Canned OMRON advertisements used in place of a live scanner."""

from __future__ import annotations

from itertools import count, islice
from typing import Iterator, Optional

from models.records import AdvertisementRecord, ManufacturerData

FIXTURE_DEVICE_ID = "fixture-device"

SENSOR_FIXTURE_DATA = (
    "0343db1caa080180006e05f81184fe270042daffffffffffffffff" + "ff" * 11
)
CALCULATION_FIXTURE_DATA = "0343b90a32100000a5820f00fc1b75009304ff" + "00" * 35


def sensor_fixture(device_id: str = FIXTURE_DEVICE_ID) -> AdvertisementRecord:
    return AdvertisementRecord(
        transmitter_id=device_id,
        manufacturer_data=ManufacturerData(
            company_name="OMRON Corporation",
            company_identifier_code="02d5",
            data=SENSOR_FIXTURE_DATA,
        ),
    )


def calculation_fixture(device_id: str = FIXTURE_DEVICE_ID) -> AdvertisementRecord:
    # Some firmware prefixes the company name with a zero-width space.
    return AdvertisementRecord(
        transmitter_id=device_id,
        manufacturer_data=ManufacturerData(
            company_name="\u200bOMRON Corporation",
            company_identifier_code="02d5",
            data=CALCULATION_FIXTURE_DATA,
        ),
    )


class FixtureSource:
    """Alternates sensor and calculation fixtures, starting with sensor."""

    def __init__(self, device_id: str = FIXTURE_DEVICE_ID, limit: Optional[int] = None) -> None:
        if limit is not None and limit < 0:
            raise ValueError("limit must be non-negative.")
        self.device_id = device_id
        self.limit = limit

    def __iter__(self) -> Iterator[AdvertisementRecord]:
        records = (self._record_for(index) for index in count())
        if self.limit is None:
            return records
        return islice(records, self.limit)

    def _record_for(self, index: int) -> AdvertisementRecord:
        if index % 2 == 0:
            return sensor_fixture(self.device_id)
        return calculation_fixture(self.device_id)
