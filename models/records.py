"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True, slots=True)
class ManufacturerData:
    """Manufacturer-specific block extracted by the scanning collaborator."""

    company_name: Optional[str] = None
    company_identifier_code: Optional[str] = None
    data: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ManufacturerData":
        return cls(
            company_name=_optional_str(payload.get("companyName")),
            company_identifier_code=_optional_str(payload.get("companyIdentifierCode")),
            data=_optional_str(payload.get("data")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "companyName": self.company_name,
            "companyIdentifierCode": self.company_identifier_code,
            "data": self.data,
        }


@dataclass(frozen=True, slots=True)
class AdvertisementRecord:
    """A single BLE advertisement observation."""

    transmitter_id: str
    manufacturer_data: Optional[ManufacturerData] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "AdvertisementRecord":
        """Build a record from either the flat shape or an advlib ``tiraid``.

        The flat shape carries ``transmitterId`` and
        ``manufacturerSpecificData`` at the top level. The tiraid shape keeps
        the identifier under ``value`` and nests the manufacturer block in
        ``advData``.
        """
        if not isinstance(payload, Mapping):
            raise ValueError("Advertisement record must be a JSON object.")

        transmitter_id = payload.get("transmitterId")
        if transmitter_id is None:
            transmitter_id = payload.get("value")
        if not isinstance(transmitter_id, str) or not transmitter_id.strip():
            raise ValueError("Advertisement record is missing transmitterId.")

        block = payload.get("manufacturerSpecificData")
        if block is None:
            adv_data = payload.get("advData")
            if isinstance(adv_data, Mapping):
                block = adv_data.get("manufacturerSpecificData")

        manufacturer = ManufacturerData.from_dict(block) if isinstance(block, Mapping) else None
        return cls(transmitter_id=transmitter_id.strip(), manufacturer_data=manufacturer)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"transmitterId": self.transmitter_id}
        if self.manufacturer_data is not None:
            payload["manufacturerSpecificData"] = self.manufacturer_data.to_dict()
        return payload

    @property
    def payload(self) -> Optional[str]:
        if self.manufacturer_data is None:
            return None
        return self.manufacturer_data.data or None


@dataclass(slots=True)
class DeviceState:
    """Last admitted emission for one device and message type."""

    last_emitted_at: datetime
    last_sequence_number: int


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)
