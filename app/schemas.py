"""Pydantic schemas for decoded readings, pipeline output and the HTTP layer."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, computed_field


class MessageType(str, Enum):
    """Frame kinds an OMRON beacon broadcasts."""

    sensor = "sensor"
    calculation = "calculation"


class SensorReading(BaseModel):
    """Environmental readings carried by the 38-byte frame."""

    message_type: Literal[MessageType.sensor] = MessageType.sensor
    data_type: int = Field(..., ge=0, le=0xFF)
    sequence_number: int = Field(..., ge=0, le=0xFF)
    temperature: float = Field(..., description="Degrees Celsius.")
    temperature_f: float = Field(..., description="Degrees Fahrenheit, 2 decimals.")
    relative_humidity: float = Field(..., description="%RH.")
    ambient_light: int = Field(..., ge=0, description="Raw lux value.")
    barometric_pressure: float = Field(..., description="hPa.")
    sound_level: float = Field(..., description="dB.")
    etvoc: int = Field(..., ge=0, description="Raw ppb value.")
    eco2: int = Field(..., ge=0, description="Raw ppm value.")


class CalculationReading(BaseModel):
    """Derived comfort and seismic values carried by the 54-byte frame."""

    message_type: Literal[MessageType.calculation] = MessageType.calculation
    data_type: int = Field(..., ge=0, le=0xFF)
    sequence_number: int = Field(..., ge=0, le=0xFF)
    discomfort_index: float
    heat_stroke_risk: float
    vibration: int = Field(..., ge=0, le=0xFF)
    si_value: float = Field(..., description="kine.")
    peak_ground_acceleration: float = Field(..., description="gal.")
    seismic_intensity: float
    acc_x_axis: float = Field(..., description="gal.")
    acc_y_axis: float = Field(..., description="gal.")
    acc_z_axis: float = Field(..., description="gal.")


Reading = Annotated[
    Union[SensorReading, CalculationReading],
    Field(discriminator="message_type"),
]


class DecodedEvent(BaseModel):
    """A decoded reading attributed to the transmitter that sent it."""

    device_id: str
    reading: Reading

    @computed_field  # type: ignore[prop-decorator]
    @property
    def message_type(self) -> MessageType:
        return self.reading.message_type

    @property
    def sequence_number(self) -> int:
        return self.reading.sequence_number


class ErrorKind(str, Enum):
    missing_payload = "missing_payload"
    invalid_hex_encoding = "invalid_hex_encoding"
    unrecognized_frame_length = "unrecognized_frame_length"
    internal_inconsistency = "internal_inconsistency"


class PipelineError(BaseModel):
    """Structured error published for a single offending advertisement."""

    kind: ErrorKind
    message: str
    device_id: Optional[str] = None
    record: Optional[Dict[str, Any]] = None


class PipelineOutcome(str, Enum):
    """Terminal state of one advertisement through the pipeline."""

    published = "published"
    dropped = "dropped"
    error = "error"


class ManufacturerDataIn(BaseModel):
    companyName: Optional[str] = None
    companyIdentifierCode: Optional[str] = None
    data: Optional[str] = None


class AdvDataIn(BaseModel):
    manufacturerSpecificData: Optional[ManufacturerDataIn] = None


class AdvertisementIn(BaseModel):
    """Advertisement record pushed by an external scanner.

    Either the flat shape (``transmitterId``) or an advlib tiraid
    (``value`` plus ``advData``) is accepted.
    """

    transmitterId: Optional[str] = Field(default=None, min_length=1)
    manufacturerSpecificData: Optional[ManufacturerDataIn] = None
    value: Optional[str] = Field(default=None, min_length=1)
    advData: Optional[AdvDataIn] = None


class IngestResponse(BaseModel):
    outcome: PipelineOutcome


class DeviceStateView(BaseModel):
    device_id: str
    message_type: MessageType
    last_emitted_at: datetime
    last_sequence_number: int = Field(..., ge=0, le=0xFF)


class DeviceStateList(BaseModel):
    devices: List[DeviceStateView] = Field(default_factory=list)
