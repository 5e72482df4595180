"""Binary frame decoding for OMRON environment sensor advertisements."""

from __future__ import annotations

import string
import struct
from typing import Union

from app.schemas import CalculationReading, DecodedEvent, SensorReading

SENSOR_FRAME_LENGTH = 38
CALCULATION_FRAME_LENGTH = 54

# Little-endian field layouts. Frames are longer than the layouts; the
# remaining bytes are reserved by the device and ignored.
_SENSOR_LAYOUT = struct.Struct("<BBHHHIHHH")
_CALCULATION_LAYOUT = struct.Struct("<BBHHBHHHHHH")


class DecodeError(ValueError):
    """Raised when a manufacturer payload cannot be turned into a reading."""


class InvalidHexEncoding(DecodeError):
    def __init__(self, raw: str) -> None:
        super().__init__(f"Payload is not valid hex: {raw!r}")
        self.raw = raw


class UnrecognizedFrameLength(DecodeError):
    def __init__(self, length: int) -> None:
        super().__init__(f"Unrecognized data frame with length {length}")
        self.length = length


def decode_frame(raw_hex: str) -> Union[SensorReading, CalculationReading]:
    """Decode a hex payload into a sensor or calculation reading.

    The frame kind is chosen by byte length alone. Both frame kinds may carry
    the same ``data_type`` byte, so it is reported but never trusted.
    """
    buffer = _to_bytes(raw_hex)
    length = len(buffer)
    if length == SENSOR_FRAME_LENGTH:
        return _decode_sensor(buffer)
    if length == CALCULATION_FRAME_LENGTH:
        return _decode_calculation(buffer)
    raise UnrecognizedFrameLength(length)


def decode(raw_hex: str, device_id: str) -> DecodedEvent:
    return DecodedEvent(device_id=device_id, reading=decode_frame(raw_hex))


def _to_bytes(raw_hex: str) -> bytes:
    # fromhex tolerates whitespace, frames must not contain any
    if not isinstance(raw_hex, str) or len(raw_hex) % 2:
        raise InvalidHexEncoding(raw_hex)
    if not all(char in string.hexdigits for char in raw_hex):
        raise InvalidHexEncoding(raw_hex)
    return bytes.fromhex(raw_hex)


def _decode_sensor(buffer: bytes) -> SensorReading:
    (
        data_type,
        sequence_number,
        temperature,
        relative_humidity,
        ambient_light,
        barometric_pressure,
        sound_level,
        etvoc,
        eco2,
    ) = _SENSOR_LAYOUT.unpack_from(buffer)

    celsius = temperature / 100
    return SensorReading(
        data_type=data_type,
        sequence_number=sequence_number,
        temperature=celsius,
        temperature_f=round(celsius * 9 / 5 + 32, 2),
        relative_humidity=relative_humidity / 100,
        ambient_light=ambient_light,
        barometric_pressure=barometric_pressure / 1000,
        sound_level=sound_level / 100,
        etvoc=etvoc,
        eco2=eco2,
    )


def _decode_calculation(buffer: bytes) -> CalculationReading:
    (
        data_type,
        sequence_number,
        discomfort_index,
        heat_stroke_risk,
        vibration,
        si_value,
        peak_ground_acceleration,
        seismic_intensity,
        acc_x_axis,
        acc_y_axis,
        acc_z_axis,
    ) = _CALCULATION_LAYOUT.unpack_from(buffer)

    return CalculationReading(
        data_type=data_type,
        sequence_number=sequence_number,
        discomfort_index=discomfort_index / 100,
        heat_stroke_risk=heat_stroke_risk / 100,
        vibration=vibration,
        si_value=si_value / 10,
        peak_ground_acceleration=peak_ground_acceleration / 10,
        seismic_intensity=seismic_intensity / 1000,
        acc_x_axis=acc_x_axis / 10,
        acc_y_axis=acc_y_axis / 10,
        acc_z_axis=acc_z_axis / 10,
    )
