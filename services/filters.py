"""Admission checks applied to decoded events before they are published."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Iterable, Optional

from app.schemas import DecodedEvent, MessageType
from datastore.device_state import DeviceStateStore


class InternalInconsistencyError(RuntimeError):
    """An event reached the filters with a message type they do not know."""

    def __init__(self, message_type: object) -> None:
        super().__init__(f"Could not check validity of message type {message_type}")
        self.message_type = message_type


class RejectReason(str, Enum):
    not_whitelisted = "not_whitelisted"
    cooling_down = "cooling_down"
    all_zero = "all_zero"
    duplicate_sequence = "duplicate_sequence"


@dataclass(frozen=True)
class AdmitDecision:
    accepted: bool
    reason: Optional[RejectReason] = None

    @classmethod
    def accept(cls) -> "AdmitDecision":
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: RejectReason) -> "AdmitDecision":
        return cls(accepted=False, reason=reason)


@dataclass(frozen=True)
class FilterConfig:
    whitelist: Optional[FrozenSet[str]] = None
    cooldown_seconds: float = 0
    test_mode: bool = False

    def __post_init__(self) -> None:
        if self.cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must be non-negative.")
        if self.whitelist is not None and not isinstance(self.whitelist, frozenset):
            object.__setattr__(self, "whitelist", frozenset(self.whitelist))

    @classmethod
    def build(
        cls,
        whitelist: Optional[Iterable[str]] = None,
        cooldown_seconds: float = 0,
        test_mode: bool = False,
    ) -> "FilterConfig":
        members = frozenset(whitelist) if whitelist else None
        return cls(whitelist=members or None, cooldown_seconds=cooldown_seconds, test_mode=test_mode)

    def allows_device(self, device_id: str) -> bool:
        if not self.whitelist:
            return True
        return device_id in self.whitelist


def is_all_zero(event: DecodedEvent) -> bool:
    """Boot-up frames report zero for every physical measurement."""
    reading = event.reading
    if event.message_type == MessageType.sensor:
        return (
            reading.temperature == 0
            and reading.relative_humidity == 0
            and reading.ambient_light == 0
            and reading.barometric_pressure == 0
        )
    if event.message_type == MessageType.calculation:
        return (
            reading.acc_x_axis == 0
            and reading.acc_y_axis == 0
            and reading.acc_z_axis == 0
            and reading.discomfort_index == 0
            and reading.heat_stroke_risk == 0
        )
    raise InternalInconsistencyError(event.message_type)


class FilterChain:
    """Ordered admission checks: whitelist, cooldown, all-zero, duplicate."""

    def admit(
        self,
        event: DecodedEvent,
        state: DeviceStateStore,
        config: FilterConfig,
        now: datetime,
    ) -> AdmitDecision:
        if not config.allows_device(event.device_id):
            return AdmitDecision.reject(RejectReason.not_whitelisted)

        with state.lock:
            previous = state.get(event.device_id, event.message_type)

            if config.cooldown_seconds > 0 and previous is not None:
                elapsed = (now - previous.last_emitted_at).total_seconds()
                if elapsed < config.cooldown_seconds:
                    return AdmitDecision.reject(RejectReason.cooling_down)

            if is_all_zero(event):
                return AdmitDecision.reject(RejectReason.all_zero)

            # A wrapped counter landing on the previous value is dropped too.
            if (
                not config.test_mode
                and previous is not None
                and previous.last_sequence_number == event.sequence_number
            ):
                return AdmitDecision.reject(RejectReason.duplicate_sequence)

            state.record(event.device_id, event.message_type, now, event.sequence_number)
        return AdmitDecision.accept()
