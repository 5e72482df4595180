"""Orchestration from advertisement record to published event."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable, Iterable, Optional

from app.schemas import DecodedEvent, ErrorKind, PipelineError, PipelineOutcome
from datastore.device_state import DeviceStateStore
from models.records import AdvertisementRecord
from services.decoder import InvalidHexEncoding, UnrecognizedFrameLength, decode
from services.event_bus import ERROR_CHANNEL, EVENT_CHANNEL, EventBus
from services.filters import FilterChain, FilterConfig, InternalInconsistencyError
from services.identity import is_omron_source
from settings import get_settings

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventPipeline:
    """Validates, decodes, filters and publishes advertisement records."""

    def __init__(
        self,
        config: FilterConfig,
        state: Optional[DeviceStateStore] = None,
        bus: Optional[EventBus] = None,
        filters: Optional[FilterChain] = None,
        clock: Clock = _utcnow,
    ) -> None:
        self.config = config
        self.state = state if state is not None else DeviceStateStore()
        self.bus = bus if bus is not None else EventBus()
        self.filters = filters if filters is not None else FilterChain()
        self.clock = clock

    def handle(self, record: AdvertisementRecord) -> PipelineOutcome:
        """Run one record to a terminal outcome. Never raises for bad input."""
        device_id = record.transmitter_id

        if not self.config.allows_device(device_id):
            logger.debug("Dropped non-whitelisted device", extra={"device_id": device_id})
            return PipelineOutcome.dropped

        if not is_omron_source(record):
            logger.debug("Dropped non-OMRON advertisement", extra={"device_id": device_id})
            return PipelineOutcome.dropped

        raw = record.payload
        if not raw:
            return self._report(
                ErrorKind.missing_payload,
                f"No data found in OMRON packet from {device_id}",
                record,
            )

        try:
            event = decode(raw, device_id)
        except InvalidHexEncoding as exc:
            return self._report(ErrorKind.invalid_hex_encoding, str(exc), record)
        except UnrecognizedFrameLength as exc:
            return self._report(
                ErrorKind.unrecognized_frame_length, str(exc), record, frame_length=exc.length
            )

        try:
            decision = self.filters.admit(event, self.state, self.config, self.clock())
        except InternalInconsistencyError as exc:
            return self._report(ErrorKind.internal_inconsistency, str(exc), record)

        if not decision.accepted:
            logger.debug(
                "Dropped event",
                extra={
                    "device_id": device_id,
                    "message_type": event.message_type.value,
                    "sequence_number": event.sequence_number,
                    "reason": decision.reason.value if decision.reason else None,
                },
            )
            return PipelineOutcome.dropped

        self._publish(event)
        return PipelineOutcome.published

    def run(self, records: Iterable[AdvertisementRecord]) -> None:
        for record in records:
            self.handle(record)

    def _publish(self, event: DecodedEvent) -> None:
        logger.info(
            "Publishing event",
            extra={
                "device_id": event.device_id,
                "message_type": event.message_type.value,
                "sequence_number": event.sequence_number,
            },
        )
        self.bus.publish(EVENT_CHANNEL, event)
        self.bus.publish(event.message_type.value, event)

    def _report(
        self,
        kind: ErrorKind,
        message: str,
        record: AdvertisementRecord,
        frame_length: Optional[int] = None,
    ) -> PipelineOutcome:
        logger.warning(
            message,
            extra={
                "device_id": record.transmitter_id,
                "error_kind": kind.value,
                "frame_length": frame_length,
            },
        )
        error = PipelineError(
            kind=kind,
            message=message,
            device_id=record.transmitter_id,
            record=record.to_dict(),
        )
        self.bus.publish(ERROR_CHANNEL, error)
        return PipelineOutcome.error


@lru_cache
def build_default_pipeline() -> EventPipeline:
    """Factory that wires the pipeline from environment settings."""
    settings = get_settings()
    return EventPipeline(
        config=settings.filter_config(),
        state=DeviceStateStore(max_devices=settings.state_max_devices),
    )
