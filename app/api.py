"""HTTP route definitions for the ingest service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas import (
    AdvertisementIn,
    DeviceStateList,
    DeviceStateView,
    IngestResponse,
)
from models.records import AdvertisementRecord
from services.pipeline import EventPipeline, build_default_pipeline

router = APIRouter()


def get_pipeline() -> EventPipeline:
    return build_default_pipeline()


@router.post(
    "/advertisements",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=IngestResponse,
    summary="Submit one advertisement record observed by a scanner.",
)
async def ingest_advertisement(
    advertisement: AdvertisementIn,
    pipeline: EventPipeline = Depends(get_pipeline),
) -> IngestResponse:
    try:
        record = AdvertisementRecord.from_dict(advertisement.model_dump(exclude_none=True))
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    outcome = pipeline.handle(record)
    return IngestResponse(outcome=outcome)


@router.get(
    "/devices",
    response_model=DeviceStateList,
    summary="List the last admitted emission per device and message type.",
)
async def list_devices(
    pipeline: EventPipeline = Depends(get_pipeline),
) -> DeviceStateList:
    devices = [
        DeviceStateView(
            device_id=device_id,
            message_type=message_type,
            last_emitted_at=state.last_emitted_at,
            last_sequence_number=state.last_sequence_number,
        )
        for (device_id, message_type), state in pipeline.state.items()
    ]
    return DeviceStateList(devices=devices)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
