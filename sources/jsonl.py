from __future__ import annotations

import json
import logging
from typing import Iterator, TextIO

from models.records import AdvertisementRecord

logger = logging.getLogger(__name__)


def iter_jsonl_records(stream: TextIO) -> Iterator[AdvertisementRecord]:
    """Yield one advertisement record per JSON line.

    Blank lines are skipped. Lines that are not valid records are logged and
    skipped so one bad observation does not end the stream.
    """
    for line_number, line in enumerate(stream, start=1):
        candidate = line.strip()
        if not candidate:
            continue
        try:
            payload = json.loads(candidate)
            record = AdvertisementRecord.from_dict(payload)
        except (json.JSONDecodeError, ValueError) as exc:
            logger.warning(
                "Skipping line %d: %s", line_number, exc, extra={"reason": "unparseable_record"}
            )
            continue
        yield record
