from __future__ import annotations

from models.records import AdvertisementRecord

OMRON_COMPANY_NAME = "OMRON Corporation"


def is_omron_source(record: AdvertisementRecord | None) -> bool:
    """Return True when the record's manufacturer block names OMRON.

    Some firmware prefixes the company name with a zero-width space, so this
    is a substring match rather than equality.
    """
    if record is None or record.manufacturer_data is None:
        return False
    company_name = record.manufacturer_data.company_name
    if not company_name:
        return False
    return OMRON_COMPANY_NAME in company_name
