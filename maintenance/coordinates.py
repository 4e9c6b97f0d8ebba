"""Coordinate coverage report and backfill."""
from dataclasses import dataclass, field
from typing import List
from loguru import logger
from directory.records import BusinessRecord
from repository import StoreRepository
from utils.geocoder import NominatimClient


@dataclass
class CoordinateReport:
    total: int = 0
    with_coordinates: int = 0
    online_only: int = 0
    missing: List[BusinessRecord] = field(default_factory=list)


def needs_coordinates(record: BusinessRecord) -> bool:
    """Listings with a physical presence are expected to be on the map."""
    return record.coordinates is None and not record.is_online_only


def coordinate_report(repository: StoreRepository) -> CoordinateReport:
    """
    Summarize which listings have coordinates.

    Args:
        repository: Store repository

    Returns:
        CoordinateReport over every listing regardless of status
    """
    records = repository.fetch_records()
    report = CoordinateReport(total=len(records))
    for record in records:
        if record.coordinates is not None:
            report.with_coordinates += 1
        if record.is_online_only:
            report.online_only += 1
        if needs_coordinates(record):
            report.missing.append(record)

    logger.info(f"Total stores: {report.total}")
    logger.info(f"Have coordinates: {report.with_coordinates}")
    logger.info(f"Online (no coords expected): {report.online_only}")
    logger.info(f"Missing coordinates (non-online): {len(report.missing)}")
    for record in report.missing:
        logger.info(f"  {record.id} | {record.address or ''}, {record.city}, {record.state}, {record.country}")
    return report


def geocode_missing(repository: StoreRepository, geocoder: NominatimClient) -> int:
    """
    Geocode every non-online listing that has no coordinates yet.

    Args:
        repository: Store repository
        geocoder: Geocoding client

    Returns:
        Number of listings updated
    """
    missing = [r for r in repository.fetch_records() if needs_coordinates(r)]
    logger.info(f"Found {len(missing)} stores missing coordinates")

    updated = 0
    for record in missing:
        result = geocoder.geocode_location(record.address, record.city, record.state, record.country)
        if result is None:
            logger.warning(f"Could not geocode {record.id}")
            continue
        repository.update_store(record.id, lat=result.lat, lng=result.lng)
        repository.commit()
        updated += 1

    logger.info(f"Geocoded {updated} of {len(missing)} stores")
    return updated
