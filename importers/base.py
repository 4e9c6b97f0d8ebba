"""Base importer class with common functionality."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from directory.records import BusinessRecord, LatLng, StoreType
from repository import StoreRepository
from utils.geocoder import NominatimClient


@dataclass
class ImportSummary:
    """Counters reported at the end of an import run."""
    imported: int = 0
    skipped: int = 0
    errors: int = 0
    geocoded: int = 0
    failed_ids: List[str] = field(default_factory=list)


def clean(value: Any) -> Optional[str]:
    """Strip a raw cell value; empty strings become None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in ("true", "1", "yes", "y")


class BaseImporter(ABC):
    """Base class for all listing importers."""

    source = "import"

    def __init__(self, db_session: Session, geocoder: Optional[NominatimClient] = None):
        """
        Initialize the importer.

        Args:
            db_session: Database session
            geocoder: Geocoding client; when given, listings without coordinates are geocoded
        """
        self.db = db_session
        self.repository = StoreRepository(db_session)
        self.geocoder = geocoder

    @abstractmethod
    def load_rows(self, path: str) -> List[Dict]:
        """
        Read raw rows from a file or directory.

        Args:
            path: Location of the data

        Returns:
            List of raw row dictionaries
        """
        pass

    @abstractmethod
    def parse_row(self, row: Dict) -> Optional[BusinessRecord]:
        """
        Convert a raw row into a listing.

        Args:
            row: Raw row dictionary

        Returns:
            BusinessRecord or None if the row should be skipped
        """
        pass

    def geocode(self, record: BusinessRecord) -> Optional[LatLng]:
        """Geocode a listing that has a physical presence and no coordinates yet."""
        if self.geocoder is None or record.coordinates is not None:
            return None
        if not record.type & (StoreType.BRICK_AND_MORTAR | StoreType.MOBILE):
            return None
        return self.geocoder.geocode_location(record.address, record.city, record.state, record.country)

    def save_record(self, record: BusinessRecord) -> bool:
        """
        Save a listing to the database and commit it.

        Args:
            record: Listing to save

        Returns:
            True if saved, False if the write failed
        """
        try:
            self.repository.save_record(record)
            self.db.commit()
            return True
        except SQLAlchemyError as e:
            logger.error(f"Error saving store {record.id}: {e}")
            self.db.rollback()
            return False

    def import_rows(self, rows: List[Dict]) -> ImportSummary:
        """
        Parse, optionally geocode and save rows.

        Args:
            rows: Raw row dictionaries

        Returns:
            ImportSummary with per-outcome counts
        """
        summary = ImportSummary()

        for row in rows:
            try:
                record = self.parse_row(row)
            except ValueError as e:
                logger.error(f"Invalid row {row.get('name')!r}: {e}")
                summary.errors += 1
                continue

            if record is None:
                logger.info("Skipping row with no name")
                summary.skipped += 1
                continue

            coordinates = self.geocode(record)
            if coordinates is not None:
                record = replace(record, coordinates=coordinates)
                summary.geocoded += 1

            if self.save_record(record):
                logger.info(f"Imported: {record.name} -> {record.id}")
                summary.imported += 1
            else:
                summary.errors += 1
                summary.failed_ids.append(record.id)

        self.repository.commit()
        logger.info(
            f"Done! {summary.imported} imported, {summary.skipped} skipped, "
            f"{summary.errors} errors, {summary.geocoded} geocoded."
        )
        return summary

    def run(self, path: str) -> ImportSummary:
        rows = self.load_rows(path)
        logger.info(f"Found {len(rows)} rows in {path}")
        return self.import_rows(rows)
