"""CSV importer implementation."""
import csv
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional
from sqlalchemy.orm import Session
from directory.records import BusinessRecord, StoreStatus, StoreType, make_store_id
from importers.base import BaseImporter, clean, parse_bool
from utils.geocoder import NominatimClient


def parse_categories(raw: Optional[str]) -> List[str]:
    """
    Split a spreadsheet category cell into category ids.

    Example:
        >>> parse_categories("Refillery; Bulk Foods")
        ['refillery', 'bulk-foods']
    """
    if not raw:
        return []
    categories = []
    for part in re.split(r"[,;]", raw):
        category = re.sub(r"\s+", "-", part.strip().lower())
        if category:
            categories.append(category)
    return categories


class CsvImporter(BaseImporter):
    """
    Import listings from a spreadsheet export.

    Rows are upserted by generated id. The command-line import publishes rows
    straight away; the review import geocodes rows and leaves them for an
    editor to approve.
    """

    source = "csv-import"

    def __init__(
        self,
        db_session: Session,
        geocoder: Optional[NominatimClient] = None,
        status: StoreStatus = StoreStatus.ACTIVE,
    ):
        super().__init__(db_session, geocoder)
        self.status = StoreStatus(status)

    @classmethod
    def for_review(cls, db_session: Session, geocoder: Optional[NominatimClient] = None) -> "CsvImporter":
        return cls(db_session, geocoder=geocoder or NominatimClient(), status=StoreStatus.NEEDS_REVIEW)

    def load_rows(self, path: str) -> List[Dict]:
        # utf-8-sig drops the BOM some spreadsheet exports add
        with open(path, newline="", encoding="utf-8-sig") as f:
            reader = csv.DictReader(f)
            return [
                {(key or "").strip().lower(): value for key, value in row.items()}
                for row in reader
                if any((value or "").strip() for value in row.values() if isinstance(value, str))
            ]

    def parse_row(self, row: Dict) -> Optional[BusinessRecord]:
        name = clean(row.get("name"))
        if not name:
            return None

        city = clean(row.get("city")) or ""
        address = clean(row.get("address"))
        now = datetime.now(timezone.utc)

        return BusinessRecord(
            id=make_store_id(name, city, address),
            name=name,
            description=clean(row.get("description")),
            categories=frozenset(parse_categories(row.get("categories"))),
            type=StoreType.parse(row.get("type")),
            website=clean(row.get("website")),
            email=clean(row.get("email")),
            phone=clean(row.get("phone")),
            instagram=clean(row.get("instagram")),
            facebook=clean(row.get("facebook")),
            twitter=clean(row.get("twitter")),
            tiktok=clean(row.get("tiktok")),
            address=address,
            city=city,
            state=clean(row.get("state")) or "",
            country=clean(row.get("country")) or "USA",
            postal_code=clean(row.get("postal_code")),
            offers_wholesale=parse_bool(row.get("offers_wholesale")),
            offers_local_delivery=parse_bool(row.get("offers_local_delivery")),
            status=self.status,
            source=self.source,
            created_at=now,
            last_verified_at=now,
        )
