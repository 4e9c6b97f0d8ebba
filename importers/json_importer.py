"""Importer for the legacy JSON data directory."""
import json
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional
from loguru import logger
from directory.records import (
    BusinessRecord,
    Category,
    SecondaryLocation,
    Sponsor,
    StoreStatus,
    StoreType,
    make_coordinates,
    make_store_id,
)
from importers.base import BaseImporter, ImportSummary, clean, parse_bool


def parse_datetime(value) -> Optional[datetime]:
    """Parse 'YYYY-MM-DD' or ISO-8601 timestamps; naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparseable date: {value}")
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def parse_date(value) -> Optional[date]:
    parsed = parse_datetime(value)
    return parsed.date() if parsed else None


def _coordinates(location: Dict):
    coords = location.get("coordinates") or {}
    return make_coordinates(coords.get("lat"), coords.get("lng"))


class JsonImporter(BaseImporter):
    """
    Migrate the pre-database JSON files.

    Layout of the data directory:
        categories.json      list of categories
        sponsors.json        list of sponsors
        stores/*.json        one list of stores per file, e.g. usa-or.json
    """

    source = "json-migration"

    def load_rows(self, path: str) -> List[Dict]:
        stores_dir = Path(path) / "stores"
        rows: List[Dict] = []
        if not stores_dir.is_dir():
            logger.warning(f"No stores directory in {path}")
            return rows
        for file_path in sorted(stores_dir.glob("*.json")):
            with open(file_path, encoding="utf-8") as f:
                rows.extend(json.load(f))
        return rows

    def parse_row(self, row: Dict) -> Optional[BusinessRecord]:
        name = clean(row.get("name"))
        if not name:
            return None

        location = row.get("location") or {}
        contact = row.get("contact") or {}
        social = row.get("social") or {}
        city = clean(location.get("city")) or ""
        created_at = parse_datetime(row.get("createdAt") or row.get("addedDate"))
        last_verified = parse_datetime(row.get("lastVerifiedAt") or row.get("lastVerified"))

        return BusinessRecord(
            id=clean(row.get("id")) or make_store_id(name, city, location.get("address")),
            name=name,
            description=clean(row.get("description")),
            categories=frozenset(row.get("categories") or []),
            type=StoreType.parse(row.get("type")),
            logo=clean(row.get("logo")),
            website=clean(row.get("website")),
            email=clean(row.get("email") or contact.get("email")),
            phone=clean(row.get("phone") or contact.get("phone")),
            instagram=clean(row.get("instagram") or social.get("instagram")),
            facebook=clean(row.get("facebook") or social.get("facebook")),
            twitter=clean(row.get("twitter") or social.get("twitter")),
            tiktok=clean(row.get("tiktok") or social.get("tiktok")),
            address=clean(location.get("address")),
            city=city,
            state=clean(location.get("state")) or "",
            country=clean(location.get("country")) or "USA",
            postal_code=clean(location.get("postalCode")),
            coordinates=_coordinates(location),
            offers_wholesale=parse_bool(row.get("offersWholesale")),
            offers_local_delivery=parse_bool(row.get("offersLocalDelivery")),
            featured=parse_bool(row.get("featured")),
            status=StoreStatus(row.get("status") or StoreStatus.ACTIVE.value),
            source=self.source,
            created_at=created_at,
            last_verified_at=last_verified,
            secondary_locations=tuple(
                SecondaryLocation(
                    address=clean(loc.get("address")),
                    city=clean(loc.get("city")) or "",
                    state=clean(loc.get("state")) or "",
                    country=clean(loc.get("country")) or "USA",
                    postal_code=clean(loc.get("postalCode")),
                    coordinates=_coordinates(loc),
                    phone=clean(loc.get("phone")),
                )
                for loc in row.get("locations") or []
            ),
        )

    def _load_list(self, path: Path) -> List[Dict]:
        if not path.is_file():
            logger.warning(f"Missing {path}, skipping")
            return []
        with open(path, encoding="utf-8") as f:
            return json.load(f)

    def import_categories(self, path: str) -> int:
        imported = 0
        for row in self._load_list(Path(path) / "categories.json"):
            category_id, name = clean(row.get("id")), clean(row.get("name"))
            if not category_id or not name:
                logger.error(f"Skipping category without id or name: {row!r}")
                continue
            self.repository.save_category(Category(
                id=category_id,
                name=name,
                description=row.get("description") or "",
                icon=row.get("icon") or "",
            ))
            imported += 1
        self.repository.commit()
        logger.info(f"Migrated {imported} categories")
        return imported

    def import_sponsors(self, path: str) -> int:
        imported = 0
        for row in self._load_list(Path(path) / "sponsors.json"):
            sponsor_id, name = clean(row.get("id")), clean(row.get("name"))
            if not sponsor_id or not name:
                logger.error(f"Skipping sponsor without id or name: {row!r}")
                continue
            self.repository.save_sponsor(Sponsor(
                id=sponsor_id,
                name=name,
                description=row.get("description") or "",
                logo=clean(row.get("logo")),
                image=clean(row.get("image")),
                video=clean(row.get("video")),
                website=clean(row.get("website")),
                cta=clean(row.get("cta")),
                placement=frozenset(row.get("placement") or []),
                target_categories=frozenset(row.get("targetCategories") or []),
                target_states=frozenset(row.get("targetStates") or []),
                start_date=parse_date(row.get("startDate")),
                end_date=parse_date(row.get("endDate")),
                is_active=row.get("isActive") is not False,
            ))
            imported += 1
        self.repository.commit()
        logger.info(f"Migrated {imported} sponsors")
        return imported

    def run(self, path: str) -> ImportSummary:
        self.import_categories(path)
        self.import_sponsors(path)
        return super().run(path)
