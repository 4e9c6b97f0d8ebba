"""Record store access: database rows in, typed records out."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from loguru import logger
from sqlalchemy.orm import Session

import models
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


class StoreNotFoundError(LookupError):
    """Raised when a write targets a store id that does not exist."""


class CategoryNotFoundError(LookupError):
    """Raised when a write targets a category id that does not exist."""


class SponsorNotFoundError(LookupError):
    """Raised when a write targets a sponsor id that does not exist."""


SUBMISSION_SOURCE = "public-submission"


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def store_to_record(row: models.Store) -> BusinessRecord:
    """Convert a Store row into a BusinessRecord."""
    return BusinessRecord(
        id=row.id,
        name=row.name,
        description=row.description,
        categories=frozenset(row.categories or []),
        type=StoreType.parse(row.type),
        address=row.address,
        city=row.city or "",
        state=row.state or "",
        country=row.country or "USA",
        postal_code=row.postal_code,
        coordinates=make_coordinates(row.lat, row.lng),
        website=row.website,
        email=row.email,
        phone=row.phone,
        logo=row.logo,
        instagram=row.instagram,
        facebook=row.facebook,
        twitter=row.twitter,
        tiktok=row.tiktok,
        offers_wholesale=bool(row.offers_wholesale),
        offers_local_delivery=bool(row.offers_local_delivery),
        featured=bool(row.featured),
        status=StoreStatus(row.status),
        source=row.source,
        created_at=_as_utc(row.created_at),
        last_verified_at=_as_utc(row.last_verified_at),
        secondary_locations=tuple(
            SecondaryLocation(
                address=loc.address,
                city=loc.city or "",
                state=loc.state or "",
                country=loc.country or "USA",
                postal_code=loc.postal_code,
                coordinates=make_coordinates(loc.lat, loc.lng),
                phone=loc.phone,
            )
            for loc in row.locations
        ),
    )


def record_to_columns(record: BusinessRecord) -> Dict:
    """Column values of a BusinessRecord, without secondary locations."""
    coords = record.coordinates
    columns = {
        "id": record.id,
        "name": record.name,
        "description": record.description,
        "categories": sorted(record.categories),
        "type": record.type.serialize(),
        "logo": record.logo,
        "website": record.website,
        "email": record.email,
        "phone": record.phone,
        "instagram": record.instagram,
        "facebook": record.facebook,
        "twitter": record.twitter,
        "tiktok": record.tiktok,
        "address": record.address,
        "city": record.city,
        "state": record.state,
        "country": record.country,
        "postal_code": record.postal_code,
        "lat": coords.lat if coords else None,
        "lng": coords.lng if coords else None,
        "offers_wholesale": record.offers_wholesale,
        "offers_local_delivery": record.offers_local_delivery,
        "featured": record.featured,
        "status": record.status.value,
        "source": record.source,
        "last_verified_at": record.last_verified_at,
    }
    if record.created_at is not None:
        columns["created_at"] = record.created_at
    return columns


def _location_rows(record: BusinessRecord) -> List[models.StoreLocation]:
    rows = []
    for position, loc in enumerate(record.secondary_locations):
        rows.append(models.StoreLocation(
            position=position,
            address=loc.address,
            city=loc.city,
            state=loc.state,
            country=loc.country,
            postal_code=loc.postal_code,
            lat=loc.coordinates.lat if loc.coordinates else None,
            lng=loc.coordinates.lng if loc.coordinates else None,
            phone=loc.phone,
        ))
    return rows


def category_to_record(row: models.Category) -> Category:
    return Category(id=row.id, name=row.name, description=row.description or "", icon=row.icon or "")


def sponsor_to_record(row: models.Sponsor) -> Sponsor:
    return Sponsor(
        id=row.id,
        name=row.name,
        description=row.description or "",
        logo=row.logo,
        image=row.image,
        video=row.video,
        website=row.website,
        cta=row.cta,
        placement=frozenset(row.placement or []),
        target_categories=frozenset(row.target_categories or []),
        target_states=frozenset(row.target_states or []),
        start_date=row.start_date,
        end_date=row.end_date,
        is_active=bool(row.is_active),
    )


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def submission_to_record(submission: Mapping[str, Any], now: Optional[datetime] = None) -> BusinessRecord:
    """
    Validate a public business submission and build its listing.

    The listing always starts in review. Its id is generated from the name and
    city, with 'online' standing in for a missing city.

    Args:
        submission: Form fields (name, description, categories, type, website,
            email, phone, address, city, state, country, postal_code,
            social handles, offers_wholesale, offers_local_delivery)
        now: Creation time (defaults to now, UTC)

    Returns:
        BusinessRecord with status needs-review

    Raises:
        ValueError: If the name, the description or every category is missing
    """
    name = _text(submission.get("name"))
    description = _text(submission.get("description"))
    raw_categories = submission.get("categories") or []
    if isinstance(raw_categories, str):
        raw_categories = [raw_categories]
    categories = frozenset(c.strip() for c in raw_categories if c and c.strip())

    if not name or not description or not categories:
        raise ValueError("Name, description, and at least one category are required.")

    city = _text(submission.get("city")) or ""
    return BusinessRecord(
        id=make_store_id(name, city),
        name=name,
        description=description,
        categories=categories,
        type=StoreType.parse(submission.get("type")),
        website=_text(submission.get("website")),
        email=_text(submission.get("email")),
        phone=_text(submission.get("phone")),
        instagram=_text(submission.get("instagram")),
        facebook=_text(submission.get("facebook")),
        twitter=_text(submission.get("twitter")),
        tiktok=_text(submission.get("tiktok")),
        address=_text(submission.get("address")),
        city=city,
        state=_text(submission.get("state")) or "",
        country=_text(submission.get("country")) or "USA",
        postal_code=_text(submission.get("postal_code")),
        offers_wholesale=bool(submission.get("offers_wholesale")),
        offers_local_delivery=bool(submission.get("offers_local_delivery")),
        status=StoreStatus.NEEDS_REVIEW,
        source=SUBMISSION_SOURCE,
        created_at=now or datetime.now(timezone.utc),
    )


class StoreRepository:
    """Read and write listings, categories and sponsors through one session."""

    def __init__(self, db_session: Session):
        """
        Initialize the repository.

        Args:
            db_session: Database session
        """
        self.db = db_session

    def fetch_active_records(self) -> List[BusinessRecord]:
        """Snapshot of all active listings, ordered by name."""
        return self.fetch_records(StoreStatus.ACTIVE)

    def fetch_records(self, status: Optional[StoreStatus] = None) -> List[BusinessRecord]:
        """
        Load listings, optionally restricted to one status.

        Args:
            status: Status to select, or None for every listing

        Returns:
            List of BusinessRecord ordered by name
        """
        query = self.db.query(models.Store)
        if status is not None:
            query = query.filter(models.Store.status == StoreStatus(status).value)
        return [store_to_record(row) for row in query.order_by(models.Store.name).all()]

    def get_record(self, store_id: str) -> Optional[BusinessRecord]:
        row = self.db.get(models.Store, store_id)
        return store_to_record(row) if row else None

    def _get_row(self, store_id: str) -> models.Store:
        row = self.db.get(models.Store, store_id)
        if row is None:
            raise StoreNotFoundError(store_id)
        return row

    def save_record(self, record: BusinessRecord) -> models.Store:
        """
        Insert or update a listing by id.

        Secondary locations are replaced wholesale. The creation timestamp of an
        existing listing is kept unless the record carries one.

        Args:
            record: Listing to store

        Returns:
            Store model instance
        """
        columns = record_to_columns(record)
        existing = self.db.get(models.Store, record.id)

        if existing:
            for key, value in columns.items():
                setattr(existing, key, value)
            existing.locations = _location_rows(record)
            logger.info(f"Updated store: {existing.id}")
            return existing

        store = models.Store(**columns)
        store.locations = _location_rows(record)
        self.db.add(store)
        self.db.flush()
        logger.info(f"Created new store: {store.id}")
        return store

    def update_store(self, store_id: str, **fields) -> models.Store:
        """
        Pass-through column update.

        Args:
            store_id: Id of the store
            **fields: Column names and new values

        Returns:
            Updated Store model instance
        """
        row = self._get_row(store_id)
        for key, value in fields.items():
            if not hasattr(models.Store, key):
                raise AttributeError(f"Store has no column '{key}'")
            setattr(row, key, value)
        logger.info(f"Updated store {store_id}: {', '.join(fields)}")
        return row

    def set_status(self, store_id: str, status) -> models.Store:
        return self.update_store(store_id, status=StoreStatus(status).value)

    def delete_store(self, store_id: str) -> None:
        """Hard delete a store together with its secondary locations."""
        row = self._get_row(store_id)
        self.db.delete(row)
        logger.info(f"Deleted store: {store_id}")

    def submit_listing(self, submission: Mapping[str, Any]) -> BusinessRecord:
        """
        Add a business submitted by the public, pending review.

        Args:
            submission: Form fields, see ``submission_to_record``

        Returns:
            The stored BusinessRecord

        Raises:
            ValueError: If required fields are missing or the id is already listed
        """
        record = submission_to_record(submission)
        if self.db.get(models.Store, record.id) is not None:
            raise ValueError(f"A listing with id '{record.id}' already exists.")
        self.save_record(record)
        logger.info(f"New submission awaiting review: {record.name} -> {record.id}")
        return record

    def list_categories(self) -> List[Category]:
        rows = self.db.query(models.Category).order_by(models.Category.name).all()
        return [category_to_record(row) for row in rows]

    def save_category(self, category: Category) -> models.Category:
        row = self.db.get(models.Category, category.id)
        if row is None:
            row = models.Category(id=category.id)
            self.db.add(row)
        row.name = category.name
        row.description = category.description
        row.icon = category.icon
        return row

    def delete_category(self, category_id: str) -> None:
        """Delete a category. Listings keep the id in their category list."""
        row = self.db.get(models.Category, category_id)
        if row is None:
            raise CategoryNotFoundError(category_id)
        self.db.delete(row)
        logger.info(f"Deleted category: {category_id}")

    def list_sponsors(self, active_only: bool = False) -> List[Sponsor]:
        query = self.db.query(models.Sponsor)
        if active_only:
            query = query.filter(models.Sponsor.is_active.is_(True))
        return [sponsor_to_record(row) for row in query.order_by(models.Sponsor.name).all()]

    def save_sponsor(self, sponsor: Sponsor) -> models.Sponsor:
        row = self.db.get(models.Sponsor, sponsor.id)
        if row is None:
            row = models.Sponsor(id=sponsor.id)
            self.db.add(row)
        row.name = sponsor.name
        row.description = sponsor.description
        row.logo = sponsor.logo
        row.image = sponsor.image
        row.video = sponsor.video
        row.website = sponsor.website
        row.cta = sponsor.cta
        row.placement = sorted(sponsor.placement)
        row.target_categories = sorted(sponsor.target_categories)
        row.target_states = sorted(sponsor.target_states)
        row.start_date = sponsor.start_date
        row.end_date = sponsor.end_date
        row.is_active = sponsor.is_active
        return row

    def _get_sponsor_row(self, sponsor_id: str) -> models.Sponsor:
        row = self.db.get(models.Sponsor, sponsor_id)
        if row is None:
            raise SponsorNotFoundError(sponsor_id)
        return row

    def delete_sponsor(self, sponsor_id: str) -> None:
        row = self._get_sponsor_row(sponsor_id)
        self.db.delete(row)
        logger.info(f"Deleted sponsor: {sponsor_id}")

    def set_sponsor_active(self, sponsor_id: str, is_active: bool) -> models.Sponsor:
        """Switch a sponsor on or off without touching its date window."""
        row = self._get_sponsor_row(sponsor_id)
        row.is_active = bool(is_active)
        logger.info(f"Sponsor {sponsor_id} {'activated' if row.is_active else 'deactivated'}")
        return row

    def commit(self):
        """Commit database changes."""
        try:
            self.db.commit()
            logger.info("Database changes committed")
        except Exception as e:
            logger.error(f"Error committing to database: {e}")
            self.db.rollback()
            raise
