"""Typed records for directory listings, categories and sponsors.

Rows coming out of the database are converted into these value objects once,
in ``repository.py``, so the query and facet code never handles raw rows.
"""
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum, Flag
from typing import FrozenSet, Iterable, Optional, Tuple


@dataclass(frozen=True)
class LatLng:
    """WGS84 coordinate pair. Either both values are set or there is no LatLng."""
    lat: float
    lng: float


class StoreStatus(str, Enum):
    """Lifecycle status of a listing."""
    ACTIVE = "active"
    NEEDS_REVIEW = "needs-review"
    CLOSED = "closed"


class StoreType(Flag):
    """How a business reaches customers. Values combine, e.g. BRICK_AND_MORTAR | ONLINE."""
    NONE = 0
    BRICK_AND_MORTAR = 1
    ONLINE = 2
    MOBILE = 4

    @classmethod
    def parse(cls, raw: Optional[str], default: Optional["StoreType"] = None) -> "StoreType":
        """
        Parse the external string form of a store type.

        Accepts '+'-joined combinations ('brick-and-mortar+online') as well as
        the '|', ',' and ';' separators seen in imported spreadsheets. The
        legacy value 'both' means brick-and-mortar plus online. Unknown tokens
        are ignored.

        Args:
            raw: String form of the type
            default: Returned when no valid token is found (brick-and-mortar if omitted)

        Returns:
            Combined StoreType flags
        """
        result = cls.NONE
        for token in re.split(r"[|,;+]", raw or ""):
            token = token.strip().lower()
            if token in _TYPE_TOKENS:
                result |= _TYPE_TOKENS[token]
        if result == cls.NONE:
            return cls.BRICK_AND_MORTAR if default is None else default
        return result

    @classmethod
    def from_tokens(cls, tokens: Iterable[str]) -> "StoreType":
        """Combine filter tokens into flags; unknown tokens contribute nothing."""
        result = cls.NONE
        for token in tokens:
            result |= cls.parse(token, default=cls.NONE)
        return result

    def tokens(self) -> Tuple[str, ...]:
        return tuple(name for name, member in _TYPE_ORDER if member & self)

    def serialize(self) -> str:
        """Return the '+'-joined string form stored in the database."""
        return "+".join(self.tokens())


_TYPE_ORDER = (
    ("brick-and-mortar", StoreType.BRICK_AND_MORTAR),
    ("online", StoreType.ONLINE),
    ("mobile", StoreType.MOBILE),
)

_TYPE_TOKENS = dict(_TYPE_ORDER)
_TYPE_TOKENS["both"] = StoreType.BRICK_AND_MORTAR | StoreType.ONLINE


@dataclass(frozen=True)
class SecondaryLocation:
    """An extra address of a business listed under the same id."""
    city: str = ""
    state: str = ""
    country: str = "USA"
    address: Optional[str] = None
    postal_code: Optional[str] = None
    coordinates: Optional[LatLng] = None
    phone: Optional[str] = None


@dataclass(frozen=True)
class BusinessRecord:
    """One directory listing."""
    id: str
    name: str
    city: str
    state: str
    country: str = "USA"
    description: Optional[str] = None
    categories: FrozenSet[str] = frozenset()
    type: StoreType = StoreType.BRICK_AND_MORTAR
    address: Optional[str] = None
    postal_code: Optional[str] = None
    coordinates: Optional[LatLng] = None

    website: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    logo: Optional[str] = None
    instagram: Optional[str] = None
    facebook: Optional[str] = None
    twitter: Optional[str] = None
    tiktok: Optional[str] = None

    offers_wholesale: bool = False
    offers_local_delivery: bool = False
    featured: bool = False

    status: StoreStatus = StoreStatus.ACTIVE
    source: Optional[str] = None
    created_at: Optional[datetime] = None
    last_verified_at: Optional[datetime] = None

    secondary_locations: Tuple[SecondaryLocation, ...] = ()

    @property
    def is_active(self) -> bool:
        return self.status is StoreStatus.ACTIVE

    @property
    def is_online_only(self) -> bool:
        return self.type == StoreType.ONLINE


@dataclass(frozen=True)
class Category:
    """Reference category."""
    id: str
    name: str
    description: str = ""
    icon: str = ""


@dataclass(frozen=True)
class Sponsor:
    """Promotional entity placed into page slots."""
    id: str
    name: str
    description: str = ""
    logo: Optional[str] = None
    image: Optional[str] = None
    video: Optional[str] = None
    website: Optional[str] = None
    cta: Optional[str] = None
    placement: FrozenSet[str] = frozenset()
    target_categories: FrozenSet[str] = frozenset()
    target_states: FrozenSet[str] = frozenset()
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = True

    def is_running(self, today: date) -> bool:
        """True when the sponsor is switched on and today is inside its date window."""
        if not self.is_active:
            return False
        if self.start_date is not None and today < self.start_date:
            return False
        if self.end_date is not None and today > self.end_date:
            return False
        return True


def make_coordinates(lat, lng) -> Optional[LatLng]:
    """Build a LatLng only when both values are present."""
    if lat is None or lng is None:
        return None
    return LatLng(float(lat), float(lng))


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def make_store_id(name: str, city: Optional[str], address: Optional[str] = None) -> str:
    """
    Generate the stable, human-readable id of a listing.

    Example:
        >>> make_store_id("Green Refillery", "Portland", "123 Main St")
        'green-refillery-portland-123'
    """
    base = f"{_slug(name)}-{_slug(city or '') or 'online'}"
    if address:
        match = re.match(r"^\d+", address.strip())
        if match:
            return f"{base}-{match.group()}"
    return base
