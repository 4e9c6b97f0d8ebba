"""Query and filter engine over a snapshot of directory listings."""
import math
from dataclasses import dataclass
from datetime import timezone
from enum import Enum
from typing import Any, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Union

from loguru import logger

from directory.geo import distance_between
from directory.records import BusinessRecord, Category, LatLng, StoreType


class SortMode(str, Enum):
    """Result ordering when no near-point is given."""
    AZ = "az"
    NEWEST = "newest"
    FEATURED = "featured"

    @classmethod
    def parse(cls, value) -> "SortMode":
        """Unknown or missing values fall back to alphabetical."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.AZ


def _frozen(values: Optional[Iterable[str]]) -> FrozenSet[str]:
    if values is None:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    return frozenset(v.strip() for v in values if v and v.strip())


@dataclass(frozen=True)
class FilterSpec:
    """
    Optional constraints and sort mode for ``query_stores``.

    Every field defaults to "no constraint". ``near_point`` accepts a LatLng,
    a ``{"lat": .., "lng": ..}`` mapping or a ``(lat, lng)`` pair; anything
    that does not parse to two finite numbers is ignored.
    """
    text_query: Optional[str] = None
    categories: FrozenSet[str] = frozenset()
    states: FrozenSet[str] = frozenset()
    city: Optional[str] = None
    country: Optional[str] = None
    store_types: FrozenSet[str] = frozenset()
    wholesale_only: bool = False
    delivery_only: bool = False
    near_point: Any = None
    sort: Union[SortMode, str, None] = None

    def __post_init__(self):
        object.__setattr__(self, "categories", _frozen(self.categories))
        object.__setattr__(self, "states", _frozen(self.states))
        object.__setattr__(self, "store_types", _frozen(self.store_types))

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "FilterSpec":
        """
        Build a spec from request-style string parameters.

        Args:
            params: Mapping with any of q, category, state, city, country, type,
                wholesale, delivery, lat, lng, sort. List-valued fields are
                comma-separated; type also accepts '+'.

        Returns:
            FilterSpec instance
        """
        def split(name: str, separators: str = ",") -> List[str]:
            raw = params.get(name) or ""
            for sep in separators[1:]:
                raw = raw.replace(sep, separators[0])
            return [part for part in raw.split(separators[0]) if part.strip()]

        def flag(name: str) -> bool:
            return str(params.get(name) or "").strip().lower() in ("true", "1", "yes", "on")

        near_point = None
        if params.get("lat") is not None and params.get("lng") is not None:
            near_point = (params.get("lat"), params.get("lng"))

        return cls(
            text_query=params.get("q"),
            categories=split("category"),
            states=split("state"),
            city=params.get("city") or None,
            country=params.get("country") or None,
            store_types=split("type", ",+"),
            wholesale_only=flag("wholesale"),
            delivery_only=flag("delivery"),
            near_point=near_point,
            sort=params.get("sort"),
        )


def parse_near_point(value) -> Optional[LatLng]:
    """Coerce a near-point value to LatLng, or None when it is missing or malformed."""
    if value is None:
        return None
    if isinstance(value, LatLng):
        lat, lng = value.lat, value.lng
    elif isinstance(value, Mapping):
        lat, lng = value.get("lat"), value.get("lng", value.get("lon"))
    elif isinstance(value, Sequence) and not isinstance(value, str) and len(value) == 2:
        lat, lng = value
    else:
        return None
    try:
        lat, lng = float(lat), float(lng)
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return None
    return LatLng(lat, lng)


def _matches_text(record: BusinessRecord, needle: str) -> bool:
    for value in (record.name, record.description, record.city, record.state):
        if value and needle in value.lower():
            return True
    return False


def sort_by_distance(records: Sequence[BusinessRecord], point: LatLng) -> List[BusinessRecord]:
    """Nearest first; records without coordinates keep their order at the end."""
    located = [r for r in records if r.coordinates is not None]
    unlocated = [r for r in records if r.coordinates is None]
    located.sort(key=lambda r: distance_between(point, r.coordinates))
    return located + unlocated


def _created_key(record: BusinessRecord):
    created = record.created_at
    if created is None:
        return (0, 0.0)
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return (1, created.timestamp())


def sort_records(records: Sequence[BusinessRecord], sort=None) -> List[BusinessRecord]:
    mode = SortMode.parse(sort)
    if mode is SortMode.NEWEST:
        # undated records go last
        return sorted(records, key=_created_key, reverse=True)
    if mode is SortMode.FEATURED:
        return sorted(records, key=lambda r: not r.featured)
    return sorted(records, key=lambda r: r.name)


def query_stores(records: Iterable[BusinessRecord], spec: Optional[FilterSpec] = None) -> List[BusinessRecord]:
    """
    Return the listings matching every constraint of ``spec``, ordered.

    Only active listings are ever returned. Filters narrow in a fixed order
    (text, category, state, city, country, store type, wholesale, delivery)
    and sorting happens last: by distance when a valid near-point is given,
    otherwise by ``spec.sort`` (alphabetical by default).

    Args:
        records: Snapshot of listings
        spec: Filter specification (None means no constraints)

    Returns:
        Ordered list of matching listings
    """
    spec = spec or FilterSpec()
    results = [r for r in records if r.is_active]

    needle = (spec.text_query or "").strip().lower()
    if needle:
        results = [r for r in results if _matches_text(r, needle)]

    if spec.categories:
        results = [r for r in results if r.categories & spec.categories]

    if spec.states:
        states = {s.upper() for s in spec.states}
        results = [r for r in results if (r.state or "").upper() in states]

    if spec.city and spec.city.strip():
        city = spec.city.strip().lower()
        results = [r for r in results if (r.city or "").lower() == city]

    if spec.country:
        results = [r for r in results if r.country == spec.country]

    if spec.store_types:
        wanted = StoreType.from_tokens(spec.store_types)
        results = [r for r in results if r.type & wanted]

    if spec.wholesale_only:
        results = [r for r in results if r.offers_wholesale]

    if spec.delivery_only:
        results = [r for r in results if r.offers_local_delivery]

    point = parse_near_point(spec.near_point)
    if point is not None:
        return sort_by_distance(results, point)
    if spec.near_point is not None:
        logger.debug(f"Ignoring malformed near point: {spec.near_point!r}")
    return sort_records(results, spec.sort)


@dataclass(frozen=True)
class Suggestions:
    """Type-ahead suggestions for the search box."""
    stores: List[BusinessRecord]
    cities: List[str]
    categories: List[Category]


def suggest(
    records: Iterable[BusinessRecord],
    categories: Iterable[Category],
    query: Optional[str],
    max_stores: int = 5,
    max_cities: int = 3,
    max_categories: int = 3,
) -> Suggestions:
    """Listings, cities and categories whose names contain ``query`` (2+ characters)."""
    needle = (query or "").strip().lower()
    if len(needle) < 2:
        return Suggestions(stores=[], cities=[], categories=[])

    active = [r for r in records if r.is_active]
    stores = sorted((r for r in active if needle in r.name.lower()), key=lambda r: r.name)
    cities = sorted({r.city for r in active if r.city and needle in r.city.lower()})
    matched_categories = [c for c in categories if needle in c.name.lower()]

    return Suggestions(
        stores=stores[:max_stores],
        cities=cities[:max_cities],
        categories=matched_categories[:max_categories],
    )
