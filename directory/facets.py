"""Navigation facets derived from a snapshot of listings."""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from directory.records import BusinessRecord, Category

US_STATES: Dict[str, str] = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware",
    "DC": "District of Columbia", "FL": "Florida", "GA": "Georgia", "HI": "Hawaii",
    "ID": "Idaho", "IL": "Illinois", "IN": "Indiana", "IA": "Iowa",
    "KS": "Kansas", "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine",
    "MD": "Maryland", "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota",
    "MS": "Mississippi", "MO": "Missouri", "MT": "Montana", "NE": "Nebraska",
    "NV": "Nevada", "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico",
    "NY": "New York", "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio",
    "OK": "Oklahoma", "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island",
    "SC": "South Carolina", "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas",
    "UT": "Utah", "VT": "Vermont", "VA": "Virginia", "WA": "Washington",
    "WV": "West Virginia", "WI": "Wisconsin", "WY": "Wyoming",
}

CANADIAN_PROVINCES: Dict[str, str] = {
    "AB": "Alberta", "BC": "British Columbia", "MB": "Manitoba",
    "NB": "New Brunswick", "NL": "Newfoundland and Labrador", "NS": "Nova Scotia",
    "NT": "Northwest Territories", "NU": "Nunavut", "ON": "Ontario",
    "PE": "Prince Edward Island", "QC": "Quebec", "SK": "Saskatchewan",
    "YT": "Yukon",
}

REGION_NAMES: Dict[str, str] = {**US_STATES, **CANADIAN_PROVINCES}


def region_name(code: str) -> str:
    """Full name for a state/province code; unknown codes pass through unchanged."""
    return REGION_NAMES.get((code or "").strip().upper(), code)


def state_slug(code: str) -> str:
    """URL slug such as 'usa-ca' or 'can-on'."""
    code = (code or "").strip().upper()
    prefix = "can" if code in CANADIAN_PROVINCES else "usa"
    return f"{prefix}-{code.lower()}"


@dataclass(frozen=True)
class StateFacet:
    state_code: str
    state_name: str
    country: str
    store_count: int
    slug: str


@dataclass(frozen=True)
class CategoryFacet:
    category: Category
    store_count: int


def state_facets(records: Iterable[BusinessRecord]) -> List[StateFacet]:
    """
    Count active listings per state/province.

    Codes are grouped case-insensitively. The country of a facet is taken from
    the first listing seen with that code.

    Args:
        records: Snapshot of listings

    Returns:
        Facets sorted by display name
    """
    counts: Dict[str, int] = {}
    countries: Dict[str, str] = {}
    for record in records:
        if not record.is_active:
            continue
        code = (record.state or "").strip().upper()
        counts[code] = counts.get(code, 0) + 1
        countries.setdefault(code, record.country)

    facets = [
        StateFacet(
            state_code=code,
            state_name=region_name(code),
            country=countries[code],
            store_count=count,
            slug=state_slug(code),
        )
        for code, count in counts.items()
    ]
    facets.sort(key=lambda f: (f.state_name, f.state_code))
    return facets


def category_facets(records: Iterable[BusinessRecord], categories: Iterable[Category]) -> List[CategoryFacet]:
    """Count active listings per reference category, keeping categories with no listings."""
    active = [r for r in records if r.is_active]
    return [
        CategoryFacet(category=category, store_count=sum(1 for r in active if category.id in r.categories))
        for category in categories
    ]


def find_state(facets: Iterable[StateFacet], slug: str) -> Optional[StateFacet]:
    for facet in facets:
        if facet.slug == slug:
            return facet
    return None


def records_for_state_slug(records: Iterable[BusinessRecord], slug: str) -> List[BusinessRecord]:
    """Active listings behind a state page slug, sorted by name."""
    prefix, _, code = (slug or "").partition("-")
    if not code or prefix not in ("usa", "can"):
        return []
    matched = [
        r for r in records
        if r.is_active and state_slug(r.state) == f"{prefix}-{code.lower()}"
    ]
    return sorted(matched, key=lambda r: r.name)


@dataclass(frozen=True)
class DirectoryStats:
    total_stores: int
    total_categories: int
    total_states: int
    total_cities: int
    by_country: Dict[str, int]


def directory_stats(records: Iterable[BusinessRecord], categories: Iterable[Category]) -> DirectoryStats:
    active = [r for r in records if r.is_active]
    by_country: Dict[str, int] = {"USA": 0, "Canada": 0}
    for record in active:
        by_country[record.country] = by_country.get(record.country, 0) + 1
    return DirectoryStats(
        total_stores=len(active),
        total_categories=len(list(categories)),
        total_states=len({(r.state or "").strip().upper() for r in active}),
        total_cities=len({r.city for r in active}),
        by_country=by_country,
    )
