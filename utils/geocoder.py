"""Nominatim geocoding client utility."""
from typing import List, Optional
from loguru import logger
import re
import time
import requests
from config import settings
from directory.facets import CANADIAN_PROVINCES
from directory.records import LatLng


def normalize_address(address: str) -> str:
    """
    Simplify a street address for a second geocoding attempt.

    Removes unit/suite/apt tokens, a leading unit number ("103 2115 Main St"
    becomes "2115 Main St") and ordinal suffixes ("9th" becomes "9").
    """
    cleaned = re.sub(r"\b(unit|suite|apt|ste)\s*\S+", "", address, flags=re.IGNORECASE)
    cleaned = re.sub(r"#\s*\S+", "", cleaned)
    cleaned = re.sub(r"\s{2,}", " ", cleaned).strip()
    cleaned = re.sub(r"^\d+\s+(?=\d)", "", cleaned)
    cleaned = re.sub(r"(\d+)(st|nd|rd|th)\b", r"\1", cleaned, flags=re.IGNORECASE)
    return cleaned


def expand_province(code: str) -> str:
    """Full Canadian province name for a code; other values pass through."""
    return CANADIAN_PROVINCES.get((code or "").strip().upper(), code)


def _join(*parts: Optional[str]) -> str:
    return ", ".join(p.strip() for p in parts if p and p.strip())


class NominatimClient:
    """Client for the OpenStreetMap Nominatim search API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        delay: Optional[float] = None,
        timeout: Optional[int] = None,
    ):
        """
        Initialize Nominatim client.

        Args:
            base_url: Search endpoint URL
            user_agent: User-Agent header required by the Nominatim usage policy
            delay: Seconds to sleep after every request
            timeout: Request timeout in seconds
        """
        self.base_url = base_url or settings.nominatim_url
        self.user_agent = user_agent or settings.geocoder_user_agent
        self.delay = settings.geocode_delay if delay is None else delay
        self.timeout = timeout or settings.request_timeout

    def geocode(self, query: str) -> Optional[LatLng]:
        """
        Geocode a free-form query.

        Args:
            query: Address or place string

        Returns:
            Coordinates of the first match or None if nothing was found
        """
        logger.info(f"Geocoding: {query}")

        try:
            response = requests.get(
                self.base_url,
                params={"q": query, "format": "json", "limit": "1"},
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )

            if response.status_code != 200:
                logger.error(f"Nominatim error {response.status_code}: {response.text}")
                return None

            results = response.json()
            if not results:
                return None
            return LatLng(float(results[0]["lat"]), float(results[0]["lon"]))

        except (requests.RequestException, ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"Error geocoding '{query}': {e}")
            return None
        finally:
            # Nominatim allows one request per second
            if self.delay:
                time.sleep(self.delay)

    def build_queries(
        self,
        address: Optional[str],
        city: Optional[str],
        state: Optional[str],
        country: Optional[str],
    ) -> List[str]:
        """
        Build the fallback query strings, most specific first.

        Args:
            address: Street address
            city: City name
            state: State or province code
            country: 'USA' or 'Canada'

        Returns:
            Distinct non-empty queries in the order they should be tried
        """
        region = expand_province(state) if country == "Canada" else state
        candidates = [
            _join(address, city, region, country),
            _join(normalize_address(address or ""), city, region, country),
            _join(city, region, country),
        ]
        queries = []
        for query in candidates:
            if query and query not in queries:
                queries.append(query)
        return queries

    def geocode_location(
        self,
        address: Optional[str],
        city: Optional[str],
        state: Optional[str],
        country: Optional[str],
    ) -> Optional[LatLng]:
        """
        Geocode a location, falling back to less specific queries.

        Returns:
            Coordinates from the first query that succeeds or None
        """
        for query in self.build_queries(address, city, state, country):
            result = self.geocode(query)
            if result:
                logger.info(f"Found: {result.lat}, {result.lng}")
                return result
        logger.warning(f"Could not geocode: {_join(address, city, state, country)}")
        return None
