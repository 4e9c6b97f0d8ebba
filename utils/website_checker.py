"""Website reachability checks for listing verification."""
from dataclasses import dataclass
from typing import Optional
from loguru import logger
import requests
from bs4 import BeautifulSoup
from config import settings


PARKED_MARKERS = (
    "domain is for sale",
    "domain may be for sale",
    "buy this domain",
    "this domain is parked",
    "parked free",
    "domain has expired",
)


@dataclass
class WebsiteStatus:
    """Outcome of a website check."""
    url: str
    reachable: bool
    status_code: Optional[int] = None
    title: Optional[str] = None
    parked: bool = False

    @property
    def ok(self) -> bool:
        return self.reachable and not self.parked


class WebsiteChecker:
    """Fetch a listing's website and decide whether it still looks alive."""

    def __init__(self, timeout: Optional[int] = None, user_agent: Optional[str] = None):
        self.timeout = timeout or settings.request_timeout
        self.user_agent = user_agent or settings.geocoder_user_agent

    def parse_html(self, html: str) -> Optional[BeautifulSoup]:
        """
        Parse HTML content.

        Args:
            html: HTML content string

        Returns:
            BeautifulSoup object or None if failed
        """
        try:
            return BeautifulSoup(html, 'lxml')
        except Exception as e:
            logger.error(f"Error parsing HTML: {e}")
            return None

    def is_parked(self, soup: BeautifulSoup) -> bool:
        """True when the page looks like a registrar parking or for-sale page."""
        text = soup.get_text(" ", strip=True).lower()
        return any(marker in text for marker in PARKED_MARKERS)

    def check(self, url: str) -> WebsiteStatus:
        """
        Check a website.

        Args:
            url: Website URL

        Returns:
            WebsiteStatus describing reachability and parking
        """
        logger.info(f"Checking website: {url}")

        try:
            response = requests.get(
                url,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
                allow_redirects=True,
            )
        except requests.RequestException as e:
            logger.warning(f"Website not reachable {url}: {e}")
            return WebsiteStatus(url=url, reachable=False)

        if not response.ok:
            logger.warning(f"Website returned {response.status_code}: {url}")
            return WebsiteStatus(url=url, reachable=False, status_code=response.status_code)

        soup = self.parse_html(response.text)
        if soup is None:
            return WebsiteStatus(url=url, reachable=True, status_code=response.status_code)

        title = soup.title.get_text(strip=True) if soup.title else None
        return WebsiteStatus(
            url=url,
            reachable=True,
            status_code=response.status_code,
            title=title,
            parked=self.is_parked(soup),
        )
