"""Sponsor selection for page slots."""
from datetime import date
from typing import Iterable, List, Optional

from directory.records import Sponsor

HOMEPAGE_FEATURED = "homepage-featured"
CATEGORY_SIDEBAR = "category-sidebar"
STATE_BANNER = "state-banner"
MAIN_SPONSOR = "main-sponsor"

CATEGORY_SIDEBAR_SLOTS = 2


def sponsors_for_slot(
    sponsors: Iterable[Sponsor],
    placement: str,
    category: Optional[str] = None,
    state: Optional[str] = None,
    today: Optional[date] = None,
    limit: Optional[int] = None,
    exclude_ids: Iterable[str] = (),
) -> List[Sponsor]:
    """
    Pick running sponsors for a slot, in input order.

    Targeting only narrows when the caller supplies that dimension: a sponsor
    with target categories matches a category page only if the category is in
    its list, and a sponsor without targets matches every page.

    Args:
        sponsors: Candidate sponsors
        placement: Slot name, e.g. 'category-sidebar'
        category: Category id of the page, if any
        state: State/province code of the page, if any
        today: Date used for the active window (defaults to today)
        limit: Maximum number of sponsors to return
        exclude_ids: Sponsor ids already shown elsewhere on the page

    Returns:
        First ``limit`` matching sponsors
    """
    today = today or date.today()
    excluded = set(exclude_ids)
    matched = []
    for sponsor in sponsors:
        if sponsor.id in excluded or placement not in sponsor.placement:
            continue
        if not sponsor.is_running(today):
            continue
        if category and sponsor.target_categories and category not in sponsor.target_categories:
            continue
        if state and sponsor.target_states:
            if state.upper() not in {s.upper() for s in sponsor.target_states}:
                continue
        matched.append(sponsor)
        if limit is not None and len(matched) >= limit:
            break
    return matched


def main_sponsors(sponsors: Iterable[Sponsor], today: Optional[date] = None) -> List[Sponsor]:
    return sponsors_for_slot(sponsors, MAIN_SPONSOR, today=today)


def homepage_sponsors(sponsors: Iterable[Sponsor], today: Optional[date] = None) -> List[Sponsor]:
    return sponsors_for_slot(sponsors, HOMEPAGE_FEATURED, today=today)


def category_page_sponsors(
    sponsors: Iterable[Sponsor],
    category: str,
    today: Optional[date] = None,
) -> List[Sponsor]:
    """Sidebar sponsors for a category page, never repeating a main sponsor."""
    sponsors = list(sponsors)
    main_ids = [s.id for s in main_sponsors(sponsors, today=today)]
    return sponsors_for_slot(
        sponsors,
        CATEGORY_SIDEBAR,
        category=category,
        today=today,
        limit=CATEGORY_SIDEBAR_SLOTS,
        exclude_ids=main_ids,
    )


def state_banner_sponsor(
    sponsors: Iterable[Sponsor],
    state: str,
    today: Optional[date] = None,
) -> Optional[Sponsor]:
    matched = sponsors_for_slot(sponsors, STATE_BANNER, state=state, today=today, limit=1)
    return matched[0] if matched else None
