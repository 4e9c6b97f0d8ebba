"""Periodic verification that listings are still in business."""
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from loguru import logger
from config import settings
from directory.records import StoreStatus
from repository import StoreRepository
from utils.website_checker import WebsiteChecker


@dataclass
class VerificationSummary:
    total: int = 0
    verified: int = 0
    needs_review: int = 0
    skipped: int = 0


def verify_stores(
    repository: StoreRepository,
    checker: WebsiteChecker,
    now: Optional[datetime] = None,
    threshold_days: Optional[int] = None,
    delay: Optional[float] = None,
) -> VerificationSummary:
    """
    Re-check active listings that have not been verified recently.

    A reachable website refreshes the verification date; an unreachable or
    parked website sends the listing to review. Listings without a website
    only get a fresh verification date. Listings awaiting review or closed
    are left alone, so review-mode imports still need an editor to publish them.

    Args:
        repository: Store repository
        checker: Website checker
        now: Current time (defaults to now, UTC)
        threshold_days: Minimum age of the last verification
        delay: Seconds to sleep between website checks

    Returns:
        VerificationSummary with per-outcome counts
    """
    now = now or datetime.now(timezone.utc)
    threshold = timedelta(days=settings.verification_threshold_days if threshold_days is None else threshold_days)
    delay = settings.verification_delay if delay is None else delay

    records = repository.fetch_active_records()
    summary = VerificationSummary(total=len(records))

    for record in records:
        if record.last_verified_at is not None and now - record.last_verified_at < threshold:
            age = (now - record.last_verified_at).days
            logger.info(f"{record.name} - verified {age} days ago, skipping")
            summary.skipped += 1
            continue

        if not record.website:
            repository.update_store(record.id, last_verified_at=now)
            logger.info(f"{record.name} - no website, marked as verified")
            summary.verified += 1
            repository.commit()
            continue

        status = checker.check(record.website)
        if status.ok:
            repository.update_store(record.id, last_verified_at=now)
            logger.info(f"{record.name} - verified")
            summary.verified += 1
        else:
            repository.set_status(record.id, StoreStatus.NEEDS_REVIEW)
            logger.warning(f"{record.name} - website not accessible, needs review")
            summary.needs_review += 1
        repository.commit()

        if delay:
            time.sleep(delay)

    logger.info(
        f"Verification summary: {summary.total} stores, {summary.verified} verified, "
        f"{summary.needs_review} need review, {summary.skipped} skipped"
    )
    return summary
