from datetime import datetime, timedelta, timezone

import pytest

from directory.records import LatLng, StoreStatus, StoreType
from maintenance.categories import clean_categories, fill_empty_categories, fix_categories, guess_categories
from maintenance.coordinates import coordinate_report, geocode_missing
from maintenance.store_types import normalize_legacy_types
from maintenance.verification import verify_stores
from repository import StoreRepository
from utils.website_checker import WebsiteStatus

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


class FakeGeocoder:
    def __init__(self, results):
        self.results = results
        self.calls = []

    def geocode_location(self, address, city, state, country):
        self.calls.append(city)
        return self.results.get(city)


class FakeChecker:
    def __init__(self, statuses):
        self.statuses = statuses
        self.checked = []

    def check(self, url):
        self.checked.append(url)
        return self.statuses.get(url, WebsiteStatus(url=url, reachable=False))


@pytest.fixture
def repository(db_session):
    return StoreRepository(db_session)


def test_clean_categories():
    assert clean_categories(["Refillery;bulk", "sustainable-goods", "refillery"]) == [
        "refillery", "bulk-foods", "zero-waste",
    ]
    assert clean_categories(["Spaceships", " farmers market"]) == ["farmers-market"]
    assert clean_categories([]) == []


def test_guess_categories():
    assert guess_categories("The Refill Pantry") == ["refillery", "bulk-foods", "zero-waste"]
    assert guess_categories("Green Things") == ["zero-waste"]


def test_fix_and_fill_categories(db_session, repository, make_record):
    repository.save_record(make_record(id="messy", name="Messy", categories={"Refillery;bulk"}))
    repository.save_record(make_record(id="clean", name="Clean", categories={"refillery"}))
    repository.save_record(make_record(id="empty", name="Thrift Town", categories=set()))
    db_session.commit()

    assert fix_categories(db_session) == 1
    assert repository.get_record("messy").categories == {"refillery", "bulk-foods"}

    assert fill_empty_categories(db_session) == 1
    assert repository.get_record("empty").categories == {"thrift-consignment", "zero-waste"}


def test_normalize_legacy_types(db_session, repository, make_record):
    repository.save_record(make_record(id="legacy", name="Legacy"))
    repository.update_store("legacy", type="both")
    db_session.commit()

    assert normalize_legacy_types(db_session) == 1
    assert repository.get_record("legacy").type == StoreType.BRICK_AND_MORTAR | StoreType.ONLINE
    assert normalize_legacy_types(db_session) == 0


def test_coordinate_report_and_backfill(db_session, repository, make_record):
    repository.save_record(make_record(id="mapped", name="Mapped", coordinates=(45.5, -122.6)))
    repository.save_record(make_record(id="online", name="Online", type=StoreType.ONLINE))
    repository.save_record(make_record(id="lost", name="Lost", city="Salem"))
    repository.save_record(make_record(id="unknown", name="Unknown", city="Nowhere"))
    db_session.commit()

    report = coordinate_report(repository)
    assert report.total == 4
    assert report.with_coordinates == 1
    assert report.online_only == 1
    assert [r.id for r in report.missing] == ["lost", "unknown"]

    geocoder = FakeGeocoder({"Salem": LatLng(44.9, -123.0)})
    assert geocode_missing(repository, geocoder) == 1
    assert geocoder.calls == ["Salem", "Nowhere"]
    assert repository.get_record("lost").coordinates == LatLng(44.9, -123.0)
    assert repository.get_record("unknown").coordinates is None


def test_verify_stores(db_session, repository, make_record):
    repository.save_record(make_record(id="fresh", name="Fresh", website="https://fresh.example",
                                       last_verified_at=NOW - timedelta(days=5)))
    repository.save_record(make_record(id="alive", name="Alive", website="https://alive.example"))
    repository.save_record(make_record(id="dead", name="Dead", website="https://dead.example",
                                       last_verified_at=NOW - timedelta(days=90)))
    repository.save_record(make_record(id="offline", name="Offline"))
    repository.save_record(make_record(id="closed", name="Closed", website="https://closed.example",
                                       status=StoreStatus.CLOSED))
    db_session.commit()

    checker = FakeChecker({
        "https://alive.example": WebsiteStatus(url="https://alive.example", reachable=True, status_code=200),
    })
    summary = verify_stores(repository, checker, now=NOW, threshold_days=30, delay=0)

    assert summary.total == 4
    assert summary.skipped == 1
    assert summary.verified == 2
    assert summary.needs_review == 1
    assert checker.checked == ["https://alive.example", "https://dead.example"]

    alive = repository.get_record("alive")
    assert alive.status is StoreStatus.ACTIVE
    assert alive.last_verified_at == NOW
    assert repository.get_record("dead").status is StoreStatus.NEEDS_REVIEW
    assert repository.get_record("offline").last_verified_at == NOW
    assert repository.get_record("closed").status is StoreStatus.CLOSED


def test_verify_stores_leaves_pending_review_alone(db_session, repository, make_record):
    stale = NOW - timedelta(days=45)
    repository.save_record(make_record(id="pending", name="Pending", website="https://pending.example",
                                       status=StoreStatus.NEEDS_REVIEW, source="csv-import",
                                       last_verified_at=stale))
    db_session.commit()

    checker = FakeChecker({
        "https://pending.example": WebsiteStatus(url="https://pending.example", reachable=True, status_code=200),
    })
    summary = verify_stores(repository, checker, now=NOW, threshold_days=30, delay=0)

    assert summary.total == 0
    assert checker.checked == []
    pending = repository.get_record("pending")
    assert pending.status is StoreStatus.NEEDS_REVIEW
    assert pending.last_verified_at == stale
