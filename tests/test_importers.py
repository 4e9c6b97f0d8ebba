import json

import pytest

from directory.records import LatLng, StoreStatus, StoreType
from importers.csv_importer import CsvImporter, parse_categories
from importers.json_importer import JsonImporter, parse_datetime
from repository import StoreRepository

CSV_TEXT = """\ufeffname,description,categories,type,website,address,city,state,country,postal_code,offers_wholesale
Green Refillery,Refill shop,Refillery; Bulk Foods,brick-and-mortar|online,https://green.example,123 Main St,Portland,OR,,97201,true
,No name here,refillery,online,,,Austin,TX,USA,,
Web Soap,Online only,zero waste,online,https://soap.example,,,,Canada,,0
"""


class FakeGeocoder:
    def __init__(self, result=LatLng(45.5, -122.6)):
        self.result = result
        self.calls = []

    def geocode_location(self, address, city, state, country):
        self.calls.append((address, city, state, country))
        return self.result


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "stores.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")
    return str(path)


def test_parse_categories():
    assert parse_categories("Refillery; Bulk Foods,  farmers market ") == ["refillery", "bulk-foods", "farmers-market"]
    assert parse_categories("") == []
    assert parse_categories(None) == []


def test_csv_import(db_session, csv_file):
    summary = CsvImporter(db_session).run(csv_file)

    assert summary.imported == 2
    assert summary.skipped == 1
    assert summary.errors == 0
    assert summary.geocoded == 0

    repository = StoreRepository(db_session)
    store = repository.get_record("green-refillery-portland-123")
    assert store.categories == frozenset({"refillery", "bulk-foods"})
    assert store.type == StoreType.BRICK_AND_MORTAR | StoreType.ONLINE
    assert store.country == "USA"
    assert store.offers_wholesale is True
    assert store.status is StoreStatus.ACTIVE
    assert store.source == "csv-import"

    online = repository.get_record("web-soap-online")
    assert online.type == StoreType.ONLINE
    assert online.country == "Canada"
    assert online.categories == frozenset({"zero-waste"})


def test_csv_import_is_an_upsert(db_session, csv_file):
    CsvImporter(db_session).run(csv_file)
    summary = CsvImporter(db_session).run(csv_file)
    assert summary.imported == 2
    assert len(StoreRepository(db_session).fetch_records()) == 2


def test_review_import_geocodes_physical_stores(db_session, csv_file):
    geocoder = FakeGeocoder()
    summary = CsvImporter.for_review(db_session, geocoder=geocoder).run(csv_file)

    assert summary.geocoded == 1
    assert geocoder.calls == [("123 Main St", "Portland", "OR", "USA")]

    repository = StoreRepository(db_session)
    store = repository.get_record("green-refillery-portland-123")
    assert store.status is StoreStatus.NEEDS_REVIEW
    assert store.coordinates == LatLng(45.5, -122.6)
    assert repository.get_record("web-soap-online").coordinates is None
    assert repository.fetch_active_records() == []


def test_failed_geocoding_still_imports(db_session, csv_file):
    summary = CsvImporter(db_session, geocoder=FakeGeocoder(result=None)).run(csv_file)
    assert summary.imported == 2
    assert summary.geocoded == 0


@pytest.fixture
def legacy_dir(tmp_path):
    (tmp_path / "stores").mkdir()
    (tmp_path / "categories.json").write_text(json.dumps([
        {"id": "refillery", "name": "Refillery", "description": "Refill shops", "icon": "droplet"},
    ]))
    (tmp_path / "sponsors.json").write_text(json.dumps([
        {
            "id": "acme",
            "name": "Acme",
            "placement": ["homepage-featured"],
            "targetStates": ["OR"],
            "startDate": "2025-01-01",
            "endDate": "2025-12-31",
            "isActive": True,
        },
    ]))
    (tmp_path / "stores" / "usa-or.json").write_text(json.dumps([
        {
            "id": "green-refillery-portland",
            "name": "Green Refillery",
            "description": "Refill shop",
            "categories": ["refillery"],
            "type": "both",
            "location": {
                "address": "123 Main St",
                "city": "Portland",
                "state": "OR",
                "country": "USA",
                "coordinates": {"lat": 45.52, "lng": -122.68},
            },
            "contact": {"email": "hi@green.example"},
            "addedDate": "2024-03-01",
            "lastVerified": "2024-06-01",
            "status": "active",
        },
        {"id": "broken", "name": "Broken", "location": {"city": "Bend", "state": "OR"}, "status": "archived"},
    ]))
    return str(tmp_path)


def test_json_migration(db_session, legacy_dir):
    summary = JsonImporter(db_session).run(legacy_dir)

    assert summary.imported == 1
    assert summary.errors == 1

    repository = StoreRepository(db_session)
    store = repository.get_record("green-refillery-portland")
    assert store.type.serialize() == "brick-and-mortar+online"
    assert store.coordinates == LatLng(45.52, -122.68)
    assert store.email == "hi@green.example"
    assert store.created_at == parse_datetime("2024-03-01")

    assert [c.id for c in repository.list_categories()] == ["refillery"]
    sponsor = repository.list_sponsors()[0]
    assert sponsor.placement == frozenset({"homepage-featured"})
    assert sponsor.end_date.isoformat() == "2025-12-31"


def test_parse_datetime():
    assert parse_datetime("2024-03-01").tzinfo is not None
    assert parse_datetime("2024-03-01T10:00:00Z").hour == 10
    assert parse_datetime("not a date") is None
    assert parse_datetime(None) is None


def test_malformed_categories_and_sponsors_are_skipped(db_session, legacy_dir, tmp_path):
    (tmp_path / "categories.json").write_text(json.dumps([
        {"id": "refillery", "name": "Refillery"},
        {"name": "No Id"},
        {"id": "no-name"},
    ]))
    (tmp_path / "sponsors.json").write_text(json.dumps([
        {"name": "Anonymous"},
        {"id": "acme", "name": "Acme"},
    ]))
    importer = JsonImporter(db_session)

    assert importer.import_categories(legacy_dir) == 1
    assert importer.import_sponsors(legacy_dir) == 1

    summary = importer.run(legacy_dir)
    assert summary.imported == 1
    repository = StoreRepository(db_session)
    assert [c.id for c in repository.list_categories()] == ["refillery"]
    assert [s.id for s in repository.list_sponsors()] == ["acme"]
