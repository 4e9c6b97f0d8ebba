"""Shared fixtures."""
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import models  # noqa: F401  (registers the tables on Base.metadata)
from database import Base
from directory.records import BusinessRecord, Category, LatLng, StoreStatus, StoreType


def build_record(**overrides) -> BusinessRecord:
    values = dict(
        id="green-refillery-portland",
        name="Green Refillery",
        description="Refill shop for soaps and cleaners",
        categories=frozenset({"refillery"}),
        type=StoreType.BRICK_AND_MORTAR,
        city="Portland",
        state="OR",
        country="USA",
        status=StoreStatus.ACTIVE,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    values.update(overrides)
    if "coordinates" in values and isinstance(values["coordinates"], tuple):
        values["coordinates"] = LatLng(*values["coordinates"])
    if not isinstance(values["categories"], frozenset):
        values["categories"] = frozenset(values["categories"])
    return BusinessRecord(**values)


@pytest.fixture
def make_record():
    return build_record


@pytest.fixture
def categories():
    return [
        Category(id="refillery", name="Refillery", icon="droplet"),
        Category(id="bulk-foods", name="Bulk Foods", icon="wheat"),
        Category(id="farmers-market", name="Farmers Market", icon="store"),
    ]


@pytest.fixture
def db_session():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
