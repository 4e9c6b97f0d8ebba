import requests

from directory.records import LatLng
from utils import geocoder as geocoder_module
from utils.geocoder import NominatimClient, expand_province, normalize_address


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code
        self.text = str(payload)

    def json(self):
        return self.payload


def test_normalize_address():
    assert normalize_address("103 2115 9th Ave Unit 5") == "2115 9 Ave"
    assert normalize_address("500 Main St Suite 200") == "500 Main St"
    assert normalize_address("77 King St #4") == "77 King St"
    assert normalize_address("1st Street") == "1 Street"


def test_expand_province():
    assert expand_province("bc") == "British Columbia"
    assert expand_province("OR") == "OR"


def test_build_queries_are_distinct_and_ordered():
    client = NominatimClient(delay=0)
    queries = client.build_queries("Unit 3 450 Queen St", "Toronto", "ON", "Canada")
    assert queries == [
        "Unit 3 450 Queen St, Toronto, Ontario, Canada",
        "450 Queen St, Toronto, Ontario, Canada",
        "Toronto, Ontario, Canada",
    ]
    assert client.build_queries(None, "Austin", "TX", "USA") == ["Austin, TX, USA"]


def test_geocode_parses_first_result(monkeypatch):
    captured = {}

    def fake_get(url, params=None, headers=None, timeout=None):
        captured.update(url=url, params=params, headers=headers)
        return FakeResponse([{"lat": "45.52", "lon": "-122.68"}])

    monkeypatch.setattr(geocoder_module.requests, "get", fake_get)
    client = NominatimClient(base_url="https://geo.example/search", user_agent="Test/1.0", delay=0)

    assert client.geocode("Portland, OR") == LatLng(45.52, -122.68)
    assert captured["params"] == {"q": "Portland, OR", "format": "json", "limit": "1"}
    assert captured["headers"] == {"User-Agent": "Test/1.0"}


def test_geocode_failures_return_none(monkeypatch):
    client = NominatimClient(delay=0)

    monkeypatch.setattr(geocoder_module.requests, "get", lambda *a, **k: FakeResponse([]))
    assert client.geocode("Nowhere") is None

    monkeypatch.setattr(geocoder_module.requests, "get", lambda *a, **k: FakeResponse({}, status_code=503))
    assert client.geocode("Nowhere") is None

    def boom(*args, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(geocoder_module.requests, "get", boom)
    assert client.geocode("Nowhere") is None


def test_geocode_location_falls_back_to_city(monkeypatch):
    tried = []

    def fake_get(url, params=None, headers=None, timeout=None):
        tried.append(params["q"])
        if params["q"] == "Portland, OR, USA":
            return FakeResponse([{"lat": "45.5", "lon": "-122.6"}])
        return FakeResponse([])

    monkeypatch.setattr(geocoder_module.requests, "get", fake_get)
    client = NominatimClient(delay=0)

    assert client.geocode_location("12 Nowhere Ln Apt 4", "Portland", "OR", "USA") == LatLng(45.5, -122.6)
    assert tried == [
        "12 Nowhere Ln Apt 4, Portland, OR, USA",
        "12 Nowhere Ln, Portland, OR, USA",
        "Portland, OR, USA",
    ]


def test_rate_limit_sleep(monkeypatch):
    sleeps = []
    monkeypatch.setattr(geocoder_module.requests, "get", lambda *a, **k: FakeResponse([]))
    monkeypatch.setattr(geocoder_module.time, "sleep", sleeps.append)
    NominatimClient(delay=1.1).geocode("Anywhere")
    assert sleeps == [1.1]
