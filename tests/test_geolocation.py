import requests

from visitrack.core.geolocation import LocationEnricher

from conftest import FakeResponse


def _enricher(monkeypatch, response=None, error=None, seen=None):
    def fake_get(url, timeout):
        if seen is not None:
            seen.append((url, timeout))
        if error is not None:
            raise error
        return response
    monkeypatch.setattr("visitrack.core.geolocation.requests.get", fake_get)
    return LocationEnricher(url="https://geo.test/json/", ip_url="https://geo.test/{ip}/json/", timeout=2)


def test_location_is_parsed_from_country_name_and_city(monkeypatch):
    enricher = _enricher(monkeypatch, FakeResponse(200, {"country_name": "Germany", "city": "Berlin", "country": "DE"}))
    assert enricher.resolve_approximate_location() == {"country": "Germany", "city": "Berlin"}


def test_missing_fields_are_not_fatal(monkeypatch):
    enricher = _enricher(monkeypatch, FakeResponse(200, {"country_name": "Germany"}))
    assert enricher.resolve_approximate_location() == {"country": "Germany"}


def test_any_success_status_is_accepted(monkeypatch):
    enricher = _enricher(monkeypatch, FakeResponse(203, {"country_name": "Kenya", "city": "Nairobi"}))
    assert enricher.resolve_approximate_location() == {"country": "Kenya", "city": "Nairobi"}


def test_non_2xx_returns_empty(monkeypatch):
    enricher = _enricher(monkeypatch, FakeResponse(429, {"error": True, "reason": "RateLimited"}))
    assert enricher.resolve_approximate_location() == {}


def test_malformed_body_returns_empty(monkeypatch):
    assert _enricher(monkeypatch, FakeResponse(200, json_error=True)).resolve_approximate_location() == {}
    assert _enricher(monkeypatch, FakeResponse(200, ["not", "an", "object"])).resolve_approximate_location() == {}


def test_timeout_returns_empty(monkeypatch):
    enricher = _enricher(monkeypatch, error=requests.Timeout("read timed out"))
    assert enricher.resolve_approximate_location() == {}


def test_public_ip_uses_per_ip_endpoint(monkeypatch):
    seen = []
    enricher = _enricher(monkeypatch, FakeResponse(200, {}), seen=seen)

    enricher.resolve_approximate_location("8.8.8.8")
    enricher.resolve_approximate_location("127.0.0.1")
    enricher.resolve_approximate_location("192.168.1.20")
    enricher.resolve_approximate_location(None)

    assert [url for url, _ in seen] == [
        "https://geo.test/8.8.8.8/json/",
        "https://geo.test/json/",
        "https://geo.test/json/",
        "https://geo.test/json/",
    ]
    assert all(timeout == 2 for _, timeout in seen)
