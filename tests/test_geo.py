from __future__ import annotations

import httpx
import pytest

from app.main import app
from app.modules.geo.routes import get_geo_service
from app.modules.geo.service import GeoService, build_places_query

SEOUL_CITY_HALL = {
    "formatted_address": "110 Sejong-daero, Jung-gu, Seoul",
    "geometry": {"location": {"lat": 37.5663, "lng": 126.9779}},
}


@pytest.fixture
def google(client):
    """Route GeoService traffic to a scripted handler. Yields (seen requests, handler state)."""
    seen: list[httpx.Request] = []
    state = {"handler": lambda request: httpx.Response(200, json={"status": "OK", "results": [SEOUL_CITY_HALL]})}

    def transport_handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return state["handler"](request)

    service = GeoService(api_key="test-key", timeout=1.0, transport=httpx.MockTransport(transport_handler))
    app.dependency_overrides[get_geo_service] = lambda: service
    yield seen, state


class TestPlacesQuery:
    def test_plain_query_is_narrowed(self):
        assert build_places_query("Gwangjang market") == "Gwangjang market restaurant"

    @pytest.mark.parametrize("query", ["Seoul Food Hall", "cafe onion", "Best RESTAURANT in Mapo"])
    def test_food_queries_are_kept(self, query):
        assert build_places_query(query) == query


def test_geocode(client, google):
    seen, _ = google
    resp = client.get("/api/v1/geocode", params={"address": "Seoul City Hall"})
    assert resp.status_code == 200
    assert resp.json()["results"][0]["formatted_address"].startswith("110 Sejong-daero")
    params = seen[0].url.params
    assert params["address"] == "Seoul City Hall"
    assert params["key"] == "test-key"


def test_geocode_requires_address(client, google):
    seen, _ = google
    assert client.get("/api/v1/geocode").status_code == 400
    assert seen == []


def test_reverse_geocode_uses_language(client, google):
    seen, _ = google
    resp = client.get("/api/v1/geocode/reverse", params={"lat": 37.5663, "lng": 126.9779})
    assert resp.status_code == 200
    assert seen[0].url.params["latlng"] == "37.5663,126.9779"
    assert seen[0].url.params["language"] == "ko"


def test_reverse_geocode_rejects_out_of_range(client, google):
    assert client.get("/api/v1/geocode/reverse", params={"lat": 95, "lng": 0}).status_code == 400


def test_places_with_location_bias(client, google):
    seen, _ = google
    resp = client.get("/api/v1/places", params={"query": "naengmyeon", "lat": 37.5, "lng": 127.0})
    assert resp.status_code == 200
    params = seen[0].url.params
    assert params["query"] == "naengmyeon restaurant"
    assert params["location"] == "37.5,127.0"
    assert params["radius"] == "5000"


def test_places_without_location(client, google):
    seen, _ = google
    client.get("/api/v1/places", params={"query": "cafe"})
    assert "location" not in seen[0].url.params


def test_zero_results_is_empty(client, google):
    _, state = google
    state["handler"] = lambda request: httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})
    resp = client.get("/api/v1/places", params={"query": "nowhere food"})
    assert resp.status_code == 200
    assert resp.json() == {"results": []}


def test_provider_error_is_generic(client, google):
    _, state = google
    state["handler"] = lambda request: httpx.Response(
        200, json={"status": "REQUEST_DENIED", "error_message": "The provided API key is invalid."}
    )
    resp = client.get("/api/v1/geocode", params={"address": "Busan"})
    assert resp.status_code == 502
    assert "API key" not in resp.json()["detail"]


def test_provider_timeout(client, google):
    _, state = google

    def slow(request):
        raise httpx.ReadTimeout("timed out", request=request)

    state["handler"] = slow
    resp = client.get("/api/v1/geocode", params={"address": "Busan"})
    assert resp.status_code == 502
    assert "retry" in resp.json()["detail"]


def test_provider_http_failure(client, google):
    _, state = google
    state["handler"] = lambda request: httpx.Response(503, text="unavailable")
    assert client.get("/api/v1/places", params={"query": "bbq"}).status_code == 502


def test_missing_api_key(client):
    app.dependency_overrides[get_geo_service] = lambda: GeoService(api_key="", timeout=1.0)
    assert client.get("/api/v1/geocode", params={"address": "Busan"}).status_code == 502


def test_non_object_body_is_upstream_error(client, google):
    _, state = google
    state["handler"] = lambda request: httpx.Response(200, json=["not", "an", "object"])
    resp = client.get("/api/v1/geocode", params={"address": "Busan"})
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Location search failed"
