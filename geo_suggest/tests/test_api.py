"""
HTTP tests through FastAPI's TestClient.
The service is pre-loaded from fixtures, so no catalog file is read.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from geo_suggest.api import create_app
from geo_suggest.config import CatalogConfig, RateLimitConfig, ScoringConfig
from geo_suggest.ratelimit import FixedWindowRateLimiter
from geo_suggest.suggest import SuggestionService

SCORING = ScoringConfig(proximity_weight=0.4, population_weight=0.15, max_suggestions=10, max_distance_km=1000)


def _service(places=None, source="unused.tsv") -> SuggestionService:
    service = SuggestionService(source=source, scoring=SCORING, catalog_config=CatalogConfig())
    if places is not None:
        service.load(places, source=source)
    return service


def _limiter(requests: int = 1000, enabled: bool = True) -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(RateLimitConfig(enabled=enabled, requests=requests, window_seconds=60))


@pytest.fixture
def client(toronto, north_york):
    app = create_app(_service([toronto, north_york]), _limiter())
    with TestClient(app) as c:
        yield c


class TestSuggestionsEndpoint:
    def test_query_only(self, client):
        resp = client.get("/suggestions", params={"q": "Toronto"})
        assert resp.status_code == 200
        body = resp.json()
        assert [s["name"] for s in body["suggestions"]] == ["Toronto, CA, America/Toronto"]
        assert set(body["suggestions"][0]) == {"name", "latitude", "longitude", "score"}

    def test_coordinates_only(self, client):
        resp = client.get("/suggestions", params={"latitude": 43.70011, "longitude": -79.4163})
        assert resp.status_code == 200
        suggestions = resp.json()["suggestions"]
        assert [s["name"].split(",")[0] for s in suggestions] == ["Toronto", "North York"]
        assert suggestions[0]["score"] == pytest.approx(1.0)
        assert suggestions[1]["score"] < 1.0

    def test_query_and_coordinates(self, client):
        resp = client.get("/suggestions", params={"q": "north", "latitude": 43.7, "longitude": -79.4})
        assert resp.status_code == 200
        assert resp.json()["suggestions"][0]["name"].startswith("North York")

    def test_no_match(self, client):
        resp = client.get("/suggestions", params={"q": "Zzzznotacity"})
        assert resp.status_code == 200
        assert resp.json() == {"suggestions": []}

    def test_no_parameters(self, client):
        resp = client.get("/suggestions")
        assert resp.status_code == 200
        assert resp.json() == {"suggestions": []}

    @pytest.mark.parametrize("params", [{"latitude": 43.7}, {"q": "tor", "longitude": -79.4}])
    def test_half_coordinate_pair(self, client, params):
        resp = client.get("/suggestions", params=params)
        assert resp.status_code == 400

    @pytest.mark.parametrize("params", [
        {"latitude": 91, "longitude": 0},
        {"latitude": 0, "longitude": -181},
        {"latitude": "north", "longitude": 0},
        {"q": "x" * 201},
    ])
    def test_invalid_parameters(self, client, params):
        resp = client.get("/suggestions", params=params)
        assert resp.status_code == 422


class TestCatalogNotReady:
    def test_failed_startup_load_returns_503(self, tmp_path):
        app = create_app(_service(source=str(tmp_path / "missing.tsv")), _limiter())
        with TestClient(app) as client:
            resp = client.get("/suggestions", params={"q": "toronto"})
            assert resp.status_code == 503
            assert client.get("/health").json()["status"] == "not_ready"

    def test_empty_catalog_returns_503(self):
        app = create_app(_service([]), _limiter())
        with TestClient(app) as client:
            assert client.get("/suggestions", params={"q": "toronto"}).status_code == 503


class TestStartupLoad:
    def test_lifespan_loads_catalog(self, tmp_path):
        path = tmp_path / "cities.tsv"
        path.write_text(
            "id\tname\tlat\tlong\tcountry\n1\tAjax\t43.85012\t-79.03288\tCA\n",
            encoding="utf-8",
        )
        app = create_app(_service(source=str(path)), _limiter())
        with TestClient(app) as client:
            resp = client.get("/suggestions", params={"q": "aj"})
            assert [s["name"] for s in resp.json()["suggestions"]] == ["Ajax, CA"]


class TestHealthAndReload:
    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["catalog"]["places"] == 2
        assert body["catalog"]["max_population"] == 2731571

    def test_reload_failure_keeps_index(self, client):
        # the fixture service points at a file that does not exist
        resp = client.post("/reload")
        assert resp.status_code == 503
        assert client.get("/suggestions", params={"q": "toronto"}).status_code == 200

    def test_reload_without_valid_rows_keeps_index(self, tmp_path, toronto):
        path = tmp_path / "cities.tsv"
        path.write_text("<html>maintenance</html>\n", encoding="utf-8")
        app = create_app(_service([toronto], source=str(path)), _limiter())
        with TestClient(app) as client:
            assert client.post("/reload").status_code == 503
            assert client.get("/suggestions", params={"q": "tor"}).status_code == 200

    def test_reload_success(self, tmp_path):
        path = tmp_path / "cities.tsv"
        path.write_text("id\tname\tlat\tlong\n1\tAjax\t43.85\t-79.03\n", encoding="utf-8")
        app = create_app(_service(source=str(path)), _limiter())
        with TestClient(app) as client:
            path.write_text(
                "id\tname\tlat\tlong\n1\tAjax\t43.85\t-79.03\n2\tAurora\t44.0\t-79.46\n",
                encoding="utf-8",
            )
            resp = client.post("/reload")
            assert resp.status_code == 200
            assert resp.json()["catalog"]["places"] == 2


class TestRateLimit:
    def test_too_many_requests(self, toronto):
        app = create_app(_service([toronto]), _limiter(requests=2))
        with TestClient(app) as client:
            for _ in range(2):
                assert client.get("/suggestions", params={"q": "tor"}).status_code == 200
            resp = client.get("/suggestions", params={"q": "tor"})
            assert resp.status_code == 429
            assert int(resp.headers["Retry-After"]) >= 1

    def test_disabled(self, toronto):
        app = create_app(_service([toronto]), _limiter(requests=1, enabled=False))
        with TestClient(app) as client:
            for _ in range(3):
                assert client.get("/suggestions", params={"q": "tor"}).status_code == 200

    def test_health_not_limited(self, toronto):
        app = create_app(_service([toronto]), _limiter(requests=1))
        with TestClient(app) as client:
            for _ in range(3):
                assert client.get("/health").status_code == 200
