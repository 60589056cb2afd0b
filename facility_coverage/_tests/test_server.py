"""
Tests for the Flask JSON API using the test client.
"""

import time

import pytest

from facility_coverage.data_loader import DataLoader
from facility_coverage.server import create_app, get_frontend_config, initialize_services
from facility_coverage.session import MapSession


@pytest.fixture
def loader(geojson_file):
    return DataLoader(geojson_file)


@pytest.fixture
def session(loader, small_config):
    map_session = MapSession(loader.load(), small_config)
    yield map_session
    map_session.close()


@pytest.fixture
def client(session, loader):
    app = create_app(session, loader)
    app.config["TESTING"] = True
    return app.test_client()


def _poll_coverage(client, attempts=100):
    for _ in range(attempts):
        response = client.get("/api/coverage")
        if response.status_code != 202:
            return response
        time.sleep(0.05)
    return response


class TestDataRoutes:
    """Facility, statistics and metadata endpoints."""

    def test_config(self, client):
        data = client.get("/api/config").get_json()
        assert data["map"]["zoom"] == 11
        assert data["styles"]["statusColors"]["Operational"] == "#22c55e"
        assert data["coverage"]["gridSize"] == 10

    def test_facilities_unfiltered(self, client):
        data = client.get("/api/facilities").get_json()
        assert data["type"] == "FeatureCollection"
        assert len(data["features"]) == 5
        assert "style" in data["features"][0]["properties"]

    def test_facilities_filtered(self, client):
        response = client.get("/api/facilities?status=Operational&locationType=Park&search=central")
        features = response.get_json()["features"]
        assert [f["properties"]["facility_name"] for f in features] == ["Central Park Restroom"]

    def test_statistics(self, client):
        data = client.get("/api/statistics?status=Operational").get_json()
        assert data == {
            "total": 3,
            "operationalCount": 3,
            "fullyAccessibleCount": 2,
            "parkCount": 3,
        }

    def test_empty_facets_mean_all(self, client):
        data = client.get("/api/statistics?status=&accessibility=&locationType=").get_json()
        assert data["total"] == 5

    def test_bounds(self, client):
        data = client.get("/api/bounds").get_json()
        assert len(data["bounds"]) == 4
        assert data["padding"] == 50

    def test_data_info(self, client):
        data = client.get("/api/data/info").get_json()
        assert data["facility_count"] == 5
        assert data["invalid_coordinate_count"] == 1

    def test_export_csv(self, client):
        response = client.get("/api/facilities/export.csv?search=library")
        assert response.status_code == 200
        assert response.mimetype == "text/csv"
        lines = response.get_data(as_text=True).strip().splitlines()
        assert len(lines) == 2
        assert "Library Restroom" in lines[1]


class TestCoverageRoutes:
    """Toggle and poll the coverage heat layer."""

    def test_hidden_returns_409(self, client):
        assert client.get("/api/coverage").status_code == 409

    def test_toggle_requires_boolean(self, client):
        assert client.post("/api/coverage/toggle", json={}).status_code == 400
        assert client.post("/api/coverage/toggle", json={"visible": "yes"}).status_code == 400

    def test_toggle_and_fetch(self, client):
        response = client.post("/api/coverage/toggle", json={"visible": True})
        assert response.status_code == 200
        assert response.get_json()["visible"] is True

        response = _poll_coverage(client)
        assert response.status_code == 200
        data = response.get_json()
        assert data["type"] == "FeatureCollection"
        assert len(data["features"]) == 100
        for feature in data["features"]:
            assert 0.0 <= feature["properties"]["intensity"] <= 1.0

    def test_toggle_off_hides(self, client, session):
        client.post("/api/coverage/toggle", json={"visible": True})
        session.coverage.wait(timeout=10)
        status = client.post("/api/coverage/toggle", json={"visible": False}).get_json()
        assert status == {"visible": False, "computing": False, "ready": True}
        assert client.get("/api/coverage").status_code == 409

    def test_failed_computation_returns_500(self, loader, small_config):
        def failing():
            raise RuntimeError("grid exploded")

        from facility_coverage.coverage_layer import CoverageLayer

        records = loader.load()
        layer = CoverageLayer(records, small_config, compute_fn=failing)
        map_session = MapSession(records, small_config, coverage=layer)
        client = create_app(map_session).test_client()
        try:
            client.post("/api/coverage/toggle", json={"visible": True})
            layer.wait(timeout=5)
            response = client.get("/api/coverage")
            assert response.status_code == 500
            assert "grid exploded" in response.get_json()["error"]
        finally:
            map_session.close()


class TestStartup:
    def test_initialize_services(self, geojson_file, small_config):
        from facility_coverage import server

        assert initialize_services(geojson_file, small_config) is True
        assert server.app is not None
        assert server.session.records == server.data_loader.records
        server.session.close()

    def test_initialize_missing_file(self, tmp_path):
        assert initialize_services(tmp_path / "missing.geojson") is False

    def test_frontend_config_defaults(self):
        config = get_frontend_config()
        assert config["map"]["fitMaxZoom"] == 15
        assert config["styles"]["defaultStatusColor"] == "#6b7280"
