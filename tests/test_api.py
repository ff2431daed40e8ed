"""HTTP-level tests through the Flask test client."""

import pytest

from opinion_monitor.app import create_app


@pytest.fixture
def client(service):
    app = create_app(service, with_scheduler=False)
    app.config["TESTING"] = True
    return app.test_client()


class TestEventRoutes:
    def test_health(self, client) -> None:
        assert client.get("/api/health").get_json() == {"ok": True}

    def test_list_defaults_to_seven_days(self, client) -> None:
        resp = client.get("/api/events/")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["success"] is True
        assert [item["id"] for item in body["data"]] == ["e1", "e2"]

    def test_list_filters(self, client) -> None:
        body = client.get("/api/events/?timeRange=all&category=财经").get_json()
        assert [item["id"] for item in body["data"]] == ["e4"]

    def test_invalid_time_range(self, client) -> None:
        resp = client.get("/api/events/trend?timeRange=2w")
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False

    def test_negative_limit_rejected(self, client) -> None:
        resp = client.get("/api/events/?timeRange=all&limit=-1")
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False

    def test_limit_caps_list(self, client) -> None:
        body = client.get("/api/events/?timeRange=all&limit=1").get_json()
        assert len(body["data"]) == 1

    def test_hot_and_categories(self, client) -> None:
        assert client.get("/api/events/hot").status_code == 200
        body = client.get("/api/events/categories?timeRange=all").get_json()
        assert body["data"]["counts"] == [1, 1, 1]

    def test_trend(self, client) -> None:
        body = client.get("/api/events/trend?timeRange=7d").get_json()
        assert len(body["data"]["series"]) == 4

    def test_detail_not_found(self, client) -> None:
        resp = client.get("/api/events/missing")
        assert resp.status_code == 404
        assert resp.get_json()["message"] == "事件不存在"

    @pytest.mark.parametrize("suffix", ["", "/timeseries", "/trends", "/influence-users", "/geographic", "/keywords"])
    def test_event_routes(self, client, suffix) -> None:
        resp = client.get(f"/api/events/e1{suffix}")
        assert resp.status_code == 200
        assert resp.get_json()["success"] is True
