from dataview.api.observability.metrics import normalize_path


def test_live(client):
    r = client.get("/health/live")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_ready_with_database(client):
    r = client.get("/health/ready")
    assert r.status_code == 200
    assert r.json() == {"status": "ready"}


def test_ready_without_database(bare_client):
    r = bare_client.get("/health/ready")
    assert r.status_code == 503
    assert r.json() == {"status": "not_ready", "problems": ["db_not_configured"]}


def test_ready_when_database_unreachable(client, db, monkeypatch):
    async def down():
        return False

    monkeypatch.setattr(db, "ping", down)
    r = client.get("/health/ready")
    assert r.status_code == 503
    assert r.json()["problems"] == ["db_unreachable"]


def test_prometheus_export(client):
    client.get("/api/data/hotel_bookings?limit=1")
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "dataview_http_requests_total" in r.text
    assert 'path="/api/data/:table"' in r.text
    assert "dataview_query_duration_seconds" in r.text or "dataview_http_request_duration_seconds" in r.text


def test_metrics_snapshot_counts_requests_and_errors(client):
    client.get("/health/live")
    client.get("/api/data/missing")
    r = client.get("/metrics/snapshot")
    assert r.status_code == 200
    counters = r.json()["counters"]
    assert counters["health_live"] == 1
    assert counters["errors_404"] == 1
    assert counters["requests_GET"] >= 2


def test_normalize_path():
    assert normalize_path("/api/data/hotel_bookings") == "/api/data/:table"
    assert normalize_path("/api/data/t/distinct/c") == "/api/data/:table/distinct/:column"
    assert normalize_path("/api/tables/t/columns") == "/api/tables/:table/columns"
    assert normalize_path("/api/stats/t") == "/api/stats/:table"
    assert normalize_path("/api/tables") == "/api/tables"
    assert normalize_path("") == "/"
