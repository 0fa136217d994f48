"""Probes and the Prometheus scrape endpoint."""

from focuspair.monitoring.prometheus_metrics import prometheus_metrics


def test_liveness_endpoint(client):
    response = client.get("/live")

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert response.headers["Cache-Control"] == "no-store"


def test_health_checks_database(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["checks"] == {"database": True}


def test_metrics_expose_domain_counters(client):
    prometheus_metrics.record_transition("claim", True)
    prometheus_metrics.record_sweep_outcome("no_shows", "marked", 2)

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "focuspair_session_transitions_total" in response.text
    assert "focuspair_sweep_records_total" in response.text
