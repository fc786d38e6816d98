import pytest
from prometheus_client import REGISTRY

from b2s_analytics.health_server import build_health_payload
from b2s_analytics.view_model import MetricsViewModel

from conftest import CONTRACT_ADDRESS, RecordingSource


@pytest.mark.asyncio
async def test_health_payload_reflects_view_model(config, fetch_error):
    view_model = MetricsViewModel(RecordingSource(fetch_error))
    await view_model.start(config)
    await view_model.wait_until_ready(timeout=1)

    payload = build_health_payload(view_model)

    assert payload["status"] == "healthy"
    assert payload["contract_address"] == CONTRACT_ADDRESS
    assert payload["refresh_interval_ms"] == 30000
    assert payload["loading"] is False
    assert payload["last_updated"] is None
    assert payload["fetch_count"] == 0
    assert payload["failure_count"] == 1
    assert payload["last_error"] == "connection refused"

    await view_model.stop()
    assert build_health_payload(view_model)["status"] == "stopped"


def test_health_payload_before_start():
    payload = build_health_payload(MetricsViewModel(RecordingSource()))
    assert payload["status"] == "stopped"
    assert payload["contract_address"] is None
    assert payload["loading"] is True


@pytest.mark.asyncio
async def test_fetches_are_exported_as_prometheus_metrics(config):
    labels = {"contract": CONTRACT_ADDRESS, "outcome": "success"}
    before = REGISTRY.get_sample_value("b2s_dashboard_fetches_total", labels) or 0.0

    view_model = MetricsViewModel(RecordingSource())
    await view_model.start(config)
    await view_model.wait_until_ready(timeout=1)
    await view_model.stop()

    assert REGISTRY.get_sample_value("b2s_dashboard_fetches_total", labels) == before + 1
    assert (
        REGISTRY.get_sample_value(
            "b2s_dashboard_metric_value", {"contract": CONTRACT_ADDRESS, "metric": "active_users"}
        )
        == 892
    )
