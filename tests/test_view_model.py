import asyncio

import pytest

from b2s_analytics.formatting import derive
from b2s_analytics.models import DashboardConfig, Metrics
from b2s_analytics.view_model import MetricsViewModel

from conftest import CONTRACT_ADDRESS, SCENARIO_METRICS, RecordingSource

FAST_INTERVAL_MS = 20
UPDATED_METRICS = Metrics(total_volume=16_000_000, active_users=901, total_staked=2_400_000, transactions_24h=1300)


def _config(refresh_interval: int = 30000, **overrides) -> DashboardConfig:
    return DashboardConfig(contract_address=CONTRACT_ADDRESS, refresh_interval=refresh_interval, **overrides)


@pytest.mark.asyncio
async def test_start_fetches_once_immediately(config):
    source = RecordingSource()
    view_model = MetricsViewModel(source)

    await view_model.start(config)
    state = await view_model.wait_until_ready(timeout=1)
    await asyncio.sleep(0.05)

    assert len(source.calls) == 1
    assert source.calls[0] == (CONTRACT_ADDRESS, "https://api.b2s.xyz")
    assert state.loading is False
    assert state.metrics == SCENARIO_METRICS
    assert state.last_updated is not None
    assert derive(view_model.state.metrics).as_list() == ["15.2M", "892", "2.3M", "1247"]
    await view_model.stop()


@pytest.mark.asyncio
async def test_state_is_loading_until_first_fetch_completes(config):
    gate = asyncio.Event()
    source = RecordingSource(gate=gate)
    view_model = MetricsViewModel(source)

    await view_model.start(config)
    await asyncio.sleep(0.01)
    assert view_model.state.loading is True
    assert view_model.state.metrics == Metrics()

    gate.set()
    await view_model.wait_until_ready(timeout=1)
    assert view_model.state.loading is False
    await view_model.stop()


@pytest.mark.asyncio
async def test_refreshes_every_interval():
    source = RecordingSource(SCENARIO_METRICS, UPDATED_METRICS)
    view_model = MetricsViewModel(source)

    await view_model.start(_config(FAST_INTERVAL_MS))
    await asyncio.sleep(0.11)
    await view_model.stop()

    assert len(source.calls) >= 3
    assert view_model.state.metrics == UPDATED_METRICS


@pytest.mark.asyncio
async def test_no_fetch_after_stop():
    source = RecordingSource()
    view_model = MetricsViewModel(source)

    await view_model.start(_config(FAST_INTERVAL_MS))
    await view_model.wait_until_ready(timeout=1)
    await view_model.stop()
    calls_at_stop = len(source.calls)
    state_at_stop = view_model.state

    await asyncio.sleep(FAST_INTERVAL_MS / 1000 * 5)

    assert len(source.calls) == calls_at_stop
    assert view_model.state is state_at_stop
    assert view_model.running is False


@pytest.mark.asyncio
async def test_fetch_failure_keeps_previous_metrics(config, fetch_error):
    source = RecordingSource(SCENARIO_METRICS, fetch_error)
    view_model = MetricsViewModel(source)
    await view_model.start(config)
    await view_model.wait_until_ready(timeout=1)

    result = await view_model.fetch()

    assert result.ok is False
    assert result.error is fetch_error
    assert result.skipped is False
    assert view_model.state.loading is False
    assert view_model.state.metrics == SCENARIO_METRICS
    assert view_model.failure_count == 1
    assert view_model.last_error is fetch_error
    await view_model.stop()


@pytest.mark.asyncio
async def test_failure_before_any_success_leaves_zero_metrics(config, fetch_error):
    view_model = MetricsViewModel(RecordingSource(fetch_error))
    await view_model.start(config)

    state = await view_model.wait_until_ready(timeout=1)

    assert state.loading is False
    assert state.metrics == Metrics()
    assert state.last_updated is None
    assert view_model.snapshot().display.total_volume == "0.0M"
    await view_model.stop()


@pytest.mark.asyncio
async def test_success_after_failure_clears_last_error(config, fetch_error):
    source = RecordingSource(fetch_error, UPDATED_METRICS)
    view_model = MetricsViewModel(source)
    await view_model.start(config)
    await view_model.wait_until_ready(timeout=1)
    assert view_model.last_error is fetch_error

    result = await view_model.fetch()

    assert result.ok is True
    assert result.metrics == UPDATED_METRICS
    assert view_model.last_error is None
    assert view_model.fetch_count == 1
    await view_model.stop()


@pytest.mark.asyncio
async def test_fetch_requires_a_running_view_model(config):
    view_model = MetricsViewModel(RecordingSource())
    with pytest.raises(RuntimeError):
        await view_model.fetch()

    await view_model.start(config)
    await view_model.stop()
    with pytest.raises(RuntimeError):
        await view_model.fetch()


@pytest.mark.asyncio
async def test_ticks_are_skipped_while_a_fetch_is_in_flight():
    source = RecordingSource(delay=0.1)
    view_model = MetricsViewModel(source)

    await view_model.start(_config(FAST_INTERVAL_MS))
    await asyncio.sleep(0.07)

    assert len(source.calls) == 1
    assert view_model.skipped_ticks >= 2
    await view_model.stop()


@pytest.mark.asyncio
async def test_stop_cancels_in_flight_scheduled_fetch(config):
    gate = asyncio.Event()
    source = RecordingSource(gate=gate)
    view_model = MetricsViewModel(source)
    await view_model.start(config)
    await asyncio.sleep(0.01)

    await view_model.stop()
    gate.set()
    await asyncio.sleep(0.01)

    assert len(source.calls) == 1
    assert view_model.state.loading is True
    assert view_model.fetch_count == 0


@pytest.mark.asyncio
async def test_direct_fetch_completing_after_stop_is_discarded(config):
    gate = asyncio.Event()
    source = RecordingSource(gate=gate)
    view_model = MetricsViewModel(source)
    await view_model.start(config)
    await asyncio.sleep(0.01)

    pending = asyncio.create_task(view_model.fetch())
    await asyncio.sleep(0.01)
    await view_model.stop()
    gate.set()
    result = await asyncio.wait_for(pending, timeout=1)

    assert result.skipped is True
    assert view_model.state.loading is True
    assert view_model.state.metrics == Metrics()


@pytest.mark.asyncio
async def test_reconfigure_contract_restarts_schedule_and_keeps_state(config):
    source = RecordingSource()
    view_model = MetricsViewModel(source)
    await view_model.start(config)
    await view_model.wait_until_ready(timeout=1)

    await view_model.reconfigure(DashboardConfig(contract_address="0xdef", refresh_interval=30000))
    assert view_model.state.loading is False
    await asyncio.sleep(0.02)

    assert [call[0] for call in source.calls] == [CONTRACT_ADDRESS, "0xdef"]
    assert view_model.state.metrics == SCENARIO_METRICS
    await view_model.stop()


@pytest.mark.asyncio
async def test_reconfigure_theme_only_does_not_refetch(config):
    source = RecordingSource()
    view_model = MetricsViewModel(source)
    await view_model.start(config)
    await view_model.wait_until_ready(timeout=1)

    await view_model.reconfigure(_config(theme="light"))
    await asyncio.sleep(0.02)

    assert len(source.calls) == 1
    assert view_model.snapshot().theme == "light"
    await view_model.stop()


@pytest.mark.asyncio
async def test_reconfigure_requires_a_running_view_model(config):
    with pytest.raises(RuntimeError):
        await MetricsViewModel(RecordingSource()).reconfigure(config)


@pytest.mark.asyncio
async def test_start_and_stop_are_idempotent(config):
    source = RecordingSource()
    view_model = MetricsViewModel(source)

    await view_model.start(config)
    await view_model.start(config)
    await view_model.wait_until_ready(timeout=1)
    await asyncio.sleep(0.02)
    assert len(source.calls) == 1

    await view_model.stop()
    await view_model.stop()
    assert view_model.running is False


@pytest.mark.asyncio
async def test_restart_after_stop_resets_state(config, fetch_error):
    source = RecordingSource(SCENARIO_METRICS, fetch_error)
    view_model = MetricsViewModel(source)
    await view_model.start(config)
    await view_model.wait_until_ready(timeout=1)
    await view_model.stop()

    await view_model.start(config)
    assert view_model.state.loading is True
    assert view_model.state.metrics == Metrics()
    await view_model.wait_until_ready(timeout=1)
    assert view_model.failure_count == 1
    await view_model.stop()


@pytest.mark.asyncio
async def test_unexpected_source_error_does_not_stop_polling():
    source = RecordingSource(RuntimeError("bad payload handling"), SCENARIO_METRICS)
    view_model = MetricsViewModel(source)

    await view_model.start(_config(FAST_INTERVAL_MS))
    await view_model.wait_until_ready(timeout=1)
    assert view_model.failure_count == 1
    await asyncio.sleep(0.05)
    await view_model.stop()

    assert len(source.calls) >= 2
    assert view_model.state.metrics == SCENARIO_METRICS


@pytest.mark.asyncio
async def test_snapshots_are_published_to_queue(config):
    queue: asyncio.Queue = asyncio.Queue(maxsize=5)
    view_model = MetricsViewModel(RecordingSource(), snapshot_queue=queue)

    await view_model.start(config)
    await view_model.wait_until_ready(timeout=1)
    await view_model.stop()

    loading_snapshot = queue.get_nowait()
    ready_snapshot = queue.get_nowait()
    assert loading_snapshot.loading is True
    assert ready_snapshot.loading is False
    assert ready_snapshot.contract_address == CONTRACT_ADDRESS
    assert ready_snapshot.display.as_list() == ["15.2M", "892", "2.3M", "1247"]
    assert ready_snapshot.fetch_count == 1


@pytest.mark.asyncio
async def test_full_queue_drops_oldest_snapshot(config):
    queue: asyncio.Queue = asyncio.Queue(maxsize=1)
    view_model = MetricsViewModel(RecordingSource(SCENARIO_METRICS, UPDATED_METRICS), snapshot_queue=queue)

    await view_model.start(config)
    await view_model.wait_until_ready(timeout=1)
    await view_model.fetch()
    await view_model.stop()

    assert queue.qsize() == 1
    assert queue.get_nowait().metrics == UPDATED_METRICS
