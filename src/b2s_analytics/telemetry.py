from prometheus_client import REGISTRY, Counter, Gauge

# Keep global references so repeated imports/instantiations don't register the
# same metric name multiple times (pytest builds many view models in one process).
_counter_cache: dict[str, Counter] = {}
_gauge_cache: dict[str, Gauge] = {}


def GaugeWithParams(metric_name: str, description: str, label_names: list[str]) -> Gauge:
    if metric_name not in _gauge_cache:
        _gauge_cache[metric_name] = Gauge(
            metric_name,
            description,
            labelnames=label_names,
            registry=REGISTRY,
        )
    return _gauge_cache[metric_name]


def CounterWithParams(metric_name: str, description: str, label_names: list[str]) -> Counter:
    if metric_name not in _counter_cache:
        _counter_cache[metric_name] = Counter(
            metric_name,
            description,
            labelnames=label_names,
            registry=REGISTRY,
        )
    return _counter_cache[metric_name]


FETCHES = CounterWithParams("b2s_dashboard_fetches", "Completed metric fetches by outcome", ["contract", "outcome"])
SKIPPED_TICKS = CounterWithParams(
    "b2s_dashboard_skipped_ticks", "Refresh ticks skipped because a fetch was in flight", ["contract"]
)
METRIC_VALUE = GaugeWithParams("b2s_dashboard_metric_value", "Latest fetched metric value", ["contract", "metric"])


def record_fetch(contract_address: str, *, ok: bool) -> None:
    FETCHES.labels(contract=contract_address, outcome="success" if ok else "failure").inc()


def record_skipped_tick(contract_address: str) -> None:
    SKIPPED_TICKS.labels(contract=contract_address).inc()


def record_metric_values(contract_address: str, values: dict[str, float]) -> None:
    for name, value in values.items():
        METRIC_VALUE.labels(contract=contract_address, metric=name).set(value)
