"""
Prometheus metrics for databuilder.

Usage:
    from databuilder.observability import MetricsListener

    metrics = MetricsListener()
    executor.register_listener(metrics)

    # Expose for Prometheus scraping
    metrics.start_http_server(port=9090)
"""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest, start_http_server

from databuilder.core.listener import DataBuilderExecutionListener
from databuilder.utils.logging import get_logger

if TYPE_CHECKING:
    from databuilder.model.data import Data, DataDelta, DataExecutionResponse
    from databuilder.model.flow import BuilderMeta, DataFlowInstance

logger = get_logger("databuilder.observability.metrics")


class MetricsListener(DataBuilderExecutionListener):
    """
    Records run outcomes and builder executions.

    Each listener owns its CollectorRegistry, so several executors (or tests)
    can keep independent metrics in one process.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self._started: dict[tuple[str, str], float] = {}
        self._lock = threading.Lock()

        self._runs_counter = Counter(
            "databuilder_runs_total",
            "Total flow runs",
            ["flow", "outcome"],  # outcome: success, failure
            registry=self.registry,
        )
        self._builder_counter = Counter(
            "databuilder_builder_executions_total",
            "Total builder executions",
            ["flow", "builder", "outcome"],  # outcome: produced, empty, failed
            registry=self.registry,
        )
        self._builder_histogram = Histogram(
            "databuilder_builder_duration_seconds",
            "Builder execution duration in seconds",
            ["flow", "builder"],
            registry=self.registry,
            buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0),
        )

    def post_processing(
        self,
        flow_instance: DataFlowInstance,
        delta: DataDelta,
        response: DataExecutionResponse | None,
        error: BaseException | None,
    ) -> None:
        outcome = "failure" if error is not None else "success"
        self._runs_counter.labels(flow=flow_instance.data_flow.name, outcome=outcome).inc()

    def before_execute(
        self,
        flow_instance: DataFlowInstance,
        builder_meta: BuilderMeta,
        delta: DataDelta,
        produced: dict[str, Data],
    ) -> None:
        with self._lock:
            self._started[(flow_instance.id, builder_meta.name)] = time.perf_counter()

    def after_execute(
        self,
        flow_instance: DataFlowInstance,
        builder_meta: BuilderMeta,
        delta: DataDelta,
        produced: dict[str, Data],
        data: Data | None,
    ) -> None:
        self._record(flow_instance, builder_meta, "produced" if data is not None else "empty")

    def after_exception(
        self,
        flow_instance: DataFlowInstance,
        builder_meta: BuilderMeta,
        delta: DataDelta,
        produced: dict[str, Data],
        error: BaseException,
    ) -> None:
        self._record(flow_instance, builder_meta, "failed")

    def _record(self, flow_instance: DataFlowInstance, builder_meta: BuilderMeta, outcome: str) -> None:
        flow_name = flow_instance.data_flow.name
        self._builder_counter.labels(flow=flow_name, builder=builder_meta.name, outcome=outcome).inc()
        with self._lock:
            started = self._started.pop((flow_instance.id, builder_meta.name), None)
        if started is not None:
            self._builder_histogram.labels(flow=flow_name, builder=builder_meta.name).observe(
                time.perf_counter() - started
            )

    def sample(self, name: str, labels: dict[str, str]) -> float | None:
        """Current value of one sample, e.g. ``sample("databuilder_runs_total", {...})``."""
        return self.registry.get_sample_value(name, labels)

    def export(self) -> str:
        """Prometheus text exposition of all metrics."""
        return generate_latest(self.registry).decode("utf-8")

    def start_http_server(self, port: int = 9090, addr: str = "0.0.0.0") -> None:
        """Serve the metrics over HTTP for Prometheus scraping."""
        start_http_server(port, addr=addr, registry=self.registry)
        logger.info(f"Metrics server started on {addr}:{port}")
