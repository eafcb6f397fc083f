"""
Listener that reports run and builder lifecycle events to the log.
"""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

from databuilder.core.listener import DataBuilderExecutionListener
from databuilder.observability.structured_logging import log_builder_end, log_builder_start
from databuilder.utils.logging import get_logger

if TYPE_CHECKING:
    from databuilder.model.data import Data, DataDelta, DataExecutionResponse
    from databuilder.model.flow import BuilderMeta, DataFlowInstance

logger = get_logger("databuilder.observability.listeners")


class LoggingListener(DataBuilderExecutionListener):
    """Logs every hook, with builder durations as structured ``extra`` fields."""

    def __init__(self) -> None:
        self._started: dict[tuple[str, str], float] = {}
        self._lock = threading.Lock()

    def pre_processing(self, flow_instance: DataFlowInstance, delta: DataDelta) -> None:
        logger.info(f"Running flow '{flow_instance.data_flow.name}' with delta {delta.names()}")

    def post_processing(
        self,
        flow_instance: DataFlowInstance,
        delta: DataDelta,
        response: DataExecutionResponse | None,
        error: BaseException | None,
    ) -> None:
        if error is not None:
            logger.error(f"Flow '{flow_instance.data_flow.name}' failed: {error}")
        elif response is not None:
            logger.info(f"Flow '{flow_instance.data_flow.name}' produced {sorted(response.names())}")

    def before_execute(
        self,
        flow_instance: DataFlowInstance,
        builder_meta: BuilderMeta,
        delta: DataDelta,
        produced: dict[str, Data],
    ) -> None:
        with self._lock:
            self._started[(flow_instance.id, builder_meta.name)] = time.perf_counter()
        log_builder_start(flow_instance.data_flow.name, builder_meta.name)

    def after_execute(
        self,
        flow_instance: DataFlowInstance,
        builder_meta: BuilderMeta,
        delta: DataDelta,
        produced: dict[str, Data],
        data: Data | None,
    ) -> None:
        log_builder_end(
            flow_instance.data_flow.name,
            builder_meta.name,
            success=True,
            duration=self._elapsed(flow_instance, builder_meta),
            produced=data.name if data is not None else None,
        )

    def after_exception(
        self,
        flow_instance: DataFlowInstance,
        builder_meta: BuilderMeta,
        delta: DataDelta,
        produced: dict[str, Data],
        error: BaseException,
    ) -> None:
        log_builder_end(
            flow_instance.data_flow.name,
            builder_meta.name,
            success=False,
            duration=self._elapsed(flow_instance, builder_meta),
            error=str(error) or type(error).__name__,
        )

    def _elapsed(self, flow_instance: DataFlowInstance, builder_meta: BuilderMeta) -> float | None:
        with self._lock:
            started = self._started.pop((flow_instance.id, builder_meta.name), None)
        if started is None:
            return None
        return time.perf_counter() - started
