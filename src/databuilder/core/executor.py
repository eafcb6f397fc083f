"""
Flow executor lifecycle.

DataFlowExecutor wraps one end-to-end run: it resolves the builder registry,
announces pre-processing to listeners, delegates to the concrete dispatch
loop, and always announces post-processing, whatever the outcome.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from databuilder.core.context import DataBuilderContext
from databuilder.core.listener import DataBuilderExecutionListener
from databuilder.core.registry import BuilderRegistry
from databuilder.exceptions import ErrorCode, FrameworkError
from databuilder.model.data import Data, DataDelta, DataExecutionResponse
from databuilder.model.flow import DataFlow, DataFlowInstance
from databuilder.observability.structured_logging import add_correlation_id
from databuilder.utils.logging import get_logger

logger = get_logger("databuilder.executor")


def _to_delta(data: Iterable[Data | DataDelta]) -> DataDelta:
    """Flatten Data items and DataDeltas, preserving order."""
    items: list[Data] = []
    for entry in data:
        if isinstance(entry, DataDelta):
            items.extend(entry)
        elif isinstance(entry, Data):
            items.append(entry)
        else:
            raise TypeError(f"Expected Data or DataDelta, got {type(entry).__name__}")
    return DataDelta(*items)


class DataFlowExecutor(ABC):
    """
    Base executor for a DataFlow.

    Listeners are registered once and notified in registration order on every
    subsequent run. Each run works on a snapshot of the listener list.

    Attributes:
        builder_registry: Fallback registry, used when the flow carries none
        correlation_ids: Wrap each run in a logging correlation id
    """

    def __init__(self, builder_registry: BuilderRegistry | None = None, *, correlation_ids: bool = True) -> None:
        self.builder_registry = builder_registry
        self.correlation_ids = correlation_ids
        self._listeners: list[DataBuilderExecutionListener] = []

    @property
    def listeners(self) -> tuple[DataBuilderExecutionListener, ...]:
        return tuple(self._listeners)

    def register_listener(self, listener: DataBuilderExecutionListener) -> None:
        """Append a listener; it is invoked after all previously registered ones."""
        self._listeners.append(listener)

    def run(
        self,
        flow: DataFlow | DataFlowInstance,
        *data: Data | DataDelta,
        context: DataBuilderContext | None = None,
    ) -> DataExecutionResponse:
        """
        Run a flow with new data.

        Args:
            flow: A DataFlow (run against a fresh instance, single request use)
                or a DataFlowInstance (its data set is updated on success)
            *data: Data items and/or DataDeltas to feed into the run
            context: Optional context; one over the instance's data set is
                created otherwise

        Returns:
            Items produced during this run

        Raises:
            FrameworkError: If the run fails
        """
        if isinstance(flow, DataFlow):
            flow_instance = DataFlowInstance(data_flow=flow)
        elif isinstance(flow, DataFlowInstance):
            flow_instance = flow
        else:
            raise TypeError(f"Expected DataFlow or DataFlowInstance, got {type(flow).__name__}")

        if context is None:
            context = DataBuilderContext(data_set=flow_instance.data_set)
        return self.execute(context, flow_instance, _to_delta(data))

    def execute(
        self,
        context: DataBuilderContext,
        flow_instance: DataFlowInstance,
        delta: DataDelta,
    ) -> DataExecutionResponse:
        """
        Execute one run of ``flow_instance`` with ``delta``.

        Raises:
            FrameworkError: NO_FACTORY_FOR_DATA_BUILDER when no registry can be
                resolved, PRE_PROCESSING_ERROR when a pre-processing listener
                fails, BUILDER_EXECUTION_ERROR when a builder fails
        """
        registry = flow_instance.data_flow.builder_registry
        if registry is None:
            registry = self.builder_registry
        if registry is None:
            raise FrameworkError(
                ErrorCode.NO_FACTORY_FOR_DATA_BUILDER,
                "No builder registry specified in executor or data flow",
            )

        listeners = tuple(self._listeners)
        if not self.correlation_ids:
            return self._process(context, flow_instance, delta, registry, listeners)
        with add_correlation_id(flow_instance.id):
            return self._process(context, flow_instance, delta, registry, listeners)

    def _process(
        self,
        context: DataBuilderContext,
        flow_instance: DataFlowInstance,
        delta: DataDelta,
        registry: BuilderRegistry,
        listeners: tuple[DataBuilderExecutionListener, ...],
    ) -> DataExecutionResponse:
        response: DataExecutionResponse | None = None
        error: BaseException | None = None
        try:
            for listener in listeners:
                try:
                    listener.pre_processing(flow_instance, delta)
                except Exception as e:
                    logger.error("Error running pre-processing listener", exc_info=True)
                    raise FrameworkError(
                        ErrorCode.PRE_PROCESSING_ERROR,
                        f"Error running pre-processing listener: {e}",
                        cause=e,
                    ) from e
            response = self._run(context, flow_instance, delta, registry, listeners)
            return response
        except BaseException as e:
            error = e
            raise
        finally:
            self._notify(listeners, "post_processing", flow_instance, delta, response, error)

    @staticmethod
    def _notify(listeners: tuple[DataBuilderExecutionListener, ...], hook: str, *args: Any) -> None:
        """Invoke ``hook`` on every listener; failures are logged and skipped."""
        for listener in listeners:
            try:
                getattr(listener, hook)(*args)
            except Exception:
                logger.error(f"Error running {hook} listener {type(listener).__name__}", exc_info=True)

    @abstractmethod
    def _run(
        self,
        context: DataBuilderContext,
        flow_instance: DataFlowInstance,
        delta: DataDelta,
        registry: BuilderRegistry,
        listeners: tuple[DataBuilderExecutionListener, ...],
    ) -> DataExecutionResponse:
        """Dispatch builders for one run and return what they produced."""
