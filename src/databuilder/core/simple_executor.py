"""
Incremental, layer-by-layer dispatch loop.

Each run works on a private copy of the instance's data set. A builder runs
when at least one of its inputs is active (changed) and all of them are
present; its output becomes active in turn. Sweeps over all layers repeat
while they keep producing new durable data, until the target appears,
nothing new is produced, or looping is disabled for the flow.
"""

from __future__ import annotations

from databuilder.core.context import DataBuilderContext
from databuilder.core.executor import DataFlowExecutor
from databuilder.core.listener import DataBuilderExecutionListener
from databuilder.core.registry import BuilderRegistry
from databuilder.exceptions import BuilderError, ErrorCode, FrameworkError
from databuilder.model.data import Data, DataDelta, DataExecutionResponse, DataSet
from databuilder.model.flow import BuilderMeta, DataFlowInstance
from databuilder.utils.logging import get_logger

logger = get_logger("databuilder.executor.simple")


class SimpleDataFlowExecutor(DataFlowExecutor):
    """
    Sequential executor: builders run one at a time in layer order.

    Processed state is tracked per run, keyed by builder name, so concurrent
    runs of the same DataFlow never share it. The instance's data set is
    replaced only when a run converges without error.
    """

    def _run(
        self,
        context: DataBuilderContext,
        flow_instance: DataFlowInstance,
        delta: DataDelta,
        registry: BuilderRegistry,
        listeners: tuple[DataBuilderExecutionListener, ...],
    ) -> DataExecutionResponse:
        data_flow = flow_instance.data_flow
        graph = data_flow.execution_graph

        # Own copy to work with
        data_set = flow_instance.data_set.copy()
        data_set.merge(delta)
        context.data_set = data_set

        produced: dict[str, Data] = {}
        active: set[str] = set(delta.names())
        newly_generated: set[str] = set()
        processed: dict[str, bool] = {meta.name: False for meta in graph.builders()}

        sweep = 0
        while True:
            sweep += 1
            for layer in graph.layers:
                for meta in layer:
                    if processed[meta.name]:
                        continue
                    # No changed input: nothing new to compute for this builder yet
                    if not meta.consumes & active:
                        continue
                    if not data_set.contains_all(meta.consumes):
                        if graph.ordered_layers:
                            break
                        continue

                    data = self._execute_builder(
                        meta, context, flow_instance, delta, registry, listeners, data_set, produced
                    )
                    if data is not None:
                        active.add(data.name)
                        if data.name not in data_flow.transients:
                            newly_generated.add(data.name)
                    processed[meta.name] = True

            if data_flow.target_data is not None and data_flow.target_data in newly_generated:
                logger.debug(f"Target '{data_flow.target_data}' generated in sweep {sweep}, exiting")
                break
            if not newly_generated:
                logger.debug(f"Nothing generated in sweep {sweep}, exiting")
                break
            if not data_flow.looping_enabled:
                logger.debug("Looping disabled for flow, exiting after one sweep")
                break
            logger.debug(f"Sweep {sweep} generated: {', '.join(sorted(newly_generated))}")
            active = newly_generated
            newly_generated = set()

        flow_instance.data_set = data_set.copy_excluding(data_flow.transients)
        logger.info(
            f"Flow '{data_flow.name}' finished after {sweep} sweep(s): "
            f"{len(produced)} item(s) produced"
        )
        return DataExecutionResponse(produced)

    def _execute_builder(
        self,
        meta: BuilderMeta,
        context: DataBuilderContext,
        flow_instance: DataFlowInstance,
        delta: DataDelta,
        registry: BuilderRegistry,
        listeners: tuple[DataBuilderExecutionListener, ...],
        data_set: DataSet,
        produced: dict[str, Data],
    ) -> Data | None:
        """Invoke one builder and fold its output into the working set."""
        data_builder = registry.lookup(meta.name)
        self._notify(listeners, "before_execute", flow_instance, meta, delta, produced)
        try:
            data = data_builder.process(context)
        except Exception as e:
            logger.error(f"Error running builder '{meta.name}': {e}")
            self._notify(listeners, "after_exception", flow_instance, meta, delta, produced, e)
            if isinstance(e, BuilderError):
                details = dict(e.details)
                message = f"Error running builder: {meta.name}"
            else:
                details = {"MESSAGE": str(e)}
                message = f"Error running builder: {meta.name}: {e}"
            raise FrameworkError(
                ErrorCode.BUILDER_EXECUTION_ERROR,
                message,
                details=details,
                builder_name=meta.name,
                cause=e,
            ) from e

        if data is not None:
            data = data.with_provenance(meta.name)
            data_set.merge(data)
            produced[data.name] = data
        logger.debug(f"Ran builder '{meta.name}'")
        self._notify(listeners, "after_execute", flow_instance, meta, delta, produced, data)
        return data
