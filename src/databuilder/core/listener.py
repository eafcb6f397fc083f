"""
Execution listener contract.

Listeners registered on an executor receive every hook, in registration
order. Only pre_processing is fatal when it raises; failures in every other
hook are logged and ignored by the executor.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from databuilder.model.data import Data, DataDelta, DataExecutionResponse
    from databuilder.model.flow import BuilderMeta, DataFlowInstance


class DataBuilderExecutionListener:
    """Base listener; override the hooks you need."""

    def pre_processing(self, flow_instance: DataFlowInstance, delta: DataDelta) -> None:
        """Called before any builder runs. Raising aborts the run."""

    def post_processing(
        self,
        flow_instance: DataFlowInstance,
        delta: DataDelta,
        response: DataExecutionResponse | None,
        error: BaseException | None,
    ) -> None:
        """Called on every exit path of a run that got past registry resolution."""

    def before_execute(
        self,
        flow_instance: DataFlowInstance,
        builder_meta: BuilderMeta,
        delta: DataDelta,
        produced: dict[str, Data],
    ) -> None:
        """Called right before a builder is invoked."""

    def after_execute(
        self,
        flow_instance: DataFlowInstance,
        builder_meta: BuilderMeta,
        delta: DataDelta,
        produced: dict[str, Data],
        data: Data | None,
    ) -> None:
        """Called after a builder returned; ``data`` is its output or None."""

    def after_exception(
        self,
        flow_instance: DataFlowInstance,
        builder_meta: BuilderMeta,
        delta: DataDelta,
        produced: dict[str, Data],
        error: BaseException,
    ) -> None:
        """Called after a builder raised, before the run fails."""
