"""
Builders, flows and listeners shared by the databuilder tests.
"""

from collections.abc import Callable
from typing import Any

from databuilder.core.builder import FunctionBuilder
from databuilder.core.listener import DataBuilderExecutionListener
from databuilder.core.registry import BuilderRegistry
from databuilder.model.flow import BuilderMeta, DataFlow, ExecutionGraph


def make_builder(
    name: str,
    consumes: list[str],
    produces: str | None,
    func: Callable[[Any], Any] | None = None,
    calls: list[str] | None = None,
) -> FunctionBuilder:
    """Builder producing ``"<name>(<sorted inputs>)"`` unless ``func`` is given; appends its name to ``calls``."""

    def default(context):
        inputs = ",".join(str(context.value(n)) for n in sorted(consumes))
        return f"{name}({inputs})"

    body = func or default

    def process(context):
        if calls is not None:
            calls.append(name)
        return body(context)

    return FunctionBuilder(process, BuilderMeta(name=name, consumes=frozenset(consumes), produces=produces))


def make_flow(
    layers: list[list[FunctionBuilder]],
    target: str | None,
    *,
    transients: tuple[str, ...] = (),
    looping: bool = True,
    ordered_layers: bool = False,
    with_registry: bool = True,
) -> DataFlow:
    builders = [b for layer in layers for b in layer]
    return DataFlow(
        name="test_flow",
        target_data=target,
        execution_graph=ExecutionGraph.from_layers(
            [[b.meta for b in layer] for layer in layers], ordered_layers=ordered_layers
        ),
        transients=frozenset(transients),
        looping_enabled=looping,
        builder_registry=BuilderRegistry.from_builders(builders) if with_registry else None,
    )


class RecordingListener(DataBuilderExecutionListener):
    """Records every hook call as a tuple into ``events``."""

    def __init__(self, events: list[tuple] | None = None, tag: str = "") -> None:
        self.events = events if events is not None else []
        self.tag = tag

    def pre_processing(self, flow_instance, delta):
        self.events.append((self.tag, "pre_processing", tuple(delta.names())))

    def post_processing(self, flow_instance, delta, response, error):
        self.events.append((self.tag, "post_processing", response, error))

    def before_execute(self, flow_instance, builder_meta, delta, produced):
        self.events.append((self.tag, "before_execute", builder_meta.name))

    def after_execute(self, flow_instance, builder_meta, delta, produced, data):
        self.events.append((self.tag, "after_execute", builder_meta.name, data.name if data else None))

    def after_exception(self, flow_instance, builder_meta, delta, produced, error):
        self.events.append((self.tag, "after_exception", builder_meta.name, error))

    def hooks(self) -> list[str]:
        return [event[1] for event in self.events]


class FailingListener(DataBuilderExecutionListener):
    """Raises RuntimeError from the named hooks."""

    def __init__(self, *hooks: str) -> None:
        self.failing = set(hooks)

    def _maybe_fail(self, hook: str) -> None:
        if hook in self.failing:
            raise RuntimeError(f"{hook} listener broke")

    def pre_processing(self, flow_instance, delta):
        self._maybe_fail("pre_processing")

    def post_processing(self, flow_instance, delta, response, error):
        self._maybe_fail("post_processing")

    def before_execute(self, flow_instance, builder_meta, delta, produced):
        self._maybe_fail("before_execute")

    def after_execute(self, flow_instance, builder_meta, delta, produced, data):
        self._maybe_fail("after_execute")

    def after_exception(self, flow_instance, builder_meta, delta, produced, error):
        self._maybe_fail("after_exception")
