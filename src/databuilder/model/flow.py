"""
Flow definitions: builder descriptors, the layered execution graph, and
the flow/instance pair that a run operates on.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from databuilder.model.data import DataSet

if TYPE_CHECKING:
    from databuilder.core.registry import BuilderRegistry


@dataclass(frozen=True)
class BuilderMeta:
    """Static description of a builder: what it consumes and what it produces."""

    name: str
    consumes: frozenset[str] = frozenset()
    produces: str | None = None

    def __post_init__(self) -> None:
        # Accept any iterable of names, store as frozenset
        if not isinstance(self.consumes, frozenset):
            object.__setattr__(self, "consumes", frozenset(self.consumes))


@dataclass(frozen=True)
class ExecutionGraph:
    """
    Builders grouped into dependency-ordered layers.

    Every input of a builder in layer k is producible by builders in layers
    before k. ``ordered_layers`` states the stronger guarantee that members of
    each layer are also ordered among themselves, so once one builder's inputs
    are missing none after it in the same layer can run either.
    """

    layers: tuple[tuple[BuilderMeta, ...], ...] = ()
    ordered_layers: bool = False

    @classmethod
    def from_layers(cls, layers: Iterable[Iterable[BuilderMeta]], *, ordered_layers: bool = False) -> "ExecutionGraph":
        return cls(layers=tuple(tuple(layer) for layer in layers), ordered_layers=ordered_layers)

    def builders(self) -> Iterator[BuilderMeta]:
        for layer in self.layers:
            yield from layer

    def __len__(self) -> int:
        return sum(len(layer) for layer in self.layers)

    def visualize(self) -> str:
        """Render the layers one per line, siblings joined with ``──``."""
        lines = []
        for layer_num, layer in enumerate(self.layers):
            names = [meta.name for meta in layer]
            if len(names) == 1:
                lines.append(f"Layer {layer_num}: {names[0]}")
            else:
                lines.append(f"Layer {layer_num}: {' ── '.join(names)}")
        return "\n".join(lines)


@dataclass
class DataFlow:
    """
    A flow definition.

    Attributes:
        name: Flow name
        target_data: Item name whose production completes the flow
        execution_graph: Layered builder order
        transients: Item names never persisted into the instance data set
        looping_enabled: Whether more than one sweep may run
        builder_registry: Optional registry; the executor's is used otherwise
    """

    name: str
    target_data: str | None
    execution_graph: ExecutionGraph = field(default_factory=ExecutionGraph)
    transients: frozenset[str] = frozenset()
    looping_enabled: bool = False
    builder_registry: "BuilderRegistry | None" = None
    description: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.transients, frozenset):
            self.transients = frozenset(self.transients)


@dataclass
class DataFlowInstance:
    """Carries a DataSet across runs of the same DataFlow."""

    data_flow: DataFlow
    data_set: DataSet = field(default_factory=DataSet)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str | None = None

    def __post_init__(self) -> None:
        if self.name is None:
            self.name = self.data_flow.name
