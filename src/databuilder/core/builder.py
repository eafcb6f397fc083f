"""
Builder base class and the @builder decorator.

A builder consumes named data items and produces at most one. Subclass
DataBuilder, or decorate a plain function with @builder:

    @builder(consumes=["order"], produces="invoice")
    def make_invoice(context):
        return {"total": context.value("order")["amount"]}

Returning a Data instance uses it as is; any other non-None value is wrapped
as ``Data(produces, value)``; returning None produces nothing.
"""

import functools
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import Any

from databuilder.core.context import DataBuilderContext
from databuilder.model.data import Data
from databuilder.model.flow import BuilderMeta
from databuilder.utils.logging import get_logger

logger = get_logger("databuilder.builder")


def _format_duration(elapsed: float) -> str:
    """Format duration in human-readable format."""
    if elapsed < 1.0:
        return f"{elapsed*1000:.0f}ms"
    elif elapsed < 60.0:
        return f"{elapsed:.2f}s"
    else:
        minutes = int(elapsed // 60)
        seconds = elapsed % 60
        return f"{minutes}m{seconds:.1f}s"


class DataBuilder(ABC):
    """Base class for builders."""

    def __init__(self, meta: BuilderMeta) -> None:
        self.meta = meta

    @property
    def name(self) -> str:
        return self.meta.name

    @abstractmethod
    def process(self, context: DataBuilderContext) -> Data | None:
        """Produce the output item from ``context``, or None."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.meta.name!r})"


class FunctionBuilder(DataBuilder):
    """Builder backed by a plain function taking the context."""

    def __init__(self, func: Callable[[DataBuilderContext], Any], meta: BuilderMeta) -> None:
        super().__init__(meta)
        self.func = func
        functools.update_wrapper(self, func)

    def process(self, context: DataBuilderContext) -> Data | None:
        start_time = time.time()
        try:
            logger.debug(f"Builder '{self.meta.name}' execution started")
            result = self.func(context)
        except Exception as e:
            elapsed = time.time() - start_time
            # DEBUG only: the executor logs the failure with full context
            logger.debug(f"Builder '{self.meta.name}' failed after {_format_duration(elapsed)}: {e}")
            raise
        elapsed = time.time() - start_time
        logger.debug(f"Builder '{self.meta.name}' completed successfully in {_format_duration(elapsed)}")
        return self._to_data(result)

    def _to_data(self, result: Any) -> Data | None:
        if result is None or isinstance(result, Data):
            return result
        if self.meta.produces is None:
            raise TypeError(
                f"Builder '{self.meta.name}' returned a value but declares no produced item"
            )
        return Data(name=self.meta.produces, value=result)

    def __call__(self, context: DataBuilderContext) -> Data | None:
        return self.process(context)


def builder(
    name: str | None = None,
    consumes: Iterable[str] = (),
    produces: str | None = None,
) -> Callable[[Callable[[DataBuilderContext], Any]], FunctionBuilder]:
    """
    Decorator to define a builder from a function.

    Args:
        name: Builder name (defaults to function name)
        consumes: Names of the items the builder reads
        produces: Name of the item the builder produces

    Raises:
        ValueError: If ``consumes`` is given as a single string
    """
    if isinstance(consumes, str):
        raise ValueError(f"consumes must be a collection of item names, got string '{consumes}'")

    def decorator(func: Callable[[DataBuilderContext], Any]) -> FunctionBuilder:
        meta = BuilderMeta(name=name or func.__name__, consumes=frozenset(consumes), produces=produces)
        return FunctionBuilder(func, meta)

    return decorator
