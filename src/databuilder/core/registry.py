"""
Builder registry: resolves builder names to builder instances.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from databuilder.core.builder import DataBuilder
from databuilder.exceptions import BuilderNotFoundError
from databuilder.utils.logging import get_logger

logger = get_logger("databuilder.registry")

BuilderFactory = Callable[[], DataBuilder]


class BuilderRegistry:
    """
    Name -> builder lookup.

    Entries are either builder instances, returned as is, or zero-argument
    factories called on every lookup to create a fresh builder.
    """

    def __init__(self) -> None:
        self._entries: dict[str, DataBuilder | BuilderFactory] = {}

    @classmethod
    def from_builders(cls, builders: Iterable[DataBuilder]) -> BuilderRegistry:
        registry = cls()
        for b in builders:
            registry.register(b)
        return registry

    def register(self, builder: DataBuilder | BuilderFactory, name: str | None = None) -> None:
        """
        Register a builder instance or factory.

        Args:
            builder: Builder instance, or zero-arg callable returning one
            name: Registry key; defaults to the instance's meta name

        Raises:
            ValueError: If no name can be determined
        """
        if name is None:
            if not isinstance(builder, DataBuilder):
                raise ValueError("A name is required when registering a builder factory")
            name = builder.meta.name
        if name in self._entries:
            logger.debug(f"Replacing registered builder '{name}'")
        self._entries[name] = builder

    def lookup(self, name: str) -> DataBuilder:
        """
        Resolve a builder by name.

        Raises:
            BuilderNotFoundError: If nothing is registered under ``name``
        """
        entry = self._entries.get(name)
        if entry is None:
            raise BuilderNotFoundError(name)
        if isinstance(entry, DataBuilder):
            return entry
        return entry()

    def names(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)
