"""
Named data items and the containers that hold them.

A Data item is identified by its name within a DataSet. A DataDelta is the
ordered batch of new items that triggers a run, and a DataExecutionResponse
is what one run produced.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Data:
    """
    A named data item.

    Treated as immutable once created; provenance is stamped by taking a copy
    through with_provenance(). Subclass to carry typed fields.
    """

    name: str
    value: Any = None
    generated_by: str | None = None

    def with_provenance(self, builder_name: str) -> "Data":
        """Return a copy stamped as produced by ``builder_name``."""
        if self.generated_by == builder_name:
            return self
        return dataclasses.replace(self, generated_by=builder_name)


class DataDelta:
    """Ordered batch of data items supplied to one run."""

    def __init__(self, *items: Data) -> None:
        self._items: list[Data] = list(items)

    @classmethod
    def of(cls, items: Iterable[Data]) -> "DataDelta":
        return cls(*items)

    @property
    def delta(self) -> list[Data]:
        return list(self._items)

    def names(self) -> list[str]:
        return [item.name for item in self._items]

    def __iter__(self) -> Iterator[Data]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"DataDelta({self.names()})"


class DataSet:
    """
    Mapping of item name to Data, representing current knowledge.

    Merging an item with an existing name replaces it.
    """

    def __init__(self, items: Iterable[Data] | None = None) -> None:
        self._data: dict[str, Data] = {}
        for item in items or ():
            self._data[item.name] = item

    def copy(self) -> "DataSet":
        """Independent copy; later merges on either side are not shared."""
        return DataSet(self._data.values())

    def copy_excluding(self, names: Iterable[str]) -> "DataSet":
        """Copy without the items whose names are listed."""
        excluded = set(names)
        return DataSet(item for name, item in self._data.items() if name not in excluded)

    def merge(self, data: "Data | DataDelta | Iterable[Data]") -> None:
        """Merge one item, a delta, or any iterable of items in place."""
        if isinstance(data, Data):
            self._data[data.name] = data
            return
        for item in data:
            self._data[item.name] = item

    def contains_all(self, names: Iterable[str]) -> bool:
        return all(name in self._data for name in names)

    def get(self, name: str, default: Data | None = None) -> Data | None:
        return self._data.get(name, default)

    def value(self, name: str, default: Any = None) -> Any:
        """Shortcut for the ``value`` of an item, or ``default`` if absent."""
        item = self._data.get(name)
        if item is None:
            return default
        return item.value

    def names(self) -> set[str]:
        return set(self._data)

    def as_dict(self) -> dict[str, Data]:
        return dict(self._data)

    def __contains__(self, name: object) -> bool:
        return name in self._data

    def __iter__(self) -> Iterator[Data]:
        return iter(list(self._data.values()))

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DataSet):
            return NotImplemented
        return self._data == other._data

    def __repr__(self) -> str:
        return f"DataSet({sorted(self._data)})"


@dataclass
class DataExecutionResponse:
    """Items produced during exactly one run, keyed by name."""

    responses: dict[str, Data] = field(default_factory=dict)

    def get(self, name: str, default: Data | None = None) -> Data | None:
        return self.responses.get(name, default)

    def names(self) -> set[str]:
        return set(self.responses)

    def __contains__(self, name: object) -> bool:
        return name in self.responses

    def __len__(self) -> int:
        return len(self.responses)
