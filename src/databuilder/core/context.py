"""
Execution context handed to builders.

The executor points ``data_set`` at the run's private working copy before any
builder is invoked, so builders always read the data visible to the run.
"""

from dataclasses import dataclass, field
from typing import Any

from databuilder.model.data import Data, DataSet


@dataclass
class DataBuilderContext:
    """
    Per-run context.

    Attributes:
        data_set: Data visible to builders
        context_data: Free-form values shared between builders of one run
    """

    data_set: DataSet = field(default_factory=DataSet)
    context_data: dict[str, Any] = field(default_factory=dict)

    def get(self, name: str) -> Data | None:
        return self.data_set.get(name)

    def value(self, name: str, default: Any = None) -> Any:
        return self.data_set.value(name, default)

    def save_context_data(self, key: str, value: Any) -> None:
        self.context_data[key] = value

    def get_context_data(self, key: str, default: Any = None) -> Any:
        return self.context_data.get(key, default)
