"""
Databuilder - incremental, dependency-driven data building.

Builders declare the data items they consume and the single item they
produce; an executor runs every builder whose inputs just became available,
sweep after sweep, until the flow's target is produced or nothing changes.
"""

__version__ = "0.1.0"

from databuilder.config.loader import Config, load_config
from databuilder.core.api import create_executor
from databuilder.core.builder import DataBuilder, FunctionBuilder, builder
from databuilder.core.context import DataBuilderContext
from databuilder.core.executor import DataFlowExecutor
from databuilder.core.flow_loader import load_flow
from databuilder.core.listener import DataBuilderExecutionListener
from databuilder.core.registry import BuilderRegistry
from databuilder.core.simple_executor import SimpleDataFlowExecutor

# Exceptions
from databuilder.exceptions import (
    BuilderError,
    BuilderNotFoundError,
    ConfigurationError,
    DataBuilderError,
    DataValidationError,
    ErrorCode,
    FrameworkError,
)
from databuilder.model import (
    BuilderMeta,
    Data,
    DataDelta,
    DataExecutionResponse,
    DataFlow,
    DataFlowInstance,
    DataSet,
    ExecutionGraph,
)

# Logging utilities
from databuilder.utils.logging import get_logger, setup_logging, setup_logging_from_config

__all__ = [
    # Model
    "Data",
    "DataDelta",
    "DataSet",
    "DataExecutionResponse",
    "BuilderMeta",
    "ExecutionGraph",
    "DataFlow",
    "DataFlowInstance",
    # Builders
    "builder",
    "DataBuilder",
    "FunctionBuilder",
    "DataBuilderContext",
    "BuilderRegistry",
    # Execution
    "DataBuilderExecutionListener",
    "DataFlowExecutor",
    "SimpleDataFlowExecutor",
    "create_executor",
    "load_flow",
    # Config
    "Config",
    "load_config",
    # Logging
    "setup_logging",
    "setup_logging_from_config",
    "get_logger",
    # Exceptions
    "DataBuilderError",
    "ConfigurationError",
    "FrameworkError",
    "ErrorCode",
    "BuilderError",
    "DataValidationError",
    "BuilderNotFoundError",
]
