"""
Core engine: builders, registry, listeners and the flow executors.
"""

from databuilder.core.api import create_executor
from databuilder.core.builder import DataBuilder, FunctionBuilder, builder
from databuilder.core.config import ExecutorConfig
from databuilder.core.context import DataBuilderContext
from databuilder.core.executor import DataFlowExecutor
from databuilder.core.flow_loader import flow_from_dict, load_flow
from databuilder.core.listener import DataBuilderExecutionListener
from databuilder.core.registry import BuilderRegistry
from databuilder.core.simple_executor import SimpleDataFlowExecutor

__all__ = [
    "builder",
    "DataBuilder",
    "FunctionBuilder",
    "DataBuilderContext",
    "BuilderRegistry",
    "DataBuilderExecutionListener",
    "DataFlowExecutor",
    "SimpleDataFlowExecutor",
    "ExecutorConfig",
    "create_executor",
    "load_flow",
    "flow_from_dict",
]
