"""
Data and flow model consumed by the executors.
"""

from databuilder.model.data import Data, DataDelta, DataExecutionResponse, DataSet
from databuilder.model.flow import BuilderMeta, DataFlow, DataFlowInstance, ExecutionGraph

__all__ = [
    "Data",
    "DataDelta",
    "DataSet",
    "DataExecutionResponse",
    "BuilderMeta",
    "ExecutionGraph",
    "DataFlow",
    "DataFlowInstance",
]
