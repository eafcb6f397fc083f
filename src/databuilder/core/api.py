"""
Programmatic API: build a configured executor.
"""

from typing import Any

from databuilder.config.loader import Config
from databuilder.core.config import ExecutorConfig
from databuilder.core.registry import BuilderRegistry
from databuilder.core.simple_executor import SimpleDataFlowExecutor
from databuilder.observability.listeners import LoggingListener
from databuilder.observability.metrics import MetricsListener
from databuilder.utils.logging import get_logger

logger = get_logger("databuilder.api")


def create_executor(
    config: Config | dict[str, Any] | None = None,
    registry: BuilderRegistry | None = None,
) -> SimpleDataFlowExecutor:
    """
    Create an executor with the listeners enabled in ``config``.

    Args:
        config: Project Config, or a raw dict holding an ``executor`` section
        registry: Fallback builder registry for flows that carry none

    Returns:
        SimpleDataFlowExecutor ready to run flows

    Examples:
        executor = create_executor(load_config(project_dir))
        response = executor.run(flow, Data("order", order))
    """
    if isinstance(config, Config):
        section = config.executor
    else:
        section = (config or {}).get("executor")
    executor_config = ExecutorConfig.from_dict(section)

    executor = SimpleDataFlowExecutor(registry, correlation_ids=executor_config.correlation_ids)
    if executor_config.log_executions:
        executor.register_listener(LoggingListener())
    if executor_config.metrics_enabled:
        executor.register_listener(MetricsListener())
    logger.debug(f"Executor created: {executor_config}")
    return executor
