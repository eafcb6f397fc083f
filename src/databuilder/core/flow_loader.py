"""
Load DataFlow definitions from YAML flow files.

The file gives the layered builder order explicitly; each builder entry names
the Python object implementing it as ``module:attribute`` or
``path/to/file.py:attribute`` (relative to the flow file):

    name: pricing
    target: price
    transients: [scratch]
    looping: true
    layers:
      - - {name: fetch, consumes: [sku], produces: base, builder: "shop.builders:fetch"}
      - - {name: price, consumes: [base], produces: price, builder: "builders.py:price"}
"""

import importlib
import importlib.util
import inspect
import re
import sys
from pathlib import Path
from typing import Any

import yaml

from databuilder.core.builder import DataBuilder, FunctionBuilder
from databuilder.core.registry import BuilderRegistry
from databuilder.exceptions import ConfigurationError
from databuilder.model.flow import BuilderMeta, DataFlow, ExecutionGraph
from databuilder.utils.logging import get_logger

logger = get_logger("databuilder.flow_loader")

# Modules loaded from file paths, keyed by resolved path
_file_modules: dict[str, Any] = {}


def load_flow(path: Path | str) -> DataFlow:
    """
    Load a flow file.

    Args:
        path: YAML flow file

    Returns:
        DataFlow carrying a BuilderRegistry with every referenced builder

    Raises:
        ConfigurationError: If the file is malformed or a builder cannot be imported
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Flow file not found: {path}", details={"file": str(path)})

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Error parsing flow file {path}: {e}", details={"file": str(path)}) from e

    return flow_from_dict(data, base_dir=path.parent, source=str(path))


def flow_from_dict(data: dict[str, Any], base_dir: Path | None = None, source: str = "<dict>") -> DataFlow:
    """Build a DataFlow from an already-parsed flow mapping."""
    if not isinstance(data, dict):
        raise ConfigurationError(f"Flow definition must be a mapping: {source}")
    if not data.get("name"):
        raise ConfigurationError(f"Flow definition has no 'name': {source}")

    layers_data = data.get("layers") or []
    if not isinstance(layers_data, list):
        raise ConfigurationError(f"Flow 'layers' must be a list of lists: {source}")

    registry = BuilderRegistry()
    layers: list[list[BuilderMeta]] = []
    for index, layer_data in enumerate(layers_data):
        if not isinstance(layer_data, list):
            raise ConfigurationError(f"Layer {index} must be a list of builders: {source}")
        layer = []
        for entry in layer_data:
            meta, impl = _parse_builder_entry(entry, base_dir, source)
            registry.register(impl, meta.name)
            layer.append(meta)
        layers.append(layer)

    flow = DataFlow(
        name=data["name"],
        target_data=data.get("target"),
        execution_graph=ExecutionGraph.from_layers(layers, ordered_layers=_flag(data, "ordered_layers", source)),
        transients=frozenset(_names(data.get("transients"), "transients", source)),
        looping_enabled=_flag(data, "looping", source),
        builder_registry=registry,
        description=data.get("description"),
    )
    logger.debug(f"Loaded flow '{flow.name}' with {len(flow.execution_graph)} builder(s) from {source}")
    return flow


def _names(value: Any, key: str, source: str) -> list[str]:
    """A single name or a list of names."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(f"'{key}' must be a name or a list of names, got {value!r}: {source}")
    return value


def _flag(data: dict[str, Any], key: str, source: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ConfigurationError(f"Flow option '{key}' must be true or false, got {value!r}: {source}")
    return value


def _parse_builder_entry(entry: Any, base_dir: Path | None, source: str) -> tuple[BuilderMeta, Any]:
    if not isinstance(entry, dict) or not entry.get("name") or not entry.get("builder"):
        raise ConfigurationError(f"Builder entries need 'name' and 'builder' keys, got {entry!r}: {source}")

    consumes = _names(entry.get("consumes"), "consumes", source)
    meta = BuilderMeta(name=entry["name"], consumes=frozenset(consumes), produces=entry.get("produces"))

    obj = _import_reference(entry["builder"], base_dir)
    if isinstance(obj, DataBuilder):
        impl: Any = obj
    elif inspect.isclass(obj) and issubclass(obj, DataBuilder):
        # Fresh instance per lookup
        impl = lambda cls=obj, meta=meta: cls(meta)  # noqa: E731
    elif callable(obj):
        impl = FunctionBuilder(obj, meta)
    else:
        raise ConfigurationError(
            f"Builder reference '{entry['builder']}' is not a builder or callable: {source}",
            details={"builder": meta.name},
        )
    return meta, impl


def _import_reference(reference: str, base_dir: Path | None) -> Any:
    """Resolve ``module:attr`` or ``file.py:attr``."""
    module_ref, sep, attr = reference.rpartition(":")
    if not sep or not module_ref or not attr:
        raise ConfigurationError(f"Builder reference must look like 'module:attribute', got '{reference}'")

    try:
        if module_ref.endswith(".py"):
            module = _load_file_module(Path(module_ref) if base_dir is None else base_dir / module_ref)
        else:
            module = importlib.import_module(module_ref)
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Cannot import '{module_ref}': {e}", details={"reference": reference}) from e

    try:
        return getattr(module, attr)
    except AttributeError as e:
        raise ConfigurationError(
            f"Module '{module_ref}' has no attribute '{attr}'", details={"reference": reference}
        ) from e


def _load_file_module(file_path: Path) -> Any:
    resolved = str(file_path.resolve())
    if resolved in _file_modules:
        return _file_modules[resolved]
    if not file_path.is_file():
        raise ConfigurationError(f"Builder file not found: {file_path}")

    # dataclasses resolve string annotations through sys.modules[cls.__module__]
    module_name = "_databuilder_builders_" + re.sub(r"\W", "_", resolved)
    spec = importlib.util.spec_from_file_location(module_name, file_path)
    if spec is None or spec.loader is None:
        raise ConfigurationError(f"Cannot load builder file: {file_path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    _file_modules[resolved] = module
    return module
