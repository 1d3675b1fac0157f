"""Load a finalized design graph from a snapshot file or a Python reference."""

import importlib
import json
from pathlib import Path

import yaml
from pydantic import ValidationError

from apidesign.design.base import DesignGraph
from apidesign.design.dsl import Design, build
from apidesign.design.errors import ConfigurationError, DesignError

SNAPSHOT_SUFFIXES = (".yaml", ".yml", ".json")


def load_design(ref: str) -> DesignGraph:
    """Load a design from ``ref``.

    ``ref`` is either a YAML/JSON snapshot of a design graph or a
    ``package.module:attr`` reference where ``attr`` is a ``DesignGraph``, a
    ``Design`` or a function taking a ``Design``.
    """
    if ref.endswith(SNAPSHOT_SUFFIXES):
        return load_snapshot(Path(ref))
    return load_reference(ref)


def load_snapshot(file_path: Path) -> DesignGraph:
    try:
        text = file_path.read_text(encoding="utf-8")
        data = json.loads(text) if file_path.suffix == ".json" else yaml.safe_load(text)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"{file_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"{file_path}: design snapshot must be a mapping")
    try:
        return DesignGraph.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"{file_path}: invalid design snapshot\n{e}") from e
    except DesignError as e:
        raise ConfigurationError(f"{file_path}: {e}") from e


def load_reference(ref: str) -> DesignGraph:
    module_name, _, attr = ref.partition(":")
    if not module_name or not attr:
        raise ConfigurationError(f"invalid design reference {ref!r}, expected 'module:attr'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"cannot import design module {module_name!r}: {e}") from e
    try:
        obj = getattr(module, attr)
    except AttributeError as e:
        raise ConfigurationError(f"module {module_name!r} has no attribute {attr!r}") from e

    if isinstance(obj, DesignGraph):
        return obj
    if isinstance(obj, Design):
        return obj.finalize()
    if callable(obj):
        return build(obj)
    raise ConfigurationError(f"{ref} is not a design graph, a Design or a design function")
