"""JSON persistence for the runtime configuration.

Partial documents are merged over a base config section by section, so a file
or request body only has to carry the values it changes. Unknown keys are
rejected at every level.
"""

from __future__ import annotations

import json
from copy import deepcopy
from dataclasses import fields, is_dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar

from .defaults import RuntimeConfig

T = TypeVar("T")

CONFIG_PATH = Path("var/runtime_config.json")


def runtime_config_to_dict(config: RuntimeConfig) -> Dict[str, Any]:
    return _as_dict(config)


def runtime_config_from_dict(data: Dict[str, Any], base: Optional[RuntimeConfig] = None) -> RuntimeConfig:
    """Build a config from ``data`` layered over ``base`` (defaults when omitted)."""
    return _merge(RuntimeConfig, data, base or RuntimeConfig())


def patch_runtime_section(config: RuntimeConfig, section: str, payload: Dict[str, Any]) -> RuntimeConfig:
    """Return a copy of ``config`` with one section updated from ``payload``.

    Raises ``KeyError`` for an unknown section and ``TypeError`` when the
    section is a plain value rather than a nested dataclass.
    """
    if section not in {field.name for field in fields(config)}:
        raise KeyError(section)
    current = getattr(config, section)
    if not is_dataclass(current):
        raise TypeError(f"section '{section}' is not patchable via dict merge")
    return replace(config, **{section: _merge(type(current), payload, current)})


def save_runtime_config(config: RuntimeConfig, path: Optional[Path] = None) -> None:
    target = path or CONFIG_PATH
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(runtime_config_to_dict(config), indent=2), encoding="utf-8")


def load_runtime_config(path: Optional[Path] = None, base: Optional[RuntimeConfig] = None) -> RuntimeConfig:
    """Load configuration from disk; return ``base`` (or defaults) when the file is absent."""
    source = path or CONFIG_PATH
    base_config = base or RuntimeConfig()
    if not source.exists():
        return base_config
    data = json.loads(source.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("runtime configuration file must contain a JSON object")
    return runtime_config_from_dict(data, base_config)


def _as_dict(instance: Any) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for field in fields(instance):
        value = getattr(instance, field.name)
        result[field.name] = _as_dict(value) if is_dataclass(value) else deepcopy(value)
    return result


def _merge(cls: Type[T], data: Dict[str, Any], base: T) -> T:
    if not isinstance(data, dict):
        raise TypeError(f"{cls.__name__} section must be a JSON object")
    names = [field.name for field in fields(cls)]
    unknown = sorted(set(data) - set(names))
    if unknown:
        raise ValueError(f"Unknown fields for {cls.__name__}: {', '.join(unknown)}")
    kwargs: Dict[str, Any] = {}
    for name in names:
        current = getattr(base, name)
        if is_dataclass(current):
            kwargs[name] = _merge(type(current), data.get(name) or {}, current)
        elif name in data:
            kwargs[name] = data[name]
        else:
            kwargs[name] = deepcopy(current)
    return cls(**kwargs)
