"""Layered config loading: model defaults < YAML < VIXRESOLVER_* env < CLI.

Each layer is folded into the sectioned shape ``AppConfig`` validates.
Flat keys are accepted too: ``log_level``/``log_format`` land in
``logging`` and any ``ResolverConfig`` field name lands in ``resolver``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .schema import AppConfig, EnvOverrides, ResolverConfig

_LOGGING_KEYS = {"log_level": "level", "log_format": "format"}
_RESOLVER_FIELDS = frozenset(ResolverConfig.model_fields)


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in layer.items():
        if key in ("logging", "resolver") and isinstance(value, Mapping):
            out.setdefault(key, {}).update(value)
        elif key in _LOGGING_KEYS:
            out.setdefault("logging", {})[_LOGGING_KEYS[key]] = value
        elif key in _RESOLVER_FIELDS:
            out.setdefault("resolver", {})[key] = value
        else:
            out[key] = value
    return out


def _merge(into: dict[str, Any], layer: Mapping[str, Any]) -> None:
    for key, value in layer.items():
        if isinstance(into.get(key), dict) and isinstance(value, Mapping):
            _merge(into[key], value)
        else:
            into[key] = value


def _yaml_layer(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: config YAML must be a mapping, got {type(data).__name__}")
    return data


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> AppConfig:
    """Merge every layer and validate. Reads files, never writes them.

    A ``.env`` file is loaded into the process environment without
    replacing variables that are already set, so it ranks with the env layer.
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)

    layers = (
        _yaml_layer(config_path) if config_path is not None else {},
        EnvOverrides().to_update_dict(),
        cli_overrides or {},
    )
    merged: dict[str, Any] = {}
    for layer in layers:
        _merge(merged, _sectioned(layer))
    return AppConfig.model_validate(merged)
