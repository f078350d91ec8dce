"""YAML configuration discovery for the `file-pipeline` command."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

import yaml

DEFAULT_ENV_VAR = "FILE_PIPELINE_CONFIG"
LOCAL_OVERLAY_NAME = "config.local.yaml"


def _project_root(start: str | os.PathLike[str] | None) -> str:
    """Nearest directory at or above `start` holding `pyproject.toml`."""

    current = os.path.abspath(os.fspath(start) if start is not None else os.getcwd())
    if os.path.isfile(current):
        current = os.path.dirname(current)
    while True:
        if os.path.isfile(os.path.join(current, "pyproject.toml")):
            return current
        parent = os.path.dirname(current)
        if parent == current:
            raise FileNotFoundError(f"No pyproject.toml found at or above {start or os.getcwd()}")
        current = parent


def _read_mapping(path: str) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as handle:
        try:
            document = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(document, (Mapping, type(None))):
        raise ValueError(f"Config file must contain a YAML mapping: {path}")
    return dict(document or {})


def _shape(value: Any) -> str:
    if isinstance(value, Mapping):
        return "mapping"
    if isinstance(value, (list, tuple)):
        return "list"
    return "scalar"


def _overlay(base: Any, local: Any, where: str) -> Any:
    """Apply a local override: mappings merge per key, anything else replaces.

    A null in the override clears the value; a null base takes any override.
    Otherwise the override must have the same shape (mapping, list, scalar).
    """

    if local is None:
        return None
    if base is None:
        return local
    if _shape(base) != _shape(local):
        raise ValueError(
            f"Invalid config overlay merge at {where}: cannot replace "
            f"{_shape(base)} ({type(base).__name__}) with {type(local).__name__}"
        )
    if _shape(base) != "mapping":
        return list(local) if isinstance(local, tuple) else local

    merged = dict(base)
    for key, value in local.items():
        path = f"{where}.{key}" if where else str(key)
        merged[key] = _overlay(base[key], value, path) if key in base else value
    return merged


def load_config(
    *,
    config_path: str | os.PathLike[str] | None = None,
    env_var: str | None = DEFAULT_ENV_VAR,
    config_dir: str | os.PathLike[str] = "config",
    config_name: str = "config.yaml",
    start_dir: str | os.PathLike[str] | None = None,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Load the pipeline configuration; returns `(cfg, meta)`.

    `config_path` wins, then the file named by `$env_var`; either is loaded
    on its own. Otherwise `<config_dir>/<config_name>` is read (relative to
    the project root unless absolute) and `config.local.yaml` next to it, if
    present, is overlaid on it.
    """

    meta: dict[str, Any] = {"env_var": env_var, "repo_root": None}

    mode = "explicit"
    chosen = os.fspath(config_path).strip() if config_path is not None else ""
    if not chosen and env_var:
        mode = "env"
        chosen = os.environ.get(env_var, "").strip()
    if chosen:
        path = os.path.abspath(os.path.expanduser(os.path.expandvars(chosen)))
        meta.update(mode=mode, paths=[path])
        return _read_mapping(path), meta

    directory = os.fspath(config_dir)
    if not os.path.isabs(directory):
        meta["repo_root"] = _project_root(start_dir)
        directory = os.path.join(meta["repo_root"], directory)

    base_path = os.path.abspath(os.path.join(directory, config_name))
    if not os.path.isfile(base_path):
        raise FileNotFoundError(f"Missing base config file: {base_path}")
    cfg = _read_mapping(base_path)
    meta.update(mode="base", paths=[base_path])

    local_path = os.path.abspath(os.path.join(directory, LOCAL_OVERLAY_NAME))
    if os.path.isfile(local_path):
        cfg = _overlay(cfg, _read_mapping(local_path), "")
        meta.update(mode="base+local", paths=[base_path, local_path])

    return cfg, meta
