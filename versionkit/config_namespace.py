"""Strict configuration namespace with consumed-keys enforcement."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

_MISSING = object()


def _join_path(parent: str, key: str) -> str:
    return f"{parent}.{key}" if parent else key


def _checked_key(key: Any) -> str:
    if not isinstance(key, str) or not key.strip():
        raise TypeError("ConfigNamespace key must be a non-empty string")
    return key.strip()


@dataclass
class ConfigNamespace:
    """Typed accessors over a config mapping that remember which keys were read.

    `assert_consumed()` fails on any key nobody asked for, so a typo in a
    config file is an error instead of a silently ignored setting.
    """

    data: Mapping[str, Any]
    path: str = ""
    _consumed: set[str] = field(default_factory=set, init=False, repr=False)
    _children: dict[str, "ConfigNamespace"] = field(default_factory=dict, init=False, repr=False)

    @classmethod
    def empty(cls, *, path: str) -> "ConfigNamespace":
        return cls({}, path=path)

    def consumed_keys(self) -> tuple[str, ...]:
        return tuple(sorted(self._consumed))

    def unconsumed_keys(self) -> tuple[str, ...]:
        return tuple(sorted(key for key in self.data if key not in self._consumed))

    def assert_consumed(self) -> None:
        unknown = self.unconsumed_keys()
        if unknown:
            consumed = ", ".join(self.consumed_keys()) or "<none>"
            raise ValueError(
                f"Unknown config keys under {self.path or '<root>'}: {', '.join(unknown)} "
                f"(consumed: {consumed})"
            )
        for child in self._children.values():
            child.assert_consumed()

    def _get_raw(self, key: str, *, default: Any) -> tuple[str, Any]:
        name = _checked_key(key)
        if name in self._children:
            raise ValueError(f"{_join_path(self.path, name)} already accessed as a nested namespace")
        self._consumed.add(name)
        if name not in self.data:
            if default is _MISSING:
                raise ValueError(f"Missing required config key: {_join_path(self.path, name)}")
            return name, default
        return name, self.data[name]

    def namespace(self, key: str, *, default: Mapping[str, Any] | None | object = _MISSING) -> "ConfigNamespace":
        name = _checked_key(key)
        if name in self._children:
            return self._children[name]

        full = _join_path(self.path, name)
        raw = self.data.get(name)
        self._consumed.add(name)
        if raw is None:
            if default is _MISSING:
                raise ValueError(f"Missing required config namespace: {full}")
            if default is not None and not isinstance(default, Mapping):
                raise TypeError(f"default for {full} must be a mapping or None")
            raw = default or {}
        elif not isinstance(raw, Mapping):
            raise TypeError(f"{full} must be a mapping (type={type(raw).__name__})")

        child = ConfigNamespace(dict(raw), path=full)
        self._children[name] = child
        return child

    def get_bool(self, key: str, *, default: bool | object = _MISSING) -> bool:
        name, value = self._get_raw(key, default=default)
        if not isinstance(value, bool):
            raise TypeError(
                f"{_join_path(self.path, name)} must be a boolean (type={type(value).__name__})"
            )
        return value

    def get_optional_int(
        self,
        key: str,
        *,
        default: int | None | object = _MISSING,
        min_value: int | None = None,
    ) -> int | None:
        """Parse an int or an explicit null.

        A missing key falls back to `default`; without a default the key is
        required (but may still be null).
        """

        name, value = self._get_raw(key, default=default)
        if value is None:
            return None
        full = _join_path(self.path, name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"{full} must be an int or null (type={type(value).__name__})")
        if min_value is not None and value < min_value:
            raise ValueError(f"{full} must be >= {min_value} (got {value})")
        return value

    def get_str(
        self,
        key: str,
        *,
        default: str | None | object = _MISSING,
        allow_empty: bool = False,
    ) -> str | None:
        name, value = self._get_raw(key, default=default)
        if value is None:
            return None
        full = _join_path(self.path, name)
        if not isinstance(value, str):
            raise TypeError(f"{full} must be a string (type={type(value).__name__})")
        value = value.strip()
        if not value and not allow_empty:
            raise ValueError(f"{full} cannot be empty")
        return value

    def get_list_str(
        self,
        key: str,
        *,
        default: list[str] | tuple[str, ...] | object = _MISSING,
        allow_empty: bool = False,
    ) -> list[str]:
        name, raw = self._get_raw(key, default=default)
        full = _join_path(self.path, name)
        if not isinstance(raw, (list, tuple)):
            raise TypeError(f"{full} must be a list[str] (type={type(raw).__name__})")

        items: list[str] = []
        for idx, item in enumerate(raw):
            if not isinstance(item, str) or not item.strip():
                raise TypeError(f"{full}[{idx}] must be a non-empty string (type={type(item).__name__})")
            items.append(item.strip())
        if not items and not allow_empty:
            raise ValueError(f"{full} cannot be empty")
        return items

    def get_list_mapping(
        self,
        key: str,
        *,
        default: list[Mapping[str, Any]] | tuple[Mapping[str, Any], ...] | object = _MISSING,
        allow_empty: bool = False,
    ) -> list[dict[str, Any]]:
        name, raw = self._get_raw(key, default=default)
        full = _join_path(self.path, name)
        if not isinstance(raw, (list, tuple)):
            raise TypeError(f"{full} must be a list[dict] (type={type(raw).__name__})")

        items: list[dict[str, Any]] = []
        for idx, item in enumerate(raw):
            if not isinstance(item, Mapping):
                raise TypeError(f"{full}[{idx}] must be a mapping (type={type(item).__name__})")
            items.append(dict(item))
        if not items and not allow_empty:
            raise ValueError(f"{full} cannot be empty")
        return items

    def get_mapping(self, key: str, *, default: Mapping[str, Any] | None | object = _MISSING) -> dict[str, Any]:
        """Free-form mapping value; its keys are not checked."""

        name, raw = self._get_raw(key, default=default)
        if raw is None:
            return {}
        if not isinstance(raw, Mapping):
            raise TypeError(
                f"{_join_path(self.path, name)} must be a mapping (type={type(raw).__name__})"
            )
        return dict(raw)
