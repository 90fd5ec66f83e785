"""Helm chart values and their template references."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any


class ValuesError(ValueError):
    """Raised when a value cannot be stored under the requested path."""


_SEPARATORS = frozenset("_ -.")


def to_lower_camel(text: str) -> str:
    """Convert *text* to lowerCamelCase, dropping separators and non-ASCII characters."""
    text = text.strip()
    result: list[str] = []
    cap_next = False
    for position, char in enumerate(text):
        is_upper = "A" <= char <= "Z"
        is_lower = "a" <= char <= "z"
        if cap_next:
            if is_lower:
                char = char.upper()
        elif position == 0 and is_upper:
            char = char.lower()
        if is_upper or is_lower:
            result.append(char)
            cap_next = False
        elif "0" <= char <= "9":
            result.append(char)
            cap_next = True
        else:
            cap_next = char in _SEPARATORS
    return "".join(result)


def _camel_path(names: tuple[str, ...]) -> list[str]:
    return [to_lower_camel(name.lower() if name == name.upper() else name) for name in names]


def set_nested(obj: dict, value: Any, *args: str) -> None:
    """Store a copy of *value* in *obj* under the key path *args*, creating maps on the way."""
    current = obj
    for depth, key in enumerate(args[:-1]):
        child = current.get(key)
        if child is None:
            child = {}
            current[key] = child
        elif not isinstance(child, dict):
            raise ValuesError(
                f"value cannot be set because {list(args[: depth + 1])} is not a map"
            )
        current = child
    current[args[-1]] = copy.deepcopy(value)


def get_nested(obj: Mapping, *args: str) -> Any:
    """Return the value under the key path *args*; raise KeyError if there is none."""
    current: Any = obj
    for key in args:
        if not isinstance(current, Mapping) or key not in current:
            raise KeyError(".".join(args))
        current = current[key]
    return current


def _merge_into(dst: dict, src: Mapping) -> None:
    for key, value in src.items():
        current = dst.get(key)
        if current:
            if isinstance(current, dict) and isinstance(value, Mapping):
                _merge_into(current, value)
            elif isinstance(current, list) and isinstance(value, list):
                current.extend(copy.deepcopy(value))
            continue
        dst[key] = copy.deepcopy(value)


class Values(dict):
    """Content of a chart's values.yaml."""

    def merge(self, other: Mapping | None) -> None:
        """Merge *other* in: missing keys are added, maps merged and lists appended."""
        if other is None:
            return
        if not isinstance(other, Mapping):
            raise ValuesError("unable to merge helm values: not a mapping")
        _merge_into(self, other)

    def add(self, value: Any, *args: str) -> str:
        """Store *value* under the camel-cased path and return its template reference."""
        names = _camel_path(args)
        try:
            set_nested(self, value, *names)
        except ValuesError as err:
            raise ValuesError(f"unable to set value: {names}: {err}") from err
        path = ".".join(names)
        if isinstance(value, str):
            return "{{ .Values." + path + " | quote }}"
        if isinstance(value, list):
            return "{{ toYaml .Values." + path + " | nindent " + str(len(names) * 2) + " }}"
        return "{{ .Values." + path + " }}"

    def add_secret(self, to_base64: bool, *args: str) -> str:
        """Store an empty required value and return its template reference."""
        names = _camel_path(args)
        path = ".".join(names)
        try:
            set_nested(self, "", *names)
        except ValuesError as err:
            raise ValuesError(f"unable to set value: {path}: {err}") from err
        result = f'{{{{ required "{path} is required" .Values.{path}'
        if to_base64:
            result += " | b64enc"
        return result + " | quote }}"