"""Processor for ConfigMap resources."""

from __future__ import annotations

import copy
import logging
from typing import Any

import yaml

from helmify.manifest import GroupVersionKind, Manifest
from helmify.model import Processor, StaticTemplate, Template
from helmify.processors.meta import process_obj_meta
from helmify.values import Values
from helmify.yamlfmt import dump, marshal

_log = logging.getLogger(__name__)

CONFIGMAP_GVK = GroupVersionKind("", "v1", "ConfigMap")

_SKIPPED_KEYS = frozenset({"kind", "apiVersion"})


def _is_string_map(value: Any) -> bool:
    return isinstance(value, dict) and all(isinstance(item, str) for item in value.values())


def _parse_yaml(value: Any, path: tuple[str, ...], values: Values) -> str:
    if not isinstance(value, str):
        raise ValueError(f"unable to unmarshal configmap {list(path)}: not a string")
    try:
        config = yaml.safe_load(value)
    except yaml.YAMLError as err:
        raise ValueError(f"unable to unmarshal configmap {list(path)}: {err}") from err
    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise ValueError(f"unable to unmarshal configmap {list(path)}: not an object")
    _parse_config(config, values, path)
    return dump(config)


def _parse_properties(properties: Any, path: tuple[str, ...], values: Values) -> str:
    if not isinstance(properties, str):
        raise ValueError(f"wrong property format in {list(path)}: not a string")
    lines = properties.removesuffix("\n").split("\n")
    result = []
    for line in lines:
        prop = line.split("=")
        if len(prop) != 2:
            raise ValueError(f"wrong property format in {list(path)}: {line}")
        prop_name, prop_value = prop
        templated = values.add(prop_value, *path, *prop_name.split("."))
        result.append(f"{prop_name}={templated}\n")
    return "".join(result)


def _parse_config(config: dict[str, Any], values: Values, path: tuple[str, ...]) -> None:
    for key, value in config.items():
        key_path = (*path, str(key))
        if isinstance(value, (str, bool, int, float)):
            if key in _SKIPPED_KEYS:
                continue
        elif isinstance(value, dict) and value:
            _parse_config(value, values, key_path)
            continue
        elif not isinstance(value, (list, dict)):
            _log.warning("configmap: unknown type %s", type(value).__name__)
            continue
        try:
            config[key] = values.add(value, *key_path)
        except ValueError as err:
            _log.error("%s", err)


def _parse_map_data(data: dict[str, Any], config_name: str) -> tuple[dict[str, Any], Values]:
    values = Values()
    for key, value in data.items():
        path = (config_name, key)
        try:
            if key.endswith((".yaml", ".yml")):
                data[key] = _parse_yaml(value, path, values)
            elif key.endswith(".properties"):
                data[key] = _parse_properties(value, path, values)
            else:
                data[key] = values.add(value, *path)
        except ValueError as err:
            _log.error("unable to process configmap data: %s: %s", list(path), err)
    return data, values


class ConfigMapProcessor(Processor):
    """Moves ConfigMap data into chart values."""

    def process(self, app_meta: Any, obj: Manifest) -> tuple[bool, Template | None]:
        if obj.gvk != CONFIGMAP_GVK:
            return False, None
        parts = [process_obj_meta(app_meta, obj)]
        content = obj.content

        immutable = content.get("immutable")
        if isinstance(immutable, bool):
            parts.append(marshal({"immutable": immutable}, 0))

        binary_data = content.get("binaryData")
        if _is_string_map(binary_data):
            parts.append(marshal({"binaryData": dict(binary_data)}, 0))

        name = app_meta.trim_name(obj.name)
        values = Values()
        data = content.get("data")
        if isinstance(data, dict):
            templated, values = _parse_map_data(copy.deepcopy(data), name)
            parts.append(marshal({"data": templated}, 0).replace("'", ""))

        return True, StaticTemplate(name + ".yaml", "\n".join(parts), values)