"""YAML rendering helpers producing Kubernetes-style block YAML."""

from __future__ import annotations

from typing import Any

import yaml


class _Dumper(yaml.SafeDumper):
    """Block-style dumper with literal blocks for multi-line strings."""


def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.Node:
    style = "|" if "\n" in data else None
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style=style)


def _represent_sequence(dumper: yaml.SafeDumper, data: Any) -> yaml.Node:
    return dumper.represent_list(list(data))


_Dumper.add_representer(str, _represent_str)
_Dumper.add_multi_representer(dict, yaml.SafeDumper.represent_dict)
_Dumper.add_multi_representer(list, _represent_sequence)
_Dumper.add_multi_representer(tuple, _represent_sequence)

_DOCUMENT_END = "\n...\n"


def _detached(obj: Any) -> Any:
    """Copy containers so that shared references never turn into YAML anchors."""
    if isinstance(obj, dict):
        return {key: _detached(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_detached(item) for item in obj]
    return obj


def indent(content: str, n: int) -> str:
    """Prefix every line of *content* with *n* spaces; negative *n* leaves it untouched."""
    if n < 0:
        return content
    pad = " " * n
    return pad + content.replace("\n", "\n" + pad)


_indent_text = indent


def dump(obj: Any) -> str:
    """Serialise *obj* to block YAML with sorted keys."""
    text = yaml.dump(
        _detached(obj),
        Dumper=_Dumper,
        default_flow_style=False,
        sort_keys=True,
        allow_unicode=True,
        width=80,
    )
    if text.endswith(_DOCUMENT_END):
        text = text[: -len(_DOCUMENT_END) + 1]
    return text


def marshal(obj: Any, indent: int) -> str:  # noqa: A002 - public parameter name
    """Serialise *obj* to YAML, indent it and strip trailing blank space."""
    return _indent_text(dump(obj), indent).rstrip("\n ")