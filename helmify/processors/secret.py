"""Processor for Secret resources."""

from __future__ import annotations

import base64
import binascii
from typing import Any

from helmify.manifest import GroupVersionKind, Manifest
from helmify.model import ProcessingError, Processor, StaticTemplate, Template
from helmify.processors.meta import process_obj_meta
from helmify.quotes import fix_unterminated_quotes
from helmify.values import Values, to_lower_camel
from helmify.yamlfmt import marshal

SECRET_GVK = GroupVersionKind("", "v1", "Secret")


def _secret_keys(content: dict[str, Any], field: str, encoded: bool) -> list[str]:
    data = content.get(field)
    if data is None:
        return []
    if not isinstance(data, dict):
        raise ProcessingError(f"unable to cast to secret: {field} is not an object")
    for key, value in data.items():
        if value is None:
            continue
        if not isinstance(value, str):
            raise ProcessingError(f"unable to cast to secret: {field}.{key} is not a string")
        if encoded:
            try:
                base64.b64decode(value, validate=True)
            except (binascii.Error, ValueError) as err:
                raise ProcessingError(
                    f"unable to cast to secret: {field}.{key} is not base64: {err}"
                ) from err
    return sorted(data)


def _value_key(key: str) -> str:
    return to_lower_camel(key.lower() if key == key.upper() else key)


def _render_section(
    section: str, keys: list[str], name_camel: str, values: Values, to_base64: bool
) -> str:
    if not keys:
        return ""
    templated = {
        key: values.add_secret(to_base64, name_camel, _value_key(key)) for key in keys
    }
    text = marshal({section: templated}, 0).replace("'", "")
    return fix_unterminated_quotes(text)


class SecretProcessor(Processor):
    """Replaces Secret data with required chart values."""

    def process(self, app_meta: Any, obj: Manifest) -> tuple[bool, Template | None]:
        if obj.gvk != SECRET_GVK:
            return False, None
        content = obj.content
        data_keys = _secret_keys(content, "data", encoded=True)
        string_keys = _secret_keys(content, "stringData", encoded=False)
        secret_type = content.get("type")
        if secret_type is None:
            secret_type = ""
        if not isinstance(secret_type, str):
            raise ProcessingError("unable to cast to secret: type is not a string")

        meta = process_obj_meta(app_meta, obj)
        name = app_meta.trim_name(obj.name)
        name_camel = to_lower_camel(name)

        values = Values()
        parts = [meta]
        data = _render_section("data", data_keys, name_camel, values, True)
        if data:
            parts.append(data)
        string_data = _render_section("stringData", string_keys, name_camel, values, False)
        if string_data:
            parts.append(string_data)
        if secret_type:
            parts.append(marshal({"type": secret_type}, 0))
        return True, StaticTemplate(name + ".yaml", "\n".join(parts), values)