"""Fallback processor for resources without a dedicated processor."""

from __future__ import annotations

import logging
from typing import Any

from helmify.manifest import NAMESPACE_GVK, Manifest
from helmify.model import Processor, StaticTemplate, Template
from helmify.processors.meta import process_obj_meta
from helmify.yamlfmt import marshal

_log = logging.getLogger(__name__)

_HEADER_KEYS = frozenset({"apiVersion", "kind", "metadata"})


class DefaultProcessor(Processor):
    """Templates the object name and labels and keeps the rest of the object as is."""

    def process(self, app_meta: Any, obj: Manifest) -> tuple[bool, Template | None]:
        if obj.gvk == NAMESPACE_GVK:
            # Namespaces are handled by Helm itself.
            return True, None
        _log.warning(
            "Unsupported resource: using default processor. ApiVersion=%s Kind=%s Name=%s",
            obj.api_version,
            obj.kind,
            obj.name,
        )
        name = app_meta.trim_name(obj.name)
        meta = process_obj_meta(app_meta, obj)
        body = {key: value for key, value in obj.content.items() if key not in _HEADER_KEYS}
        text = meta + "\n" + marshal(body, 0)
        return True, StaticTemplate(name + ".yaml", text)