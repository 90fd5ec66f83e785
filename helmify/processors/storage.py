"""Processor for PersistentVolumeClaim resources."""

from __future__ import annotations

import copy
from typing import Any

from helmify.manifest import GroupVersionKind, Manifest
from helmify.model import ProcessingError, Processor, StaticTemplate, Template
from helmify.processors.meta import process_obj_meta
from helmify.values import Values, to_lower_camel
from helmify.yamlfmt import marshal

PVC_GVK = GroupVersionKind("", "v1", "PersistentVolumeClaim")

_STORAGE_VALUES = (("requests", "storageRequest"), ("limits", "storageLimit"))


def _quantity(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ProcessingError(f"unable to cast to PVC: invalid quantity {value!r}")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _object(value: Any, what: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ProcessingError(f"unable to cast to PVC: {what} is not an object")
    return value


class PvcProcessor(Processor):
    """Moves the storage class and storage sizes of a claim into chart values."""

    def process(self, app_meta: Any, obj: Manifest) -> tuple[bool, Template | None]:
        if obj.gvk != PVC_GVK:
            return False, None
        meta = process_obj_meta(app_meta, obj)
        name = app_meta.trim_name(obj.name)
        name_camel = to_lower_camel(name)
        values = Values()

        spec = copy.deepcopy(_object(obj.content.get("spec"), "spec"))

        storage_class = spec.get("storageClassName")
        if storage_class is not None:
            if not isinstance(storage_class, str):
                raise ProcessingError("unable to cast to PVC: storageClassName is not a string")
            spec["storageClassName"] = values.add(
                storage_class, "pvc", name_camel, "storageClass"
            )

        resources = _object(spec.get("resources"), "resources")
        for section, value_name in _STORAGE_VALUES:
            amounts = _object(resources.get(section), f"resources.{section}")
            if "storage" in amounts:
                amounts["storage"] = values.add(
                    _quantity(amounts["storage"]), "pvc", name_camel, value_name
                )

        spec_text = marshal({"spec": spec}, 0).replace("'", "")
        return True, StaticTemplate(name + ".yaml", meta + "\n" + spec_text, values)