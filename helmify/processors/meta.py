"""Rendering of the apiVersion, kind and metadata header of an object template."""

from __future__ import annotations

from typing import Any

from helmify.manifest import GroupVersionKind, Manifest
from helmify.yamlfmt import marshal

HELM_PROVIDED_LABELS = frozenset(
    {
        "app.kubernetes.io/name",
        "app.kubernetes.io/instance",
        "app.kubernetes.io/version",
        "app.kubernetes.io/managed-by",
        "helm.sh/chart",
    }
)

_META_TEMPLATE = """apiVersion: %(api_version)s
kind: %(kind)s
metadata:
  name: %(name)s
  labels:
%(labels)s
  {{- include "%(chart)s.labels" . | nindent 4 }}
%(annotations)s"""


def api_version_of(gvk: GroupVersionKind) -> str:
    """Return the apiVersion string of a group, version and kind."""
    return gvk.version if not gvk.group else f"{gvk.group}/{gvk.version}"


def own_labels(obj: Manifest) -> dict[str, str]:
    """Labels of *obj* without those that Helm provides itself."""
    return {key: value for key, value in obj.labels.items() if key not in HELM_PROVIDED_LABELS}


def process_obj_meta(app_meta: Any, obj: Manifest) -> str:
    """Return the object's apiVersion, kind and metadata as a Helm template."""
    labels = ""
    remaining = own_labels(obj)
    if remaining:
        labels = marshal(remaining, 4)
    annotations = ""
    if obj.annotations:
        annotations = marshal({"annotations": obj.annotations}, 2)
    gvk = obj.gvk
    text = _META_TEMPLATE % {
        "api_version": api_version_of(gvk),
        "kind": gvk.kind,
        "name": app_meta.templated_name(obj.name),
        "chart": app_meta.chart_name,
        "labels": labels,
        "annotations": annotations,
    }
    return text.strip(" \n").replace("\n\n", "\n")