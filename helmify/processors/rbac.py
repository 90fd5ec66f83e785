"""Processors for RBAC resources: roles, role bindings and service accounts."""

from __future__ import annotations

from typing import Any

from helmify.manifest import GroupVersionKind, Manifest
from helmify.model import ProcessingError, Processor, StaticTemplate, Template
from helmify.processors.meta import process_obj_meta
from helmify.yamlfmt import marshal

RBAC_GROUP = "rbac.authorization.k8s.io"

CLUSTER_ROLE_BINDING_GVK = GroupVersionKind(RBAC_GROUP, "v1", "ClusterRoleBinding")
ROLE_BINDING_GVK = GroupVersionKind(RBAC_GROUP, "v1", "RoleBinding")
CLUSTER_ROLE_GVK = GroupVersionKind(RBAC_GROUP, "v1", "ClusterRole")
ROLE_GVK = GroupVersionKind(RBAC_GROUP, "v1", "Role")
SERVICE_ACCOUNT_GVK = GroupVersionKind("", "v1", "ServiceAccount")

_RELEASE_NAMESPACE = "{{ .Release.Namespace }}"


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _role_ref(app_meta: Any, obj: Manifest) -> dict[str, str]:
    ref = obj.content.get("roleRef")
    if ref is None:
        ref = {}
    if not isinstance(ref, dict):
        raise ProcessingError("unable to cast to RoleBinding: roleRef is not an object")
    return {
        "apiGroup": _text(ref.get("apiGroup")),
        "kind": _text(ref.get("kind")),
        "name": app_meta.templated_name(_text(ref.get("name"))),
    }


def _subjects(app_meta: Any, obj: Manifest) -> list[dict[str, str]] | None:
    subjects = obj.content.get("subjects")
    if subjects is None:
        return None
    if not isinstance(subjects, list):
        raise ProcessingError("unable to cast to RoleBinding: subjects is not a list")
    result = []
    for subject in subjects:
        if not isinstance(subject, dict):
            raise ProcessingError("unable to cast to RoleBinding: subject is not an object")
        item = {"kind": _text(subject.get("kind"))}
        api_group = _text(subject.get("apiGroup"))
        if api_group:
            item["apiGroup"] = api_group
        item["name"] = app_meta.templated_name(_text(subject.get("name")))
        item["namespace"] = _RELEASE_NAMESPACE
        result.append(item)
    return result


def _render_binding(app_meta: Any, obj: Manifest) -> str:
    role_ref = _role_ref(app_meta, obj)
    subjects = _subjects(app_meta, obj)
    meta = process_obj_meta(app_meta, obj)
    return "\n".join(
        (meta, marshal({"roleRef": role_ref}, 0), marshal({"subjects": subjects}, 0))
    )


def _binding_filename(name: str) -> str:
    return name.removesuffix("-rolebinding") + "-rbac.yaml"


class ClusterRoleBindingProcessor(Processor):
    """Templates the role and subject names of a ClusterRoleBinding."""

    def process(self, app_meta: Any, obj: Manifest) -> tuple[bool, Template | None]:
        if obj.gvk != CLUSTER_ROLE_BINDING_GVK:
            return False, None
        text = _render_binding(app_meta, obj)
        return True, StaticTemplate(_binding_filename(app_meta.trim_name(obj.name)), text)


class RoleBindingProcessor(Processor):
    """Templates the role and subject names of a RoleBinding."""

    def process(self, app_meta: Any, obj: Manifest) -> tuple[bool, Template | None]:
        if obj.gvk != ROLE_BINDING_GVK:
            return False, None
        text = _render_binding(app_meta, obj)
        return True, StaticTemplate(_binding_filename(app_meta.trim_name(obj.name)), text)


class RoleProcessor(Processor):
    """Templates Role and ClusterRole resources."""

    def process(self, app_meta: Any, obj: Manifest) -> tuple[bool, Template | None]:
        if obj.gvk not in (CLUSTER_ROLE_GVK, ROLE_GVK):
            return False, None
        meta = process_obj_meta(app_meta, obj)

        aggregation = ""
        rule = obj.content.get("aggregationRule")
        if rule is not None:
            if obj.gvk.kind == "Role":
                raise ProcessingError(
                    f"unable to set aggregationRule to the kind Role in '{obj.name}': unsupported"
                )
            if not isinstance(rule, dict):
                raise ProcessingError(
                    f"aggregationRule of '{obj.name}' is not an object"
                )
            if rule.get("clusterRoleSelectors") is not None:
                aggregation = marshal({"aggregationRule": rule}, 0)

        rules = marshal({"rules": obj.content.get("rules")}, 0)
        parts = [meta]
        if aggregation:
            parts.append(aggregation)
        parts.append(rules)
        filename = app_meta.trim_name(obj.name).removesuffix("-role") + "-rbac.yaml"
        return True, StaticTemplate(filename, "\n".join(parts))


class ServiceAccountProcessor(Processor):
    """Templates the metadata of a ServiceAccount."""

    def process(self, app_meta: Any, obj: Manifest) -> tuple[bool, Template | None]:
        if obj.gvk != SERVICE_ACCOUNT_GVK:
            return False, None
        return True, StaticTemplate("deployment.yaml", process_obj_meta(app_meta, obj))