"""Processors for Deployment and DaemonSet resources."""

from __future__ import annotations

import copy
from typing import Any

from helmify.config import DOMAIN_ENV, DOMAIN_KEY
from helmify.manifest import GroupVersionKind, Manifest
from helmify.model import ProcessingError, Processor, StaticTemplate, Template
from helmify.processors.meta import process_obj_meta
from helmify.processors.pull_secrets import process_spec_map
from helmify.values import Values, get_nested, set_nested, to_lower_camel
from helmify.yamlfmt import indent, marshal

DEPLOYMENT_GVK = GroupVersionKind("apps", "v1", "Deployment")
DAEMONSET_GVK = GroupVersionKind("apps", "v1", "DaemonSet")

_IMAGE_TEMPLATE = (
    "{{{{ .Values.{name}.{container}.image.repository }}}}:"
    "{{{{ .Values.{name}.{container}.image.tag | default .Chart.AppVersion }}}}"
)
_RESOURCES_TEMPLATE = "{{{{- toYaml .Values.{name}.{container}.resources | nindent 10 }}}}"
_SELECTOR_INCLUDE = '{{{{- include "{chart}.selectorLabels" . | nindent {width} }}}}'


def _quantity(value: Any) -> str:
    """Render a resource quantity as the string form used in values."""
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _template_ref_name(app_meta: Any, holder: Any, key: str) -> None:
    """Replace holder[key] with its templated name when holder is an object."""
    if isinstance(holder, dict) and key in holder:
        holder[key] = app_meta.templated_name(str(holder.get(key) or ""))


def process_pod_container(
    name: str, app_meta: Any, container: dict[str, Any], values: Values
) -> dict[str, Any]:
    """Move a container's image and resources into *values*; return the templated container."""
    result = copy.deepcopy(container)
    image = str(result.get("image") or "")
    index = image.rfind(":")
    if index < 0:
        raise ProcessingError("wrong image format: " + image)
    repo, tag = image[:index], image[index + 1:]
    container_name = to_lower_camel(str(result.get("name") or ""))
    result["image"] = _IMAGE_TEMPLATE.format(name=name, container=container_name)

    set_nested(values, repo, name, container_name, "image", "repository")
    set_nested(values, tag, name, container_name, "image", "tag")

    for env in result.get("env") or []:
        value_from = _dict(env).get("valueFrom")
        if isinstance(value_from, dict):
            _template_ref_name(app_meta, value_from.get("secretKeyRef"), "name")
            _template_ref_name(app_meta, value_from.get("configMapKeyRef"), "name")
    for env_from in result.get("envFrom") or []:
        env_from = _dict(env_from)
        _template_ref_name(app_meta, env_from.get("secretRef"), "name")
        _template_ref_name(app_meta, env_from.get("configMapRef"), "name")

    env_list = list(result.get("env") or [])
    env_list.append({"name": DOMAIN_ENV, "value": f"{{{{ .Values.{DOMAIN_KEY} }}}}"})
    result["env"] = env_list

    resources = _dict(result.get("resources"))
    for section in ("requests", "limits"):
        for resource, amount in _dict(resources.get(section)).items():
            set_nested(
                values, _quantity(amount), name, container_name, "resources", section, resource
            )
    return result


def process_pod_spec(name: str, app_meta: Any, pod: dict[str, Any]) -> Values:
    """Template names in a pod spec in place and return the values it needs."""
    values = Values()
    pod["containers"] = [
        process_pod_container(name, app_meta, _dict(container), values)
        for container in pod.get("containers") or []
    ]
    for volume in pod.get("volumes") or []:
        volume = _dict(volume)
        _template_ref_name(app_meta, volume.get("configMap"), "name")
        _template_ref_name(app_meta, volume.get("secret"), "secretName")
    account = app_meta.templated_name(str(pod.get("serviceAccountName") or ""))
    if account:
        pod["serviceAccountName"] = account
    else:
        pod.pop("serviceAccountName", None)
    for secret_ref in pod.get("imagePullSecrets") or []:
        _template_ref_name(app_meta, secret_ref, "name")
    return values


def _render_selector(app_meta: Any, selector: dict[str, Any]) -> str:
    match_labels = marshal({"matchLabels": selector.get("matchLabels")}, 0)
    match_expr = ""
    if selector.get("matchExpressions") is not None:
        match_expr = marshal({"matchExpressions": selector["matchExpressions"]}, 0)
    include = _SELECTOR_INCLUDE.format(chart=app_meta.chart_name, width=6)
    text = f"{match_labels}\n{include}\n{match_expr}".strip(" \n")
    return indent(text, 4)


def _render_replicas(name: str, spec: dict[str, Any], values: Values) -> str:
    replicas = spec.get("replicas")
    if replicas is None:
        return ""
    if isinstance(replicas, bool) or not isinstance(replicas, int):
        raise ProcessingError(f"unable to cast to deployment: invalid replicas {replicas!r}")
    reference = values.add(int(replicas), name, "replicas")
    return marshal({"replicas": reference}, 2).replace("'", "")


def _process_workload(
    app_meta: Any, obj: Manifest, kind: str, with_replicas: bool
) -> tuple[str, Values]:
    spec = obj.content.get("spec")
    if not isinstance(spec, dict):
        raise ProcessingError(f"unable to cast to {kind}: spec is missing")
    spec = copy.deepcopy(spec)
    selector = spec.get("selector")
    if not isinstance(selector, dict):
        raise ProcessingError(f"unable to cast to {kind}: selector is missing")

    meta = process_obj_meta(app_meta, obj)
    values = Values()
    name = app_meta.trim_name(obj.name)

    replicas = _render_replicas(name, spec, values) if with_replicas else ""
    selector_text = _render_selector(app_meta, selector)

    template = _dict(spec.get("template"))
    pod_meta = _dict(template.get("metadata"))
    pod_labels = marshal(pod_meta.get("labels"), 8)
    pod_labels += "\n      " + _SELECTOR_INCLUDE.format(chart=app_meta.chart_name, width=8)
    pod_annotations = ""
    if pod_meta.get("annotations"):
        pod_annotations = "\n" + marshal({"annotations": pod_meta["annotations"]}, 6)

    name_camel = to_lower_camel(name)
    pod = _dict(template.get("spec"))
    values.merge(process_pod_spec(name_camel, app_meta, pod))

    for volume in pod.get("volumes") or []:
        _template_ref_name(app_meta, _dict(volume).get("persistentVolumeClaim"), "claimName")

    for container in pod.get("containers") or []:
        container_name = to_lower_camel(str(container.get("name") or ""))
        try:
            resources = get_nested(values, name_camel, container_name, "resources")
        except KeyError:
            continue
        if not resources:
            continue
        container["resources"] = _RESOURCES_TEMPLATE.format(
            name=name_camel, container=container_name
        )

    if app_meta.config.image_pull_secrets:
        process_spec_map(pod, values)

    pod_spec = marshal(pod, 6).replace("'", "")

    parts = [meta, "\nspec:"]
    if replicas:
        parts.append("\n" + replicas)
    parts.append("\n  selector:\n" + selector_text)
    parts.append("\n  template:\n    metadata:\n      labels:\n" + pod_labels + pod_annotations)
    parts.append("\n    spec:\n" + pod_spec)
    return "".join(parts), values


class DeploymentProcessor(Processor):
    """Moves Deployment replicas, images and resources into chart values."""

    def process(self, app_meta: Any, obj: Manifest) -> tuple[bool, Template | None]:
        if obj.gvk != DEPLOYMENT_GVK:
            return False, None
        text, values = _process_workload(app_meta, obj, "deployment", with_replicas=True)
        return True, StaticTemplate("deployment.yaml", text, values)


class DaemonSetProcessor(Processor):
    """Moves DaemonSet images and resources into chart values."""

    def process(self, app_meta: Any, obj: Manifest) -> tuple[bool, Template | None]:
        if obj.gvk != DAEMONSET_GVK:
            return False, None
        text, values = _process_workload(app_meta, obj, "daemonset", with_replicas=False)
        return True, StaticTemplate("daemonset.yaml", text, values)