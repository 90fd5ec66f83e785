"""Processors for Service and Ingress resources."""

from __future__ import annotations

import copy
from typing import Any

from helmify.manifest import GroupVersionKind, Manifest
from helmify.model import ProcessingError, Processor, StaticTemplate, Template
from helmify.processors.meta import process_obj_meta
from helmify.values import Values, set_nested, to_lower_camel
from helmify.yamlfmt import dump, indent, marshal

SERVICE_GVK = GroupVersionKind("", "v1", "Service")
INGRESS_GVK = GroupVersionKind("networking.k8s.io", "v1", "Ingress")

_DEFAULT_SERVICE_TYPE = "ClusterIP"
_SHORT_NAME_PREFIX = "controller-manager-"

_SERVICE_SPEC_TEMPLATE = """
spec:
  type: {{ .Values.%(name)s.type }}
  selector:
%(selector)s
  {{- include "%(chart)s.selectorLabels" . | nindent 4 }}
  ports:
\t{{- .Values.%(name)s.ports | toYaml | nindent 2 -}}"""


def _int_field(port: dict[str, Any], key: str) -> int:
    value = port.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ProcessingError(f"unable to cast to service: {key} {value!r} is not an integer")
    return value


def _str_field(port: dict[str, Any], key: str) -> str:
    value = port.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ProcessingError(f"unable to cast to service: {key} {value!r} is not a string")
    return value


def _port_values(port: Any) -> dict[str, Any]:
    if not isinstance(port, dict):
        raise ProcessingError("unable to cast to service: port is not an object")
    result: dict[str, Any] = {"port": _int_field(port, "port")}
    name = _str_field(port, "name")
    if name:
        result["name"] = name
    node_port = _int_field(port, "nodePort")
    if node_port:
        result["nodePort"] = node_port
    protocol = _str_field(port, "protocol")
    if protocol:
        result["protocol"] = protocol
    target = port.get("targetPort")
    if target is None:
        result["targetPort"] = 0
    elif isinstance(target, str) or (isinstance(target, int) and not isinstance(target, bool)):
        result["targetPort"] = target
    else:
        raise ProcessingError(f"unable to cast to service: invalid targetPort {target!r}")
    return result


class ServiceProcessor(Processor):
    """Moves the Service type and ports into chart values."""

    def process(self, app_meta: Any, obj: Manifest) -> tuple[bool, Template | None]:
        if obj.gvk != SERVICE_GVK:
            return False, None
        spec = obj.content.get("spec")
        if spec is None:
            spec = {}
        if not isinstance(spec, dict):
            raise ProcessingError("unable to cast to service: spec is not an object")
        selector = spec.get("selector")
        if selector is not None and not isinstance(selector, dict):
            raise ProcessingError("unable to cast to service: selector is not an object")
        ports = spec.get("ports")
        if ports is None:
            ports = []
        if not isinstance(ports, list):
            raise ProcessingError("unable to cast to service: ports is not a list")
        service_type = spec.get("type") or _DEFAULT_SERVICE_TYPE
        if not isinstance(service_type, str):
            raise ProcessingError("unable to cast to service: type is not a string")
        port_values = [_port_values(port) for port in ports]

        meta = process_obj_meta(app_meta, obj)
        name = app_meta.trim_name(obj.name)
        short_name = name.removeprefix(_SHORT_NAME_PREFIX)
        short_camel = to_lower_camel(short_name)

        selector_text = indent(dump(selector), 4).rstrip("\n ")

        values = Values()
        set_nested(values, service_type, short_camel, "type")
        set_nested(values, port_values, short_camel, "ports")

        text = meta + _SERVICE_SPEC_TEMPLATE % {
            "name": short_camel,
            "selector": selector_text,
            "chart": app_meta.chart_name,
        }
        return True, StaticTemplate(short_name + ".yaml", text, values)


def _template_backend(app_meta: Any, backend: Any) -> None:
    if not isinstance(backend, dict):
        return
    service = backend.get("service")
    if isinstance(service, dict):
        service["name"] = app_meta.templated_name(str(service.get("name") or ""))


def _process_ingress_spec(app_meta: Any, spec: dict[str, Any]) -> None:
    _template_backend(app_meta, spec.get("defaultBackend"))
    for rule in spec.get("rules") or []:
        if not isinstance(rule, dict):
            continue
        http = rule.get("http")
        if not isinstance(http, dict):
            continue
        for path in http.get("paths") or []:
            if isinstance(path, dict):
                _template_backend(app_meta, path.get("backend"))


class IngressProcessor(Processor):
    """Templates the backend service names of an Ingress."""

    def process(self, app_meta: Any, obj: Manifest) -> tuple[bool, Template | None]:
        if obj.gvk != INGRESS_GVK:
            return False, None
        spec = obj.content.get("spec")
        if spec is None:
            spec = {}
        if not isinstance(spec, dict):
            raise ProcessingError("unable to cast to ingress: spec is not an object")
        spec = copy.deepcopy(spec)
        meta = process_obj_meta(app_meta, obj)
        name = app_meta.trim_name(obj.name)
        _process_ingress_spec(app_meta, spec)
        text = meta + "\n" + marshal({"spec": spec}, 0)
        return True, StaticTemplate(name + ".yaml", text)