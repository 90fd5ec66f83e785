"""Processor for CustomResourceDefinition resources."""

from __future__ import annotations

import copy
import logging
from typing import Any

from helmify.manifest import CRD_GVK, Manifest
from helmify.model import ProcessingError, Processor, StaticTemplate, Template
from helmify.processors.meta import own_labels
from helmify.yamlfmt import dump, indent, marshal

_log = logging.getLogger(__name__)

_INJECT_CA = "cert-manager.io/inject-ca-from"
_RELEASE_NAMESPACE = "{{ .Release.Namespace }}"

_SPEC_FIELDS = ("group", "names", "scope", "versions", "conversion", "preserveUnknownFields")

_CRD_TEMPLATE = """apiVersion: apiextensions.k8s.io/v1
kind: CustomResourceDefinition
metadata:
  name: %(name)s
%(annotations)s
  labels:
%(labels)s
  {{- include "%(chart)s.labels" . | nindent 4 }}
spec:
%(spec)s
status:
  acceptedNames:
    kind: ""
    plural: ""
  conditions: []
  storedVersions: []"""


def _normalise_spec(spec: dict[str, Any]) -> dict[str, Any]:
    """Keep the known spec fields and fill in the required ones."""
    result = {key: spec[key] for key in _SPEC_FIELDS if key in spec}
    names = result.get("names")
    if not isinstance(names, dict):
        raise ProcessingError("unable to cast to crd spec: names is not an object")
    names = dict(names)
    names.setdefault("plural", "")
    names.setdefault("kind", "")
    result["names"] = names
    result.setdefault("group", "")
    result.setdefault("scope", "")
    result.setdefault("versions", None)
    if not result.get("preserveUnknownFields"):
        result.pop("preserveUnknownFields", None)
    if result.get("conversion") is None:
        result.pop("conversion", None)
    return result


def _template_conversion(app_meta: Any, spec: dict[str, Any]) -> None:
    conversion = spec.get("conversion")
    if not isinstance(conversion, dict) or conversion.get("strategy") != "Webhook":
        return
    webhook = conversion.get("webhook")
    client_config = webhook.get("clientConfig") if isinstance(webhook, dict) else None
    service = client_config.get("service") if isinstance(client_config, dict) else None
    if not isinstance(service, dict):
        return
    service["name"] = app_meta.templated_name(str(service.get("name", "")))
    service["namespace"] = str(service.get("namespace", "")).replace(
        app_meta.namespace, _RELEASE_NAMESPACE
    )


class CrdProcessor(Processor):
    """Templates CRDs, or passes them through untouched for the crds directory."""

    def process(self, app_meta: Any, obj: Manifest) -> tuple[bool, Template | None]:
        if obj.gvk != CRD_GVK:
            return False, None
        spec = obj.content.get("spec")
        names = spec.get("names") if isinstance(spec, dict) else None
        if not isinstance(names, dict) or "singular" not in names:
            return True, None
        name = names["singular"]
        if not isinstance(name, str):
            raise ProcessingError("unable to create crd template: singular name is not a string")
        filename = name + "-crd.yaml"

        if app_meta.config.crd:
            _log.info("put CRD under crds dir without templating: %s", name)
            return True, StaticTemplate(filename, dump(obj.content))

        annotations = ""
        found = obj.annotations
        if found:
            cert_name = found.get(_INJECT_CA, "")
            if cert_name:
                cert_name = cert_name.removeprefix(app_meta.namespace + "/")
                cert_name = app_meta.trim_name(cert_name)
                found[_INJECT_CA] = (
                    f"{_RELEASE_NAMESPACE}/"
                    f'{{{{ include "{app_meta.chart_name}.fullname" . }}}}-{cert_name}'
                )
            annotations = marshal({"annotations": found}, 2)

        labels = ""
        remaining = own_labels(obj)
        if remaining:
            labels = marshal(remaining, 4).strip("\n")

        normalised = _normalise_spec(copy.deepcopy(spec))
        _template_conversion(app_meta, normalised)
        spec_text = indent(dump(normalised), 2).rstrip("\n ")

        text = _CRD_TEMPLATE % {
            "name": obj.name,
            "chart": app_meta.chart_name,
            "annotations": annotations,
            "labels": labels,
            "spec": spec_text,
        }
        return True, StaticTemplate(filename, text.replace("\n\n", "\n"))