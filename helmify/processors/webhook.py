"""Processors for cert-manager resources and admission webhook configurations."""

from __future__ import annotations

import copy
from typing import Any

from helmify.config import DEFAULT_DOMAIN, DOMAIN_KEY
from helmify.manifest import GroupVersionKind, Manifest
from helmify.model import ProcessingError, Processor, StaticTemplate, Template
from helmify.values import set_nested
from helmify.yamlfmt import dump, indent

CERTIFICATE_GVK = GroupVersionKind("cert-manager.io", "v1", "Certificate")
ISSUER_GVK = GroupVersionKind("cert-manager.io", "v1", "Issuer")
VALIDATING_WEBHOOK_GVK = GroupVersionKind(
    "admissionregistration.k8s.io", "v1", "ValidatingWebhookConfiguration"
)
MUTATING_WEBHOOK_GVK = GroupVersionKind(
    "admissionregistration.k8s.io", "v1", "MutatingWebhookConfiguration"
)

_RELEASE_NAMESPACE = "{{ .Release.Namespace }}"
_INJECT_CA = "cert-manager.io/inject-ca-from"

_CERT_MANAGER_TEMPLATE = """apiVersion: cert-manager.io/v1
kind: %(kind)s
metadata:
  name: {{ include "%(chart)s.fullname" . }}-%(name)s
  labels:
  {{- include "%(chart)s.labels" . | nindent 4 }}
spec:
%(spec)s"""

_WEBHOOK_TEMPLATE = """apiVersion: admissionregistration.k8s.io/v1
kind: %(kind)s
metadata:
  name: {{ include "%(chart)s.fullname" . }}-%(name)s
  annotations:
    cert-manager.io/inject-ca-from: {{ .Release.Namespace }}/{{ include "%(chart)s.fullname" . }}-%(cert)s
  labels:
  {{- include "%(chart)s.labels" . | nindent 4 }}
webhooks:
%(webhooks)s"""


def _render_cert_manager(app_meta: Any, kind: str, name: str, spec: Any) -> str:
    return _CERT_MANAGER_TEMPLATE % {
        "kind": kind,
        "chart": app_meta.chart_name,
        "name": name,
        "spec": indent(dump(spec), 2).rstrip("\n "),
    }


class IssuerProcessor(Processor):
    """Templates the name of a cert-manager Issuer."""

    def process(self, app_meta: Any, obj: Manifest) -> tuple[bool, Template | None]:
        if obj.gvk != ISSUER_GVK:
            return False, None
        name = app_meta.trim_name(obj.name)
        text = _render_cert_manager(app_meta, "Issuer", name, obj.content.get("spec"))
        return True, StaticTemplate(name + ".yaml", text)


def _cert_spec(obj: Manifest) -> dict[str, Any]:
    spec = obj.content.get("spec")
    if spec is None:
        return {}
    if not isinstance(spec, dict):
        raise ProcessingError("unable get cert dnsNames: spec is not an object")
    return copy.deepcopy(spec)


class CertificateProcessor(Processor):
    """Templates the DNS names and issuer reference of a cert-manager Certificate."""

    def process(self, app_meta: Any, obj: Manifest) -> tuple[bool, Template | None]:
        if obj.gvk != CERTIFICATE_GVK:
            return False, None
        name = app_meta.trim_name(obj.name)
        spec = _cert_spec(obj)

        dns_names = spec.get("dnsNames")
        if dns_names is None:
            dns_names = []
        if not isinstance(dns_names, list):
            raise ProcessingError("unable get cert dnsNames: not a list")
        processed = []
        for dns in dns_names:
            if not isinstance(dns, str):
                raise ProcessingError(f"unable get cert dnsNames: {dns!r} is not a string")
            templated = app_meta.templated_string(dns)
            templated = templated.replace(app_meta.namespace, _RELEASE_NAMESPACE)
            templated = templated.replace(DEFAULT_DOMAIN, f"{{{{ .Values.{DOMAIN_KEY} }}}}")
            processed.append(templated)
        spec["dnsNames"] = processed

        issuer_ref = spec.get("issuerRef")
        issuer_name: Any = ""
        if issuer_ref is not None:
            if not isinstance(issuer_ref, dict):
                raise ProcessingError("unable get cert issuerRef: not an object")
            issuer_name = issuer_ref.get("name")
            if issuer_name is None:
                issuer_name = ""
            if not isinstance(issuer_name, str):
                raise ProcessingError("unable get cert issuerRef: name is not a string")
        set_nested(spec, app_meta.templated_name(issuer_name), "issuerRef", "name")

        text = _render_cert_manager(app_meta, "Certificate", name, spec)
        return True, StaticTemplate(name + ".yaml", text)


def _template_webhooks(app_meta: Any, webhooks: Any, kind: str) -> Any:
    if webhooks is None:
        return None
    if not isinstance(webhooks, list):
        raise ProcessingError(f"unable to cast to {kind}: webhooks is not a list")
    result = copy.deepcopy(webhooks)
    for webhook in result:
        client_config = webhook.get("clientConfig") if isinstance(webhook, dict) else None
        service = client_config.get("service") if isinstance(client_config, dict) else None
        if not isinstance(service, dict):
            raise ProcessingError(f"unable to cast to {kind}: webhook has no service")
        service["name"] = app_meta.templated_name(str(service.get("name") or ""))
        service["namespace"] = str(service.get("namespace") or "").replace(
            app_meta.namespace, _RELEASE_NAMESPACE
        )
    return result


def _webhook_cert_name(app_meta: Any, obj: Manifest) -> str:
    metadata = obj.content.get("metadata")
    annotations = metadata.get("annotations") if isinstance(metadata, dict) else None
    if annotations is not None and not isinstance(annotations, dict):
        raise ProcessingError("unable get webhook certName: annotations is not an object")
    cert_name = (annotations or {}).get(_INJECT_CA)
    if cert_name is None:
        cert_name = ""
    if not isinstance(cert_name, str):
        raise ProcessingError("unable get webhook certName: not a string")
    cert_name = cert_name.removeprefix(app_meta.namespace + "/")
    return app_meta.trim_name(cert_name)


def _process_webhook_configuration(
    app_meta: Any, obj: Manifest, kind: str
) -> Template:
    name = app_meta.trim_name(obj.name)
    webhooks = _template_webhooks(app_meta, obj.content.get("webhooks"), kind)
    cert_name = _webhook_cert_name(app_meta, obj)
    text = _WEBHOOK_TEMPLATE % {
        "kind": kind,
        "chart": app_meta.chart_name,
        "name": name,
        "cert": cert_name,
        "webhooks": dump(webhooks).rstrip("\n "),
    }
    return StaticTemplate(name + ".yaml", text)


class ValidatingWebhookProcessor(Processor):
    """Templates service references of a ValidatingWebhookConfiguration."""

    def process(self, app_meta: Any, obj: Manifest) -> tuple[bool, Template | None]:
        if obj.gvk != VALIDATING_WEBHOOK_GVK:
            return False, None
        return True, _process_webhook_configuration(
            app_meta, obj, "ValidatingWebhookConfiguration"
        )


class MutatingWebhookProcessor(Processor):
    """Templates service references of a MutatingWebhookConfiguration."""

    def process(self, app_meta: Any, obj: Manifest) -> tuple[bool, Template | None]:
        if obj.gvk != MUTATING_WEBHOOK_GVK:
            return False, None
        return True, _process_webhook_configuration(
            app_meta, obj, "MutatingWebhookConfiguration"
        )