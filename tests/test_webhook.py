import copy
import io

import pytest

from helmify.config import Config
from helmify.manifest import parse_object
from helmify.metadata import AppMeta
from helmify.model import ProcessingError
from helmify.processors.webhook import (
    CertificateProcessor,
    IssuerProcessor,
    MutatingWebhookProcessor,
    ValidatingWebhookProcessor,
)

NS_YAML = """apiVersion: v1
kind: Namespace
metadata:
  labels:
    control-plane: controller-manager
  name: my-operator-system"""

CERT_YAML = """apiVersion: cert-manager.io/v1
kind: Certificate
metadata:
  name: my-operator-serving-cert
  namespace: my-operator-system
spec:
  dnsNames:
  - my-operator-webhook-service.my-operator-system.svc
  - my-operator-webhook-service.my-operator-system.svc.cluster.local
  issuerRef:
    kind: Issuer
    name: my-operator-selfsigned-issuer
  secretName: webhook-server-cert"""

ISSUER_YAML = """apiVersion: cert-manager.io/v1
kind: Issuer
metadata:
  name: my-operator-selfsigned-issuer
  namespace: my-operator-system
spec:
  selfSigned: {}"""

SERVICE_YAML = """apiVersion: v1
kind: Service
metadata:
  name: my-operator-webhook-service
  namespace: my-operator-system
spec:
  ports:
  - port: 443"""

WEBHOOK_YAML = """apiVersion: admissionregistration.k8s.io/v1
kind: %(kind)s
metadata:
  annotations:
    cert-manager.io/inject-ca-from: my-operator-system/my-operator-serving-cert
  name: my-operator-%(short)s
webhooks:
- admissionReviewVersions:
  - v1
  - v1beta1
  clientConfig:
    service:
      name: my-operator-webhook-service
      namespace: my-operator-system
      path: /%(path)s-ceph-example-com-v1alpha1-volume
  failurePolicy: Fail
  name: vvolume.kb.io
  rules:
  - apiGroups:
    - test.example.com
    apiVersions:
    - v1alpha1
    operations:
    - CREATE
    - UPDATE
    resources:
    - volumes
  sideEffects: None"""

MWH_YAML = WEBHOOK_YAML % {
    "kind": "MutatingWebhookConfiguration",
    "short": "mutating-webhook-configuration",
    "path": "mutate",
}
VWH_YAML = WEBHOOK_YAML % {
    "kind": "ValidatingWebhookConfiguration",
    "short": "validating-webhook-configuration",
    "path": "validate",
}

WEBHOOK_CASES = [
    (MutatingWebhookProcessor, MWH_YAML, "MutatingWebhookConfiguration", "mutating"),
    (ValidatingWebhookProcessor, VWH_YAML, "ValidatingWebhookConfiguration", "validating"),
]


def _meta(*docs):
    meta = AppMeta(Config(chart_name="chart"))
    for doc in docs:
        meta.load(parse_object(doc))
    return meta


def _render(template):
    buffer = io.StringIO()
    template.write(buffer)
    return buffer.getvalue()


@pytest.mark.parametrize(
    "processor, doc",
    [
        (CertificateProcessor, CERT_YAML),
        (IssuerProcessor, ISSUER_YAML),
        (MutatingWebhookProcessor, MWH_YAML),
        (ValidatingWebhookProcessor, VWH_YAML),
    ],
)
def test_processed(processor, doc):
    processed, template = processor().process(AppMeta(), parse_object(doc))
    assert processed is True
    assert template.filename().endswith(".yaml")


@pytest.mark.parametrize(
    "processor",
    [CertificateProcessor, IssuerProcessor, MutatingWebhookProcessor, ValidatingWebhookProcessor],
)
def test_skipped(processor):
    assert processor().process(AppMeta(), parse_object(NS_YAML)) == (False, None)


def test_issuer_text():
    meta = _meta(ISSUER_YAML, CERT_YAML)
    _, template = IssuerProcessor().process(meta, parse_object(ISSUER_YAML))
    assert template.filename() == "selfsigned-issuer.yaml"
    assert _render(template) == (
        "apiVersion: cert-manager.io/v1\n"
        "kind: Issuer\n"
        "metadata:\n"
        '  name: {{ include "chart.fullname" . }}-selfsigned-issuer\n'
        "  labels:\n"
        '  {{- include "chart.labels" . | nindent 4 }}\n'
        "spec:\n"
        "  selfSigned: {}"
    )
    assert template.values() == {}


def test_certificate_templated():
    meta = _meta(CERT_YAML, ISSUER_YAML, SERVICE_YAML)
    obj = parse_object(CERT_YAML)
    original = copy.deepcopy(obj.content)
    _, template = CertificateProcessor().process(meta, obj)
    assert template.filename() == "serving-cert.yaml"
    text = _render(template)
    assert 'name: {{ include "chart.fullname" . }}-serving-cert' in text
    assert '{{ include "chart.fullname" . }}-webhook-service.{{ .Release.Namespace }}.svc' in text
    assert ".svc.{{ .Values.kubernetesClusterDomain }}" in text
    assert "cluster.local" not in text
    assert '{{ include "chart.fullname" . }}-selfsigned-issuer' in text
    assert "secretName: webhook-server-cert" in text
    assert obj.content == original


def test_certificate_invalid_dns_names():
    bad = parse_object(CERT_YAML)
    bad.content["spec"]["dnsNames"] = "not-a-list"
    with pytest.raises(ProcessingError):
        CertificateProcessor().process(AppMeta(), bad)


@pytest.mark.parametrize("processor, doc, kind, short", WEBHOOK_CASES)
def test_webhook_templated(processor, doc, kind, short):
    meta = _meta(doc, CERT_YAML, SERVICE_YAML)
    _, template = processor().process(meta, parse_object(doc))
    assert template.filename() == f"{short}-webhook-configuration.yaml"
    text = _render(template)
    assert f"kind: {kind}\n" in text
    assert f'name: {{{{ include "chart.fullname" . }}}}-{short}-webhook-configuration' in text
    assert (
        "cert-manager.io/inject-ca-from: {{ .Release.Namespace }}/"
        '{{ include "chart.fullname" . }}-serving-cert'
    ) in text
    assert "webhooks:\n- admissionReviewVersions:" in text
    webhooks = text.split("webhooks:\n", 1)[1]
    assert "{{ .Release.Namespace }}" in webhooks
    assert '{{ include "chart.fullname" . }}-webhook-service' in webhooks
    assert "my-operator-system" not in webhooks


@pytest.mark.parametrize("processor, doc, kind, short", WEBHOOK_CASES)
def test_webhook_without_service_raises(processor, doc, kind, short):
    obj = parse_object(doc)
    del obj.content["webhooks"][0]["clientConfig"]["service"]
    with pytest.raises(ProcessingError):
        processor().process(AppMeta(), obj)