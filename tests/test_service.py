import io

import pytest

from helmify.config import Config
from helmify.manifest import parse_object
from helmify.metadata import AppMeta
from helmify.model import ProcessingError
from helmify.processors.service import IngressProcessor, ServiceProcessor

NS_YAML = """apiVersion: v1
kind: Namespace
metadata:
  labels:
    control-plane: controller-manager
  name: my-operator-system"""

SVC_YAML = """apiVersion: v1
kind: Service
metadata:
  labels:
    control-plane: controller-manager
  name: my-operator-controller-manager-metrics-service
  namespace: my-operator-system
spec:
  ports:
  - name: https
    port: 8443
    targetPort: https
  selector:
    control-plane: controller-manager"""

OTHER_SVC_YAML = """apiVersion: v1
kind: Service
metadata:
  name: my-operator-webhook-service
  namespace: my-operator-system
spec:
  type: NodePort
  ports:
  - port: 443
    nodePort: 30443
    protocol: TCP
    targetPort: 9443
  selector:
    control-plane: controller-manager"""

INGRESS_YAML = """apiVersion: networking.k8s.io/v1
kind: Ingress
metadata:
  name: myapp-ingress
  annotations:
    nginx.ingress.kubernetes.io/rewrite-target: /
spec:
  rules:
    - http:
        paths:
          - path: /testpath
            pathType: Prefix
            backend:
              service:
                name: myapp-service
                port:
                  number: 8443"""

MYAPP_SVC_YAML = """apiVersion: v1
kind: Service
metadata:
  name: myapp-service
spec:
  ports:
  - port: 8443"""


def _meta(*docs):
    meta = AppMeta(Config(chart_name="chart"))
    for doc in docs:
        meta.load(parse_object(doc))
    return meta


def _render(template):
    buffer = io.StringIO()
    template.write(buffer)
    return buffer.getvalue()


def test_service_processed():
    processed, template = ServiceProcessor().process(AppMeta(), parse_object(SVC_YAML))
    assert processed is True
    assert template.filename() == "my-operator-controller-manager-metrics-service.yaml"


def test_service_skipped():
    assert ServiceProcessor().process(AppMeta(), parse_object(NS_YAML)) == (False, None)


def test_service_values_and_text():
    meta = _meta(SVC_YAML, OTHER_SVC_YAML)
    _, template = ServiceProcessor().process(meta, parse_object(SVC_YAML))
    assert template.filename() == "metrics-service.yaml"
    assert template.values() == {
        "metricsService": {
            "type": "ClusterIP",
            "ports": [{"port": 8443, "name": "https", "targetPort": "https"}],
        }
    }
    text = _render(template)
    assert "type: {{ .Values.metricsService.type }}" in text
    assert "  selector:\n    control-plane: controller-manager\n" in text
    assert '{{- include "chart.selectorLabels" . | nindent 4 }}' in text
    assert text.endswith("\t{{- .Values.metricsService.ports | toYaml | nindent 2 -}}")
    assert text.startswith("apiVersion: v1\nkind: Service\n")


def test_service_port_details():
    meta = _meta(SVC_YAML, OTHER_SVC_YAML)
    _, template = ServiceProcessor().process(meta, parse_object(OTHER_SVC_YAML))
    assert template.filename() == "webhook-service.yaml"
    assert template.values() == {
        "webhookService": {
            "type": "NodePort",
            "ports": [
                {"port": 443, "nodePort": 30443, "protocol": "TCP", "targetPort": 9443}
            ],
        }
    }


def test_service_invalid_port_raises():
    bad = SVC_YAML.replace("port: 8443", "port: abc")
    with pytest.raises(ProcessingError):
        ServiceProcessor().process(AppMeta(), parse_object(bad))


def test_ingress_processed():
    processed, template = IngressProcessor().process(AppMeta(), parse_object(INGRESS_YAML))
    assert processed is True
    assert template.filename() == "myapp-ingress.yaml"


def test_ingress_skipped():
    assert IngressProcessor().process(AppMeta(), parse_object(NS_YAML)) == (False, None)


def test_ingress_backend_templated():
    meta = _meta(INGRESS_YAML, MYAPP_SVC_YAML)
    obj = parse_object(INGRESS_YAML)
    _, template = IngressProcessor().process(meta, obj)
    assert template.filename() == "ingress.yaml"
    text = _render(template)
    assert '{{ include "chart.fullname" . }}-service' in text
    assert "nginx.ingress.kubernetes.io/rewrite-target: /" in text
    assert "path: /testpath" in text
    assert template.values() == {}
    backend = obj.content["spec"]["rules"][0]["http"]["paths"][0]["backend"]
    assert backend["service"]["name"] == "myapp-service"


def test_ingress_unknown_backend_kept():
    meta = _meta(INGRESS_YAML)
    _, template = IngressProcessor().process(meta, parse_object(INGRESS_YAML))
    text = _render(template)
    assert "name: myapp-service" in text
    assert "fullname" not in text.split("spec:", 1)[1]