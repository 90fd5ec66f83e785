from helmify.config import Config
from helmify.manifest import parse_object
from helmify.metadata import AppMeta
from helmify.processors.meta import api_version_of, process_obj_meta

NS_YAML = """apiVersion: v1
kind: Namespace
metadata:
  labels:
    control-plane: controller-manager
  name: my-operator-system"""


def _meta_with(*objects):
    meta = AppMeta(Config(chart_name="chart-name"))
    for obj in objects:
        meta.load(obj)
    return meta


def test_process_obj_meta_namespace():
    ns = parse_object(NS_YAML)
    res = process_obj_meta(_meta_with(ns), ns)
    assert "chart-name.labels" in res
    assert "chart-name.fullname" in res
    assert "    control-plane: controller-manager" in res


def test_helm_labels_are_dropped():
    obj = parse_object(
        """apiVersion: v1
kind: Secret
metadata:
  name: abc
  labels:
    app.kubernetes.io/name: x
    helm.sh/chart: y"""
    )
    res = process_obj_meta(_meta_with(obj), obj)
    assert res == (
        "apiVersion: v1\nkind: Secret\nmetadata:\n"
        '  name: {{ include "chart-name.fullname" . }}-abc\n'
        "  labels:\n"
        '  {{- include "chart-name.labels" . | nindent 4 }}'
    )


def test_labels_and_annotations_rendered():
    obj = parse_object(
        """apiVersion: apps/v1
kind: Deployment
metadata:
  name: abc
  labels:
    tier: db
  annotations:
    a: b"""
    )
    res = process_obj_meta(_meta_with(obj), obj)
    assert res.startswith("apiVersion: apps/v1\nkind: Deployment\n")
    assert "  labels:\n    tier: db\n  {{- include" in res
    assert res.endswith("  annotations:\n    a: b")


def test_unknown_name_not_templated():
    obj = parse_object("apiVersion: v1\nkind: Secret\nmetadata:\n  name: other\n")
    res = process_obj_meta(AppMeta(Config(chart_name="chart-name")), obj)
    assert "  name: other\n" in res


def test_api_version_of():
    obj = parse_object("apiVersion: rbac.authorization.k8s.io/v1\nkind: Role\n")
    assert api_version_of(obj.gvk) == "rbac.authorization.k8s.io/v1"
    core = parse_object("apiVersion: v1\nkind: Secret\n")
    assert api_version_of(core.gvk) == "v1"