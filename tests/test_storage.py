import io

import pytest

from helmify.manifest import parse_object
from helmify.metadata import AppMeta
from helmify.model import ProcessingError
from helmify.processors.storage import PvcProcessor

NS_YAML = """apiVersion: v1
kind: Namespace
metadata:
  labels:
    control-plane: controller-manager
  name: my-operator-system"""

PVC_YAML = """apiVersion: v1
kind: PersistentVolumeClaim
metadata:
  name: task-pv-claim
spec:
  storageClassName: manual
  accessModes:
    - ReadWriteOnce
  resources:
    requests:
      storage: 3Gi
    limits:
      storage: 5Gi"""

PVC_NO_CLASS_YAML = """apiVersion: v1
kind: PersistentVolumeClaim
metadata:
  name: plain-claim
spec:
  accessModes:
    - ReadWriteOnce
  resources:
    requests:
      storage: 1Gi"""


def _render(template):
    buffer = io.StringIO()
    template.write(buffer)
    return buffer.getvalue()


def test_processed():
    processed, template = PvcProcessor().process(AppMeta(), parse_object(PVC_YAML))
    assert processed is True
    assert template.filename() == "task-pv-claim.yaml"


def test_skipped():
    processed, template = PvcProcessor().process(AppMeta(), parse_object(NS_YAML))
    assert processed is False
    assert template is None


def test_values():
    _, template = PvcProcessor().process(AppMeta(), parse_object(PVC_YAML))
    assert template.values() == {
        "pvc": {
            "taskPvClaim": {
                "storageClass": "manual",
                "storageRequest": "3Gi",
                "storageLimit": "5Gi",
            }
        }
    }


def test_templated_spec():
    _, template = PvcProcessor().process(AppMeta(), parse_object(PVC_YAML))
    text = _render(template)
    assert "storageClassName: {{ .Values.pvc.taskPvClaim.storageClass | quote }}" in text
    assert "storage: {{ .Values.pvc.taskPvClaim.storageRequest | quote }}" in text
    assert "storage: {{ .Values.pvc.taskPvClaim.storageLimit | quote }}" in text
    assert "'" not in text
    assert "\nspec:\n  accessModes:\n  - ReadWriteOnce" in text


def test_without_storage_class():
    _, template = PvcProcessor().process(AppMeta(), parse_object(PVC_NO_CLASS_YAML))
    assert template.values() == {"pvc": {"plainClaim": {"storageRequest": "1Gi"}}}
    assert "storageClassName" not in _render(template)


def test_invalid_resources_rejected():
    document = PVC_NO_CLASS_YAML.replace(
        "  resources:\n    requests:\n      storage: 1Gi", "  resources: wrong"
    )
    with pytest.raises(ProcessingError):
        PvcProcessor().process(AppMeta(), parse_object(document))