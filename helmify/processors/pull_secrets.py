"""Default imagePullSecrets for pod specs."""

from __future__ import annotations

from typing import Any

from helmify.values import Values

HELM_EXPRESSION = "{{ .Values.imagePullSecrets | default list | toJson }}"


def process_spec_map(spec_map: dict[str, Any], values: Values) -> None:
    """Point a pod spec without imagePullSecrets at the chart's imagePullSecrets value."""
    if "imagePullSecrets" not in spec_map:
        spec_map["imagePullSecrets"] = HELM_EXPRESSION
        values["imagePullSecrets"] = []