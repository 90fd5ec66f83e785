"""Application-wide facts gathered from all input objects."""

from __future__ import annotations

import logging
import os

from helmify.config import Config
from helmify.manifest import CRD_GVK, NAMESPACE_GVK, Manifest

_log = logging.getLogger(__name__)

_NAME_TEMPLATE = '{{{{ include "{chart}.fullname" . }}}}-{name}'


def common_prefix(one: str, two: str) -> str:
    """Return the longest common character prefix of two strings."""
    return os.path.commonprefix([one, two])


class AppMeta:
    """Namespace, common name prefix and object names of the application."""

    def __init__(self, config: Config | None = None) -> None:
        self._config = config if config is not None else Config()
        self._common_prefix = ""
        self._namespace = ""
        self._names: set[str] = set()

    @property
    def config(self) -> Config:
        return self._config

    @property
    def namespace(self) -> str:
        """The detected application namespace."""
        return self._namespace

    @property
    def chart_name(self) -> str:
        return self._config.chart_name

    def load(self, obj: Manifest) -> None:
        """Record an object before processing so names and namespace can be inferred."""
        self._names.add(obj.name)
        if obj.gvk not in (CRD_GVK, NAMESPACE_GVK):
            self._common_prefix = (
                common_prefix(obj.name, self._common_prefix) if self._common_prefix else obj.name
            )
        obj_ns = obj.name if obj.gvk == NAMESPACE_GVK else obj.namespace
        if not obj_ns:
            return
        if self._namespace and self._namespace != obj_ns:
            _log.warning(
                "Two different namespaces for app detected: %s and %s. "
                "Resulted char will have single namespace.",
                obj_ns,
                self._namespace,
            )
        self._namespace = obj_ns

    def trim_name(self, obj_name: str) -> str:
        """Strip the common application prefix from a name, if anything remains."""
        trimmed = obj_name.removeprefix(self._common_prefix).lstrip("-./_ ")
        return trimmed or obj_name

    def templated_name(self, name: str) -> str:
        """Template the name of an application object; other names are returned as is."""
        if name not in self._names:
            return name
        return _NAME_TEMPLATE.format(chart=self.chart_name, name=self.trim_name(name))

    def templated_string(self, text: str) -> str:
        """Template any string with the chart fullname prefix."""
        return _NAME_TEMPLATE.format(chart=self.chart_name, name=self.trim_name(text))