"""Interfaces shared by processors, templates and chart output."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import IO, TYPE_CHECKING, Any

from helmify.values import Values

if TYPE_CHECKING:
    from helmify.manifest import Manifest


class ProcessingError(Exception):
    """Raised when a Kubernetes object cannot be turned into a template."""


class Template(ABC):
    """A Helm template file fragment together with the values it uses."""

    @abstractmethod
    def filename(self) -> str:
        """Name of the file in the chart that holds this template."""

    @abstractmethod
    def values(self) -> Values:
        """Values referenced by this template."""

    @abstractmethod
    def write(self, writer: IO[str]) -> None:
        """Write the template text to *writer*."""


class StaticTemplate(Template):
    """A template whose text is fully rendered ahead of time."""

    def __init__(self, filename: str, text: str, values: Values | None = None) -> None:
        self._filename = filename
        self._text = text
        self._values = Values(values or {})

    def filename(self) -> str:
        return self._filename

    def values(self) -> Values:
        return self._values

    def write(self, writer: IO[str]) -> None:
        writer.write(self._text)


class Processor(ABC):
    """Converts one kind of Kubernetes object into a template."""

    @abstractmethod
    def process(self, app_meta: Any, obj: Manifest) -> tuple[bool, Template | None]:
        """Return (handled, template); handled is False for objects of other kinds."""


class Output(ABC):
    """Writes templates to disk as a Helm chart."""

    @abstractmethod
    def create(
        self, chart_dir: str, chart_name: str, crd: bool, templates: Sequence[Template]
    ) -> None:
        """Create or update the chart from *templates*."""