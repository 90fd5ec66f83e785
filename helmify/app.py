"""Application entry point: reads manifests and builds a Helm chart from them."""

from __future__ import annotations

import contextlib
import logging
import signal
import threading
from collections.abc import Iterable, Iterator
from typing import Any

from helmify.chart import ChartOutput
from helmify.config import Config
from helmify.manifest import Manifest, decode
from helmify.metadata import AppMeta
from helmify.model import Output, Processor, Template
from helmify.processors.configmap import ConfigMapProcessor
from helmify.processors.crd import CrdProcessor
from helmify.processors.default import DefaultProcessor
from helmify.processors.rbac import (
    ClusterRoleBindingProcessor,
    RoleBindingProcessor,
    RoleProcessor,
    ServiceAccountProcessor,
)
from helmify.processors.secret import SecretProcessor
from helmify.processors.service import IngressProcessor, ServiceProcessor
from helmify.processors.storage import PvcProcessor
from helmify.processors.webhook import (
    CertificateProcessor,
    IssuerProcessor,
    MutatingWebhookProcessor,
    ValidatingWebhookProcessor,
)
from helmify.processors.workload import DaemonSetProcessor, DeploymentProcessor

_log = logging.getLogger(__name__)
_PACKAGE_LOGGER = "helmify"


class AppContext:
    """Collects objects and turns them into chart templates."""

    def __init__(self, config: Config, output: Output) -> None:
        self.config = config
        self.output = output
        self.app_meta = AppMeta(config)
        self.processors: list[Processor] = []
        self.default_processor: Processor | None = None
        self.objects: list[Manifest] = []

    def with_processors(self, *args: Processor) -> AppContext:
        """Register processors, tried in the given order."""
        self.processors.extend(args)
        return self

    def with_default_processor(self, processor: Processor | None) -> AppContext:
        """Set the processor for objects no other processor handles."""
        self.default_processor = processor
        return self

    def add(self, obj: Manifest) -> None:
        """Add an object; all objects are loaded before processing to learn app metadata."""
        self.app_meta.load(obj)
        self.objects.append(obj)

    def create_helm(self, stop: threading.Event | None = None) -> None:
        """Process the collected objects and write the chart."""
        _log.info(
            "creating a chart ChartName=%s Namespace=%s",
            self.app_meta.chart_name,
            self.app_meta.namespace,
        )
        templates: list[Template] = []
        for obj in self.objects:
            template = self._process(obj)
            if template is not None:
                templates.append(template)
            if stop is not None and stop.is_set():
                return
        self.output.create(
            self.config.chart_dir, self.config.chart_name, self.config.crd, templates
        )

    def _process(self, obj: Manifest) -> Template | None:
        for processor in self.processors:
            handled, template = processor.process(self.app_meta, obj)
            if handled:
                _log.debug(
                    "processed ApiVersion=%s Kind=%s Name=%s",
                    obj.api_version,
                    obj.kind,
                    obj.name,
                )
                return template
        if self.default_processor is None:
            _log.warning(
                "Skipping: no suitable processor for resource. ApiVersion=%s Kind=%s Name=%s",
                obj.api_version,
                obj.kind,
                obj.name,
            )
            return None
        _, template = self.default_processor.process(self.app_meta, obj)
        return template


def default_processors() -> list[Processor]:
    """The processors for the supported resource kinds, in lookup order."""
    return [
        ConfigMapProcessor(),
        CrdProcessor(),
        DaemonSetProcessor(),
        DeploymentProcessor(),
        PvcProcessor(),
        ServiceProcessor(),
        IngressProcessor(),
        ClusterRoleBindingProcessor(),
        RoleProcessor(),
        RoleBindingProcessor(),
        ServiceAccountProcessor(),
        SecretProcessor(),
        IssuerProcessor(),
        CertificateProcessor(),
        ValidatingWebhookProcessor(),
        MutatingWebhookProcessor(),
    ]


def _set_log_level(config: Config) -> None:
    level = logging.ERROR
    if config.verbose:
        level = logging.INFO
    if config.very_verbose:
        level = logging.DEBUG
    logging.getLogger(_PACKAGE_LOGGER).setLevel(level)


@contextlib.contextmanager
def _stop_on_signals(stop: threading.Event) -> Iterator[None]:
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def handler(signum: int, frame: Any) -> None:
        _log.debug("Received termination, signaling shutdown")
        stop.set()

    previous = {sig: signal.signal(sig, handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)


def start(stream: Iterable[str] | str, config: Config) -> None:
    """Read manifests from *stream* and write the chart described by *config*."""
    config.validate()
    _set_log_level(config)
    stop = threading.Event()
    with _stop_on_signals(stop):
        context = (
            AppContext(config, ChartOutput())
            .with_processors(*default_processors())
            .with_default_processor(DefaultProcessor())
        )
        for obj in decode(stream, stop):
            context.add(obj)
        context.create_helm(stop)