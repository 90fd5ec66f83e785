"""Application configuration and chart name validation."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

_log = logging.getLogger(__name__)

DEFAULT_CHART_NAME = "chart"

DEFAULT_DOMAIN = "cluster.local"
DOMAIN_KEY = "kubernetesClusterDomain"
DOMAIN_ENV = "KUBERNETES_CLUSTER_DOMAIN"

_DNS1123_LABEL = r"[a-z0-9]([-a-z0-9]*[a-z0-9])?"
_DNS1123_SUBDOMAIN = _DNS1123_LABEL + r"(\." + _DNS1123_LABEL + r")*"
_DNS1123_SUBDOMAIN_RE = re.compile(_DNS1123_SUBDOMAIN)
_DNS1123_SUBDOMAIN_MAX_LENGTH = 253


class ConfigError(ValueError):
    """Raised when the configuration is not valid."""


def is_dns1123_subdomain(value: str) -> list[str]:
    """Return the reasons why *value* is not a DNS-1123 subdomain; empty if it is one."""
    errors = []
    if len(value) > _DNS1123_SUBDOMAIN_MAX_LENGTH:
        errors.append(f"must be no more than {_DNS1123_SUBDOMAIN_MAX_LENGTH} characters")
    if not _DNS1123_SUBDOMAIN_RE.fullmatch(value):
        errors.append(
            "a lowercase RFC 1123 subdomain must consist of lower case alphanumeric "
            "characters, '-' or '.', and must start and end with an alphanumeric "
            "character (e.g. 'example.com', regex used for validation is "
            f"'{_DNS1123_SUBDOMAIN}')"
        )
    return errors


@dataclass
class Config:
    """Settings of one chart generation run."""

    chart_name: str = ""
    chart_dir: str = ""
    verbose: bool = False
    very_verbose: bool = False
    crd: bool = False
    image_pull_secrets: bool = False

    def validate(self) -> None:
        """Fill in the default chart name and check that the name is valid."""
        if not self.chart_name:
            _log.info("Chart name is not set. Using default name '%s'", DEFAULT_CHART_NAME)
            self.chart_name = DEFAULT_CHART_NAME
        problems = is_dns1123_subdomain(self.chart_name)
        if problems:
            for problem in problems:
                _log.error("Invalid chart name %s", problem)
            raise ConfigError(f"Invalid chart name {self.chart_name}")