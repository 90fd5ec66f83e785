"""Writing templates to the filesystem as a Helm chart."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Sequence
from pathlib import Path

from helmify.config import DEFAULT_DOMAIN, DOMAIN_KEY
from helmify.model import Output, Template
from helmify.values import Values
from helmify.yamlfmt import dump

_log = logging.getLogger(__name__)

_IGNORE_GROUPS = (
    (
        "Files left out of the packaged chart.\n"
        "Shell globs and relative paths are accepted; a leading ! negates.\n"
        "One pattern per line.",
        (".DS_Store",),
    ),
    ("Version control", (".git/", ".gitignore", ".bzr/", ".bzrignore", ".hg/", ".hgignore", ".svn/")),
    ("Backup and swap files", ("*.swp", "*.bak", "*.tmp", "*.orig", "*~")),
    ("Editor and IDE settings", (".project", ".idea/", "*.tmproj", ".vscode/")),
)


def _build_helm_ignore() -> str:
    lines: list[str] = []
    for comment, patterns in _IGNORE_GROUPS:
        lines.extend("# " + part for part in comment.splitlines())
        lines.extend(patterns)
    return "\n".join(lines) + "\n"


HELM_IGNORE = _build_helm_ignore()

_TRIM = ' | trunc 63 | trimSuffix "-" }}'

_HELPER_BLOCKS = (
    (
        "name",
        "Chart name, overridable through nameOverride.",
        ["{{- default .Chart.Name .Values.nameOverride" + _TRIM],
    ),
    (
        "fullname",
        "Fully qualified app name, cut to 63 characters as DNS names require.\n"
        "The release name alone is used when it already holds the chart name.",
        [
            "{{- if .Values.fullnameOverride }}",
            "{{- .Values.fullnameOverride" + _TRIM,
            "{{- else }}",
            "{{- $name := default .Chart.Name .Values.nameOverride }}",
            "{{- if contains $name .Release.Name }}",
            "{{- .Release.Name" + _TRIM,
            "{{- else }}",
            '{{- printf "%s-%s" .Release.Name $name' + _TRIM,
            "{{- end }}",
            "{{- end }}",
        ],
    ),
    (
        "chart",
        "Chart name and version for the chart label.",
        ['{{- printf "%s-%s" .Chart.Name .Chart.Version | replace "+" "_"' + _TRIM],
    ),
    (
        "labels",
        "Labels shared by every resource.",
        [
            'helm.sh/chart: {{ include "<CHARTNAME>.chart" . }}',
            '{{ include "<CHARTNAME>.selectorLabels" . }}',
            "{{- if .Chart.AppVersion }}",
            "app.kubernetes.io/version: {{ .Chart.AppVersion | quote }}",
            "{{- end }}",
            "app.kubernetes.io/managed-by: {{ .Release.Service }}",
        ],
    ),
    (
        "selectorLabels",
        "Labels used by selectors.",
        [
            'app.kubernetes.io/name: {{ include "<CHARTNAME>.name" . }}',
            "app.kubernetes.io/instance: {{ .Release.Name }}",
        ],
    ),
    (
        "serviceAccountName",
        "Service account name to run under.",
        [
            "{{- if .Values.serviceAccount.create }}",
            '{{- default (include "<CHARTNAME>.fullname" .) .Values.serviceAccount.name }}',
            "{{- else }}",
            '{{- default "default" .Values.serviceAccount.name }}',
            "{{- end }}",
        ],
    ),
)


def _build_helpers() -> str:
    blocks = []
    for name, doc, body in _HELPER_BLOCKS:
        blocks.append(
            "{{/*\n"
            + doc
            + "\n*/}}\n"
            + '{{- define "<CHARTNAME>.'
            + name
            + '" -}}\n'
            + "\n".join(body)
            + "\n{{- end }}\n"
        )
    return "\n".join(blocks)


DEFAULT_HELPERS = _build_helpers()

_CHART_NAME_PATTERN = "^[a-zA-Z0-9._-]+$"
_CHART_NAME_RE = re.compile(_CHART_NAME_PATTERN)
MAX_CHART_NAME_LENGTH = 250

_DIR_MODE = 0o750


def validate_chart_name(name: str) -> None:
    """Raise ValueError unless *name* is usable as a chart directory name."""
    if not name or len(name) > MAX_CHART_NAME_LENGTH:
        raise ValueError(
            f"chart name must be between 1 and {MAX_CHART_NAME_LENGTH} characters"
        )
    if not _CHART_NAME_RE.match(name):
        raise ValueError(f'chart name must match the regular expression "{_CHART_NAME_PATTERN}"')


def chart_yaml(app_name: str) -> str:
    """Content of a new Chart.yaml for *app_name*."""
    return "\n".join(
        [
            "apiVersion: v2",
            f"name: {app_name}",
            "description: A Helm chart for Kubernetes",
            "# 'application' charts deploy resources; 'library' charts only share helpers.",
            "type: application",
            "# Chart version: bump it whenever the chart or its templates change.",
            "version: 0.1.0",
            "# Version of the deployed application, kept in quotes.",
            'appVersion: "0.1.0"',
            "",
        ]
    )


def helpers_yaml(chart_name: str) -> str:
    """Content of a new templates/_helpers.tpl for *chart_name*."""
    return DEFAULT_HELPERS.replace("<CHARTNAME>", chart_name)


def _write_file(path: Path, content: str, mode: int) -> None:
    def opener(file: str, flags: int) -> int:
        return os.open(file, flags, mode)

    with open(path, "w", encoding="utf-8", opener=opener) as handle:
        handle.write(content)


def _create_common_files(chart_dir: str, chart_name: str, crd: bool) -> None:
    base = Path(chart_dir, chart_name)
    (base / "templates").mkdir(mode=_DIR_MODE, parents=True, exist_ok=True)
    if crd:
        (base / "crds").mkdir(mode=_DIR_MODE, parents=True, exist_ok=True)
    files = (
        (base / "Chart.yaml", chart_yaml(chart_name)),
        (base / ".helmignore", HELM_IGNORE),
        (base / "templates" / "_helpers.tpl", helpers_yaml(chart_name)),
    )
    for path, content in files:
        _write_file(path, content, 0o640)
        _log.info("created file=%s", path)


def init_chart_dir(chart_dir: str, chart_name: str, crd: bool) -> None:
    """Create the chart skeleton unless its Chart.yaml already exists."""
    validate_chart_name(chart_name)
    if not Path(chart_dir, chart_name, "Chart.yaml").exists():
        _create_common_files(chart_dir, chart_name, crd)
        return
    _log.info("Skip creating Chart skeleton: Chart.yaml already exists.")


def _overwrite_template_file(
    filename: str, chart_path: Path, crd: bool, templates: Sequence[Template]
) -> None:
    if "crd" in filename and crd:
        subdir = chart_path / "crds"
        subdir.mkdir(mode=_DIR_MODE, parents=True, exist_ok=True)
    else:
        subdir = chart_path / "templates"
    path = subdir / filename

    def opener(file: str, flags: int) -> int:
        return os.open(file, flags, 0o600)

    with open(path, "w", encoding="utf-8", opener=opener) as handle:
        for position, template in enumerate(templates):
            _log.debug("writing a template into file=%s", path)
            template.write(handle)
            if position != len(templates) - 1:
                handle.write("\n---\n")
    _log.info("overwritten file=%s", path)


def _overwrite_values_file(chart_path: Path, values: Values) -> None:
    path = chart_path / "values.yaml"
    _write_file(path, dump(dict(values)), 0o600)
    _log.info("overwritten file=%s", path)


class ChartOutput(Output):
    """Writes templates into a chart directory, overwriting templates and values.yaml."""

    def create(
        self, chart_dir: str, chart_name: str, crd: bool, templates: Sequence[Template]
    ) -> None:
        init_chart_dir(chart_dir, chart_name, crd)
        files: dict[str, list[Template]] = {}
        values = Values({DOMAIN_KEY: DEFAULT_DOMAIN})
        for template in templates:
            files.setdefault(template.filename(), []).append(template)
            values.merge(template.values())
        chart_path = Path(chart_dir, chart_name)
        for filename, grouped in files.items():
            _overwrite_template_file(filename, chart_path, crd, grouped)
        _overwrite_values_file(chart_path, values)