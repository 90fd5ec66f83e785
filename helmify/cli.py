"""Command-line interface: reads manifests from stdin and writes a Helm chart."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Sequence

from helmify.app import start
from helmify.config import Config, ConfigError
from helmify.model import ProcessingError
from helmify.values import ValuesError

_log = logging.getLogger(__name__)

VERSION = "development"
BUILD_DATE = "not set"
COMMIT = "not set"

HELP_TEXT = """Helmify parses kubernetes resources from std.in and converts it to a Helm chart.

Example 1: 'kustomize build <kustomize_dir> | helmify mychart' 
  - will create 'mychart' directory with Helm chart from kustomize output.

Example 2: 'cat my-app.yaml | helmify mychart' 
  - will create 'mychart' directory with Helm chart from yaml file.

Example 3: 'awk 'FNR==1 && NR!=1  {print "---"}{print}' /my_directory/*.yaml | helmify mychart' 
  - will create 'mychart' directory with Helm chart from all yaml files in my_directory directory.

Usage:
  helmify [flags] CHART_NAME  -  CHART_NAME is optional. Default is 'chart'. Can be a directory, e.g. 'deploy/charts/mychart'.

Flags:
"""


def version_text() -> str:
    """Version, build time and commit, one per line."""
    return (
        f"Version:    {VERSION}\n"
        f"Build Time: {BUILD_DATE}\n"
        f"Git Commit: {COMMIT}\n"
    )


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="helmify",
        add_help=False,
        allow_abbrev=False,
        usage=argparse.SUPPRESS,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("-h", "-help", "--help", dest="help", action="store_true",
                        help="Print help. Example: helmify -h")
    parser.add_argument("-version", "--version", dest="version", action="store_true",
                        help="Print helmify version. Example: helmify -version")
    parser.add_argument("-v", "--v", dest="verbose", action="store_true",
                        help="Enable verbose output (print WARN & INFO). Example: helmify -v")
    parser.add_argument("-vv", "--vv", dest="very_verbose", action="store_true",
                        help="Enable very verbose output. Same as verbose but with DEBUG. "
                             "Example: helmify -vv")
    parser.add_argument("-crd-dir", "--crd-dir", dest="crd", action="store_true",
                        help="Enable crd install into 'crds' directory.\n"
                             "Warning: CRDs placed in 'crds' directory will not be templated "
                             "by Helm.\nExample: helmify -crd-dir")
    parser.add_argument("-image-pull-secrets", "--image-pull-secrets",
                        dest="image_pull_secrets", action="store_true",
                        help="Allows the user to use existing secrets as imagePullSecrets "
                             "in values.yaml")
    parser.add_argument("names", nargs="*", help=argparse.SUPPRESS)
    return parser


def parse_args(argv: Sequence[str] | None = None) -> Config:
    """Build the configuration from command-line arguments; exit on help or version."""
    parser = _parser()
    args = parser.parse_args(argv)
    if args.help:
        sys.stdout.write(HELP_TEXT)
        sys.stdout.write(parser.format_help())
        raise SystemExit(0)
    if args.version:
        sys.stdout.write(version_text())
        raise SystemExit(0)
    config = Config(
        verbose=args.verbose,
        very_verbose=args.very_verbose,
        crd=args.crd,
        image_pull_secrets=args.image_pull_secrets,
    )
    if args.names and args.names[0]:
        name = args.names[0]
        config.chart_name = os.path.basename(name.rstrip("/")) or name
        config.chart_dir = os.path.dirname(name) or "."
    return config


def main(argv: Sequence[str] | None = None) -> int:
    """Run helmify on stdin; return the process exit status."""
    config = parse_args(argv)
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    stdin = sys.stdin
    if stdin is None:
        _log.error("stdin error")
        return 1
    if stdin.isatty():
        _log.error("no data piped in stdin")
        return 1
    try:
        start(stdin, config)
    except (ConfigError, ProcessingError, ValuesError, ValueError, OSError) as err:
        _log.error("helmify finished with error: %s", err)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())