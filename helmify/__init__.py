"""Turn Kubernetes manifests into a Helm chart."""

__version__ = "0.1.0"