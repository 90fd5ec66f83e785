"""Processors that turn individual Kubernetes resources into Helm templates."""