"""Kubernetes operator that generates secrets and copies them into namespaces."""

__version__ = "0.1.0"
