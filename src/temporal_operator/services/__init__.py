"""Boundaries to the Kubernetes API and to the Temporal server."""

from .object_store import KubernetesObjectStore
from .temporal_client import TemporalClientFactory, TemporalNamespaceClient

__all__ = ["KubernetesObjectStore", "TemporalClientFactory", "TemporalNamespaceClient"]
