"""CRD models for the temporal operator."""

from .cluster import TemporalCluster, TemporalClusterSpec
from .namespace import DELETION_FINALIZER, TemporalNamespace, TemporalNamespaceSpec

__all__ = [
    "DELETION_FINALIZER",
    "TemporalCluster",
    "TemporalClusterSpec",
    "TemporalNamespace",
    "TemporalNamespaceSpec",
]
