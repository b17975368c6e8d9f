"""kopf watch handlers for the temporal operator."""

from . import cluster_handler, namespace_handler

__all__ = ["cluster_handler", "namespace_handler"]
