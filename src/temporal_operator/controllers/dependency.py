"""Index of TemporalNamespaces by the TemporalCluster they reference."""

import logging
import threading
from collections import defaultdict

logger = logging.getLogger(__name__)


class ClusterRefIndex:
    """Reverse index: cluster key -> keys of namespaces referencing it.

    Built with a full scan through ``rebuild`` and kept current by calling
    ``update``/``remove`` for every observed namespace event.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._dependents = defaultdict(set)
        self._refs = {}

    def rebuild(self, namespaces):
        """Replace the index content from a full list of namespaces."""
        with self._lock:
            self._dependents = defaultdict(set)
            self._refs = {}
            for namespace in namespaces:
                self._set(namespace.key, namespace.cluster_key)
        logger.info(f"Cluster reference index rebuilt with {len(self._refs)} namespaces")

    def update(self, namespace_key, cluster_key):
        with self._lock:
            self._set(namespace_key, cluster_key)

    def remove(self, namespace_key):
        with self._lock:
            self._unset(namespace_key)

    def dependents(self, cluster_key):
        with self._lock:
            return set(self._dependents.get(cluster_key, ()))

    def __len__(self):
        with self._lock:
            return len(self._refs)

    def _set(self, namespace_key, cluster_key):
        self._unset(namespace_key)
        self._refs[namespace_key] = cluster_key
        self._dependents[cluster_key].add(namespace_key)

    def _unset(self, namespace_key):
        previous = self._refs.pop(namespace_key, None)
        if previous is None:
            return
        dependents = self._dependents.get(previous)
        if dependents is not None:
            dependents.discard(namespace_key)
            if not dependents:
                del self._dependents[previous]


class NamespacePropagator:
    """Turns TemporalCluster changes into reconcile requests for namespaces."""

    def __init__(self, index, queue):
        self.index = index
        self.queue = queue

    def cluster_changed(self, cluster_key):
        """Enqueue every namespace that references the cluster.

        Returns:
            set: the namespace keys that were enqueued
        """
        dependents = self.index.dependents(cluster_key)
        for namespace_key in dependents:
            self.queue.add(namespace_key)
        if dependents:
            logger.debug(f"Cluster {cluster_key} changed, enqueued {len(dependents)} namespaces")
        return dependents
