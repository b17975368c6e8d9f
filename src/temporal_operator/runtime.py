"""Wiring of the stores, queues, index and controllers of a running operator."""

import logging

from temporal_operator.controllers.cluster import ClusterReconciler
from temporal_operator.controllers.controller import Controller
from temporal_operator.controllers.dependency import ClusterRefIndex, NamespacePropagator
from temporal_operator.controllers.namespace import NamespaceReconciler
from temporal_operator.controllers.queue import ReconcileQueue

logger = logging.getLogger(__name__)


class OperatorRuntime:
    """Owns everything the watch handlers feed and the workers drain."""

    def __init__(self, store, client_factory, config):
        self.store = store
        self.config = config
        self.index = ClusterRefIndex()

        self.cluster_queue = ReconcileQueue("temporalcluster")
        self.namespace_queue = ReconcileQueue("temporalnamespace")
        self.propagator = NamespacePropagator(self.index, self.namespace_queue)

        self.cluster_controller = Controller(
            "temporalcluster",
            ClusterReconciler(
                store,
                services_ready_poll_interval=config.cluster_ready_poll_interval,
                reconcile_timeout=config.reconcile_timeout,
            ),
            self.cluster_queue,
            workers=config.reconcile_workers,
        )
        self.namespace_controller = Controller(
            "temporalnamespace",
            NamespaceReconciler(
                store,
                client_factory,
                index=self.index,
                cluster_ready_poll_interval=config.cluster_ready_poll_interval,
                reconcile_timeout=config.reconcile_timeout,
            ),
            self.namespace_queue,
            workers=config.reconcile_workers,
        )

    async def start(self):
        """Build the cluster reference index, then start the workers."""
        namespaces = await self.store.list_namespaces(self.config.watch_namespace)
        self.index.rebuild(namespaces)
        self.cluster_controller.start()
        self.namespace_controller.start()

    async def stop(self):
        await self.cluster_controller.stop()
        await self.namespace_controller.stop()

    def cluster_changed(self, key):
        self.cluster_queue.add(key)
        self.propagator.cluster_changed(key)

    def namespace_changed(self, key, cluster_key):
        if cluster_key is None:
            self.index.remove(key)
        else:
            self.index.update(key, cluster_key)
        self.namespace_queue.add(key)
