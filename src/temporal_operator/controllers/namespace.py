"""Reconciler for TemporalNamespace objects."""

import asyncio
import logging

from temporal_operator.errors import AlreadyExistsError, NotFoundError, RemoteError
from temporal_operator.models.namespace import DELETION_FINALIZER

from . import conditions
from .patch import PatchHelper
from .result import Result
from .search_attributes import reconcile_search_attributes

logger = logging.getLogger(__name__)

DEFAULT_CLUSTER_READY_POLL_INTERVAL = 10.0
DEFAULT_RECONCILE_TIMEOUT = 60.0


class NamespaceReconciler:
    """Keeps a Temporal namespace and its search attributes in line with its spec.

    One pass:
        fetch -> referenced cluster check -> deletion -> finalizer ->
        register (or update) -> search attributes -> conditions

    The namespace object is written back once, when the pass ends.
    """

    def __init__(
        self,
        store,
        client_factory,
        index=None,
        cluster_ready_poll_interval=DEFAULT_CLUSTER_READY_POLL_INTERVAL,
        reconcile_timeout=DEFAULT_RECONCILE_TIMEOUT,
    ):
        self.store = store
        self.client_factory = client_factory
        self.index = index
        self.cluster_ready_poll_interval = cluster_ready_poll_interval
        self.reconcile_timeout = reconcile_timeout

    async def reconcile(self, key):
        logger.info(f"Starting reconciliation of namespace {key}")

        namespace = await self.store.get_namespace(key)
        if namespace is None:
            logger.debug(f"Namespace {key} no longer exists")
            if self.index is not None:
                self.index.remove(key)
            return Result()

        if self.index is not None:
            self.index.update(namespace.key, namespace.cluster_key)

        async with PatchHelper(self.store, namespace):
            try:
                return await asyncio.wait_for(
                    self._reconcile(namespace), timeout=self.reconcile_timeout
                )
            except asyncio.TimeoutError:
                return self.handle_error(
                    namespace,
                    conditions.RECONCILE_ERROR_REASON,
                    f"reconcile of namespace {namespace.metadata.name} exceeded "
                    f"{self.reconcile_timeout}s",
                )
            except Exception as e:
                return self.handle_error(namespace, conditions.RECONCILE_ERROR_REASON, str(e))

    async def _reconcile(self, namespace):
        cluster = await self.store.get_cluster(namespace.cluster_key)
        if cluster is None:
            if namespace.is_deleting:
                # The cluster never existed or is gone with its server-side
                # namespace; nothing left to clean up remotely.
                namespace.remove_finalizer(DELETION_FINALIZER)
                logger.info(
                    f"Cluster {namespace.cluster_key} is gone, released namespace {namespace.key}"
                )
                return Result()
            raise NotFoundError(
                f"TemporalCluster {namespace.cluster_key} referenced by namespace "
                f"{namespace.metadata.name} not found"
            )

        if not cluster.is_ready():
            logger.info(
                f"Skipping namespace {namespace.key} reconciliation until cluster "
                f"{cluster.key} is ready"
            )
            return Result(requeue_after=self.cluster_ready_poll_interval)

        if namespace.is_deleting:
            logger.info(f"Deleting namespace {namespace.key}")
            await self.ensure_namespace_deleted(namespace, cluster)
            return Result()

        self.ensure_finalizer(namespace)

        async with self.client_factory(cluster) as client:
            try:
                await client.register_namespace(namespace)
            except AlreadyExistsError:
                await client.update_namespace(namespace)
            except RemoteError as e:
                raise RemoteError(
                    f"can't create \"{namespace.metadata.name}\" namespace: {e}"
                ) from e

            await reconcile_search_attributes(
                client, namespace.metadata.name, namespace.spec.customSearchAttributes
            )

        logger.info(f"Successfully reconciled namespace {namespace.key}")
        conditions.set_condition(
            namespace.status.conditions,
            conditions.READY,
            conditions.CONDITION_TRUE,
            conditions.NAMESPACE_CREATED_REASON,
            "Namespace successfully created",
        )
        return self.handle_success(namespace)

    def ensure_finalizer(self, namespace):
        """Hold the deletion finalizer exactly while the spec allows deleting the namespace."""
        if namespace.is_deleting:
            return
        if namespace.spec.allowDeletion:
            namespace.add_finalizer(DELETION_FINALIZER)
        else:
            namespace.remove_finalizer(DELETION_FINALIZER)

    async def ensure_namespace_deleted(self, namespace, cluster):
        if not namespace.has_finalizer(DELETION_FINALIZER):
            return

        async with self.client_factory(cluster) as client:
            try:
                await client.delete_namespace(namespace.metadata.name)
            except NotFoundError:
                logger.info(f"Tried to delete namespace {namespace.metadata.name} but it was not found")
            except RemoteError as e:
                raise RemoteError(
                    f"can't delete \"{namespace.metadata.name}\" namespace: {e}"
                ) from e

        namespace.remove_finalizer(DELETION_FINALIZER)

    def handle_success(self, namespace, requeue_after=0.0):
        conditions.mark_reconcile_success(namespace.status.conditions)
        namespace.status.observedGeneration = namespace.metadata.generation
        return Result(requeue_after=requeue_after)

    def handle_error(self, namespace, reason, message, requeue_after=0.0):
        logger.error(f"Failed to reconcile namespace {namespace.key}: {message}")
        conditions.mark_reconcile_error(namespace.status.conditions, reason, message)
        return Result(requeue=True, requeue_after=requeue_after)
