"""Reconciler for TemporalCluster objects."""

import asyncio
import logging

import kubernetes

from temporal_operator.errors import AlreadyExistsError, TemporalOperatorError
from temporal_operator.resources import cluster_builders, deployment_ready

from . import conditions
from .defaults import normalize_cluster_defaults
from .patch import PatchHelper
from .result import Result

logger = logging.getLogger(__name__)

DEFAULT_SERVICES_READY_POLL_INTERVAL = 10.0
DEFAULT_RECONCILE_TIMEOUT = 60.0

_serializer = kubernetes.client.ApiClient()


def _snapshot(obj):
    return _serializer.sanitize_for_serialization(obj)


class ClusterReconciler:
    """Converges the Services and Deployments owned by a TemporalCluster."""

    def __init__(
        self,
        store,
        services_ready_poll_interval=DEFAULT_SERVICES_READY_POLL_INTERVAL,
        reconcile_timeout=DEFAULT_RECONCILE_TIMEOUT,
    ):
        self.store = store
        self.services_ready_poll_interval = services_ready_poll_interval
        self.reconcile_timeout = reconcile_timeout

    async def reconcile(self, key):
        logger.info(f"Starting reconciliation of cluster {key}")

        cluster = await self.store.get_cluster(key)
        if cluster is None:
            logger.debug(f"Cluster {key} no longer exists")
            return Result()

        async with PatchHelper(self.store, cluster):
            try:
                result = await asyncio.wait_for(
                    self._reconcile(cluster), timeout=self.reconcile_timeout
                )
            except asyncio.TimeoutError:
                result = self.handle_error(
                    cluster,
                    conditions.RECONCILE_ERROR_REASON,
                    f"reconcile of cluster {cluster.metadata.name} exceeded "
                    f"{self.reconcile_timeout}s",
                )
            except Exception as e:
                result = self.handle_error(cluster, conditions.RECONCILE_ERROR_REASON, str(e))

        return result

    async def _reconcile(self, cluster):
        if cluster.is_deleting:
            # children are garbage collected through their owner references
            return Result()

        if normalize_cluster_defaults(cluster):
            logger.info(f"Defaults applied to cluster {cluster.key}")

        not_ready = []
        for builder in cluster_builders(cluster):
            obj = await self.reconcile_child(builder)
            if obj is not None and builder.kind == "Deployment" and not deployment_ready(obj):
                not_ready.append(obj.metadata.name)

        if not_ready:
            conditions.set_condition(
                cluster.status.conditions,
                conditions.READY,
                conditions.CONDITION_FALSE,
                conditions.SERVICES_NOT_READY_REASON,
                f"Waiting for deployments: {', '.join(sorted(not_ready))}",
            )
            return self.handle_success(cluster, requeue_after=self.services_ready_poll_interval)

        conditions.set_condition(
            cluster.status.conditions,
            conditions.READY,
            conditions.CONDITION_TRUE,
            conditions.SERVICES_READY_REASON,
            "All services are ready",
        )
        logger.info(f"Successfully reconciled cluster {cluster.key}")
        return self.handle_success(cluster)

    async def reconcile_child(self, builder):
        """Create, update or delete the object of one builder.

        Returns:
            The object as stored, or None when the builder is disabled.
        """
        desired = builder.build()
        name = desired.metadata.name
        namespace = desired.metadata.namespace

        try:
            existing = await self.store.get_child(builder.kind, namespace, name)

            if not builder.enabled():
                if existing is not None:
                    await self.store.delete_child(builder.kind, namespace, name)
                    logger.info(f"Removed disabled {builder.kind} {namespace}/{name}")
                return None

            if existing is None:
                builder.update(desired)
                try:
                    created = await self.store.create_child(desired)
                except AlreadyExistsError:
                    # created by a concurrent pass; converge it on the next one
                    return desired
                logger.info(f"Created {builder.kind} {namespace}/{name}")
                return created

            before = _snapshot(existing)
            builder.update(existing)
            if _snapshot(existing) == before:
                return existing
            updated = await self.store.replace_child(existing)
            logger.info(f"Updated {builder.kind} {namespace}/{name}")
            return updated
        except Exception as e:
            raise TemporalOperatorError(
                f"failed reconciling {builder.kind} {namespace}/{name}: {e}"
            ) from e

    def handle_success(self, cluster, requeue_after=0.0):
        conditions.mark_reconcile_success(cluster.status.conditions)
        cluster.status.observedGeneration = cluster.metadata.generation
        return Result(requeue_after=requeue_after)

    def handle_error(self, cluster, reason, message, requeue_after=0.0):
        logger.error(f"Failed to reconcile cluster {cluster.key}: {message}")
        conditions.mark_reconcile_error(cluster.status.conditions, reason, message)
        return Result(requeue=True, requeue_after=requeue_after)
