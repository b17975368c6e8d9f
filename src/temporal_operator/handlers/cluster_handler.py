"""Watch handler feeding TemporalCluster events to the reconcile queues."""

import logging

import kopf

from temporal_operator.crd.base import ObjectKey

logger = logging.getLogger(__name__)


@kopf.on.event("temporal.io", "v1beta1", "temporalclusters")
async def cluster_event(event, name, namespace, memo, **kwargs):
    """Enqueue the cluster and every TemporalNamespace that references it."""
    runtime = getattr(memo, "runtime", None)
    if runtime is None:
        logger.error("Operator runtime not initialised, dropping cluster event")
        return

    key = ObjectKey(namespace, name)
    logger.debug(f"Cluster event {event.get('type')} for {key}")
    runtime.cluster_changed(key)
