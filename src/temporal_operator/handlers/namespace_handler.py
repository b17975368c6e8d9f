"""Watch handler feeding TemporalNamespace events to the reconcile queue."""

import logging

import kopf

from temporal_operator.crd.base import ObjectKey

logger = logging.getLogger(__name__)


def cluster_key_from_body(body, namespace):
    """Key of the TemporalCluster a raw TemporalNamespace body references."""
    cluster_ref = (body.get("spec") or {}).get("clusterRef") or {}
    if not cluster_ref.get("name"):
        return None
    return ObjectKey(cluster_ref.get("namespace") or namespace, cluster_ref["name"])


@kopf.on.event("temporal.io", "v1beta1", "temporalnamespaces")
async def namespace_event(event, body, name, namespace, memo, **kwargs):
    """Index the namespace's cluster reference and enqueue it."""
    runtime = getattr(memo, "runtime", None)
    if runtime is None:
        logger.error("Operator runtime not initialised, dropping namespace event")
        return

    key = ObjectKey(namespace, name)
    if event.get("type") == "DELETED":
        cluster_key = None
    else:
        cluster_key = cluster_key_from_body(body, namespace)

    logger.debug(f"Namespace event {event.get('type')} for {key}")
    runtime.namespace_changed(key, cluster_key)
