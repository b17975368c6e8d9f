"""Kubernetes-backed object store used by the reconcilers.

The ``kubernetes`` client is synchronous; every call is run in a worker thread
so a pass only yields at API call boundaries.
"""

import asyncio
import logging

import kubernetes
from kubernetes.client.exceptions import ApiException

from temporal_operator.crd.registry import resource_info
from temporal_operator.errors import AlreadyExistsError, ConflictError, NotFoundError
from temporal_operator.models.cluster import TemporalCluster
from temporal_operator.models.namespace import TemporalNamespace

logger = logging.getLogger(__name__)

# kind -> (api class, method suffix)
CHILD_KINDS = {
    "Service": (kubernetes.client.CoreV1Api, "namespaced_service"),
    "Deployment": (kubernetes.client.AppsV1Api, "namespaced_deployment"),
}


def _coordinates(model_class):
    info = resource_info(model_class)
    return info.group, info.version, info.plural


class KubernetesObjectStore:
    """Reads and writes TemporalClusters, TemporalNamespaces and their children."""

    def __init__(self, api_client=None):
        self.api_client = api_client
        self.custom_api = kubernetes.client.CustomObjectsApi(api_client)
        self._child_apis = {}

    def _child_api(self, kind):
        try:
            api_class, suffix = CHILD_KINDS[kind]
        except KeyError:
            raise ValueError(f"Unsupported child kind: {kind}")
        if kind not in self._child_apis:
            self._child_apis[kind] = api_class(self.api_client)
        return self._child_apis[kind], suffix

    async def _get_custom(self, model_class, key):
        group, version, plural = _coordinates(model_class)
        try:
            body = await asyncio.to_thread(
                self.custom_api.get_namespaced_custom_object,
                group, version, key.namespace, plural, key.name,
            )
        except ApiException as e:
            if e.status == 404:
                return None
            raise
        return model_class.from_body(body)

    async def get_cluster(self, key):
        return await self._get_custom(TemporalCluster, key)

    async def get_namespace(self, key):
        return await self._get_custom(TemporalNamespace, key)

    async def list_namespaces(self, namespace=None):
        group, version, plural = _coordinates(TemporalNamespace)
        if namespace:
            result = await asyncio.to_thread(
                self.custom_api.list_namespaced_custom_object,
                group, version, namespace, plural,
            )
        else:
            result = await asyncio.to_thread(
                self.custom_api.list_cluster_custom_object, group, version, plural
            )
        return [TemporalNamespace.from_body(item) for item in result.get("items", [])]

    async def update_object(self, obj):
        """Replace metadata and spec, conditioned on the object's resourceVersion."""
        group, version, plural = _coordinates(type(obj))
        body = obj.to_body()
        body.pop("status", None)
        try:
            updated = await asyncio.to_thread(
                self.custom_api.replace_namespaced_custom_object,
                group, version, obj.metadata.namespace, plural, obj.metadata.name, body,
            )
        except ApiException as e:
            if e.status == 409:
                raise ConflictError(f"{obj.kind} {obj.key} was modified concurrently") from e
            if e.status == 404:
                raise NotFoundError(f"{obj.kind} {obj.key} not found") from e
            raise
        return type(obj).from_body(updated)

    async def patch_status(self, obj):
        """Patch the status subresource, conditioned on the object's resourceVersion."""
        group, version, plural = _coordinates(type(obj))
        body = {
            "metadata": {"resourceVersion": obj.metadata.resourceVersion},
            "status": obj.to_body().get("status", {}),
        }
        try:
            patched = await asyncio.to_thread(
                self.custom_api.patch_namespaced_custom_object_status,
                group, version, obj.metadata.namespace, plural, obj.metadata.name, body,
            )
        except ApiException as e:
            if e.status == 409:
                raise ConflictError(f"status of {obj.kind} {obj.key} is stale") from e
            if e.status == 404:
                raise NotFoundError(f"{obj.kind} {obj.key} not found") from e
            raise
        obj.metadata.resourceVersion = patched["metadata"]["resourceVersion"]
        return obj

    async def get_child(self, kind, namespace, name):
        api, suffix = self._child_api(kind)
        try:
            return await asyncio.to_thread(getattr(api, f"read_{suffix}"), name, namespace)
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    async def create_child(self, obj):
        api, suffix = self._child_api(obj.kind)
        try:
            return await asyncio.to_thread(
                getattr(api, f"create_{suffix}"), obj.metadata.namespace, obj
            )
        except ApiException as e:
            if e.status == 409:
                raise AlreadyExistsError(f"{obj.kind} {obj.metadata.name} already exists") from e
            raise

    async def replace_child(self, obj):
        api, suffix = self._child_api(obj.kind)
        try:
            return await asyncio.to_thread(
                getattr(api, f"replace_{suffix}"), obj.metadata.name, obj.metadata.namespace, obj
            )
        except ApiException as e:
            if e.status == 409:
                raise ConflictError(f"{obj.kind} {obj.metadata.name} was modified concurrently") from e
            raise

    async def delete_child(self, kind, namespace, name):
        """Delete a child object; returns False if it was already gone."""
        api, suffix = self._child_api(kind)
        try:
            await asyncio.to_thread(getattr(api, f"delete_{suffix}"), name, namespace)
        except ApiException as e:
            if e.status == 404:
                return False
            raise
        logger.info(f"Deleted {kind} {namespace}/{name}")
        return True
