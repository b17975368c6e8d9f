"""In-memory stand-ins for the Kubernetes object store and the Temporal client."""

import asyncio
import copy
from contextlib import asynccontextmanager

import kubernetes

from temporal_operator.crd.base import ObjectKey
from temporal_operator.errors import (
    AlreadyExistsError,
    ConflictError,
    NotFoundError,
    RemoteError,
)
from temporal_operator.models.cluster import TemporalCluster
from temporal_operator.models.namespace import TemporalNamespace


def cluster_body(name="prod", namespace="temporal", spec=None, ready=False, **metadata):
    body = {
        "apiVersion": "temporal.io/v1beta1",
        "kind": "TemporalCluster",
        "metadata": {"name": name, "namespace": namespace, "uid": f"uid-{name}", **metadata},
        "spec": spec or {},
    }
    if ready:
        body["status"] = {
            "conditions": [
                {"type": "Ready", "status": "True", "reason": "ServicesReady", "message": ""}
            ]
        }
    return body


def namespace_body(name="orders", namespace="temporal", cluster="prod", **spec):
    return {
        "apiVersion": "temporal.io/v1beta1",
        "kind": "TemporalNamespace",
        "metadata": {"name": name, "namespace": namespace, "uid": f"uid-{name}", "generation": 1},
        "spec": {"clusterRef": {"name": cluster}, **spec},
    }


class FakeObjectStore:
    """Object store keeping raw bodies and child objects in dictionaries.

    Writes are conditioned on resourceVersion like the API server's.
    """

    def __init__(self):
        self.objects = {}
        self.children = {}
        self.version = 0
        self.update_calls = 0
        self.status_calls = 0
        self.child_calls = []
        self.deployments_ready = False

    def _next_version(self):
        self.version += 1
        return str(self.version)

    def add(self, body):
        body = copy.deepcopy(body)
        body["metadata"]["resourceVersion"] = self._next_version()
        key = (body["kind"], ObjectKey(body["metadata"]["namespace"], body["metadata"]["name"]))
        self.objects[key] = body
        return body

    def body(self, kind, key):
        return self.objects.get((kind, key))

    def bump(self, kind, key):
        """Simulate a concurrent writer."""
        self.objects[(kind, key)]["metadata"]["resourceVersion"] = self._next_version()

    async def get_cluster(self, key):
        body = self.body("TemporalCluster", key)
        return TemporalCluster.from_body(copy.deepcopy(body)) if body else None

    async def get_namespace(self, key):
        body = self.body("TemporalNamespace", key)
        return TemporalNamespace.from_body(copy.deepcopy(body)) if body else None

    async def list_namespaces(self, namespace=None):
        return [
            TemporalNamespace.from_body(copy.deepcopy(body))
            for (kind, key), body in self.objects.items()
            if kind == "TemporalNamespace" and (namespace is None or key.namespace == namespace)
        ]

    def _stored(self, obj):
        stored = self.objects.get((obj.kind, obj.key))
        if stored is None:
            raise NotFoundError(f"{obj.kind} {obj.key} not found")
        if stored["metadata"]["resourceVersion"] != obj.metadata.resourceVersion:
            raise ConflictError(f"{obj.kind} {obj.key} was modified concurrently")
        return stored

    async def update_object(self, obj):
        self.update_calls += 1
        stored = self._stored(obj)
        body = obj.to_body()
        body["status"] = stored.get("status", {})
        body["metadata"]["resourceVersion"] = self._next_version()
        if body["metadata"].get("deletionTimestamp") and not body["metadata"].get("finalizers"):
            del self.objects[(obj.kind, obj.key)]
        else:
            self.objects[(obj.kind, obj.key)] = body
        return type(obj).from_body(copy.deepcopy(body))

    async def patch_status(self, obj):
        self.status_calls += 1
        stored = self._stored(obj)
        stored["status"] = obj.to_body().get("status", {})
        stored["metadata"]["resourceVersion"] = self._next_version()
        obj.metadata.resourceVersion = stored["metadata"]["resourceVersion"]
        return obj

    def child(self, kind, namespace, name):
        return self.children.get((kind, namespace, name))

    def _with_status(self, obj):
        if obj.kind == "Deployment" and self.deployments_ready:
            obj.status = kubernetes.client.V1DeploymentStatus(ready_replicas=obj.spec.replicas)
        return obj

    async def get_child(self, kind, namespace, name):
        obj = self.children.get((kind, namespace, name))
        return self._with_status(copy.deepcopy(obj)) if obj is not None else None

    async def create_child(self, obj):
        key = (obj.kind, obj.metadata.namespace, obj.metadata.name)
        self.child_calls.append(("create",) + key)
        if key in self.children:
            raise AlreadyExistsError(f"{obj.kind} {obj.metadata.name} already exists")
        self.children[key] = copy.deepcopy(obj)
        return self._with_status(copy.deepcopy(obj))

    async def replace_child(self, obj):
        key = (obj.kind, obj.metadata.namespace, obj.metadata.name)
        self.child_calls.append(("replace",) + key)
        obj = copy.deepcopy(obj)
        obj.status = None
        self.children[key] = obj
        return self._with_status(copy.deepcopy(obj))

    async def delete_child(self, kind, namespace, name):
        key = (kind, namespace, name)
        self.child_calls.append(("delete",) + key)
        return self.children.pop(key, None) is not None


class FakeTemporalClient:
    """Temporal namespace client recording every call it receives."""

    def __init__(self, namespaces=(), search_attributes=None):
        self.namespaces = set(namespaces)
        self.search_attributes = dict(search_attributes or {})
        self.calls = []
        self.errors = {}

    def _record(self, operation, *args):
        self.calls.append((operation,) + args)
        error = self.errors.get(operation)
        if error is not None:
            raise error

    def operations(self):
        return [call[0] for call in self.calls]

    async def register_namespace(self, namespace):
        self._record("register_namespace", namespace.metadata.name)
        if namespace.metadata.name in self.namespaces:
            raise AlreadyExistsError(f"namespace {namespace.metadata.name} already exists")
        self.namespaces.add(namespace.metadata.name)

    async def update_namespace(self, namespace):
        self._record("update_namespace", namespace.metadata.name)
        if namespace.metadata.name not in self.namespaces:
            raise NotFoundError(f"namespace {namespace.metadata.name} not found")

    async def delete_namespace(self, name):
        self._record("delete_namespace", name)
        if name not in self.namespaces:
            raise NotFoundError(f"namespace {name} not found")
        self.namespaces.discard(name)

    async def list_search_attributes(self, namespace_name):
        self._record("list_search_attributes", namespace_name)
        return dict(self.search_attributes)

    async def add_search_attributes(self, namespace_name, attributes):
        self._record("add_search_attributes", namespace_name, dict(attributes))
        self.search_attributes.update(attributes)

    async def remove_search_attributes(self, namespace_name, names):
        self._record("remove_search_attributes", namespace_name, list(names))
        for name in names:
            self.search_attributes.pop(name, None)


class FakeClientFactory:
    """Hands out one FakeTemporalClient, counting opened and closed scopes."""

    def __init__(self, client=None, connect_error=None):
        self.client = client or FakeTemporalClient()
        self.connect_error = connect_error
        self.opened = 0
        self.closed = 0

    @asynccontextmanager
    async def __call__(self, cluster):
        if self.connect_error is not None:
            raise self.connect_error
        self.opened += 1
        try:
            yield self.client
        finally:
            self.closed += 1


class SlowTemporalClient(FakeTemporalClient):
    """Client whose register call never returns in time."""

    def __init__(self, delay):
        super().__init__()
        self.delay = delay

    async def register_namespace(self, namespace):
        self._record("register_namespace", namespace.metadata.name)
        await asyncio.sleep(self.delay)
        raise RemoteError("unreachable")
