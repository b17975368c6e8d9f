import asyncio
from types import SimpleNamespace

from fakes import namespace_body

from temporal_operator.crd.base import ObjectKey
from temporal_operator.handlers.cluster_handler import cluster_event
from temporal_operator.handlers.namespace_handler import cluster_key_from_body, namespace_event


class RecordingRuntime:
    def __init__(self):
        self.clusters = []
        self.namespaces = []

    def cluster_changed(self, key):
        self.clusters.append(key)

    def namespace_changed(self, key, cluster_key):
        self.namespaces.append((key, cluster_key))


def test_cluster_key_from_body():
    body = namespace_body()
    assert cluster_key_from_body(body, "temporal") == ObjectKey("temporal", "prod")

    body["spec"]["clusterRef"]["namespace"] = "infra"
    assert cluster_key_from_body(body, "temporal") == ObjectKey("infra", "prod")

    assert cluster_key_from_body({"spec": {}}, "temporal") is None
    assert cluster_key_from_body({}, "temporal") is None


def test_namespace_events_update_index_and_enqueue():
    runtime = RecordingRuntime()
    memo = SimpleNamespace(runtime=runtime)
    body = namespace_body()

    asyncio.run(
        namespace_event(event={"type": "ADDED"}, body=body, name="orders", namespace="temporal", memo=memo)
    )
    asyncio.run(
        namespace_event(event={"type": "DELETED"}, body=body, name="orders", namespace="temporal", memo=memo)
    )

    key = ObjectKey("temporal", "orders")
    assert runtime.namespaces == [(key, ObjectKey("temporal", "prod")), (key, None)]


def test_cluster_event_enqueues_cluster():
    runtime = RecordingRuntime()
    asyncio.run(
        cluster_event(
            event={"type": "MODIFIED"}, name="prod", namespace="temporal", memo=SimpleNamespace(runtime=runtime)
        )
    )
    assert runtime.clusters == [ObjectKey("temporal", "prod")]


def test_events_before_startup_are_dropped():
    asyncio.run(cluster_event(event={"type": "ADDED"}, name="prod", namespace="temporal", memo=SimpleNamespace()))
