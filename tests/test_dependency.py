from fakes import namespace_body

from temporal_operator.controllers.dependency import ClusterRefIndex, NamespacePropagator
from temporal_operator.crd.base import ObjectKey
from temporal_operator.models.namespace import TemporalNamespace

PROD = ObjectKey("temporal", "prod")
STAGING = ObjectKey("temporal", "staging")


class RecordingQueue:
    def __init__(self):
        self.added = []

    def add(self, key):
        self.added.append(key)


def test_rebuild_indexes_all_namespaces():
    index = ClusterRefIndex()
    index.rebuild(
        [
            TemporalNamespace.from_body(namespace_body("orders")),
            TemporalNamespace.from_body(namespace_body("billing")),
            TemporalNamespace.from_body(namespace_body("search", cluster="staging")),
        ]
    )
    assert len(index) == 3
    assert index.dependents(PROD) == {
        ObjectKey("temporal", "orders"),
        ObjectKey("temporal", "billing"),
    }
    assert index.dependents(STAGING) == {ObjectKey("temporal", "search")}


def test_cluster_ref_defaults_to_own_namespace():
    body = namespace_body("orders", namespace="apps")
    ns = TemporalNamespace.from_body(body)
    assert ns.cluster_key == ObjectKey("apps", "prod")

    body["spec"]["clusterRef"]["namespace"] = "temporal"
    assert TemporalNamespace.from_body(body).cluster_key == PROD


def test_update_moves_namespace_between_clusters():
    index = ClusterRefIndex()
    orders = ObjectKey("temporal", "orders")
    index.update(orders, PROD)
    index.update(orders, STAGING)
    assert index.dependents(PROD) == set()
    assert index.dependents(STAGING) == {orders}

    index.remove(orders)
    assert index.dependents(STAGING) == set()
    assert len(index) == 0


def test_propagator_enqueues_dependents_only():
    index = ClusterRefIndex()
    queue = RecordingQueue()
    index.update(ObjectKey("temporal", "orders"), PROD)
    index.update(ObjectKey("temporal", "search"), STAGING)

    propagator = NamespacePropagator(index, queue)
    assert propagator.cluster_changed(PROD) == {ObjectKey("temporal", "orders")}
    assert queue.added == [ObjectKey("temporal", "orders")]

    assert propagator.cluster_changed(ObjectKey("temporal", "unknown")) == set()
    assert queue.added == [ObjectKey("temporal", "orders")]
