import kubernetes
import pytest

from fakes import cluster_body

from temporal_operator.controllers.defaults import normalize_cluster_defaults
from temporal_operator.errors import OwnershipError
from temporal_operator.models.cluster import TemporalCluster
from temporal_operator.resources import (
    AdminToolsDeploymentBuilder,
    FrontendServiceBuilder,
    HeadlessServiceBuilder,
    InternalFrontendServiceBuilder,
    ServiceDeploymentBuilder,
    UIDeploymentBuilder,
    cluster_builders,
    deployment_ready,
)

_serializer = kubernetes.client.ApiClient()


def make_cluster(spec=None, **metadata):
    cluster = TemporalCluster.from_body(cluster_body(spec=spec, **metadata))
    normalize_cluster_defaults(cluster)
    return cluster


def render(builder):
    obj = builder.build()
    builder.update(obj)
    return obj


def test_frontend_service_has_only_primary_port_without_http_port():
    service = render(FrontendServiceBuilder(make_cluster()))
    assert [p.name for p in service.spec.ports] == ["grpc-rpc"]
    assert service.spec.ports[0].port == 7233
    assert service.spec.ports[0].target_port == "rpc"


def test_frontend_service_appends_http_port():
    cluster = make_cluster({"services": {"frontend": {"httpPort": 7243}}})
    service = render(FrontendServiceBuilder(cluster))
    assert [p.name for p in service.spec.ports] == ["grpc-rpc", "http"]
    assert service.spec.ports[1].port == 7243


def test_update_is_idempotent():
    cluster = make_cluster({"services": {"frontend": {"httpPort": 7243}}})
    for builder in cluster_builders(cluster):
        if not builder.enabled():
            continue
        obj = render(builder)
        before = _serializer.sanitize_for_serialization(obj)
        builder.update(obj)
        assert _serializer.sanitize_for_serialization(obj) == before, builder


def test_update_keeps_foreign_labels_and_annotations():
    cluster = make_cluster(
        labels={"team": "payments"},
        annotations={"owner": "alice", "kubectl.kubernetes.io/last-applied-configuration": "{}"},
    )
    builder = FrontendServiceBuilder(cluster)
    service = render(builder)
    service.metadata.labels["sidecar.istio.io/inject"] = "true"
    service.metadata.annotations["prometheus.io/scrape"] = "true"

    builder.update(service)

    assert service.metadata.labels["sidecar.istio.io/inject"] == "true"
    assert service.metadata.labels["team"] == "payments"
    assert service.metadata.labels["app.kubernetes.io/component"] == "frontend"
    assert service.metadata.labels["app.kubernetes.io/managed-by"] == "temporal-operator"
    assert service.metadata.annotations["prometheus.io/scrape"] == "true"
    assert service.metadata.annotations["owner"] == "alice"
    assert "kubectl.kubernetes.io/last-applied-configuration" not in service.metadata.annotations


def test_builders_set_controller_owner_reference():
    cluster = make_cluster()
    service = render(FrontendServiceBuilder(cluster))
    (reference,) = service.metadata.owner_references
    assert reference.uid == "uid-prod"
    assert reference.kind == "TemporalCluster"
    assert reference.controller


def test_foreign_controller_is_an_ownership_error():
    cluster = make_cluster()
    builder = FrontendServiceBuilder(cluster)
    service = builder.build()
    service.metadata.owner_references = [
        kubernetes.client.V1OwnerReference(
            api_version="apps/v1", kind="ReplicaSet", name="other", uid="uid-other", controller=True
        )
    ]
    with pytest.raises(OwnershipError):
        builder.update(service)


def test_internal_frontend_follows_enabled_flag():
    assert not InternalFrontendServiceBuilder(make_cluster()).enabled()
    assert not HeadlessServiceBuilder(make_cluster(), "internalFrontend").enabled()

    cluster = make_cluster({"services": {"internalFrontend": {"enabled": True}}})
    assert InternalFrontendServiceBuilder(cluster).enabled()
    headless = HeadlessServiceBuilder(cluster, "internalFrontend")
    assert headless.enabled()
    service = render(headless)
    assert service.metadata.name == "prod-internal-frontend-headless"
    assert [p.name for p in service.spec.ports] == ["http-metrics", "tcp-rpc", "tcp-membership"]
    assert [p.port for p in service.spec.ports] == [9090, 7236, 6936]


def test_headless_service_publishes_not_ready_addresses():
    service = render(HeadlessServiceBuilder(make_cluster(), "history"))
    assert service.spec.cluster_ip == "None"
    assert service.spec.publish_not_ready_addresses
    assert service.metadata.labels["app.kubernetes.io/headless"] == "true"
    assert service.spec.selector["app.kubernetes.io/component"] == "history"


def test_service_deployment_shape():
    cluster = make_cluster({"services": {"history": {"replicas": 3}}})
    deployment = render(ServiceDeploymentBuilder(cluster, "history"))
    assert deployment.metadata.name == "prod-history"
    assert deployment.spec.replicas == 3
    (container,) = deployment.spec.template.spec.containers
    assert container.image == "temporalio/server:1.17.4"
    assert [p.name for p in container.ports] == ["rpc", "membership", "metrics"]
    assert container.env[0].value == "history"


def test_deployment_update_keeps_injected_containers():
    builder = ServiceDeploymentBuilder(make_cluster(), "frontend")
    deployment = render(builder)
    deployment.spec.template.spec.containers.append(
        kubernetes.client.V1Container(name="istio-proxy", image="istio/proxyv2")
    )
    builder.update(deployment)
    names = [c.name for c in deployment.spec.template.spec.containers]
    assert names == ["service", "istio-proxy"]


def test_optional_components_disabled_by_default():
    cluster = make_cluster()
    assert not UIDeploymentBuilder(cluster).enabled()
    assert not AdminToolsDeploymentBuilder(cluster).enabled()

    enabled = make_cluster({"ui": {"enabled": True}, "adminTools": {"enabled": True}})
    ui = render(UIDeploymentBuilder(enabled))
    assert ui.spec.template.spec.containers[0].image == "temporalio/ui:2.5.0"
    assert ui.spec.template.spec.containers[0].env[0].value == "prod-frontend.temporal.svc.cluster.local:7233"
    tools = render(AdminToolsDeploymentBuilder(enabled))
    assert tools.spec.template.spec.containers[0].image == "temporalio/admin-tools:1.17.4"


def test_cluster_builders_order():
    names = [builder.name for builder in cluster_builders(make_cluster())]
    assert names[:3] == ["prod-frontend", "prod-internal-frontend", "prod-frontend-headless"]
    assert names[-3:] == ["prod-ui", "prod-ui", "prod-admintools"]


def test_every_builder_builds_a_valid_object():
    cluster = make_cluster(
        {
            "ui": {"enabled": True},
            "adminTools": {"enabled": True},
            "services": {"internalFrontend": {"enabled": True}},
        }
    )
    for builder in cluster_builders(cluster):
        obj = builder.build()
        assert obj.kind == builder.kind
        assert obj.metadata.name == builder.name
        if builder.kind == "Deployment":
            assert obj.spec.selector.match_labels
            assert obj.spec.template is not None
        builder.update(obj)
        assert _serializer.sanitize_for_serialization(obj)["metadata"]["namespace"] == "temporal"


def test_deployment_ready():
    deployment = render(ServiceDeploymentBuilder(make_cluster(), "worker"))
    assert not deployment_ready(deployment)
    deployment.status = kubernetes.client.V1DeploymentStatus(ready_replicas=1)
    assert deployment_ready(deployment)


def test_deployment_builder_requires_an_image():
    from temporal_operator.resources.deployments import _DeploymentBuilder

    class NoImage(_DeploymentBuilder):
        component = "ui"

        def enabled(self):
            return True

    with pytest.raises(TypeError):
        NoImage(make_cluster())
