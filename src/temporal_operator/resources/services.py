"""Builders for the Services of a TemporalCluster."""

import kubernetes

from temporal_operator.models.cluster import INTERNAL_FRONTEND

from . import metadata
from .base import ResourceBuilder

METRICS_PORT = 9090
METRICS_PORT_NAME = "metrics"
UI_PORT = 8080


def _service_meta(name, instance, labels):
    return kubernetes.client.V1ObjectMeta(
        name=name,
        namespace=instance.metadata.namespace,
        labels=labels,
        annotations=metadata.get_annotations(instance),
    )


def _frontend_ports(service_spec):
    """Primary gRPC port first, optional HTTP port appended."""
    ports = [
        kubernetes.client.V1ServicePort(
            name="grpc-rpc",
            protocol="TCP",
            port=service_spec.port,
            target_port="rpc",
        )
    ]
    if service_spec.httpPort is not None:
        ports.append(
            kubernetes.client.V1ServicePort(
                name="http",
                protocol="TCP",
                port=service_spec.httpPort,
                target_port="http",
            )
        )
    return ports


class _ServiceBuilder(ResourceBuilder):
    kind = "Service"

    def _update_service(self, service, labels, selector, ports, headless=False):
        service.metadata.labels = metadata.merge(service.metadata.labels, labels)
        service.metadata.annotations = metadata.merge(
            service.metadata.annotations, metadata.get_annotations(self.instance)
        )
        if service.spec is None:
            service.spec = kubernetes.client.V1ServiceSpec()
        service.spec.type = "ClusterIP"
        service.spec.selector = selector
        service.spec.ports = ports
        if headless:
            service.spec.cluster_ip = "None"
            service.spec.publish_not_ready_addresses = True
        metadata.set_controller_reference(self.instance, service)


class FrontendServiceBuilder(_ServiceBuilder):
    """Routable ClusterIP service in front of the frontend pods."""

    component = "frontend"

    def _labels(self):
        return metadata.get_labels(self.instance, self.component, self.instance.spec.version)

    def _service_spec(self):
        return self.instance.spec.services.frontend

    def build(self):
        return kubernetes.client.V1Service(
            api_version="v1",
            kind="Service",
            metadata=_service_meta(
                self.instance.child_resource_name(self.component), self.instance, self._labels()
            ),
        )

    def enabled(self):
        return True

    def update(self, obj):
        self._update_service(
            obj,
            self._labels(),
            metadata.labels_selector(self.instance, self.component),
            _frontend_ports(self._service_spec()),
        )


class InternalFrontendServiceBuilder(FrontendServiceBuilder):
    component = "internal-frontend"

    def _service_spec(self):
        return self.instance.spec.services.internalFrontend

    def enabled(self):
        spec = self.instance.spec.services.internalFrontend
        return spec is not None and spec.enabled


class HeadlessServiceBuilder(_ServiceBuilder):
    """Per-service headless discovery service used for membership."""

    def __init__(self, instance, service_name):
        super().__init__(instance)
        self.service_name = service_name
        self.component = metadata.component_name(service_name)

    def _labels(self):
        return metadata.merge(
            metadata.get_labels(self.instance, self.component, self.instance.spec.version),
            metadata.headless_labels(),
        )

    def build(self):
        return kubernetes.client.V1Service(
            api_version="v1",
            kind="Service",
            metadata=_service_meta(
                self.instance.child_resource_name(f"{self.component}-headless"),
                self.instance,
                self._labels(),
            ),
        )

    def enabled(self):
        service = self.instance.spec.services.get(self.service_name)
        if service is None:
            return False
        if self.service_name == INTERNAL_FRONTEND:
            return service.enabled
        return True

    def update(self, obj):
        service = self.instance.spec.services.get(self.service_name)
        ports = [
            kubernetes.client.V1ServicePort(
                name="http-metrics",
                protocol="TCP",
                port=METRICS_PORT,
                target_port=METRICS_PORT_NAME,
            ),
            # "tcp-" rather than "grpc-": pod-to-pod traffic carries no Host
            # header, so meshes cannot apply gRPC mTLS to it.
            kubernetes.client.V1ServicePort(
                name="tcp-rpc",
                protocol="TCP",
                port=service.port,
                target_port="rpc",
            ),
            kubernetes.client.V1ServicePort(
                name="tcp-membership",
                protocol="TCP",
                port=service.membershipPort,
                target_port="membership",
            ),
        ]
        self._update_service(
            obj,
            self._labels(),
            metadata.labels_selector(self.instance, self.component),
            ports,
            headless=True,
        )


class UIServiceBuilder(_ServiceBuilder):
    component = "ui"

    def _labels(self):
        return metadata.get_labels(self.instance, self.component, self.instance.spec.ui.version)

    def build(self):
        return kubernetes.client.V1Service(
            api_version="v1",
            kind="Service",
            metadata=_service_meta(
                self.instance.child_resource_name(self.component), self.instance, self._labels()
            ),
        )

    def enabled(self):
        return self.instance.spec.ui is not None and self.instance.spec.ui.enabled

    def update(self, obj):
        ports = [
            kubernetes.client.V1ServicePort(
                name="http", protocol="TCP", port=UI_PORT, target_port="http"
            )
        ]
        self._update_service(
            obj,
            self._labels(),
            metadata.labels_selector(self.instance, self.component),
            ports,
        )
