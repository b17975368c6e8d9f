"""Builders for the Deployments of a TemporalCluster."""

from abc import abstractmethod

import kubernetes

from temporal_operator.models.cluster import INTERNAL_FRONTEND

from . import metadata
from .base import ResourceBuilder
from .services import METRICS_PORT, METRICS_PORT_NAME, UI_PORT


def _container_port(name, port):
    return kubernetes.client.V1ContainerPort(name=name, container_port=port, protocol="TCP")


def deployment_ready(deployment):
    """Whether every desired replica of the deployment is ready."""
    desired = deployment.spec.replicas if deployment.spec.replicas is not None else 1
    status = deployment.status
    if status is None:
        return desired == 0
    return (status.ready_replicas or 0) >= desired


class _DeploymentBuilder(ResourceBuilder):
    """Shared shape of a single-container Deployment."""

    kind = "Deployment"
    component = None
    container_name = None

    def _version(self):
        return self.instance.spec.version

    def _labels(self):
        return metadata.get_labels(self.instance, self.component, self._version())

    def _replicas(self):
        return 1

    @abstractmethod
    def _image(self):
        """Container image reference."""
        pass

    def _ports(self):
        return []

    def _env(self):
        return []

    def _empty_spec(self):
        return kubernetes.client.V1DeploymentSpec(
            selector=kubernetes.client.V1LabelSelector(
                match_labels=metadata.labels_selector(self.instance, self.component)
            ),
            template=kubernetes.client.V1PodTemplateSpec(),
        )

    def build(self):
        return kubernetes.client.V1Deployment(
            api_version="apps/v1",
            kind="Deployment",
            metadata=kubernetes.client.V1ObjectMeta(
                name=self.instance.child_resource_name(self.component),
                namespace=self.instance.metadata.namespace,
                labels=self._labels(),
                annotations=metadata.get_annotations(self.instance),
            ),
            spec=self._empty_spec(),
        )

    def update(self, obj):
        labels = self._labels()
        selector = metadata.labels_selector(self.instance, self.component)

        obj.metadata.labels = metadata.merge(obj.metadata.labels, labels)
        obj.metadata.annotations = metadata.merge(
            obj.metadata.annotations, metadata.get_annotations(self.instance)
        )

        if obj.spec is None:
            obj.spec = self._empty_spec()
        obj.spec.replicas = self._replicas()
        obj.spec.selector = kubernetes.client.V1LabelSelector(match_labels=selector)

        template = obj.spec.template
        if template.metadata is None:
            template.metadata = kubernetes.client.V1ObjectMeta()
        template.metadata.labels = metadata.merge(template.metadata.labels, labels)
        if template.spec is None:
            template.spec = kubernetes.client.V1PodSpec(containers=[])

        container = next(
            (c for c in template.spec.containers or [] if c.name == self.container_name),
            None,
        )
        if container is None:
            container = kubernetes.client.V1Container(name=self.container_name)
            template.spec.containers = list(template.spec.containers or []) + [container]
        container.image = self._image()
        container.ports = self._ports() or None
        container.env = self._env() or None

        metadata.set_controller_reference(self.instance, obj)


class ServiceDeploymentBuilder(_DeploymentBuilder):
    """Runs the pods of one Temporal service."""

    container_name = "service"

    def __init__(self, instance, service_name):
        super().__init__(instance)
        self.service_name = service_name
        self.component = metadata.component_name(service_name)

    def _service(self):
        return self.instance.spec.services.get(self.service_name)

    def enabled(self):
        service = self._service()
        if service is None:
            return False
        if self.service_name == INTERNAL_FRONTEND:
            return service.enabled
        return True

    def _replicas(self):
        return self._service().replicas

    def _image(self):
        return f"{self.instance.spec.image}:{self.instance.spec.version}"

    def _ports(self):
        service = self._service()
        ports = [
            _container_port("rpc", service.port),
            _container_port("membership", service.membershipPort),
        ]
        if service.httpPort is not None:
            ports.append(_container_port("http", service.httpPort))
        ports.append(_container_port(METRICS_PORT_NAME, METRICS_PORT))
        return ports

    def _env(self):
        return [kubernetes.client.V1EnvVar(name="SERVICES", value=self.component)]


class UIDeploymentBuilder(_DeploymentBuilder):
    component = "ui"
    container_name = "ui"

    def _version(self):
        return self.instance.spec.ui.version

    def enabled(self):
        return self.instance.spec.ui is not None and self.instance.spec.ui.enabled

    def _replicas(self):
        replicas = self.instance.spec.ui.replicas
        return 1 if replicas is None else replicas

    def _image(self):
        ui = self.instance.spec.ui
        return f"{ui.image}:{ui.version}"

    def _ports(self):
        return [_container_port("http", UI_PORT)]

    def _env(self):
        return [
            kubernetes.client.V1EnvVar(
                name="TEMPORAL_ADDRESS", value=self.instance.frontend_address()
            )
        ]


class AdminToolsDeploymentBuilder(_DeploymentBuilder):
    component = "admintools"
    container_name = "admintools"

    def enabled(self):
        tools = self.instance.spec.adminTools
        return tools is not None and tools.enabled

    def _image(self):
        return f"{self.instance.spec.adminTools.image}:{self.instance.spec.version}"

    def _env(self):
        return [
            kubernetes.client.V1EnvVar(
                name="TEMPORAL_CLI_ADDRESS", value=self.instance.frontend_address()
            )
        ]
