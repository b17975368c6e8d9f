"""Desired-state builders for the child objects of a TemporalCluster."""

from .base import ResourceBuilder
from .deployments import (
    AdminToolsDeploymentBuilder,
    ServiceDeploymentBuilder,
    UIDeploymentBuilder,
    deployment_ready,
)
from .services import (
    FrontendServiceBuilder,
    HeadlessServiceBuilder,
    InternalFrontendServiceBuilder,
    UIServiceBuilder,
)

SERVICE_NAMES = ("frontend", "internalFrontend", "history", "matching", "worker")


def cluster_builders(instance):
    """Ordered builders for every child object a cluster may own."""
    builders = [
        FrontendServiceBuilder(instance),
        InternalFrontendServiceBuilder(instance),
    ]
    for service_name in SERVICE_NAMES:
        builders.append(HeadlessServiceBuilder(instance, service_name))
        builders.append(ServiceDeploymentBuilder(instance, service_name))
    builders.extend(
        [
            UIServiceBuilder(instance),
            UIDeploymentBuilder(instance),
            AdminToolsDeploymentBuilder(instance),
        ]
    )
    return builders


__all__ = [
    "AdminToolsDeploymentBuilder",
    "FrontendServiceBuilder",
    "HeadlessServiceBuilder",
    "InternalFrontendServiceBuilder",
    "ResourceBuilder",
    "ServiceDeploymentBuilder",
    "UIDeploymentBuilder",
    "UIServiceBuilder",
    "cluster_builders",
    "deployment_ready",
]
