"""TemporalCluster CRD models."""

from typing import List, Optional

from pydantic import Field

from temporal_operator.controllers.conditions import READY, is_status_true
from temporal_operator.crd.base import CRDSpec, CRDStatus, CustomResource
from temporal_operator.crd.registry import CRDRegistry

CORE_SERVICES = ("frontend", "history", "matching", "worker")
INTERNAL_FRONTEND = "internalFrontend"


class ServiceSpec(CRDSpec):
    """Deployment settings of one Temporal service."""

    replicas: Optional[int] = Field(default=None, description="Number of pods")
    port: Optional[int] = Field(default=None, description="gRPC port")
    membershipPort: Optional[int] = Field(
        default=None, description="Ringpop membership port"
    )
    httpPort: Optional[int] = Field(
        default=None, description="Optional HTTP API port (frontend only)"
    )


class InternalFrontendServiceSpec(ServiceSpec):
    """Internal frontend service, only deployed when enabled."""

    enabled: bool = Field(default=False, description="Deploy the internal frontend")


class TemporalServicesSpec(CRDSpec):
    """Per-service settings of the cluster."""

    frontend: Optional[ServiceSpec] = None
    internalFrontend: Optional[InternalFrontendServiceSpec] = None
    history: Optional[ServiceSpec] = None
    matching: Optional[ServiceSpec] = None
    worker: Optional[ServiceSpec] = None

    def get(self, name) -> Optional[ServiceSpec]:
        return getattr(self, name, None)


class SQLSpec(CRDSpec):
    connectProtocol: str = Field(default="", description="Database connect protocol")


class DatastoreSpec(CRDSpec):
    """A persistence datastore declaration."""

    name: str = Field(..., description="Datastore name")
    sql: Optional[SQLSpec] = None


class PersistenceSpec(CRDSpec):
    defaultStore: str = Field(default="", description="Datastore used for history")
    visibilityStore: str = Field(
        default="", description="Datastore used for visibility (defaults to defaultStore)"
    )


class CertificatesDurationSpec(CRDSpec):
    rootCACertificate: Optional[str] = None
    intermediateCAsCertificates: Optional[str] = None
    clientCertificates: Optional[str] = None
    frontendCertificate: Optional[str] = None
    internodeCertificate: Optional[str] = None


class MTLSSpec(CRDSpec):
    """Mutual TLS policy."""

    provider: str = Field(default="cert-manager", description="Certificate provider")
    enabled: bool = Field(default=False, description="Whether mTLS is enabled")
    refreshInterval: Optional[str] = Field(
        default=None, description="Certificate refresh interval"
    )
    certificatesDuration: Optional[CertificatesDurationSpec] = None


class TemporalUISpec(CRDSpec):
    enabled: bool = Field(default=False, description="Deploy the Temporal web UI")
    version: str = Field(default="", description="UI version")
    image: str = Field(default="", description="UI image")
    replicas: Optional[int] = Field(default=None, description="UI replicas")


class TemporalAdminToolsSpec(CRDSpec):
    enabled: bool = Field(default=False, description="Deploy the admin tools pod")
    image: str = Field(default="", description="Admin tools image")


class TemporalClusterSpec(CRDSpec):
    """TemporalCluster CRD specification."""

    version: str = Field(default="", description="Temporal server version")
    image: str = Field(default="", description="Temporal server image")
    services: Optional[TemporalServicesSpec] = None
    persistence: PersistenceSpec = Field(default_factory=PersistenceSpec)
    datastores: List[DatastoreSpec] = Field(default_factory=list)
    mTLS: Optional[MTLSSpec] = None
    ui: Optional[TemporalUISpec] = None
    adminTools: Optional[TemporalAdminToolsSpec] = None


@CRDRegistry.register("temporal.io", "v1beta1", "TemporalCluster", "temporalclusters")
class TemporalCluster(CustomResource):
    """A Temporal cluster deployment."""

    apiVersion: str = "temporal.io/v1beta1"
    kind: str = "TemporalCluster"
    spec: TemporalClusterSpec = Field(default_factory=TemporalClusterSpec)
    status: CRDStatus = Field(default_factory=CRDStatus)

    def child_resource_name(self, component):
        return f"{self.metadata.name}-{component}"

    def frontend_address(self):
        """In-cluster DNS address of the frontend service."""
        return (
            f"{self.child_resource_name('frontend')}.{self.metadata.namespace}"
            f".svc.cluster.local:{self.spec.services.frontend.port}"
        )

    def mtls_with_cert_manager_enabled(self):
        mtls = self.spec.mTLS
        return mtls is not None and mtls.enabled and mtls.provider == "cert-manager"

    def is_ready(self):
        return is_status_true(self.status.conditions, READY)
