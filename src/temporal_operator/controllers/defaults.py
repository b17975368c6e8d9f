"""Default values for TemporalCluster specs."""

import logging

from temporal_operator.models.cluster import (
    CORE_SERVICES,
    CertificatesDurationSpec,
    ServiceSpec,
    TemporalAdminToolsSpec,
    TemporalServicesSpec,
    TemporalUISpec,
)

logger = logging.getLogger(__name__)

DEFAULT_TEMPORAL_VERSION = "1.17.4"
DEFAULT_TEMPORAL_IMAGE = "temporalio/server"

DEFAULT_TEMPORAL_UI_VERSION = "2.5.0"
DEFAULT_TEMPORAL_UI_IMAGE = "temporalio/ui"

DEFAULT_TEMPORAL_ADMINTOOLS_IMAGE = "temporalio/admin-tools"

# service name -> (port, membership port)
DEFAULT_SERVICE_PORTS = {
    "frontend": (7233, 6933),
    "history": (7234, 6934),
    "matching": (7235, 6935),
    "internalFrontend": (7236, 6936),
    "worker": (7239, 6939),
}

DEFAULT_MTLS_REFRESH_INTERVAL = "1h"
DEFAULT_CERTIFICATES_DURATION = {
    "rootCACertificate": "87600h",
    "intermediateCAsCertificates": "43830h",
    "clientCertificates": "8766h",
    "frontendCertificate": "8766h",
    "internodeCertificate": "8766h",
}


def _service_defaults(service, name):
    port, membership_port = DEFAULT_SERVICE_PORTS[name]
    if service.replicas is None:
        service.replicas = 1
    if service.port is None:
        service.port = port
    if service.membershipPort is None:
        service.membershipPort = membership_port


def normalize_cluster_defaults(cluster):
    """Fill unset optional fields of the cluster spec with defaults.

    Only ever sets fields; values set by the user are left untouched.

    Returns:
        bool: True if the spec changed
    """
    spec = cluster.spec
    before = spec.model_dump()

    if not spec.version:
        spec.version = DEFAULT_TEMPORAL_VERSION
    if not spec.image:
        spec.image = DEFAULT_TEMPORAL_IMAGE

    if spec.services is None:
        spec.services = TemporalServicesSpec()
    for name in CORE_SERVICES:
        if getattr(spec.services, name) is None:
            setattr(spec.services, name, ServiceSpec())
        _service_defaults(getattr(spec.services, name), name)
    if spec.services.internalFrontend is not None:
        _service_defaults(spec.services.internalFrontend, "internalFrontend")

    for datastore in spec.datastores:
        if datastore.sql is not None and not datastore.sql.connectProtocol:
            datastore.sql.connectProtocol = "tcp"

    if not spec.persistence.visibilityStore:
        spec.persistence.visibilityStore = spec.persistence.defaultStore

    if spec.ui is None:
        spec.ui = TemporalUISpec()
    if not spec.ui.version:
        spec.ui.version = DEFAULT_TEMPORAL_UI_VERSION
    if not spec.ui.image:
        spec.ui.image = DEFAULT_TEMPORAL_UI_IMAGE

    if spec.adminTools is None:
        spec.adminTools = TemporalAdminToolsSpec()
    if not spec.adminTools.image:
        spec.adminTools.image = DEFAULT_TEMPORAL_ADMINTOOLS_IMAGE

    if cluster.mtls_with_cert_manager_enabled():
        mtls = spec.mTLS
        if mtls.refreshInterval is None:
            mtls.refreshInterval = DEFAULT_MTLS_REFRESH_INTERVAL
        if mtls.certificatesDuration is None:
            mtls.certificatesDuration = CertificatesDurationSpec()
        for field, duration in DEFAULT_CERTIFICATES_DURATION.items():
            if getattr(mtls.certificatesDuration, field) is None:
                setattr(mtls.certificatesDuration, field, duration)

    changed = spec.model_dump() != before
    if changed:
        logger.debug(f"Applied defaults to cluster {cluster.key}")
    return changed
