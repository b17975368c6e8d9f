"""TemporalNamespace CRD models."""

import re
from datetime import timedelta
from typing import Dict, List, Optional

from pydantic import Field

from temporal_operator.crd.base import CRDSpec, CRDStatus, CustomResource, ObjectKey
from temporal_operator.crd.registry import CRDRegistry

DELETION_FINALIZER = "deletion.finalizers.temporal.io"

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1,
    "m": 60,
    "h": 3600,
}


def parse_duration(value):
    """Parse a Go-style duration string such as "168h" or "1h30m"."""
    if not value:
        raise ValueError("empty duration")
    if value in ("0", "+0", "-0"):
        return timedelta(0)
    pos = 0
    seconds = 0.0
    for match in _DURATION_PART.finditer(value):
        if match.start() != pos:
            break
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos != len(value):
        raise ValueError(f"invalid duration: {value!r}")
    return timedelta(seconds=seconds)


class ClusterReference(CRDSpec):
    """Reference to the TemporalCluster hosting a namespace."""

    name: str = Field(..., description="Name of the TemporalCluster")
    namespace: Optional[str] = Field(
        default=None,
        description="Namespace of the TemporalCluster (defaults to the referencing object's)",
    )

    def namespaced_name(self, owner_namespace):
        return ObjectKey(self.namespace or owner_namespace, self.name)


class TemporalNamespaceSpec(CRDSpec):
    """TemporalNamespace CRD specification."""

    clusterRef: ClusterReference = Field(..., description="Hosting cluster")
    description: str = Field(default="", description="Namespace description")
    ownerEmail: str = Field(default="", description="Namespace owner email")
    retentionPeriod: str = Field(
        default="72h", description="Workflow execution retention (Go duration)"
    )
    data: Dict[str, str] = Field(
        default_factory=dict, description="Arbitrary namespace data"
    )
    securityToken: str = Field(default="", description="Security token")
    isGlobalNamespace: bool = Field(default=False, description="Global namespace")
    clusters: List[str] = Field(
        default_factory=list, description="Replication clusters"
    )
    activeClusterName: str = Field(default="", description="Active cluster name")
    allowDeletion: bool = Field(
        default=False,
        description="Delete the Temporal namespace when this object is deleted",
    )
    customSearchAttributes: Dict[str, str] = Field(
        default_factory=dict,
        description="Custom search attribute name to type (Text, Keyword, Int, ...)",
    )

    def retention(self):
        return parse_duration(self.retentionPeriod)


@CRDRegistry.register("temporal.io", "v1beta1", "TemporalNamespace", "temporalnamespaces")
class TemporalNamespace(CustomResource):
    """A namespace registered inside a Temporal cluster."""

    apiVersion: str = "temporal.io/v1beta1"
    kind: str = "TemporalNamespace"
    spec: TemporalNamespaceSpec
    status: CRDStatus = Field(default_factory=CRDStatus)

    @property
    def cluster_key(self):
        return self.spec.clusterRef.namespaced_name(self.metadata.namespace or "")
