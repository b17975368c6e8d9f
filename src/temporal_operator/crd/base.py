"""Base classes for custom resources managed by the operator."""

from datetime import datetime
from typing import Any, Dict, List, NamedTuple, Optional

from pydantic import BaseModel, Field


class ObjectKey(NamedTuple):
    """Namespace-qualified name of an object."""

    namespace: str
    name: str

    def __str__(self):
        return f"{self.namespace}/{self.name}"


class CRDMetadata(BaseModel):
    """Standard Kubernetes metadata for CRDs."""

    name: str
    namespace: Optional[str] = None
    uid: Optional[str] = None
    resourceVersion: Optional[str] = None
    generation: Optional[int] = None
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    finalizers: List[str] = Field(default_factory=list)
    deletionTimestamp: Optional[str] = None

    class Config:
        extra = "allow"


class CRDCondition(BaseModel):
    """Custom Kubernetes condition."""

    type: str
    status: str  # True, False, Unknown
    reason: str
    message: str = ""
    lastTransitionTime: Optional[datetime] = None


class CRDStatus(BaseModel):
    """Base class for all CRD status objects."""

    conditions: List[CRDCondition] = Field(default_factory=list)
    observedGeneration: Optional[int] = None

    class Config:
        extra = "allow"


class CRDSpec(BaseModel):
    """Base class for all CRD spec objects.

    Unknown fields are kept so that writing a spec back never drops
    configuration this operator does not model.
    """

    class Config:
        extra = "allow"
        validate_assignment = True


class CustomResource(BaseModel):
    """A full custom object: metadata, spec and status."""

    apiVersion: str
    kind: str
    metadata: CRDMetadata
    spec: CRDSpec
    status: CRDStatus = Field(default_factory=CRDStatus)

    class Config:
        extra = "allow"

    @classmethod
    def from_body(cls, body):
        """Parse a raw object as returned by the Kubernetes API."""
        body = dict(body)
        if body.get("status") is None:
            body["status"] = {}
        if body.get("spec") is None:
            body["spec"] = {}
        return cls.model_validate(body)

    def to_body(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    @property
    def key(self):
        return ObjectKey(self.metadata.namespace or "", self.metadata.name)

    @property
    def is_deleting(self):
        return bool(self.metadata.deletionTimestamp)

    def has_finalizer(self, finalizer):
        return finalizer in self.metadata.finalizers

    def add_finalizer(self, finalizer):
        """Add a finalizer; returns True if it was not present."""
        if finalizer in self.metadata.finalizers:
            return False
        self.metadata.finalizers.append(finalizer)
        return True

    def remove_finalizer(self, finalizer):
        """Remove a finalizer; returns True if it was present."""
        if finalizer not in self.metadata.finalizers:
            return False
        self.metadata.finalizers = [
            f for f in self.metadata.finalizers if f != finalizer
        ]
        return True
