"""Custom resource base classes and registry."""

from .base import CRDCondition, CRDMetadata, CRDSpec, CRDStatus, CustomResource, ObjectKey
from .registry import CRDRegistry, ResourceInfo, resource_info

__all__ = [
    "CRDCondition",
    "CRDMetadata",
    "CRDSpec",
    "CRDStatus",
    "CRDRegistry",
    "CustomResource",
    "ObjectKey",
    "ResourceInfo",
    "resource_info",
]
