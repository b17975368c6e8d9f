"""Labels, annotations and owner references of child objects."""

import kubernetes

from temporal_operator.errors import OwnershipError

MANAGED_BY = "temporal-operator"
PART_OF = "temporal"

# Annotations of the parent that must never be copied to children.
_IGNORED_ANNOTATION_PREFIXES = (
    "kubectl.kubernetes.io/",
    "kopf.zalando.org/",
)


def merge(*mappings):
    """Union of mappings; later ones override earlier keys."""
    merged = {}
    for mapping in mappings:
        if mapping:
            merged.update(mapping)
    return merged


def component_name(service_name):
    """Kubernetes-style component name of a logical service."""
    if service_name == "internalFrontend":
        return "internal-frontend"
    return service_name


def labels_selector(instance, component):
    return {
        "app.kubernetes.io/name": instance.metadata.name,
        "app.kubernetes.io/component": component,
        "app.kubernetes.io/part-of": PART_OF,
    }


def get_labels(instance, component, version):
    return merge(
        instance.metadata.labels,
        labels_selector(instance, component),
        {
            "app.kubernetes.io/version": version,
            "app.kubernetes.io/managed-by": MANAGED_BY,
        },
    )


def headless_labels():
    return {"app.kubernetes.io/headless": "true"}


def get_annotations(instance):
    return {
        key: value
        for key, value in instance.metadata.annotations.items()
        if not key.startswith(_IGNORED_ANNOTATION_PREFIXES)
    }


def owner_reference(instance):
    return kubernetes.client.V1OwnerReference(
        api_version=instance.apiVersion,
        kind=instance.kind,
        name=instance.metadata.name,
        uid=instance.metadata.uid,
        controller=True,
        block_owner_deletion=True,
    )


def set_controller_reference(instance, obj):
    """Make ``instance`` the controller owner of ``obj``.

    Raises:
        OwnershipError: another object already controls ``obj``
    """
    reference = owner_reference(instance)
    references = list(obj.metadata.owner_references or [])

    for existing in references:
        if existing.controller and existing.uid != reference.uid:
            raise OwnershipError(
                f"{obj.kind} {obj.metadata.name} is already owned by "
                f"{existing.kind} {existing.name}"
            )

    references = [
        existing
        for existing in references
        if existing.uid != reference.uid
        and not (existing.kind == reference.kind and existing.name == reference.name)
    ]
    references.append(reference)
    obj.metadata.owner_references = references
