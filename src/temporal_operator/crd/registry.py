"""Registry of the custom resource kinds handled by the operator."""

import logging
from typing import NamedTuple

logger = logging.getLogger(__name__)


class ResourceInfo(NamedTuple):
    """API coordinates of a registered custom resource model."""

    model: type
    group: str
    version: str
    kind: str
    plural: str

    @property
    def api_version(self):
        return f"{self.group}/{self.version}"


class CRDRegistry:
    """Process-wide registry of custom resource models, keyed by group/version/kind."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._models = {}
        return cls._instance

    @classmethod
    def register(cls, group, version, kind, plural=None):
        """Decorator attaching API coordinates to a CustomResource model.

        Args:
            group: API group (e.g., 'temporal.io')
            version: API version (e.g., 'v1beta1')
            kind: Kind name (e.g., 'TemporalCluster')
            plural: Plural name (defaults to kind.lower() + 's')
        """

        def decorator(model_class):
            info = ResourceInfo(model_class, group, version, kind, plural or f"{kind.lower()}s")
            model_class._crd_info = info
            cls()._models[(group, version, kind)] = info
            logger.debug(f"Registered {info.api_version}/{kind} as {info.plural}")
            return model_class

        return decorator

    def get_model_by_key(self, group, version, kind):
        return self._models.get((group, version, kind))

    def get_model_by_kind(self, kind):
        for info in self._models.values():
            if info.kind == kind:
                return info
        return None


def resource_info(model_class):
    """ResourceInfo of a registered model class or instance."""
    try:
        return model_class._crd_info
    except AttributeError:
        raise ValueError(f"{model_class!r} is not a registered custom resource")


def api_version_of(model_class):
    return resource_info(model_class).api_version
