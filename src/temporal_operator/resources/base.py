"""Base builder interface for child objects of a TemporalCluster."""

from abc import ABC, abstractmethod


class ResourceBuilder(ABC):
    """Computes the desired shape of one child object.

    Builders are pure: ``update`` only depends on the cluster the builder was
    created for and on the object passed in, so applying it repeatedly
    converges to the same object. Builders never delete anything; when
    ``enabled`` is False the reconciler removes the object.
    """

    kind = None

    def __init__(self, instance):
        self.instance = instance

    @abstractmethod
    def build(self):
        """Return a bare object: metadata plus any fields the client model requires."""
        pass

    @abstractmethod
    def enabled(self):
        """Whether the object should exist at all."""
        pass

    @abstractmethod
    def update(self, obj):
        """Mutate ``obj`` in place to match the desired shape."""
        pass

    @property
    def name(self):
        return self.build().metadata.name

    def __repr__(self):
        return f"{type(self).__name__}({self.name})"
