"""
Error classes for the temporal operator.

Sub-steps (builders, remote calls, attribute sync) raise these, wrapped with
the object name and operation. The object reconcilers catch them at the pass
boundary and translate them into a ReconcileError condition and a requeue.

- NotFoundError: object or remote resource is absent
- AlreadyExistsError: create found an existing resource
- ConflictError: type mismatch or a stale optimistic write
- RemoteError: any other failure talking to the Temporal server
"""


class TemporalOperatorError(Exception):
    """Base exception for the temporal operator."""
    pass


class NotFoundError(TemporalOperatorError):
    """The requested object does not exist."""
    pass


class AlreadyExistsError(TemporalOperatorError):
    """A create call found the resource already present."""
    pass


class ConflictError(TemporalOperatorError):
    """
    The requested change conflicts with current state.

    Raised for stale resourceVersion writes against the object store; the
    pass is retried from a fresh read, never overwritten.
    """
    pass


class SearchAttributeConflictError(ConflictError):
    """A search attribute exists remotely with a different type."""

    def __init__(self, name, declared, existing):
        self.name = name
        self.declared = declared
        self.existing = existing
        super().__init__(
            f"search attribute {name} already exists and has different type "
            f"{existing} (declared {declared})"
        )


class UnsupportedSearchAttributeTypeError(TemporalOperatorError):
    """A declared search attribute type is not one of the known types."""

    def __init__(self, name, type_name):
        self.name = name
        self.type_name = type_name
        super().__init__(
            f"failed to parse search attribute {name} because its type is "
            f"{type_name}: unsupported search attribute type: {type_name}"
        )


class OwnershipError(TemporalOperatorError):
    """The child object is already controlled by another owner."""
    pass


class RemoteError(TemporalOperatorError):
    """A call to the Temporal server failed."""
    pass
