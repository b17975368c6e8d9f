"""Outcome of a reconcile pass."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Result:
    """Requeue decision returned by a reconciler.

    ``requeue_after`` > 0 schedules a fixed-delay pass; ``requeue`` without a
    delay uses the queue's per-key backoff. Neither means the object is only
    reconciled again on the next watch event.
    """

    requeue: bool = False
    requeue_after: float = 0.0
