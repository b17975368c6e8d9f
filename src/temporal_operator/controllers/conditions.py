"""Status condition helpers.

Conditions are keyed by type. Setting a condition whose status, reason and
message are unchanged is a no-op; lastTransitionTime only moves when the
status itself changes.
"""

from datetime import datetime, timezone
from typing import List, Optional

from temporal_operator.crd.base import CRDCondition

READY = "Ready"
RECONCILE_SUCCESS = "ReconcileSuccess"
RECONCILE_ERROR = "ReconcileError"

CONDITION_TRUE = "True"
CONDITION_FALSE = "False"
CONDITION_UNKNOWN = "Unknown"

RECONCILE_SUCCESS_REASON = "ReconcileSuccess"
RECONCILE_ERROR_REASON = "ReconcileError"
NAMESPACE_CREATED_REASON = "NamespaceCreated"
SERVICES_READY_REASON = "ServicesReady"
SERVICES_NOT_READY_REASON = "ServicesNotReady"


def _now():
    return datetime.now(timezone.utc).replace(microsecond=0)


def get_condition(conditions: List[CRDCondition], condition_type: str) -> Optional[CRDCondition]:
    for condition in conditions:
        if condition.type == condition_type:
            return condition
    return None


def is_status_true(conditions: List[CRDCondition], condition_type: str) -> bool:
    condition = get_condition(conditions, condition_type)
    return condition is not None and condition.status == CONDITION_TRUE


def set_condition(
    conditions: List[CRDCondition],
    condition_type: str,
    status: str,
    reason: str,
    message: str = "",
    now: Optional[datetime] = None,
) -> bool:
    """Set or replace the condition of the given type in place.

    Returns:
        bool: True if the condition list changed
    """
    if status not in (CONDITION_TRUE, CONDITION_FALSE, CONDITION_UNKNOWN):
        raise ValueError(f"invalid condition status: {status}")

    existing = get_condition(conditions, condition_type)
    if existing is None:
        conditions.append(
            CRDCondition(
                type=condition_type,
                status=status,
                reason=reason,
                message=message,
                lastTransitionTime=now or _now(),
            )
        )
        return True

    if (existing.status, existing.reason, existing.message) == (status, reason, message):
        return False

    if existing.status != status:
        existing.lastTransitionTime = now or _now()
    existing.status = status
    existing.reason = reason
    existing.message = message
    return True


def remove_condition(conditions: List[CRDCondition], condition_type: str) -> bool:
    for index, condition in enumerate(conditions):
        if condition.type == condition_type:
            del conditions[index]
            return True
    return False


def mark_reconcile_success(conditions, message=""):
    set_condition(conditions, RECONCILE_SUCCESS, CONDITION_TRUE, RECONCILE_SUCCESS_REASON, message)
    set_condition(conditions, RECONCILE_ERROR, CONDITION_FALSE, RECONCILE_SUCCESS_REASON, "")


def mark_reconcile_error(conditions, reason, message):
    set_condition(conditions, RECONCILE_ERROR, CONDITION_TRUE, reason or RECONCILE_ERROR_REASON, message)
    set_condition(conditions, RECONCILE_SUCCESS, CONDITION_FALSE, reason or RECONCILE_ERROR_REASON, "")
