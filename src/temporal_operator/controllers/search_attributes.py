"""Custom search attribute reconciliation.

The declared attribute mapping of a TemporalNamespace is compared against the
full set of custom attributes currently on the Temporal server:

1. Declared type strings are resolved (case-insensitive). One unknown type
   fails the whole pass.
2. Attributes on the server but not declared are removed.
3. Declared attributes missing on the server are added.
4. A name present on both sides with different types is a conflict and
   fails the pass before any remove or add call is made.

The plan is always recomputed from a complete snapshot, so a pass after a
restart or a missed event converges the same way.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, List

from temporal_operator.errors import (
    RemoteError,
    SearchAttributeConflictError,
    UnsupportedSearchAttributeTypeError,
)

logger = logging.getLogger(__name__)


class SearchAttributeType(enum.IntEnum):
    """Indexed value types supported by Temporal visibility."""

    TEXT = 1
    KEYWORD = 2
    INT = 3
    DOUBLE = 4
    BOOL = 5
    DATETIME = 6
    KEYWORD_LIST = 7

    @property
    def shorthand(self):
        return _SHORTHANDS[self]

    def __str__(self):
        return self.shorthand


_SHORTHANDS = {
    SearchAttributeType.TEXT: "Text",
    SearchAttributeType.KEYWORD: "Keyword",
    SearchAttributeType.INT: "Int",
    SearchAttributeType.DOUBLE: "Double",
    SearchAttributeType.BOOL: "Bool",
    SearchAttributeType.DATETIME: "Datetime",
    SearchAttributeType.KEYWORD_LIST: "KeywordList",
}
_BY_SHORTHAND = {name.lower(): value for value, name in _SHORTHANDS.items()}


def parse_search_attribute_type(name, type_name):
    """Resolve a declared type string to a SearchAttributeType."""
    value = _BY_SHORTHAND.get(str(type_name).lower())
    if value is None:
        raise UnsupportedSearchAttributeTypeError(name, type_name)
    return value


@dataclass
class SearchAttributePlan:
    """Changes needed to make the server match the declared attributes."""

    to_remove: List[str] = field(default_factory=list)
    to_add: Dict[str, SearchAttributeType] = field(default_factory=dict)

    @property
    def empty(self):
        return not self.to_remove and not self.to_add


def resolve_declared_attributes(declared):
    """Translate a name -> type-string mapping; all or nothing."""
    return {
        name: parse_search_attribute_type(name, type_name)
        for name, type_name in declared.items()
    }


def plan_search_attributes(declared, existing):
    """Compute the remove/add plan.

    Args:
        declared: name -> type string from the namespace spec
        existing: name -> SearchAttributeType currently on the server

    Raises:
        UnsupportedSearchAttributeTypeError: a declared type is unknown
        SearchAttributeConflictError: a shared name has different types
    """
    wanted = resolve_declared_attributes(declared)

    for name, wanted_type in wanted.items():
        existing_type = existing.get(name)
        if existing_type is not None and existing_type != wanted_type:
            raise SearchAttributeConflictError(
                name, wanted_type.shorthand, SearchAttributeType(existing_type).shorthand
            )

    return SearchAttributePlan(
        to_remove=sorted(name for name in existing if name not in wanted),
        to_add={name: t for name, t in sorted(wanted.items()) if name not in existing},
    )


async def reconcile_search_attributes(client, namespace_name, declared):
    """Make the server's custom search attributes match ``declared`` exactly.

    Args:
        client: connected Temporal namespace client
        namespace_name: Temporal namespace to operate on
        declared: name -> type string from the namespace spec

    Returns:
        SearchAttributePlan: the changes that were applied
    """
    existing = await client.list_search_attributes(namespace_name)
    plan = plan_search_attributes(declared, existing)

    if plan.to_remove:
        try:
            await client.remove_search_attributes(namespace_name, plan.to_remove)
        except RemoteError as e:
            raise RemoteError(f"failed to remove search attributes: {e}") from e
        logger.info(f"Removed custom search attributes from {namespace_name}: {plan.to_remove}")

    if plan.to_add:
        try:
            await client.add_search_attributes(namespace_name, plan.to_add)
        except RemoteError as e:
            raise RemoteError(f"failed to add search attributes: {e}") from e
        added = {name: str(t) for name, t in plan.to_add.items()}
        logger.info(f"Added custom search attributes to {namespace_name}: {added}")

    return plan
