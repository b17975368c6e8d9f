"""Persist the changes made to a custom resource during a reconcile pass."""

import copy
import logging

logger = logging.getLogger(__name__)


class PatchHelper:
    """Snapshot an object on entry and write back what changed on exit.

    Used as ``async with PatchHelper(store, obj):`` around the whole pass, so
    the object is persisted exactly once whichever branch the pass leaves
    through, including on exceptions. Metadata and spec changes go first
    (conditioned on the resourceVersion read at the start of the pass), then
    the status subresource. A stale write raises ConflictError.
    """

    def __init__(self, store, obj):
        self.store = store
        self.obj = obj
        self._before = copy.deepcopy(obj.to_body())

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.patch()
        return False

    async def patch(self):
        after = self.obj.to_body()
        before = self._before

        metadata_changed = (
            before["metadata"].get("finalizers", []) != after["metadata"].get("finalizers", [])
        )
        spec_changed = before.get("spec") != after.get("spec")

        if metadata_changed or spec_changed:
            updated = await self.store.update_object(self.obj)
            self.obj.metadata.resourceVersion = updated.metadata.resourceVersion
            logger.debug(f"Updated {self.obj.kind} {self.obj.key}")

        if self.obj.is_deleting and not self.obj.metadata.finalizers:
            # last finalizer removed: the object is gone
            self._before = copy.deepcopy(after)
            return

        if before.get("status") != after.get("status"):
            await self.store.patch_status(self.obj)
            logger.debug(f"Patched status of {self.obj.kind} {self.obj.key}")

        self._before = copy.deepcopy(self.obj.to_body())
