"""Application uninstaller.

Removes an application together with its residual files. Every target
is either the bundle itself (which must exist inside the applications
directory) or a residual location derived from its validated bundle
identifier. Targets are moved to the trash one at a time; a failure on
one item is logged and the rest still proceed. No elevation is needed
since every target is owned by the user.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from mole.apps.bundle import residual_candidates, resolve_bundle_id
from mole.apps.inventory import ApplicationInventory
from mole.apps.models import APP_BUNDLE_SUFFIX, AppRecord, RemovalFailure, RemovalResult
from mole.apps.trash import move_to_trash
from mole.core.state import OperationState
from mole.utils.formatting import abbreviate_home

logger = logging.getLogger(__name__)

DEFAULT_DELAY = 0.1


class ApplicationRemovalEngine:
    """Moves an application and its leftovers to the trash.

    Published values:
        state.log: "Analyzing <name>...", "Removing <path>...", then
            "Uninstalled <name>".
        state.busy: True while removing.
    """

    def __init__(
        self,
        inventory: ApplicationInventory,
        *,
        library: Path | None = None,
        delay: float = DEFAULT_DELAY,
    ) -> None:
        """Initialize the engine.

        Args:
            inventory: Inventory owning the records.
            library: Library directory residuals are derived from (default ~/Library).
            delay: Pause between trashed items.
        """
        self._inventory = inventory
        self._library = library
        self._delay = delay
        self.state = OperationState()

    def reset(self) -> None:
        """Return every published value to its initial state."""
        self.state.reset()

    def plan(self, app: AppRecord) -> tuple[str | None, list[Path]]:
        """Work out what :meth:`remove` would trash.

        Returns:
            The resolved bundle identifier and the ordered target list,
            residual files first and the bundle last. The list is empty if
            the bundle is missing or outside the applications directory.
        """
        if not self._is_known_bundle(app.path):
            return None, []

        bundle_id = resolve_bundle_id(app.path)
        targets: list[Path] = []
        if bundle_id is not None:
            targets.extend(residual_candidates(bundle_id, self._library))
        targets.append(app.path)
        return bundle_id, targets

    async def remove(self, app: AppRecord) -> RemovalResult:
        """Uninstall *app*.

        Returns:
            RemovalResult listing trashed and failed targets.

        Raises:
            RuntimeError: If a removal is already running on this engine.
        """
        self.state.begin("Uninstall")
        self.state.log.set(f"Analyzing {app.name}...")
        result = RemovalResult(app=app)
        summary = f"Could not uninstall {app.name}"

        try:
            bundle_id, targets = await asyncio.to_thread(self.plan, app)
            result.bundle_id = bundle_id
            if not targets:
                logger.warning("Refusing to remove %s: bundle not found in applications", app.path)
                result.failed.append(RemovalFailure(path=str(app.path), error="Bundle not found"))
                return result

            for target in targets:
                await self._trash(target, result)

            if result.success:
                self._inventory.discard(app.id)
                summary = f"Uninstalled {app.name}"
        finally:
            self.state.end(summary)

        return result

    async def _trash(self, target: Path, result: RemovalResult) -> None:
        self.state.log.set(f"Removing {abbreviate_home(str(target))}...")
        try:
            await asyncio.to_thread(move_to_trash, target)
        except OSError as e:
            logger.error("Failed to trash %s: %s", target, e)
            result.failed.append(RemovalFailure(path=str(target), error=str(e)))
            return
        result.removed.append(str(target))
        await asyncio.sleep(self._delay)

    def _is_known_bundle(self, path: Path) -> bool:
        """Check that *path* is an existing bundle directly in the applications dir."""
        applications = self._inventory.applications_dir
        try:
            return (
                path.name.endswith(APP_BUNDLE_SUFFIX)
                and path.is_dir()
                and path.parent.resolve() == applications.resolve()
            )
        except OSError:
            return False
