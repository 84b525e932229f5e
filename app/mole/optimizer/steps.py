"""Administrative maintenance steps.

A fixed, ordered list of one-shot commands: flush the DNS cache, purge
inactive memory, re-register launch services, reset the Quick Look cache
and restart the Finder. Steps run strictly in sequence. A failing step is
logged and the run continues. The one exception is a privileged step that
needs authorization: it stops every remaining privileged step, while the
unprivileged steps still run.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

from mole.core.elevation import AuthorizationRequired, ElevatedRunner, is_user_cancel
from mole.core.executor import CommandFailedError, ExecError, PrivilegedExecutor
from mole.core.state import OperationState

logger = logging.getLogger(__name__)

DEFAULT_STEP_DELAY = 0.5

LSREGISTER = (
    "/System/Library/Frameworks/CoreServices.framework/Frameworks/"
    "LaunchServices.framework/Support/lsregister"
)

OPTIMIZATION_COMPLETE = "Optimization Complete"
WAITING_FOR_PASSWORD = "Waiting for Password..."

StepAction = Callable[[], Awaitable[None]]


class StepStatus(str, Enum):
    """Outcome of a single maintenance step.

    Attributes:
        OK: The step completed.
        FAILED: The step ran and failed; the run continued.
        NEEDS_AUTHORIZATION: The step is waiting for a credential.
        SKIPPED: A privileged step not attempted after authorization was requested.
    """

    OK = "ok"
    FAILED = "failed"
    NEEDS_AUTHORIZATION = "needs_authorization"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class MaintenanceStep:
    """A named maintenance action.

    Attributes:
        name: Progress description, e.g. "Flushing DNS Cache...".
        action: Coroutine function performing the step.
        privileged: True if the step needs administrator rights.
    """

    name: str
    action: StepAction
    privileged: bool = False


@dataclass(frozen=True, slots=True)
class StepOutcome:
    """Recorded outcome of one step.

    Attributes:
        name: Step description.
        status: How the step ended.
        message: Error detail for failed steps.
    """

    name: str
    status: StepStatus
    message: str | None = None


@dataclass(slots=True)
class MaintenanceResult:
    """Outcome of a maintenance run.

    Attributes:
        outcomes: Per-step outcomes in execution order.
    """

    outcomes: list[StepOutcome] = field(default_factory=list)

    @property
    def needs_authorization(self) -> bool:
        """Check if the run paused waiting for a credential."""
        return any(o.status == StepStatus.NEEDS_AUTHORIZATION for o in self.outcomes)

    @property
    def failed(self) -> list[StepOutcome]:
        """Steps that ran and failed."""
        return [o for o in self.outcomes if o.status == StepStatus.FAILED]


def default_steps(elevation: ElevatedRunner, executor: PrivilegedExecutor) -> list[MaintenanceStep]:
    """Build the standard macOS maintenance sequence.

    Args:
        elevation: Runner for privileged steps.
        executor: Executor for unprivileged steps.

    Returns:
        Ordered list of steps.
    """

    async def flush_dns() -> None:
        await elevation.run("/usr/bin/dscacheutil -flushcache; /usr/bin/killall -HUP mDNSResponder")

    async def purge_memory() -> None:
        await elevation.run("/usr/sbin/purge")

    async def rebuild_launch_services() -> None:
        args = ["-kill", "-r", "-domain", "local", "-domain", "system", "-domain", "user"]
        await _best_effort(executor.run(LSREGISTER, args))

    async def reset_quicklook() -> None:
        await _best_effort(executor.run("/usr/bin/qlmanage", ["-r", "cache"]))
        await _best_effort(executor.run("/usr/bin/qlmanage", ["-r"]))

    async def restart_finder() -> None:
        await executor.run("/usr/bin/killall", ["Finder"])

    return [
        MaintenanceStep("Flushing DNS Cache...", flush_dns, privileged=True),
        MaintenanceStep("Purging Inactive Memory...", purge_memory, privileged=True),
        MaintenanceStep("Rebuilding Launch Services...", rebuild_launch_services),
        MaintenanceStep("Resetting QuickLook...", reset_quicklook),
        MaintenanceStep("Restarting Finder...", restart_finder),
    ]


async def _best_effort(call: Awaitable[object]) -> None:
    """Await *call*, logging and ignoring execution failures."""
    try:
        await call
    except ExecError as e:
        logger.debug("Best-effort command failed: %s", e)


class MaintenanceStepRunner:
    """Runs maintenance steps one after another.

    Published values:
        state.log: "Running: <step>" per step, errors, then a summary.
        state.busy: True while running.
    """

    def __init__(
        self,
        steps: list[MaintenanceStep],
        *,
        delay: float = DEFAULT_STEP_DELAY,
    ) -> None:
        """Initialize the runner.

        Args:
            steps: Ordered steps to execute.
            delay: Pause after each successful step.
        """
        self._steps = steps
        self._delay = delay
        self.state = OperationState()

    @property
    def steps(self) -> list[MaintenanceStep]:
        """Steps in execution order."""
        return list(self._steps)

    @property
    def delay(self) -> float:
        """Pause taken after each successful step."""
        return self._delay

    def reset(self) -> None:
        """Return every published value to its initial state."""
        self.state.reset()

    async def run(self) -> MaintenanceResult:
        """Execute every step in order.

        Returns:
            MaintenanceResult with one outcome per step.

        Raises:
            RuntimeError: If the runner is already running.
        """
        self.state.begin("Optimization")
        result = MaintenanceResult()
        authorization_pending = False

        try:
            for step in self._steps:
                if step.privileged and authorization_pending:
                    result.outcomes.append(StepOutcome(step.name, StepStatus.SKIPPED))
                    continue

                self.state.log.set(f"Running: {step.name}")
                outcome = await self._run_step(step)
                result.outcomes.append(outcome)
                if outcome.status == StepStatus.NEEDS_AUTHORIZATION:
                    authorization_pending = True
                elif outcome.status == StepStatus.OK:
                    await asyncio.sleep(self._delay)
        finally:
            summary = WAITING_FOR_PASSWORD if authorization_pending else OPTIMIZATION_COMPLETE
            self.state.end(summary)

        logger.info("Maintenance finished: %s", summary)
        return result

    async def _run_step(self, step: MaintenanceStep) -> StepOutcome:
        try:
            await step.action()
        except AuthorizationRequired:
            return StepOutcome(step.name, StepStatus.NEEDS_AUTHORIZATION, "Authorization Required")
        except CommandFailedError as e:
            if is_user_cancel(e):
                message = "Optimization Cancelled by User"
            else:
                message = f"Error: {e}"
            self.state.log.set(message)
            logger.warning("Step '%s' failed: %s", step.name, e)
            return StepOutcome(step.name, StepStatus.FAILED, message)
        except ExecError as e:
            message = f"Error: {e}"
            self.state.log.set(message)
            logger.warning("Step '%s' failed: %s", step.name, e)
            return StepOutcome(step.name, StepStatus.FAILED, message)
        return StepOutcome(step.name, StepStatus.OK)
