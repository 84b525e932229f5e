"""Administrative maintenance steps (DNS flush, memory purge, service resets)."""

from mole.optimizer.steps import (
    MaintenanceResult,
    MaintenanceStep,
    MaintenanceStepRunner,
    StepOutcome,
    StepStatus,
    default_steps,
)

__all__ = [
    "MaintenanceResult",
    "MaintenanceStep",
    "MaintenanceStepRunner",
    "StepOutcome",
    "StepStatus",
    "default_steps",
]
