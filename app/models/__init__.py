"""In-memory run state models."""

from app.models.run import Run, RunStateError, RunStatus, StepScreenshot

__all__ = [
    "Run",
    "RunStateError",
    "RunStatus",
    "StepScreenshot",
]
