"""Run model."""

import time
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RunStateError(RuntimeError):
    """Raised when a run that already finished is asked to finish again."""


class RunStatus(str, Enum):
    """Lifecycle states of a run. Only RUNNING is non-terminal."""

    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"


class StepScreenshot(BaseModel):
    """Screenshot captured after one step."""

    label: str
    status: Literal["pass", "fail"]
    screenshot: str  # base64 JPEG


class Run(BaseModel):
    """Run represents one execution of a step sequence against one browser."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    test_name: str = "Test"
    status: RunStatus = RunStatus.RUNNING
    current_step: int = 0
    total_steps: int
    log: List[str] = Field(default_factory=list)
    live_screenshot: Optional[str] = None
    step_screenshots: List[StepScreenshot] = Field(default_factory=list)
    duration: Optional[int] = None  # milliseconds
    browser: Optional[str] = None
    finished_at: Optional[float] = Field(default=None, exclude=True)

    @property
    def is_terminal(self) -> bool:
        return self.status != RunStatus.RUNNING

    def advance(self, step: int):
        """Move the progress counter forward; it never goes back."""
        if step < self.current_step or step > self.total_steps:
            raise ValueError(
                f"Step {step} out of order for run {self.id} "
                f"(current {self.current_step}, total {self.total_steps})"
            )
        self.current_step = step

    def finish(self, status: RunStatus, duration: int, browser: str):
        """Apply the single terminal transition."""
        if status == RunStatus.RUNNING:
            raise ValueError("Terminal status required")
        if self.is_terminal:
            raise RunStateError(f"Run {self.id} already {self.status.value}")

        self.status = status
        self.duration = duration
        self.browser = browser
        self.finished_at = time.time()
