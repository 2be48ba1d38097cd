"""Run-related Pydantic schemas."""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Step(BaseModel):
    """One declarative UI action, tagged by ``type``.

    Only the fields used by the step's type are read; anything else the
    caller sends is kept and ignored.
    """

    model_config = ConfigDict(extra="allow")

    type: str = ""
    url: Any = None  # url
    target: Any = None  # click
    label: Any = None  # fill
    value: Any = None  # fill
    text: Any = None  # assert


class RunTestRequest(BaseModel):
    """Schema for submitting a test run."""

    model_config = ConfigDict(populate_by_name=True)

    test_name: str = Field(default="Test", alias="testName")
    browser: Optional[str] = None  # unrecognized names fall back to the default
    steps: List[Step] = Field(default_factory=list)


class RunStartResponse(BaseModel):
    """Response after submitting a run."""

    model_config = ConfigDict(populate_by_name=True)

    run_id: str = Field(alias="runId")
