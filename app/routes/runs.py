"""Run routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from app.models.run import Run
from app.schemas.run import RunStartResponse, RunTestRequest
from app.services.registry import RunRegistry
from app.worker import StepExecutor

logger = logging.getLogger(__name__)

router = APIRouter(tags=["runs"])


def get_registry(request: Request) -> RunRegistry:
    """Run registry owned by the application."""
    return request.app.state.registry


def get_executor(request: Request) -> StepExecutor:
    """Step executor owned by the application."""
    return request.app.state.executor


@router.post("/run-test", response_model=RunStartResponse)
async def run_test(
    data: RunTestRequest,
    executor: StepExecutor = Depends(get_executor),
):
    """
    Start a test run in the background.

    Args:
        data: Test name, browser and steps
        executor: Step executor

    Returns:
        RunStartResponse with the id to poll
    """
    run_id = executor.submit(data.steps, browser=data.browser, test_name=data.test_name)
    return RunStartResponse(run_id=run_id)


@router.get("/run-status/{run_id}", response_model=Run)
def get_run_status(
    run_id: str,
    registry: RunRegistry = Depends(get_registry),
):
    """Get the current run snapshot."""
    run = registry.get(run_id)
    if run is None:
        raise HTTPException(status_code=404, detail="Run not found")
    return run
