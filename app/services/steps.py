"""Interpretation of declarative steps as Playwright calls."""

from typing import Callable

from playwright.async_api import Page

from app.schemas.run import Step


def step_label(step: Step) -> str:
    """
    Human-readable label for a step, used in screenshots.

    Args:
        step: Step descriptor

    Returns:
        Label text, empty for unsupported step types
    """
    if step.type == "url":
        return f"Go to {step.url}"
    if step.type == "click":
        return f'Click "{step.target}"'
    if step.type == "fill":
        return f'Fill "{step.label}"'
    if step.type == "assert":
        return f'Assert "{step.text}" visible'
    return ""


async def perform_step(
    page: Page,
    step: Step,
    prefix: str,
    log: Callable[[str], None],
    navigation_timeout: int = 15000,
    action_timeout: int = 10000,
):
    """
    Run one step against the page, logging before and after the action.

    Args:
        page: Playwright page
        step: Step descriptor
        prefix: Progress marker such as ``[2/5]``
        log: Callback receiving run log lines
        navigation_timeout: Timeout for ``url`` steps in milliseconds
        action_timeout: Timeout for all other steps in milliseconds

    Raises:
        Exception: Whatever Playwright raises, including its TimeoutError
    """
    if step.type == "url":
        log(f"{prefix} Going to {step.url}")
        await page.goto(step.url, timeout=navigation_timeout)
        log(f"✔ Navigated to {step.url}")

    elif step.type == "click":
        log(f'{prefix} Clicking "{step.target}"')
        await page.get_by_role("button", name=step.target).click(timeout=action_timeout)
        log(f'✔ Clicked "{step.target}"')

    elif step.type == "fill":
        log(f'{prefix} Filling "{step.label}"')
        value = "" if step.value is None else str(step.value)
        await page.get_by_label(step.label).fill(value, timeout=action_timeout)
        log(f'✔ Filled "{step.label}"')

    elif step.type == "assert":
        log(f'{prefix} Asserting "{step.text}" is visible')
        await page.get_by_text(step.text).wait_for(state="visible", timeout=action_timeout)
        log(f'✔ "{step.text}" is visible')

    else:
        # Counted as a passing no-op
        log(f'{prefix} Skipping unsupported step type "{step.type}"')
