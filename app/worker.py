"""Background executor for submitted test runs."""

import asyncio
import base64
import logging
import time
import traceback
from typing import Callable, List, Optional, Set

from playwright.async_api import Page

from app.config import Settings, settings as default_settings
from app.models.run import Run, RunStatus, StepScreenshot
from app.schemas.run import Step
from app.services.browser import launch_browser, open_page, resolve_browser_name
from app.services.registry import RunRegistry
from app.services.run_log import RunLog
from app.services.steps import perform_step, step_label

logger = logging.getLogger(__name__)


class StepFailed(Exception):
    """A step action failed; the reason is already in the run log."""


def first_line(error: BaseException) -> str:
    """First line of an exception message."""
    return str(error).split("\n")[0]


class StepExecutor:
    """Runs submitted step sequences, one asyncio task per run."""

    def __init__(
        self,
        registry: RunRegistry,
        run_log: RunLog,
        settings: Optional[Settings] = None,
        launcher: Optional[Callable] = None,
    ):
        """Initialize executor.

        Args:
            registry: Registry receiving run progress
            run_log: Durable log for headers, stack traces and results
            settings: Timeouts, viewport and browser defaults
            launcher: ``launcher(browser_name, headless)`` async context
                manager yielding a browser; defaults to Playwright
        """
        self.registry = registry
        self.run_log = run_log
        self.settings = settings or default_settings
        self.launcher = launcher or launch_browser
        self._tasks: Set[asyncio.Task] = set()

    def submit(self, steps: List[Step], browser: Optional[str] = None, test_name: str = "Test") -> str:
        """Register a run and start it in the background.

        Returns:
            The new run id, before any step has executed
        """
        browser_name = resolve_browser_name(browser, default=self.settings.DEFAULT_BROWSER)
        run = self.registry.create(len(steps), test_name=test_name)

        task = asyncio.create_task(self.execute(run.id, steps, browser_name, test_name))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        logger.info(f"Submitted run {run.id} ({test_name!r}, {browser_name})")
        return run.id

    async def shutdown(self, timeout: Optional[float] = None):
        """Wait for in-flight runs to finish."""
        if not self._tasks:
            return
        timeout = self.settings.SHUTDOWN_TIMEOUT if timeout is None else timeout
        logger.info(f"Waiting for {len(self._tasks)} run(s) to finish")
        _, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        if pending:
            logger.warning(f"{len(pending)} run(s) still running at shutdown")

    async def execute(self, run_id: str, steps: List[Step], browser_name: str, test_name: str = "Test"):
        """Execute all steps of one run and record the outcome.

        Never raises for step or browser errors; those end the run as failed.
        The outcome is recorded before the browser is torn down, so errors
        while closing never change it.
        """
        start = time.monotonic()

        self.run_log.section()
        self.run_log.write(f"TEST RUN STARTED  [{run_id}]")
        self.run_log.write(f"Name:    {test_name}")
        self.run_log.write(f"Browser: {browser_name}")
        self.run_log.write(f"Steps:   {len(steps)}")
        self.run_log.section()

        try:
            if not steps:
                self._pass(run_id, 0, start, browser_name)
                return

            self._log(run_id, f"→ Launching {browser_name}...")
            viewport = {
                "width": self.settings.VIEWPORT_WIDTH,
                "height": self.settings.VIEWPORT_HEIGHT,
            }
            async with self.launcher(browser_name, self.settings.HEADLESS) as browser:
                async with open_page(browser, viewport) as page:
                    try:
                        await self._run_steps(run_id, steps, page)
                    except StepFailed:
                        self._finish(run_id, RunStatus.FAILED, start, browser_name)
                    else:
                        self._pass(run_id, len(steps), start, browser_name)

        except Exception as e:
            if self.registry.mutate(run_id, lambda run: run.is_terminal):
                logger.warning(f"Run {run_id} teardown error: {e}", exc_info=True)
                self.run_log.write(f"Teardown error: {first_line(e)}")
            else:
                logger.error(f"Run {run_id} error: {e}", exc_info=True)
                self._log(run_id, f"Error: {first_line(e)}")
                self._finish(run_id, RunStatus.FAILED, start, browser_name)

        finally:
            self.registry.schedule_eviction(run_id)

    async def _run_steps(self, run_id: str, steps: List[Step], page: Page):
        """Run steps in order, stopping at the first failure."""
        total = len(steps)

        for index, step in enumerate(steps, start=1):
            label = step_label(step)

            try:
                await perform_step(
                    page,
                    step,
                    prefix=f"[{index}/{total}]",
                    log=lambda line: self._log(run_id, line),
                    navigation_timeout=self.settings.NAVIGATION_TIMEOUT_MS,
                    action_timeout=self.settings.ACTION_TIMEOUT_MS,
                )
            except Exception as e:
                message = first_line(e)
                self._log(run_id, f"✖ Step {index} failed: {message}")
                self.run_log.write("STACK TRACE:")
                trace = "".join(traceback.format_exception(type(e), e, e.__traceback__))
                for line in trace.splitlines():
                    self.run_log.write(f"  {line}")

                await self._capture(run_id, page, label, "fail")
                raise StepFailed(message) from e

            await self._capture(run_id, page, label, "pass")
            # The last step is counted together with the passing result
            if index < total:
                self.registry.mutate(run_id, lambda run: run.advance(index))

    async def _capture(self, run_id: str, page: Page, label: str, status: str):
        """Store a screenshot as live image and step entry; failures are skipped."""
        try:
            image = await page.screenshot(type="jpeg", quality=self.settings.SCREENSHOT_QUALITY)
        except Exception as e:
            # Screenshots can fail mid-navigation
            logger.debug(f"Run {run_id} screenshot skipped: {e}")
            return

        encoded = base64.b64encode(image).decode("ascii")

        def store(run: Run):
            run.live_screenshot = encoded
            run.step_screenshots.append(StepScreenshot(label=label, status=status, screenshot=encoded))

        self.registry.mutate(run_id, store)

    def _log(self, run_id: str, line: str):
        """Append a line to both the run's progress log and the durable log."""
        self.registry.mutate(run_id, lambda run: run.log.append(line))
        self.run_log.write(line)

    def _pass(self, run_id: str, total: int, start: float, browser_name: str):
        self._log(run_id, f"✔ All {total} steps passed.")
        self._finish(run_id, RunStatus.PASSED, start, browser_name, completed=total)

    def _finish(
        self,
        run_id: str,
        status: RunStatus,
        start: float,
        browser_name: str,
        completed: Optional[int] = None,
    ):
        """Record the terminal result; ``completed`` advances the counter in the same update."""
        duration = int((time.monotonic() - start) * 1000)
        result = "PASSED" if status == RunStatus.PASSED else "FAILED"

        self.run_log.section()
        self.run_log.write(f"RESULT: {result} | Duration: {duration}ms")
        self.run_log.section()
        self.run_log.write()

        def apply(run: Run):
            if completed is not None:
                run.advance(completed)
            run.finish(status, duration, browser_name)

        self.registry.mutate(run_id, apply)
        logger.info(f"Run {run_id} {status.value} in {duration}ms")
