"""Playwright browser selection and session lifecycle."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from playwright.async_api import Browser, Page, async_playwright

logger = logging.getLogger(__name__)

BROWSER_TYPES = ("chromium", "firefox", "webkit")


def resolve_browser_name(name: Optional[str], default: str = "chromium") -> str:
    """Map a requested browser to a supported one.

    Absent or unrecognized names fall back to ``default`` without error.
    """
    if name in BROWSER_TYPES:
        return name
    if name:
        logger.info(f"Unknown browser {name!r}, using {default}")
    return default


@asynccontextmanager
async def launch_browser(browser_name: str, headless: bool = True) -> AsyncIterator[Browser]:
    """Start Playwright and launch one browser; both are shut down on exit."""
    async with async_playwright() as playwright:
        browser_type = getattr(playwright, browser_name)
        browser = await browser_type.launch(headless=headless)
        logger.info(f"Launched {browser_name} (headless={headless})")
        try:
            yield browser
        finally:
            await browser.close()


@asynccontextmanager
async def open_page(browser: Browser, viewport: Dict[str, int]) -> AsyncIterator[Page]:
    """Open an isolated browsing context with a single page."""
    context = await browser.new_context(viewport=viewport)
    try:
        yield await context.new_page()
    finally:
        await context.close()
