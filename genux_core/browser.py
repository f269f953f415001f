#!/usr/bin/env python3
"""Playwright page lifecycle for applying features to a real browser page."""

import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from .diagnostics import get_logger
from .documents import PageDocument

logger = get_logger(__name__)


def _headless() -> bool:
    return os.getenv("GENUX_HEADLESS", "true").lower() == "true"


@asynccontextmanager
async def open_page(url: Optional[str] = None, headless: Optional[bool] = None) -> AsyncIterator[PageDocument]:
    """
    Launch Chromium, open a page and yield it wrapped as a PageDocument.

    The browser is closed on exit, including when the body raises.
    """
    from playwright.async_api import async_playwright

    playwright = await async_playwright().start()
    browser = None
    try:
        browser = await playwright.chromium.launch(
            headless=_headless() if headless is None else headless,
            args=["--no-sandbox", "--disable-dev-shm-usage"],
        )
        page = await browser.new_page()
        if url:
            logger.info(f"Opening {url}")
            await page.goto(url, wait_until="domcontentloaded")
        yield PageDocument(page)
    finally:
        if browser is not None:
            await browser.close()
        await playwright.stop()
