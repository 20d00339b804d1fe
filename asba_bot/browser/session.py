"""Browser lifecycle and per-account isolated sessions."""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from playwright.async_api import Browser, Playwright, async_playwright

from ..core.config import BrowserConfig, RetryConfig
from ..retry import RetryExecutor
from ..workflow.errors import NON_RETRYABLE
from .page import Page

logger = logging.getLogger(__name__)


class BrowserManager:
    """Owns the Playwright browser and hands out isolated sessions.

    Each call to session() opens a fresh BrowserContext, so cookies and
    auth state never leak from one account to the next.
    """

    def __init__(
        self,
        config: BrowserConfig,
        retry: Optional[RetryConfig] = None,
        executor: Optional[RetryExecutor] = None,
    ) -> None:
        self._config = config
        self._retry = retry or RetryConfig()
        self._executor = executor or RetryExecutor(give_up_on=NON_RETRYABLE)
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    @property
    def browser(self) -> Browser:
        """Get the running browser instance.

        Raises:
            RuntimeError: If not started.
        """
        if not self._browser:
            raise RuntimeError("Browser not started. Call start() first.")
        return self._browser

    async def start(self) -> None:
        """Launch Chromium, or attach over CDP when a port is configured."""
        self._playwright = await async_playwright().start()
        try:
            if self._config.cdp_port:
                endpoint = f"http://127.0.0.1:{self._config.cdp_port}"
                self._browser = await self._playwright.chromium.connect_over_cdp(endpoint)
                logger.info(f"Connected to Chrome over CDP at {endpoint}")
            else:
                self._browser = await self._playwright.chromium.launch(
                    headless=self._config.headless,
                    args=["--no-sandbox", "--disable-setuid-sandbox"],
                )
                logger.info(f"Launched Chromium (headless={self._config.headless})")
        except Exception:
            await self._cleanup()
            raise

    async def stop(self) -> None:
        """Close the browser and stop Playwright."""
        logger.info("Closing browser")
        await self._cleanup()

    async def _cleanup(self) -> None:
        if self._browser:
            try:
                await self._browser.close()
            except Exception as e:
                logger.debug(f"Browser close failed: {e}")
        if self._playwright:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.debug(f"Playwright stop failed: {e}")
        self._browser = None
        self._playwright = None

    async def __aenter__(self) -> "BrowserManager":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[Page]:
        """Yield a Page in a brand-new browser context, closed on exit."""
        context_options = {}
        if self._config.user_agent:
            context_options["user_agent"] = self._config.user_agent
        context = await self.browser.new_context(**context_options)
        context.set_default_timeout(self._config.action_timeout * 1000)
        context.set_default_navigation_timeout(self._config.navigation_timeout * 1000)
        try:
            raw_page = await context.new_page()
            yield Page(
                raw_page,
                executor=self._executor,
                retry=self._retry,
                navigation_timeout=self._config.navigation_timeout,
            )
        finally:
            try:
                await context.close()
            except Exception as e:
                logger.warning(f"Failed to close browser context: {e}")
