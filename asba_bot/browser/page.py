"""Page wrapper exposing the remote UI capabilities the portal adapter uses."""
import logging
from typing import NoReturn, Optional, Sequence, Union

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator
from playwright.async_api import Page as PlaywrightPage

from ..core.config import RetryConfig
from ..retry import RetryExecutor
from ..workflow.errors import NON_RETRYABLE, ElementNotFoundError, SessionClosedError

logger = logging.getLogger(__name__)

SHORT_WAIT_S: float = 0.5
MEDIUM_WAIT_S: float = 2.0
VISIBLE_CHECK_TIMEOUT_S: float = 2.0
ELEMENT_TIMEOUT_S: float = 30.0
RELOAD_TIMEOUT_S: float = 60.0

CLOSED_MARKERS: tuple[str, ...] = (
    "has been closed",
    "target closed",
    "browser has disconnected",
)

Selectors = Union[str, Sequence[str]]
Target = Union[str, Locator]


def _as_list(selectors: Selectors) -> list[str]:
    return [selectors] if isinstance(selectors, str) else list(selectors)


def is_closed_error(error: BaseException) -> bool:
    """Whether an error means the page, context or browser is gone."""
    if isinstance(error, SessionClosedError):
        return True
    message = str(error).lower()
    return any(marker in message for marker in CLOSED_MARKERS)


class Page:
    """Wrapper around a Playwright Page with retrying helpers.

    Every Playwright error caused by a closed page/context/browser is
    re-raised as SessionClosedError so callers can tell it apart from an
    ordinary transient failure.
    """

    def __init__(
        self,
        page: PlaywrightPage,
        executor: Optional[RetryExecutor] = None,
        retry: Optional[RetryConfig] = None,
        navigation_timeout: float = 120.0,
    ) -> None:
        """Initialize page wrapper.

        Args:
            page: Playwright Page instance.
            executor: Retry executor shared with the coordinator.
            retry: Per-operation retry policies.
            navigation_timeout: Seconds allowed for one navigation.
        """
        self._page = page
        self._executor = executor or RetryExecutor(give_up_on=NON_RETRYABLE)
        self._retry = retry or RetryConfig()
        self._navigation_timeout = navigation_timeout

    @property
    def raw(self) -> PlaywrightPage:
        """Access underlying Playwright page for advanced operations."""
        return self._page

    def current_url(self) -> str:
        return self._page.url

    def is_session_active(self) -> bool:
        try:
            return not self._page.is_closed()
        except PlaywrightError:
            return False

    def _ensure_open(self) -> None:
        if not self.is_session_active():
            raise SessionClosedError("Target page, context or browser has been closed")

    def _is_closed(self, error: PlaywrightError) -> bool:
        return is_closed_error(error) or not self.is_session_active()

    def _reraise(self, error: PlaywrightError) -> NoReturn:
        if self._is_closed(error):
            raise SessionClosedError(str(error)) from error
        raise error

    def _locate(self, target: Target) -> Locator:
        if isinstance(target, str):
            return self._page.locator(target).first
        return target

    async def navigate(self, url: str, wait_until: str = "domcontentloaded") -> None:
        self._ensure_open()
        try:
            await self._page.goto(
                url, wait_until=wait_until, timeout=self._navigation_timeout * 1000
            )
        except PlaywrightError as e:
            self._reraise(e)

    async def reload(self, timeout: float = RELOAD_TIMEOUT_S) -> None:
        self._ensure_open()
        try:
            await self._page.reload(wait_until="domcontentloaded", timeout=timeout * 1000)
        except PlaywrightError as e:
            self._reraise(e)

    async def wait(self, seconds: float) -> None:
        """Pause on the page's clock."""
        self._ensure_open()
        try:
            await self._page.wait_for_timeout(seconds * 1000)
        except PlaywrightError as e:
            self._reraise(e)

    async def find_element(
        self,
        selectors: Selectors,
        timeout: float = VISIBLE_CHECK_TIMEOUT_S,
    ) -> Optional[Locator]:
        """Return the first visible element among ``selectors``, or None.

        Each selector gets up to ``timeout`` seconds to become visible.
        """
        self._ensure_open()
        for selector in _as_list(selectors):
            locator = self._page.locator(selector).first
            try:
                await locator.wait_for(state="visible", timeout=timeout * 1000)
                return locator
            except PlaywrightError as e:
                if self._is_closed(e):
                    raise SessionClosedError(str(e)) from e
                continue
        return None

    async def find_all(self, selector: str) -> list[Locator]:
        self._ensure_open()
        try:
            return await self._page.locator(selector).all()
        except PlaywrightError as e:
            self._reraise(e)

    async def read_text(self, target: Target = "body") -> str:
        self._ensure_open()
        try:
            text = await self._locate(target).text_content()
        except PlaywrightError as e:
            self._reraise(e)
        return (text or "").strip()

    async def click(self, target: Target) -> None:
        self._ensure_open()
        try:
            await self._locate(target).click()
        except PlaywrightError as e:
            self._reraise(e)

    async def fill_field(self, target: Target, value: str) -> None:
        self._ensure_open()
        try:
            locator = self._locate(target)
            await locator.clear()
            await locator.fill(value)
        except PlaywrightError as e:
            self._reraise(e)

    async def check(self, target: Target) -> None:
        self._ensure_open()
        try:
            locator = self._locate(target)
            if not await locator.is_checked():
                await locator.check()
        except PlaywrightError as e:
            self._reraise(e)

    async def select_option(
        self, target: Target, label: Optional[str] = None, value: Optional[str] = None
    ) -> None:
        self._ensure_open()
        try:
            if value is not None:
                await self._locate(target).select_option(value=value)
            else:
                await self._locate(target).select_option(label=label)
        except PlaywrightError as e:
            self._reraise(e)

    async def count(self, target: Target) -> int:
        """Number of elements matching ``target``; zero when none."""
        self._ensure_open()
        locator = self._page.locator(target) if isinstance(target, str) else target
        try:
            return await locator.count()
        except PlaywrightError as e:
            self._reraise(e)

    async def press(self, key: str) -> None:
        self._ensure_open()
        try:
            await self._page.keyboard.press(key)
        except PlaywrightError as e:
            self._reraise(e)

    async def navigate_with_retry(self, url: str, wait_until: str = "domcontentloaded") -> None:
        """Navigate, retrying with backoff while the server is slow."""

        async def go() -> None:
            logger.info(f"Navigating to: {url}")
            await self.navigate(url, wait_until=wait_until)

        def on_retry(error: BaseException, attempt: int) -> None:
            logger.info(f"Navigation attempt {attempt} failed. Server might be under heavy load.")

        await self._executor.execute(
            go, self._retry.navigation.to_policy(), on_retry=on_retry, label="navigate"
        )

    async def wait_for_element_with_retry(
        self,
        selectors: Selectors,
        timeout: float = ELEMENT_TIMEOUT_S,
        reload_on_fail: bool = False,
    ) -> Locator:
        """Wait for any of ``selectors`` to be visible, optionally reloading between tries.

        Returns:
            Locator of the first visible match.

        Raises:
            RetryExhausted: If no selector became visible in any attempt.
        """
        selector_list = _as_list(selectors)

        async def find() -> Locator:
            element = await self.find_element(selector_list, timeout=timeout)
            if element is None:
                raise ElementNotFoundError(
                    f"None of the selectors found: {', '.join(selector_list)}"
                )
            return element

        async def on_retry(error: BaseException, attempt: int) -> None:
            logger.info(f"Element wait attempt {attempt} failed. Page might be loading slowly.")
            if reload_on_fail:
                logger.info("Reloading page...")
                await self.reload()
                await self.wait(MEDIUM_WAIT_S)

        return await self._executor.execute(
            find, self._retry.element_wait.to_policy(), on_retry=on_retry, label="wait_for_element"
        )

    async def click_with_retry(
        self, selectors: Selectors, timeout: float = ELEMENT_TIMEOUT_S
    ) -> None:
        """Click the first visible element among ``selectors``, retrying on failure."""
        selector_list = _as_list(selectors)

        async def press() -> None:
            element = await self.find_element(selector_list, timeout=timeout)
            if element is None:
                raise ElementNotFoundError(f"Could not click any of: {', '.join(selector_list)}")
            await self.click(element)

        await self._executor.execute(press, self._retry.click.to_policy(), label="click")
