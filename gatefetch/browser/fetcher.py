# gatefetch/browser/fetcher.py
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from playwright.async_api import BrowserContext, Page, Response

from gatefetch.config import CONFIG
from gatefetch.errors import (
    ElementNotInteractable,
    NavigationError,
    NavigationTimeout,
    ResponseNotObserved,
    SelectorTimeout,
    translate_errors,
)
from gatefetch.logging import get_logger, LogTemplates
from gatefetch.models import GateRun, SessionState

logger = get_logger("fetcher")

# 默认的反自动化检测 JS 脚本
BROWSER_ANTI_DETECTION_SCRIPT: str = """\
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
window.chrome = { runtime: {} };
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3] });
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
"""


async def setup_anti_detection(context: BrowserContext) -> None:
    """Set up anti-detection measures to bypass automation checks."""
    await context.add_init_script(script=BROWSER_ANTI_DETECTION_SCRIPT)


async def goto(page: Page, url: str) -> None:
    """Load ``url`` and return once the DOM content has loaded."""
    logger.info(LogTemplates.NAVIGATE.format(url=url))
    with translate_errors(NavigationTimeout, NavigationError, f"Loading {url}"):
        await page.goto(url, timeout=CONFIG.navigation_timeout, wait_until="domcontentloaded")
    logger.info(LogTemplates.NAVIGATED.format(url=page.url))


async def wait_for_gate(page: Page, selector: str) -> None:
    logger.debug(LogTemplates.GATE_WAIT.format(selector=selector))
    with translate_errors(SelectorTimeout, SelectorTimeout, f"Waiting for {selector}"):
        await page.wait_for_selector(selector, state="attached", timeout=CONFIG.selector_timeout)


async def pass_gate(page: Page, run: GateRun) -> None:
    """Wait for the gate button to appear disabled, then enabled, click it and follow the navigation."""
    await wait_for_gate(page, CONFIG.gate_disabled_selector)
    run.advance(SessionState.GATE_DISABLED)
    await wait_for_gate(page, CONFIG.gate_enabled_selector)
    run.advance(SessionState.GATE_ENABLED)

    with translate_errors(NavigationTimeout, NavigationError, "Waiting for gate navigation"):
        async with page.expect_navigation(timeout=CONFIG.click_navigation_timeout):
            with translate_errors(ElementNotInteractable, ElementNotInteractable, f"Clicking {CONFIG.gate_selector}"):
                await page.click(CONFIG.gate_selector)
            run.advance(SessionState.CLICKED)
    run.advance(SessionState.NAVIGATED2)
    logger.info(LogTemplates.NAVIGATED.format(url=page.url))


class ResponseWatch:
    """Remember the first response whose URL contains ``fragment``."""

    def __init__(self, page: Page, fragment: str):
        self.page = page
        self.fragment = fragment
        self._future: Optional[asyncio.Future] = None

    def _on_response(self, response: Response) -> None:
        if self.fragment in response.url and not self._future.done():
            self._future.set_result(response)

    @property
    def armed(self) -> bool:
        return self._future is not None

    def start(self) -> None:
        self._future = asyncio.get_running_loop().create_future()
        self.page.on("response", self._on_response)

    def stop(self) -> None:
        self.page.remove_listener("response", self._on_response)

    async def first(self, timeout: float) -> Response:
        """Wait up to ``timeout`` ms for the first matching response."""
        if not self.armed:
            raise RuntimeError("ResponseWatch.start() was never called")
        try:
            response = await asyncio.wait_for(self._future, timeout / 1000)
        except asyncio.TimeoutError as e:
            raise ResponseNotObserved(f"No response matching {self.fragment!r} within {timeout} ms") from e
        logger.info(LogTemplates.RESPONSE_MATCH.format(url=response.url, status=response.status))
        return response


@asynccontextmanager
async def watch_responses(page: Page, fragment: str) -> AsyncIterator[ResponseWatch]:
    """Yield a watch armed from this point on; the listener is always detached on exit."""
    watch = ResponseWatch(page, fragment)
    watch.start()
    try:
        yield watch
    finally:
        watch.stop()
