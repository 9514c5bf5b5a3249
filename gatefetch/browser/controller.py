# gatefetch/browser/controller.py
from functools import wraps
from typing import Awaitable, Callable, TypeVar
from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright, Error as PlaywrightError

from gatefetch.browser.fetcher import setup_anti_detection
from gatefetch.config import CONFIG
from gatefetch.errors import LaunchError, MalformedInput, translate_errors
from gatefetch.logging import get_logger, LogTemplates
from gatefetch.models import FetchRequest, GateRun, SessionOptions

logger = get_logger("browser")

T = TypeVar("T")
Task = Callable[..., Awaitable[T]]


async def launch_browser(pw: Playwright, options: SessionOptions) -> Browser:
    logger.info(LogTemplates.LAUNCH.format(path=options.executable_path, evasion=options.evasion))
    with translate_errors(LaunchError, LaunchError, f"Launching {options.executable_path}"):
        return await pw.chromium.launch(
            executable_path=str(options.executable_path),
            headless=options.headless,
            args=list(CONFIG.evasion_launch_args) if options.evasion else [],
        )


async def open_context(browser: Browser, options: SessionOptions) -> BrowserContext:
    """Create the single context of the session; identity is applied before any page exists."""
    context = await browser.new_context(user_agent=options.user_agent)
    if options.evasion:
        await setup_anti_detection(context)
    if options.cookies:
        with translate_errors(MalformedInput, MalformedInput, "Applying cookies"):
            await context.add_cookies([cookie.to_browser() for cookie in options.cookies])
    return context


async def close_browser(browser: Browser) -> None:
    try:
        await browser.close()
    except PlaywrightError as e:
        logger.warning(LogTemplates.CLOSE_FAILED.format(msg=e))


def with_session(task: Task) -> Callable[..., Awaitable[T]]:
    """Run ``task(page, request, run)`` inside one freshly launched browser.

    The browser is closed on every exit path; a failing close is only
    logged so the task's own exception is the one that propagates.
    """
    @wraps(task)
    async def wrapper(request: FetchRequest, *args, **kwargs) -> T:
        options = request.session
        run = GateRun()
        async with async_playwright() as pw:
            browser = await launch_browser(pw, options)
            try:
                context = await open_context(browser, options)
                page: Page = await context.new_page()
                result = await task(page, request, run, *args, **kwargs)
            except Exception as e:
                logger.error(LogTemplates.ERROR.format(msg=f"{request.variant.value} failed in state {run.state.value}: {e}"))
                raise
            finally:
                await close_browser(browser)
                run.close()
            return result
    return wrapper
