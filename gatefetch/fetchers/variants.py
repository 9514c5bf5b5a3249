# gatefetch/fetchers/variants.py
import json
from typing import Any, Awaitable, Callable, Dict, List
from playwright.async_api import Page

from gatefetch.browser.controller import with_session
from gatefetch.browser.fetcher import goto, pass_gate, watch_responses
from gatefetch.config import CONFIG
from gatefetch.errors import MalformedResponse, NavigationError, NavigationTimeout, translate_errors
from gatefetch.logging import get_logger, LogTemplates
from gatefetch.models import (
    CookieDumpRequest,
    FetchFileRequest,
    FetchRequest,
    FetchResult,
    GateRun,
    HtmlDumpRequest,
    ResponseCaptureRequest,
    SessionState,
    Variant,
)

logger = get_logger("variants")

# 在页面自身的脚本上下文里发起请求，沿用页面的 cookie 与来源
IN_PAGE_FETCH_SCRIPT: str = """\
(furl) => fetch(furl, { method: 'GET' }).then(r => r.text())
"""

Producer = Callable[..., Awaitable[Any]]


async def dump_html(page: Page, request: HtmlDumpRequest) -> str:
    if request.next_url:
        await goto(page, request.next_url)
    return await page.content()


async def fetch_file(page: Page, request: FetchFileRequest) -> str:
    with translate_errors(NavigationTimeout, NavigationError, f"Fetching {request.file_url}"):
        return await page.evaluate(IN_PAGE_FETCH_SCRIPT, request.file_url)


async def dump_cookies(page: Page, request: CookieDumpRequest) -> List[Dict[str, Any]]:
    return await page.context.cookies(page.url)


async def capture_response(page: Page, request: ResponseCaptureRequest) -> Any:
    async with watch_responses(page, request.url_fragment) as watch:
        response = await watch.first(CONFIG.response_timeout)
    with translate_errors(NavigationTimeout, NavigationError, f"Reading body of {response.url}"):
        body = await response.text()
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"Response {response.url} is not JSON: {e}") from e


PRODUCERS: Dict[Variant, Producer] = {
    Variant.HTML_DUMP: dump_html,
    Variant.FETCH_FILE: fetch_file,
    Variant.FETCH_FILE_AUTHENTICATED: fetch_file,
    Variant.COOKIE_DUMP: dump_cookies,
    Variant.RESPONSE_CAPTURE: capture_response,
}


async def gate_and_produce(page: Page, request: FetchRequest, run: GateRun) -> FetchResult:
    """Shared sequence: load the page, pass the gate, then hand over to the variant's producer."""
    producer = PRODUCERS[request.variant]

    await goto(page, request.page_url)
    run.advance(SessionState.NAVIGATED)

    await pass_gate(page, run)
    payload = await producer(page, request)

    run.advance(SessionState.OUTPUT_PRODUCED)
    result = FetchResult(variant=request.variant, payload=payload)
    logger.info(LogTemplates.FETCH_SUCCESS.format(variant=request.variant.value, size=len(result.render())))
    return result


run_variant = with_session(gate_and_produce)
