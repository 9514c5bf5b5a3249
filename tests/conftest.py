from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

import pytest

import gatefetch.browser.controller as controller


class FakeResponse:
    def __init__(self, url: str, body: str, status: int = 200):
        self.url = url
        self.status = status
        self._body = body

    async def text(self) -> str:
        return self._body


class _Navigation:
    def __init__(self, page: "FakePage", timeout: Optional[float]):
        self.page = page
        self.timeout = timeout

    async def __aenter__(self):
        self.page.events.append("expect_navigation")
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is None:
            if self.page.navigation_error:
                raise self.page.navigation_error
            self.page.url = self.page.navigation_target
            self.page.events.append(f"navigated:{self.page.url}")
        return False


class FakePage:
    """Async stand-in for a Playwright page with a scripted gate."""

    def __init__(self, context: "FakeContext", events: List[str]):
        self.context = context
        self.events = events
        self.url = "about:blank"
        self.documents: Dict[str, str] = {}
        self.goto_errors: Dict[str, Exception] = {}
        self.selector_errors: Dict[str, Exception] = {}
        self.click_error: Optional[Exception] = None
        self.navigation_error: Optional[Exception] = None
        self.navigation_target = "https://example.test/content"
        self.responses_on_click: List[FakeResponse] = []
        self.responses_after_navigation: List[FakeResponse] = []
        self.evaluate_result: Any = ""
        self.evaluate_error: Optional[Exception] = None
        self.listeners: Dict[str, List[Callable]] = {}
        self.goto_calls: List[Dict[str, Any]] = []
        self.selector_calls: List[Dict[str, Any]] = []
        self.evaluate_calls: List[tuple] = []

    async def goto(self, url: str, timeout=None, wait_until=None):
        self.goto_calls.append({"url": url, "timeout": timeout, "wait_until": wait_until})
        self.events.append(f"goto:{url}")
        if url in self.goto_errors:
            raise self.goto_errors[url]
        self.url = url

    async def wait_for_selector(self, selector: str, state=None, timeout=None):
        self.selector_calls.append({"selector": selector, "state": state, "timeout": timeout})
        self.events.append(f"wait:{selector}")
        if selector in self.selector_errors:
            raise self.selector_errors[selector]

    def expect_navigation(self, timeout=None):
        return _Navigation(self, timeout)

    async def click(self, selector: str):
        self.events.append(f"click:{selector}")
        if self.click_error:
            raise self.click_error
        self._dispatch(self.responses_on_click)

    async def content(self) -> str:
        return self.documents.get(self.url, "")

    async def evaluate(self, script: str, arg=None):
        self.evaluate_calls.append((script, arg))
        if self.evaluate_error:
            raise self.evaluate_error
        return self.evaluate_result

    def _dispatch(self, responses: List[FakeResponse]) -> None:
        for response in responses:
            for handler in list(self.listeners.get("response", [])):
                handler(response)

    def on(self, event: str, handler: Callable) -> None:
        self.listeners.setdefault(event, []).append(handler)
        if event == "response" and self.responses_after_navigation:
            # traffic of the landed page keeps arriving after a listener attaches
            pending, self.responses_after_navigation = self.responses_after_navigation, []
            asyncio.get_running_loop().call_soon(self._dispatch, pending)

    def remove_listener(self, event: str, handler: Callable) -> None:
        self.listeners[event].remove(handler)


class FakeContext:
    def __init__(self, events: List[str]):
        self.events = events
        self.init_scripts: List[str] = []
        self.added_cookies: List[Dict[str, Any]] = []
        self.jar: List[Dict[str, Any]] = []
        self.cookie_urls: List[Any] = []
        self.page = FakePage(self, events)

    async def add_init_script(self, script=None):
        self.events.append("add_init_script")
        self.init_scripts.append(script)

    async def add_cookies(self, cookies):
        self.events.append("add_cookies")
        self.added_cookies.extend(cookies)

    async def cookies(self, urls=None):
        self.cookie_urls.append(urls)
        return self.jar

    async def new_page(self):
        self.events.append("new_page")
        return self.page


class FakeBrowser:
    def __init__(self):
        self.events: List[str] = []
        self.launch_kwargs: Dict[str, Any] = {}
        self.context_kwargs: Dict[str, Any] = {}
        self.context = FakeContext(self.events)
        self.close_error: Optional[Exception] = None
        self.closed = 0

    @property
    def page(self) -> FakePage:
        return self.context.page

    async def new_context(self, **kwargs):
        self.events.append("new_context")
        self.context_kwargs = kwargs
        return self.context

    async def close(self):
        self.closed += 1
        self.events.append("close")
        if self.close_error:
            raise self.close_error


class _Chromium:
    def __init__(self, browser: FakeBrowser, launch_error: Optional[Exception] = None):
        self.browser = browser
        self.launch_error = launch_error

    async def launch(self, **kwargs):
        self.browser.launch_kwargs = kwargs
        if self.launch_error:
            raise self.launch_error
        return self.browser


class _FakePlaywrightManager:
    def __init__(self, chromium: _Chromium):
        self.chromium = chromium

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


@pytest.fixture
def fake_browser(monkeypatch: pytest.MonkeyPatch) -> FakeBrowser:
    browser = FakeBrowser()
    chromium = _Chromium(browser)
    browser.chromium = chromium
    monkeypatch.setattr(controller, "async_playwright", lambda: _FakePlaywrightManager(chromium))
    return browser
