# gatefetch/models.py
import json
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from gatefetch.config import CONFIG
from gatefetch.errors import MalformedInput
from gatefetch.logging import get_logger, LogTemplates

logger = get_logger("models")


class Variant(str, Enum):
    """Output the gate run produces once the gate has been passed."""
    HTML_DUMP = "html-dump"
    FETCH_FILE = "fetch-file"
    FETCH_FILE_AUTHENTICATED = "fetch-file-authenticated"
    COOKIE_DUMP = "cookie-dump"
    RESPONSE_CAPTURE = "response-capture"


class SessionState(str, Enum):
    CREATED = "Created"
    NAVIGATED = "Navigated"
    GATE_DISABLED = "GateDisabled"
    GATE_ENABLED = "GateEnabled"
    CLICKED = "Clicked"
    NAVIGATED2 = "Navigated2"
    OUTPUT_PRODUCED = "OutputProduced"
    CLOSED = "Closed"


STATE_ORDER: List[SessionState] = list(SessionState)


class GateRun:
    """Per-run state trace; states advance forward only and close exactly once."""

    def __init__(self):
        self.states: List[SessionState] = [SessionState.CREATED]

    @property
    def state(self) -> SessionState:
        return self.states[-1]

    def advance(self, state: SessionState) -> None:
        if self.state is SessionState.CLOSED:
            raise RuntimeError("Run already closed")
        if state is not SessionState.CLOSED and STATE_ORDER.index(state) <= STATE_ORDER.index(self.state):
            raise RuntimeError(f"Illegal transition {self.state.value} -> {state.value}")
        self.states.append(state)
        logger.debug(LogTemplates.STATE.format(state=state.value))

    def close(self) -> None:
        if self.state is not SessionState.CLOSED:
            self.advance(SessionState.CLOSED)


class Cookie(BaseModel):
    """Browser cookie; extra keys from DevTools dumps (size, session, ...) are ignored."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str
    value: str
    url: Optional[str] = None
    domain: Optional[str] = None
    path: Optional[str] = None
    expires: Optional[float] = None
    http_only: Optional[bool] = Field(default=None, alias="httpOnly")
    secure: Optional[bool] = None
    same_site: Optional[Literal["Strict", "Lax", "None"]] = Field(default=None, alias="sameSite")

    @field_validator("same_site", mode="before")
    @classmethod
    def _normalise_same_site(cls, value: Any) -> Any:
        # DevTools and extension exports spell these lowercase or use their own names
        if not isinstance(value, str):
            return value
        lowered = value.lower()
        if lowered == "unspecified":
            return None
        if lowered == "no_restriction":
            return "None"
        return {"strict": "Strict", "lax": "Lax", "none": "None"}.get(lowered, value)

    @model_validator(mode="after")
    def _check_scope(self) -> "Cookie":
        if not self.url and not self.domain:
            raise ValueError(f"cookie {self.name!r} needs a url or a domain")
        if self.domain and not self.path:
            self.path = "/"
        return self

    def to_browser(self) -> dict:
        """Shape accepted by ``BrowserContext.add_cookies``."""
        cookie = self.model_dump(by_alias=True, exclude_none=True)
        if self.url:
            # Playwright rejects url together with domain/path
            cookie.pop("domain", None)
            cookie.pop("path", None)
        if self.expires is not None and self.expires < 0:
            cookie.pop("expires")
        return cookie


def parse_cookies(raw: str) -> List[Cookie]:
    """Parse the cookie JSON argument; a single object counts as a one-element list."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedInput(f"Cookie argument is not valid JSON: {e}") from e
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise MalformedInput("Cookie argument must be a JSON array of cookie objects")
    try:
        return [Cookie.model_validate(item) for item in data]
    except ValidationError as e:
        raise MalformedInput(f"Invalid cookie: {e}") from e


class SessionOptions(BaseModel):
    """How the browser session is launched."""
    executable_path: Path
    headless: bool = True
    evasion: bool = True
    user_agent: Optional[str] = None
    cookies: List[Cookie] = Field(default_factory=list)


class FetchRequest(BaseModel):
    """Shared input of every variant: where the gate lives and how to open the browser."""
    variant: ClassVar[Variant]
    evasion: ClassVar[bool] = True

    executable_path: Path
    page_url: str
    user_agent: Optional[str] = None
    cookies: List[Cookie] = Field(default_factory=list)

    @property
    def session(self) -> SessionOptions:
        return SessionOptions(
            executable_path=self.executable_path,
            headless=CONFIG.browser_headless,
            evasion=self.evasion,
            user_agent=self.user_agent,
            cookies=self.cookies,
        )


class HtmlDumpRequest(FetchRequest):
    variant: ClassVar[Variant] = Variant.HTML_DUMP

    next_url: Optional[str] = None


class FetchFileRequest(FetchRequest):
    variant: ClassVar[Variant] = Variant.FETCH_FILE

    file_url: str


class AuthenticatedFetchFileRequest(FetchFileRequest):
    variant: ClassVar[Variant] = Variant.FETCH_FILE_AUTHENTICATED
    # 伪造的 UA 与 cookie 取代反检测脚本
    evasion: ClassVar[bool] = False

    user_agent: str


class CookieDumpRequest(FetchRequest):
    variant: ClassVar[Variant] = Variant.COOKIE_DUMP
    evasion: ClassVar[bool] = False


class ResponseCaptureRequest(FetchRequest):
    variant: ClassVar[Variant] = Variant.RESPONSE_CAPTURE

    url_fragment: str


class FetchResult(BaseModel):
    """One output payload, rendered once to stdout."""
    variant: Variant
    payload: Any

    def render(self) -> str:
        if isinstance(self.payload, str):
            return self.payload
        return json.dumps(self.payload, ensure_ascii=False, separators=(",", ":"))
