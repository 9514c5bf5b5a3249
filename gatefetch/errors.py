# gatefetch/errors.py
from contextlib import contextmanager
from typing import Iterator, Type
from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

# Custom exceptions
class GateFetchError(Exception):
    pass

class LaunchError(GateFetchError):
    pass

class NavigationTimeout(GateFetchError):
    pass

class NavigationError(GateFetchError):
    pass

class SelectorTimeout(GateFetchError):
    pass

class ElementNotInteractable(GateFetchError):
    pass

class ResponseNotObserved(GateFetchError):
    pass

class MalformedResponse(GateFetchError):
    pass

class MalformedInput(GateFetchError):
    pass


@contextmanager
def translate_errors(
    timeout_cls: Type[GateFetchError],
    error_cls: Type[GateFetchError],
    what: str,
) -> Iterator[None]:
    """Re-raise Playwright errors from the wrapped block as gatefetch errors.

    Timeouts become ``timeout_cls``, any other Playwright failure becomes
    ``error_cls``. The original exception is kept as ``__cause__``.
    """
    try:
        yield
    except PlaywrightTimeoutError as e:
        raise timeout_cls(f"{what}: {e.message}") from e
    except PlaywrightError as e:
        raise error_cls(f"{what}: {e.message}") from e
