# gatefetch/cli.py
import asyncio
from pathlib import Path
from typing import Optional
import click

from gatefetch.config import CONFIG, configure_runtime
from gatefetch.errors import MalformedInput
from gatefetch.fetchers.variants import run_variant
from gatefetch.logging import set_level
from gatefetch.models import (
    AuthenticatedFetchFileRequest,
    CookieDumpRequest,
    FetchFileRequest,
    FetchRequest,
    HtmlDumpRequest,
    ResponseCaptureRequest,
    parse_cookies,
)

EXECUTABLE = click.Path(dir_okay=False, path_type=Path)


def emit(request: FetchRequest) -> None:
    """Run one gate session and print its result; failures propagate uncaught."""
    configure_runtime(CONFIG)
    result = asyncio.run(run_variant(request))
    click.echo(result.render())


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--verbose", is_flag=True, help="Enable verbose logging")
def cli(verbose):
    """Click a gated page open in headless Chromium and print what lies behind it."""
    if verbose:
        set_level("DEBUG")


@cli.command("dump-html")
@click.argument("executable_path", type=EXECUTABLE)
@click.argument("host_url")
@click.argument("page_url", required=False)
def dump_html(executable_path: Path, host_url: str, page_url: Optional[str] = None):
    """Pass the gate on HOST_URL, then print the HTML of PAGE_URL."""
    emit(HtmlDumpRequest(executable_path=executable_path, page_url=host_url, next_url=page_url))


@cli.command("fetch-file")
@click.argument("executable_path", type=EXECUTABLE)
@click.argument("page_url")
@click.argument("file_url")
@click.argument("user_agent", required=False)
@click.argument("cookies", required=False)
def fetch_file(executable_path: Path, page_url: str, file_url: str,
               user_agent: Optional[str] = None, cookies: Optional[str] = None):
    """Pass the gate on PAGE_URL, then GET FILE_URL from inside the page.

    With USER_AGENT and COOKIES (a JSON array) the session uses that identity
    instead of the anti-detection script.
    """
    if user_agent is None and cookies is None:
        emit(FetchFileRequest(executable_path=executable_path, page_url=page_url, file_url=file_url))
        return
    if user_agent is None or cookies is None:
        raise MalformedInput("USER_AGENT and COOKIES must be given together")
    emit(AuthenticatedFetchFileRequest(
        executable_path=executable_path,
        page_url=page_url,
        file_url=file_url,
        user_agent=user_agent,
        cookies=parse_cookies(cookies),
    ))


@cli.command("get-cookie")
@click.argument("executable_path", type=EXECUTABLE)
@click.argument("url")
@click.argument("user_agent")
def get_cookie(executable_path: Path, url: str, user_agent: str):
    """Pass the gate on URL and print the resulting cookies as JSON."""
    emit(CookieDumpRequest(executable_path=executable_path, page_url=url, user_agent=user_agent))


@cli.command("get-response")
@click.argument("executable_path", type=EXECUTABLE)
@click.argument("request_url")
@click.argument("page_url")
def get_response(executable_path: Path, request_url: str, page_url: str):
    """Pass the gate on PAGE_URL and print the JSON body of the first response whose URL contains REQUEST_URL."""
    emit(ResponseCaptureRequest(executable_path=executable_path, page_url=page_url, url_fragment=request_url))


if __name__ == "__main__":
    cli()
