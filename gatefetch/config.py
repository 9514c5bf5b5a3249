# gatefetch/config.py
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
import warnings
from typing import List, Optional


class Config(BaseSettings):
    # logs
    log_level: str = "INFO"
    log_dir: Optional[Path] = None
    log_filename: str = "gatefetch.log"

    # browser
    browser_headless: bool = True
    navigation_timeout: int = 15000
    selector_timeout: Optional[int] = None  # None keeps the Playwright default
    click_navigation_timeout: Optional[int] = None
    response_timeout: int = 30000

    # gate
    gate_selector: str = ".btn"

    # evasion launch args
    evasion_launch_args: List[str] = [
        "--disable-blink-features=AutomationControlled",
    ]

    # runtime
    suppress_warnings: bool = True

    # model config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="GATEFETCH_",
        extra="ignore",
    )

    @property
    def gate_disabled_selector(self) -> str:
        return f"{self.gate_selector}[disabled]"

    @property
    def gate_enabled_selector(self) -> str:
        return f"{self.gate_selector}:not([disabled])"

    def ensure_exists(self) -> None:
        if self.log_dir is None:
            return
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
        except (OSError, IOError) as e:
            raise RuntimeError(f"Failed to create log directory: {e}")


def configure_runtime(config: Config) -> None:
    """Apply process-wide settings once, at CLI startup."""
    config.ensure_exists()
    if config.suppress_warnings:
        warnings.simplefilter("ignore")


CONFIG = Config()
