# gatefetch/logging.py
from pathlib import Path
import logging
import sys
from typing import Optional
from gatefetch.config import CONFIG

def setup_logger(
    name: str,
    log_dir: Optional[Path] = CONFIG.log_dir,
    level: str = CONFIG.log_level,
    console: bool = True,
    filename: str = CONFIG.log_filename,
) -> logging.Logger:
    """设置并返回一个日志记录器"""
    logger = logging.getLogger(f"gatefetch.{name}")
    if logger.handlers:  # 避免重复添加处理器
        return logger

    LEVELS = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
        "critical": logging.CRITICAL,
    }
    logger.setLevel(LEVELS.get(level.lower(), logging.INFO))

    # 文件处理器，仅在配置了日志目录时启用
    if log_dir is not None:
        Path(log_dir).mkdir(exist_ok=True, parents=True)
        file_handler = logging.FileHandler(Path(log_dir) / filename, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(file_handler)

    # 控制台处理器，stdout 只留给结果输出
    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        logger.addHandler(console_handler)

    return logger

def set_level(level: str) -> None:
    """Change the level of every gatefetch logger created so far."""
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith("gatefetch.") and isinstance(logger, logging.Logger):
            logger.setLevel(level.upper())

class LogTemplates:
    """日志消息模板"""
    LAUNCH = "Launching browser {path} (evasion={evasion})"
    NAVIGATE = "Navigating to {url}"
    NAVIGATED = "Loaded {url}"
    STATE = "State -> {state}"
    GATE_WAIT = "Waiting for gate {selector}"
    RESPONSE_MATCH = "Captured response {url} ({status})"
    FETCH_SUCCESS = "Produced {variant} output ({size} chars)"
    CLOSE_FAILED = "Browser close failed: {msg}"
    ERROR = "Error: {msg}"

def get_logger(name: str, **kwargs) -> logging.Logger:
    return setup_logger(name, **kwargs)
