"""
Utils Module
通用工具函数
"""
from .logger import setup_logger, configure_logging, console
from .exceptions import (
    ContentBotError,
    ConfigurationError,
    ScraperError,
    TransportError,
    UnexpectedStatusError,
    MalformedResponseError,
    AuthNotConfiguredError,
    GenerationError,
    ResponseParseError,
)

__all__ = [
    "setup_logger",
    "configure_logging",
    "console",
    "ContentBotError",
    "ConfigurationError",
    "ScraperError",
    "TransportError",
    "UnexpectedStatusError",
    "MalformedResponseError",
    "AuthNotConfiguredError",
    "GenerationError",
    "ResponseParseError",
]
