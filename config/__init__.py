"""
Configuration Management Module
统一配置管理，实现API配置解耦
"""
from .settings import (
    Settings,
    BingSettings,
    TavilySettings,
    YouTubeSettings,
    RedditSettings,
    SubstackSettings,
    GeneralSettings,
    LLMSettings,
    OutputSettings,
    DEFAULT_NEWS_DOMAINS,
    get_settings,
    get_llm_settings,
)

__all__ = [
    "Settings",
    "BingSettings",
    "TavilySettings",
    "YouTubeSettings",
    "RedditSettings",
    "SubstackSettings",
    "GeneralSettings",
    "LLMSettings",
    "OutputSettings",
    "DEFAULT_NEWS_DOMAINS",
    "get_settings",
    "get_llm_settings",
]
