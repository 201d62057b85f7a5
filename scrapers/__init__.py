"""
Scrapers Module
"""
from typing import Dict, Type

from models import SourcePlatform

from .base import BaseScraper, RateLimitedScraper
from .news import BingNewsScraper, TavilyScraper
from .media import YouTubeScraper, SubstackScraper
from .social import RedditScraper


# 平台 -> 抓取器类 (顺序即默认提交顺序)
SCRAPER_CLASSES: Dict[SourcePlatform, Type[BaseScraper]] = {
    SourcePlatform.NEWS_SEARCH_A: BingNewsScraper,
    SourcePlatform.NEWS_SEARCH_B: TavilyScraper,
    SourcePlatform.FORUM: RedditScraper,
    SourcePlatform.VIDEO: YouTubeScraper,
    SourcePlatform.NEWSLETTER: SubstackScraper,
}


def create_scraper(platform: SourcePlatform, **kwargs) -> BaseScraper:
    """按平台创建抓取器"""
    return SCRAPER_CLASSES[SourcePlatform(platform)](**kwargs)


__all__ = [
    # Base
    "BaseScraper",
    "RateLimitedScraper",
    # News
    "BingNewsScraper",
    "TavilyScraper",
    # Media
    "YouTubeScraper",
    "SubstackScraper",
    # Social
    "RedditScraper",
    # Registry
    "SCRAPER_CLASSES",
    "create_scraper",
]
