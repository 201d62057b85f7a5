"""
Media Scrapers
视频与 Newsletter 数据源
"""
from .youtube_scraper import YouTubeScraper
from .substack_scraper import SubstackScraper

__all__ = ["YouTubeScraper", "SubstackScraper"]
