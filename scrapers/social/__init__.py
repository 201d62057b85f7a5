"""
Social Scrapers
社区讨论数据源
"""
from .reddit_scraper import RedditScraper

__all__ = ["RedditScraper"]
