"""
News Scrapers
新闻搜索数据源
"""
from .bing_news_scraper import BingNewsScraper
from .tavily_scraper import TavilyScraper

__all__ = ["BingNewsScraper", "TavilyScraper"]
