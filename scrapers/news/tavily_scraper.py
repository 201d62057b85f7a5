"""
Tavily Scraper
通过 Tavily Search API 抓取主流媒体新闻
"""
from typing import Any, List, Optional, Sequence
import logging

from tavily import AsyncTavilyClient

from scrapers.base import BaseScraper, parse_datetime
from models import ResearchItem, SourcePlatform
from utils.exceptions import AuthNotConfiguredError, MalformedResponseError, TransportError


logger = logging.getLogger(__name__)

QUERY_TEMPLATES = {
    "blog": "latest news about {query}",
    "topics": "latest trends and topics about {query}",
}


class TavilyScraper(BaseScraper):
    """
    Tavily 抓取器
    SDK 客户端显式注入或由 API Key 构造；未配置时为 None
    """

    MAX_RESULTS_CEILING = 5

    def __init__(self, *args, tavily_client: Optional[Any] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._tavily_settings = self.settings.tavily
        if tavily_client is None and self._tavily_settings.api_key:
            tavily_client = AsyncTavilyClient(api_key=self._tavily_settings.api_key)
        self.tavily_client = tavily_client

    @property
    def platform(self) -> SourcePlatform:
        return SourcePlatform.NEWS_SEARCH_B

    @property
    def name(self) -> str:
        return "Tavily"

    @property
    def default_max_results(self) -> int:
        return self._tavily_settings.max_results

    @property
    def required_credential(self) -> str:
        return "TAVILY_API_KEY"

    def is_configured(self) -> bool:
        return self.tavily_client is not None

    async def search(
        self,
        query: str,
        max_results: int,
        purpose: str = "blog",
        include_domains: Optional[Sequence[str]] = None,
        search_depth: Optional[str] = None,
        **options: Any,
    ) -> List[ResearchItem]:
        """
        搜索新闻

        Args:
            query: 搜索关键词
            max_results: 最大返回结果数
            purpose: blog 或 topics，决定查询措辞
            include_domains: 限定域名 (默认主流新闻站点)
            search_depth: basic / advanced

        Returns:
            新闻条目列表
        """
        if self.tavily_client is None:
            raise AuthNotConfiguredError("Tavily client not configured", source=self.name)

        template = QUERY_TEMPLATES.get(purpose, QUERY_TEMPLATES["blog"])
        search_query = template.format(query=query)
        logger.info(f"[Tavily] Searching: {search_query}")

        try:
            response = await self.tavily_client.search(
                query=search_query,
                search_depth=search_depth or self._tavily_settings.search_depth,
                include_domains=list(include_domains or self._tavily_settings.include_domains),
                max_results=max_results,
            )
        except Exception as exc:
            raise TransportError(f"Tavily request failed: {exc}", source=self.name) from exc

        if not isinstance(response, dict) or not isinstance(response.get("results", []), list):
            raise MalformedResponseError("Unexpected Tavily payload", source=self.name, snippet=repr(response))

        items: List[ResearchItem] = []
        for result in response.get("results", [])[:max_results]:
            if not isinstance(result, dict):
                continue
            item = self.make_item(
                title=result.get("title"),
                body=result.get("content"),
                url=result.get("url"),
                published_at=parse_datetime(result.get("published_date")),
                extra={"source": "Tavily", "score": result.get("score")},
            )
            if item is not None:
                items.append(item)
        return items
