"""
Bing News Scraper
通过 Bing News RSS 抓取新闻

The feed is parsed by an ordered list of strategies; the first strategy that
yields at least one entry wins.
"""
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
import logging

from scrapers.base import RateLimitedScraper, parse_datetime, strip_html
from models import ResearchItem, SourcePlatform
from utils.exceptions import MalformedResponseError


logger = logging.getLogger(__name__)

RawEntry = Dict[str, str]


_ORDERED_ITEM = re.compile(
    r"<item>[\s\S]*?<title>(.*?)</title>[\s\S]*?<link>(.*?)</link>[\s\S]*?"
    r"<description>(.*?)</description>[\s\S]*?<pubDate>(.*?)</pubDate>[\s\S]*?</item>"
)
_COMPACT_ITEM = re.compile(
    r"<item>\s*<title>(.*?)</title>\s*<link>(.*?)</link>\s*<description>(.*?)</description>.*?<pubDate>(.*?)</pubDate>",
    re.DOTALL,
)
_ITEM_BLOCK = re.compile(r"<item\b[^>]*>(.*?)</item>", re.DOTALL | re.IGNORECASE)


def _tag(block: str, name: str) -> str:
    match = re.search(rf"<{name}\b[^>]*>(.*?)</{name}>", block, re.DOTALL | re.IGNORECASE)
    return match.group(1) if match else ""


def _match_groups(pattern: re.Pattern, text: str) -> Optional[List[RawEntry]]:
    entries = []
    for match in pattern.finditer(text):
        title, link, description, pub_date = match.groups()
        if title and link and description and pub_date:
            entries.append({"title": title, "link": link, "description": description, "pubDate": pub_date})
    return entries or None


def parse_ordered_items(text: str) -> Optional[List[RawEntry]]:
    """<item> 内 title/link/description/pubDate 按顺序出现"""
    return _match_groups(_ORDERED_ITEM, text)


def parse_compact_items(text: str) -> Optional[List[RawEntry]]:
    """紧凑格式: 各字段之间只有空白"""
    return _match_groups(_COMPACT_ITEM, text)


def parse_item_tags(text: str) -> Optional[List[RawEntry]]:
    """宽松模式: 逐个 <item> 块独立提取字段，只要求 title 与 link"""
    entries = []
    for block in _ITEM_BLOCK.findall(text):
        title, link = _tag(block, "title"), _tag(block, "link")
        if not (title.strip() and link.strip()):
            continue
        entries.append({
            "title": title,
            "link": link,
            "description": _tag(block, "description"),
            "pubDate": _tag(block, "pubDate"),
            "source": _tag(block, "News:Source"),
        })
    return entries or None


@dataclass(frozen=True)
class ParserStrategy:
    name: str
    parse: Callable[[str], Optional[List[RawEntry]]]


DEFAULT_STRATEGIES = (
    ParserStrategy("ordered", parse_ordered_items),
    ParserStrategy("compact", parse_compact_items),
    ParserStrategy("item_tags", parse_item_tags),
)


def run_strategies(text: str, strategies=DEFAULT_STRATEGIES) -> List[RawEntry]:
    """依次尝试解析策略，返回第一个非空结果"""
    for strategy in strategies:
        entries = strategy.parse(text)
        if entries:
            logger.debug(f"[Bing News] Parsed {len(entries)} entries with strategy '{strategy.name}'")
            return entries
    return []


class BingNewsScraper(RateLimitedScraper):
    """
    Bing News 抓取器
    无需 API Key，解析 RSS 输出
    """

    MAX_RESULTS_CEILING = 5

    def __init__(self, *args, strategies=DEFAULT_STRATEGIES, **kwargs):
        super().__init__(*args, **kwargs)
        self._bing_settings = self.settings.bing
        self.strategies = tuple(strategies)

    @property
    def platform(self) -> SourcePlatform:
        return SourcePlatform.NEWS_SEARCH_A

    @property
    def name(self) -> str:
        return "Bing News"

    @property
    def default_max_results(self) -> int:
        return self._bing_settings.max_results

    async def search(self, query: str, max_results: int, **options: Any) -> List[ResearchItem]:
        """
        搜索 Bing 新闻

        Args:
            query: 搜索关键词
            max_results: 最大返回结果数

        Returns:
            新闻条目列表
        """
        logger.info(f"[Bing News] Searching: {query}")

        response = await self._get(
            self._bing_settings.base_url,
            params={"q": query, "format": "rss"},
            headers={"Accept": "application/rss+xml, application/xml, text/xml, */*"},
        )
        text = response.text or ""
        if "<rss" not in text and "<item>" not in text:
            raise MalformedResponseError("Response is not an RSS feed", source=self.name, snippet=text)

        items: List[ResearchItem] = []
        for entry in run_strategies(text, self.strategies):
            item = self._convert_to_item(entry)
            if item is not None:
                items.append(item)
            if len(items) >= max_results:
                break
        return items

    def _convert_to_item(self, entry: RawEntry) -> Optional[ResearchItem]:
        """转换 RSS 条目"""
        return self.make_item(
            title=strip_html(entry.get("title")),
            body=strip_html(entry.get("description")),
            url=strip_html(entry.get("link")),
            author=strip_html(entry.get("source")) or None,
            published_at=parse_datetime(strip_html(entry.get("pubDate"))),
            extra={"source": "Bing News"},
        )
