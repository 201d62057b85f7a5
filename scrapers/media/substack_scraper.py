"""
Substack Scraper
抓取 Substack Newsletter 文章

Global search reads the JSON embedded in the search page (``__NEXT_DATA__``).
When the page no longer carries the expected key path, a fixed list of
well-known publications is returned instead, flagged with ``fallback``.
"""
from typing import Any, Dict, List, Optional
from urllib.parse import quote
import json
import logging
import re

from scrapers.base import RateLimitedScraper, coalesce_text, parse_datetime, to_int
from models import ResearchItem, SourcePlatform
from utils.exceptions import MalformedResponseError, ScraperError


logger = logging.getLogger(__name__)

NEXT_DATA_PATTERN = re.compile(
    r'<script id="__NEXT_DATA__" type="application/json">(.*?)</script>', re.DOTALL
)

# 归档接口仅支持 new / top
ARCHIVE_SORTS = {"recent": "new", "top": "top", "oldest": "new"}

POPULAR_PUBLICATIONS: List[Dict[str, Any]] = [
    {
        "name": "The Generalist",
        "subdomain": "thegeneralist",
        "description": "The people, companies, and technologies shaping the future.",
        "url": "https://thegeneralist.substack.com",
        "custom_domain": None,
    },
    {
        "name": "Stratechery",
        "subdomain": "stratechery",
        "description": "Analysis of the strategy and business side of technology and media.",
        "url": "https://stratechery.com",
        "custom_domain": "stratechery.com",
    },
    {
        "name": "Not Boring",
        "subdomain": "notboring",
        "description": "Business strategy and trends, but not boring.",
        "url": "https://www.notboring.co",
        "custom_domain": "www.notboring.co",
    },
    {
        "name": "Lenny's Newsletter",
        "subdomain": "lenny",
        "description": (
            "A weekly advice column about product, growth, working with humans, "
            "and anything else that's stressing you out about work."
        ),
        "url": "https://www.lennysnewsletter.com",
        "custom_domain": "www.lennysnewsletter.com",
    },
    {
        "name": "Platformer",
        "subdomain": "platformer",
        "description": "News and analysis on social networks and big tech companies.",
        "url": "https://www.platformer.news",
        "custom_domain": "www.platformer.news",
    },
    {
        "name": "Slow Boring",
        "subdomain": "slowboring",
        "description": "Analysis of politics and policy.",
        "url": "https://www.slowboring.com",
        "custom_domain": "www.slowboring.com",
    },
    {
        "name": "The Unpublishable",
        "subdomain": "theunpublishable",
        "description": "What the beauty industry won't tell you, from a reporter on a mission to reform it.",
        "url": "https://theunpublishable.substack.com",
        "custom_domain": None,
    },
    {
        "name": "The Profile",
        "subdomain": "theprofile",
        "description": "The most interesting stories on the internet. Profiles of fascinating people.",
        "url": "https://theprofile.substack.com",
        "custom_domain": None,
    },
    {
        "name": "Galaxy Brain",
        "subdomain": "galaxybrain",
        "description": "Charlie Warzel on technology, media, politics, and culture.",
        "url": "https://www.galaxybrain.com",
        "custom_domain": "www.galaxybrain.com",
    },
    {
        "name": "Culture Study",
        "subdomain": "annehelen",
        "description": "Anne Helen Petersen on the culture of work, leisure, and parenthood.",
        "url": "https://annehelen.substack.com",
        "custom_domain": None,
    },
]


def extract_next_data(html_text: str, source: str = "Substack") -> Dict[str, Any]:
    """从 HTML 中提取 __NEXT_DATA__ JSON"""
    match = NEXT_DATA_PATTERN.search(html_text or "")
    if not match:
        raise MalformedResponseError("__NEXT_DATA__ marker not found", source=source, snippet=html_text)
    try:
        data = json.loads(match.group(1))
    except ValueError as exc:
        raise MalformedResponseError("__NEXT_DATA__ is not valid JSON", source=source, snippet=match.group(1)) from exc
    if not isinstance(data, dict):
        raise MalformedResponseError("__NEXT_DATA__ is not an object", source=source, snippet=match.group(1))
    return data


def find_result_items(next_data: Dict[str, Any], kind: str) -> Optional[List[Dict[str, Any]]]:
    """
    在 pageProps.searchResults.<kind>.items 或 dehydratedState 查询缓存中查找结果

    Returns:
        结果列表；路径不存在时返回 None
    """
    page_props = (next_data.get("props") or {}).get("pageProps") or {}

    items = ((page_props.get("searchResults") or {}).get(kind) or {}).get("items")
    if isinstance(items, list):
        return items

    for query in (page_props.get("dehydratedState") or {}).get("queries") or []:
        data = ((query or {}).get("state") or {}).get("data") or {}
        items = (data.get(kind) or {}).get("items") if isinstance(data, dict) else None
        if isinstance(items, list):
            return items
    return None


def _format_publication(pub: Dict[str, Any]) -> Dict[str, Any]:
    subdomain = pub.get("subdomain") or pub.get("hostname")
    return {
        "name": coalesce_text(pub.get("name"), pub.get("title"), "Unknown"),
        "subdomain": subdomain,
        "description": coalesce_text(pub.get("description"), pub.get("snippet")),
        "url": f"https://{subdomain}.substack.com" if subdomain else None,
        "custom_domain": pub.get("customDomain") or pub.get("custom_domain"),
    }


def _byline(post: Dict[str, Any]) -> Optional[str]:
    bylines = post.get("publishedBylines")
    if isinstance(bylines, list):
        names = [entry.get("name") for entry in bylines if isinstance(entry, dict) and entry.get("name")]
        if names:
            return ", ".join(names)
    creator = post.get("creator") or {}
    return coalesce_text(creator.get("name") if isinstance(creator, dict) else None, post.get("byline")) or None


class SubstackScraper(RateLimitedScraper):
    """
    Substack 抓取器
    支持全站搜索、指定 Publication 归档搜索与 Publication 发现
    """

    MAX_RESULTS_CEILING = 25

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._substack_settings = self.settings.substack

    @property
    def platform(self) -> SourcePlatform:
        return SourcePlatform.NEWSLETTER

    @property
    def name(self) -> str:
        return "Substack"

    @property
    def default_max_results(self) -> int:
        return self._substack_settings.max_results

    async def search(
        self,
        query: str,
        max_results: int,
        publication: Optional[str] = None,
        custom_domain: Optional[str] = None,
        sort: Optional[str] = None,
        discover: bool = False,
        **options: Any,
    ) -> List[ResearchItem]:
        """
        搜索 Substack 文章

        Args:
            query: 搜索关键词
            max_results: 最大返回结果数
            publication: 指定 Publication 子域名 (可选)
            custom_domain: Publication 自定义域名 (用于生成链接)
            sort: recent, top, oldest
            discover: 未指定 publication 时，先按主题发现 Publication

        Returns:
            文章条目列表
        """
        if discover and not publication:
            for candidate in await self.discover_publications(query):
                if candidate.get("subdomain"):
                    publication = candidate["subdomain"]
                    custom_domain = custom_domain or candidate.get("custom_domain")
                    logger.info(f"[Substack] Discovered publication: {candidate['name']}")
                    break

        if publication:
            return await self._search_publication(query, max_results, publication, custom_domain, sort)
        return await self._search_global(query, max_results)

    async def _search_global(self, query: str, max_results: int) -> List[ResearchItem]:
        """全站搜索 (解析搜索页内嵌 JSON)"""
        logger.info(f"[Substack] Searching: {query}")
        response = await self._get(f"{self._substack_settings.base_url}/search/{quote(query)}")
        posts = find_result_items(extract_next_data(response.text, self.name), "posts")

        if posts is None:
            logger.warning("[Substack] Search results missing from page data, using well-known publications")
            return self._fallback_items(max_results)

        items: List[ResearchItem] = []
        for post in posts:
            if not isinstance(post, dict):
                continue
            item = self._convert_global_post(post)
            if item is not None:
                items.append(item)
            if len(items) >= max_results:
                break
        return items

    async def _search_publication(
        self,
        query: str,
        max_results: int,
        publication: str,
        custom_domain: Optional[str],
        sort: Optional[str],
    ) -> List[ResearchItem]:
        """在指定 Publication 的归档中搜索"""
        api_sort = ARCHIVE_SORTS.get(sort or self._substack_settings.sort, "new")
        logger.info(f"[Substack] Searching: {query} in {publication} (sort={api_sort})")

        payload = await self._get_json(
            f"https://{publication}.substack.com/api/v1/archive",
            params={"sort": api_sort, "search": query, "offset": 0, "limit": max_results},
        )
        if not isinstance(payload, list):
            raise MalformedResponseError("Archive response is not a list", source=self.name, snippet=repr(payload))

        needle = query.lower()
        domain = custom_domain or f"{publication}.substack.com"
        items: List[ResearchItem] = []
        for post in payload:
            if not isinstance(post, dict):
                continue
            haystack = f"{post.get('title') or ''} {post.get('description') or ''}".lower()
            if needle and needle not in haystack:
                continue
            item = self._convert_archive_post(post, publication, domain)
            if item is not None:
                items.append(item)
            if len(items) >= max_results:
                break
        return items

    async def discover_publications(self, topic: str) -> List[Dict[str, Any]]:
        """
        按主题发现 Publication: 先调用搜索 API，再解析 HTML，最后使用内置列表
        """
        base_url = self._substack_settings.base_url
        try:
            payload = await self._get_json(
                f"{base_url}/api/v1/search/publications",
                params={"term": topic, "limit": 10},
            )
            results = payload.get("results") if isinstance(payload, dict) else None
            if isinstance(results, list) and results:
                return [_format_publication(pub) for pub in results if isinstance(pub, dict)]
        except ScraperError as exc:
            logger.warning(f"[Substack] Publication search API failed: {exc}")

        try:
            response = await self._get(f"{base_url}/search/publications/{quote(topic)}")
            publications = find_result_items(extract_next_data(response.text, self.name), "publications")
            if publications:
                return [_format_publication(pub) for pub in publications if isinstance(pub, dict)]
        except ScraperError as exc:
            logger.warning(f"[Substack] Publication search page failed: {exc}")

        logger.info("[Substack] Using well-known publications")
        return [dict(pub) for pub in POPULAR_PUBLICATIONS]

    def _fallback_items(self, max_results: int) -> List[ResearchItem]:
        items = []
        for pub in POPULAR_PUBLICATIONS[:max_results]:
            item = self.make_item(
                title=pub["name"],
                body=pub["description"],
                url=pub["url"],
                author=pub["name"],
                extra={"publication": pub["name"], "fallback": True},
            )
            if item is not None:
                items.append(item)
        return items

    def _convert_global_post(self, post: Dict[str, Any]) -> Optional[ResearchItem]:
        """转换全站搜索结果"""
        publication = post.get("publication") or {}
        hostname = post.get("hostname") or post.get("hostName")
        url = post.get("fullUrl") or post.get("canonical_url") or post.get("url")
        if not url and hostname and post.get("slug"):
            url = f"https://{hostname}.substack.com/p/{post['slug']}"

        return self.make_item(
            title=coalesce_text(post.get("title"), post.get("headline")),
            body=coalesce_text(post.get("subtitle"), post.get("description"), post.get("snippet"), post.get("excerpt")),
            url=url,
            author=_byline(post),
            published_at=parse_datetime(post.get("publishedAt") or post.get("post_date") or post.get("postDate")),
            engagement={"likes": to_int(post.get("reaction_count"))} if post.get("reaction_count") else {},
            extra={
                "publication": coalesce_text(
                    publication.get("name") if isinstance(publication, dict) else None, hostname
                ) or None,
                "type": post.get("type") or "post",
            },
        )

    def _convert_archive_post(self, post: Dict[str, Any], publication: str, domain: str) -> Optional[ResearchItem]:
        """转换归档接口结果"""
        base_url = f"https://{domain}"
        canonical = post.get("canonical_url")
        if canonical:
            url = canonical if canonical.startswith("http") else f"{base_url}{canonical}"
        else:
            url = f"{base_url}/p/{post.get('slug') or ''}"

        return self.make_item(
            title=post.get("title"),
            body=coalesce_text(post.get("description"), post.get("subtitle")),
            url=url,
            author=_byline(post),
            published_at=parse_datetime(post.get("post_date")),
            engagement={"likes": to_int(post.get("reaction_count"))} if post.get("reaction_count") else {},
            extra={"publication": publication, "type": post.get("type"), "audience": post.get("audience") or "everyone"},
        )
