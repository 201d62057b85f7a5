"""
Reddit Scraper
从 Reddit 公共 JSON 接口抓取社区讨论
"""
from typing import Any, Dict, List, Optional
from urllib.parse import quote
import logging

from scrapers.base import RateLimitedScraper, parse_datetime, to_int
from models import ResearchItem, SourcePlatform
from utils.exceptions import MalformedResponseError


logger = logging.getLogger(__name__)

VALID_SORTS = {"relevance", "hot", "new", "top"}
VALID_TIME_FILTERS = {"hour", "day", "week", "month", "year", "all"}


class RedditScraper(RateLimitedScraper):
    """
    Reddit 抓取器
    使用无需认证的 search.json 接口
    """

    MAX_RESULTS_CEILING = 25

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._reddit_settings = self.settings.reddit

    @property
    def platform(self) -> SourcePlatform:
        return SourcePlatform.FORUM

    @property
    def name(self) -> str:
        return "Reddit"

    @property
    def default_max_results(self) -> int:
        return self._reddit_settings.max_results

    async def search(
        self,
        query: str,
        max_results: int,
        subreddit: Optional[str] = None,
        sort: Optional[str] = None,
        time_filter: Optional[str] = None,
        **options: Any,
    ) -> List[ResearchItem]:
        """
        搜索 Reddit 帖子

        Args:
            query: 搜索关键词
            max_results: 最大返回结果数
            subreddit: 限定的 subreddit (可选)
            sort: relevance, hot, new, top
            time_filter: hour, day, week, month, year, all

        Returns:
            帖子条目列表
        """
        sort = sort if sort in VALID_SORTS else self._reddit_settings.sort
        time_filter = time_filter if time_filter in VALID_TIME_FILTERS else self._reddit_settings.time_filter
        params: Dict[str, Any] = {"q": query, "sort": sort, "t": time_filter, "limit": max_results}

        subreddit = (subreddit or "").strip().removeprefix("r/")
        if subreddit:
            url = f"{self._reddit_settings.base_url}/r/{quote(subreddit)}/search.json"
            params["restrict_sr"] = "on"
            logger.info(f"[Reddit] Searching: {query} in r/{subreddit}")
        else:
            url = f"{self._reddit_settings.base_url}/search.json"
            logger.info(f"[Reddit] Searching: {query}")

        payload = await self._get_json(url, params=params, headers={"Accept": "application/json"})
        children = (payload.get("data") or {}).get("children") if isinstance(payload, dict) else None
        if not isinstance(children, list):
            raise MalformedResponseError("Missing 'data.children' in response", source=self.name, snippet=repr(payload))

        items: List[ResearchItem] = []
        for child in children:
            if not isinstance(child, dict) or child.get("kind") != "t3":
                continue
            item = self._convert_to_item(child.get("data") or {})
            if item is not None:
                items.append(item)
            if len(items) >= max_results:
                break
        return items

    def _convert_to_item(self, post: Dict[str, Any]) -> Optional[ResearchItem]:
        """转换帖子数据"""
        permalink = post.get("permalink") or ""
        subreddit = post.get("subreddit_name_prefixed") or (
            f"r/{post['subreddit']}" if post.get("subreddit") else None
        )
        return self.make_item(
            title=post.get("title"),
            body=post.get("selftext") or "[Link post]",
            url=f"https://www.reddit.com{permalink}" if permalink else post.get("url"),
            author=post.get("author"),
            published_at=parse_datetime(post.get("created_utc")),
            engagement={
                "upvotes": to_int(post.get("score")),
                "comments": to_int(post.get("num_comments")),
            },
            extra={"subreddit": subreddit, "id": post.get("id")},
        )
