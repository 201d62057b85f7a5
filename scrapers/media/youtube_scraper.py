"""
YouTube Scraper
通过 YouTube Data API v3 抓取视频
"""
from typing import Any, Dict, List, Optional
import logging

from scrapers.base import RateLimitedScraper, parse_datetime, strip_html, to_int
from models import ResearchItem, SourcePlatform
from utils.exceptions import AuthNotConfiguredError, MalformedResponseError, ScraperError


logger = logging.getLogger(__name__)

VALID_ORDERS = {"relevance", "date", "rating", "viewCount", "title"}
VALID_TYPES = {"video"}


class YouTubeScraper(RateLimitedScraper):
    """
    YouTube 抓取器
    search 接口返回视频 ID，videos 接口补充统计数据 (尽力而为)
    """

    MAX_RESULTS_CEILING = 50

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._youtube_settings = self.settings.youtube

    @property
    def platform(self) -> SourcePlatform:
        return SourcePlatform.VIDEO

    @property
    def name(self) -> str:
        return "YouTube"

    @property
    def default_max_results(self) -> int:
        return self._youtube_settings.max_results

    @property
    def required_credential(self) -> str:
        return "YOUTUBE_API_KEY"

    def is_configured(self) -> bool:
        return bool(self._youtube_settings.api_key)

    async def search(
        self,
        query: str,
        max_results: int,
        order: Optional[str] = None,
        video_type: str = "video",
        **options: Any,
    ) -> List[ResearchItem]:
        """
        搜索 YouTube 视频

        Args:
            query: 搜索关键词
            max_results: 最大返回结果数
            order: relevance, date, rating, viewCount, title
            video_type: 仅支持 video (频道与播放列表不含统计数据)

        Returns:
            视频条目列表
        """
        api_key = self._youtube_settings.api_key
        if not api_key:
            raise AuthNotConfiguredError("YouTube API key missing", source=self.name)

        order = order if order in VALID_ORDERS else self._youtube_settings.order
        video_type = video_type if video_type in VALID_TYPES else "video"
        logger.info(f"[YouTube] Searching: {query} (order={order})")

        payload = await self._get_json(
            f"{self._youtube_settings.base_url}/search",
            params={
                "part": "snippet",
                "q": query,
                "type": video_type,
                "order": order,
                "maxResults": max_results,
                "key": api_key,
            },
        )
        if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
            raise MalformedResponseError("Missing 'items' in search response", source=self.name, snippet=repr(payload))

        videos = [
            entry for entry in payload["items"]
            if isinstance(entry, dict) and (entry.get("id") or {}).get("kind") == "youtube#video"
        ][:max_results]
        if not videos:
            return []

        stats = await self._fetch_statistics([entry["id"].get("videoId") for entry in videos], api_key)

        items: List[ResearchItem] = []
        for entry in videos:
            item = self._convert_to_item(entry, stats)
            if item is not None:
                items.append(item)
        return items

    async def _fetch_statistics(self, video_ids: List[Optional[str]], api_key: str) -> Dict[str, Dict[str, Any]]:
        """批量获取统计数据，失败时返回空字典"""
        ids = [video_id for video_id in video_ids if video_id]
        if not ids:
            return {}
        try:
            payload = await self._get_json(
                f"{self._youtube_settings.base_url}/videos",
                params={"part": "statistics", "id": ",".join(ids), "key": api_key},
            )
        except ScraperError as exc:
            logger.warning(f"[YouTube] Statistics unavailable, continuing without them: {exc}")
            return {}

        if not isinstance(payload, dict):
            return {}
        return {
            entry.get("id"): entry.get("statistics") or {}
            for entry in payload.get("items") or []
            if isinstance(entry, dict)
        }

    def _convert_to_item(self, entry: Dict[str, Any], stats: Dict[str, Dict[str, Any]]) -> Optional[ResearchItem]:
        """转换搜索结果"""
        video_id = entry["id"].get("videoId")
        snippet = entry.get("snippet") or {}
        statistics = stats.get(video_id, {})
        thumbnail = ((snippet.get("thumbnails") or {}).get("high") or {}).get("url")

        return self.make_item(
            title=strip_html(snippet.get("title")),
            body=strip_html(snippet.get("description")),
            url=f"https://www.youtube.com/watch?v={video_id}" if video_id else None,
            author=snippet.get("channelTitle"),
            published_at=parse_datetime(snippet.get("publishedAt")),
            engagement={
                "views": to_int(statistics.get("viewCount")),
                "likes": to_int(statistics.get("likeCount")),
                "comments": to_int(statistics.get("commentCount")),
            },
            extra={"video_id": video_id, "channel": snippet.get("channelTitle"), "thumbnail_url": thumbnail},
        )
