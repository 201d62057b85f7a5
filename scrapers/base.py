"""
Base Scraper
所有抓取器的抽象基类

Public entry point is ``fetch``: it clamps the requested count to the
platform ceiling and never raises. Subclasses implement ``search`` and are
free to raise anything from ``utils.exceptions``.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional
import asyncio
import html as html_lib
import logging
import re
import time

import httpx
from pydantic import ValidationError

from config import Settings, get_settings
from models import ResearchItem, SourcePlatform
from utils.exceptions import (
    AuthNotConfiguredError,
    MalformedResponseError,
    ScraperError,
    TransportError,
    UnexpectedStatusError,
)


logger = logging.getLogger(__name__)


def strip_html(value: Any) -> str:
    """去除 HTML 标签/CDATA 并反转义实体"""
    text = str(value or "")
    text = re.sub(r"<!\[CDATA\[(.*?)\]\]>", r"\1", text, flags=re.DOTALL)
    text = re.sub(r"<script[^>]*>.*?</script>", " ", text, flags=re.IGNORECASE | re.DOTALL)
    text = re.sub(r"<style[^>]*>.*?</style>", " ", text, flags=re.IGNORECASE | re.DOTALL)
    # 实体可能被双重转义 (&amp;lt;b&amp;gt;)
    for _ in range(2):
        text = html_lib.unescape(text)
        text = re.sub(r"<[^>]+>", " ", text)
    return re.sub(r"\s+", " ", text).strip()


def parse_datetime(value: Any) -> Optional[datetime]:
    """解析 ISO-8601 / RFC-822 / Unix 时间戳，失败返回 None"""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    text = str(value).strip()
    try:
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            dt = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def coalesce_text(*values: Any) -> str:
    """返回第一个非空文本"""
    for value in values:
        text = str(value or "").strip()
        if text:
            return text
    return ""


def to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


class BaseScraper(ABC):
    """
    抓取器抽象基类
    所有具体抓取器都需要继承此类并实现抽象方法
    """

    # 平台允许的单次最大条目数
    MAX_RESULTS_CEILING: int = 5

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self._client = client
        self._owns_client = client is None
        self._warned_unconfigured = False
        self.last_skip_reason: Optional[str] = None

    @property
    @abstractmethod
    def platform(self) -> SourcePlatform:
        """返回数据源平台"""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """返回抓取器名称"""
        pass

    @property
    def default_max_results(self) -> int:
        return self.MAX_RESULTS_CEILING

    @abstractmethod
    async def search(self, query: str, max_results: int, **options: Any) -> List[ResearchItem]:
        """
        搜索接口 (可抛出 ScraperError 子类)

        Args:
            query: 搜索关键词
            max_results: 已按平台上限截断的结果数
            options: 数据源特有参数

        Returns:
            研究条目列表
        """
        pass

    def is_configured(self) -> bool:
        """
        检查是否已正确配置
        子类可以覆盖此方法来检查必要的API密钥等
        """
        return True

    @property
    def required_credential(self) -> Optional[str]:
        """缺失时需提示的环境变量名"""
        return None

    def clamp(self, max_results: Optional[int]) -> int:
        """将请求数量限制在 [0, MAX_RESULTS_CEILING]"""
        if max_results is None:
            max_results = self.default_max_results
        return max(0, min(to_int(max_results), self.MAX_RESULTS_CEILING))

    async def fetch(self, query: str, max_results: Optional[int] = None, **options: Any) -> List[ResearchItem]:
        """
        抓取并标准化结果，任何错误都只记录日志并返回空列表

        Args:
            query: 搜索关键词
            max_results: 期望结果数 (0 表示跳过，不发起请求)
            options: 数据源特有参数

        Returns:
            研究条目列表 (长度不超过 min(max_results, 平台上限))
        """
        self.last_skip_reason = None
        limit = self.clamp(max_results)
        if limit <= 0:
            return []

        if not (query or "").strip():
            logger.warning(f"[{self.name}] Empty query, skipping")
            return []

        if not self.is_configured():
            self._mark_unconfigured()
            return []

        try:
            items = await self.search(query.strip(), limit, **options)
        except AuthNotConfiguredError:
            self._mark_unconfigured()
            return []
        except UnexpectedStatusError as exc:
            self._log_error(f"Unexpected status {exc.status_code} for '{query}'", exc)
            return []
        except MalformedResponseError as exc:
            self._log_error(f"Malformed response for '{query}' (snippet: {exc.snippet!r})", exc)
            return []
        except ScraperError as exc:
            self._log_error(f"Search failed for '{query}'", exc)
            return []
        except Exception as exc:
            logger.exception(f"[{self.name}] Unexpected error for '{query}': {exc}")
            return []

        items = items[:limit]
        self._log_search(query, len(items))
        return items

    def _mark_unconfigured(self) -> None:
        credential = self.required_credential or "credential"
        self.last_skip_reason = f"missing credential ({credential})"
        if not self._warned_unconfigured:
            logger.warning(f"[{self.name}] Source skipped: missing credential {credential}")
            self._warned_unconfigured = True

    def make_item(self, **fields: Any) -> Optional[ResearchItem]:
        """构造研究条目，标题为空等无效数据返回 None"""
        try:
            return ResearchItem(platform=self.platform, **fields)
        except ValidationError as exc:
            logger.debug(f"[{self.name}] Dropping invalid item: {exc.errors()[0].get('msg')}")
            return None

    # ---------------------------------------------------------------- HTTP

    def _default_headers(self) -> Dict[str, str]:
        return {"User-Agent": self.settings.general.user_agent}

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.general.request_timeout),
                follow_redirects=True,
                headers=self._default_headers(),
            )
            self._owns_client = True
        return self._client

    async def _get(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """发起 GET 请求并把 httpx 错误映射到抓取器异常"""
        await self._wait_for_rate_limit()
        client = self._get_client()
        try:
            response = await client.get(url, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise TransportError(f"{exc.__class__.__name__}: {exc}", source=self.name, url=url) from exc

        if not 200 <= response.status_code < 300:
            raise UnexpectedStatusError(
                f"HTTP {response.status_code}",
                source=self.name,
                status_code=response.status_code,
            )
        return response

    async def _get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        response = await self._get(url, params=params, headers=headers)
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError("Response is not valid JSON", source=self.name, snippet=response.text) from exc

    async def _wait_for_rate_limit(self):
        """基类不限速"""
        return None

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()

    async def close(self):
        """清理资源"""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    def _log_search(self, query: str, count: int):
        """记录搜索日志"""
        logger.info(f"[{self.name}] Search '{query}' returned {count} results")

    def _log_error(self, message: str, error: Exception):
        """记录错误日志"""
        logger.error(f"[{self.name}] {message}: {error}")


class RateLimitedScraper(BaseScraper):
    """
    带速率限制的抓取器基类 (仅约束本抓取器自身的顺序请求)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
        requests_per_second: Optional[float] = None,
    ):
        super().__init__(settings=settings, client=client)
        self._rate_limit = requests_per_second or self.settings.general.requests_per_second
        self._last_request_time = 0.0
        self._lock = asyncio.Lock()

    async def _wait_for_rate_limit(self):
        """等待满足速率限制"""
        async with self._lock:
            current_time = time.monotonic()
            time_since_last = current_time - self._last_request_time
            min_interval = 1.0 / self._rate_limit

            if time_since_last < min_interval:
                await asyncio.sleep(min_interval - time_since_last)

            self._last_request_time = time.monotonic()
