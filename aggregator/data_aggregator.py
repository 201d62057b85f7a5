"""
Data Aggregator
统一聚合多个数据源的结果
"""
import asyncio
from typing import Any, Awaitable, Dict, List, Mapping, Optional, Tuple
import logging

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from config import Settings, get_settings
from models import ResearchBundle, ResearchItem, SourcePlatform
from scrapers import BaseScraper, create_scraper


logger = logging.getLogger(__name__)
console = Console()


def normalize_counts(per_source_counts: Mapping[Any, Any]) -> Dict[SourcePlatform, int]:
    """
    规范化各平台请求数量，保留调用方的顺序

    Args:
        per_source_counts: 平台 (枚举或其值) -> 数量

    Returns:
        数量大于 0 的平台映射
    """
    counts: Dict[SourcePlatform, int] = {}
    for platform, count in per_source_counts.items():
        try:
            value = int(count or 0)
        except (TypeError, ValueError):
            value = 0
        if value > 0:
            counts[SourcePlatform(platform)] = value
    return counts


class DataAggregator:
    """
    数据聚合器
    按平台并发调用抓取器，并按提交顺序合并结果
    """

    def __init__(
        self,
        scrapers: Optional[Mapping[SourcePlatform, BaseScraper]] = None,
        settings: Optional[Settings] = None,
    ):
        """
        初始化聚合器

        Args:
            scrapers: 预先构造的抓取器 (测试注入用)，缺失的平台按需创建
            settings: 配置
        """
        self.settings = settings or get_settings()
        self._scrapers: Dict[SourcePlatform, BaseScraper] = dict(scrapers or {})
        self._owned: List[BaseScraper] = []

    def get_scraper(self, platform: SourcePlatform) -> BaseScraper:
        """获取 (必要时创建) 指定平台的抓取器"""
        if platform not in self._scrapers:
            scraper = create_scraper(platform, settings=self.settings)
            self._scrapers[platform] = scraper
            self._owned.append(scraper)
        return self._scrapers[platform]

    async def aggregate(
        self,
        subject: str,
        per_source_counts: Mapping[Any, Any],
        source_options: Optional[Mapping[SourcePlatform, Mapping[str, Any]]] = None,
        show_progress: bool = False,
    ) -> ResearchBundle:
        """
        聚合搜索所有请求的数据源

        Args:
            subject: 搜索主题
            per_source_counts: 各平台请求数量 (<= 0 表示跳过，不会调用)
            source_options: 各平台特有参数
            show_progress: 是否显示进度与汇总表

        Returns:
            研究聚合结果
        """
        requested = normalize_counts(per_source_counts)
        source_options = source_options or {}
        bundle = ResearchBundle(subject=subject, requested=requested)

        if not requested:
            logger.info("No sources requested, research bundle is empty")
            return bundle

        if show_progress:
            console.print(f"\n🔍 [bold blue]Researching:[/bold blue] {subject}\n")

        source_jobs: List[Tuple[SourcePlatform, Awaitable[List[ResearchItem]]]] = []
        for platform, count in requested.items():
            scraper = self.get_scraper(platform)
            options = dict(source_options.get(platform) or {})
            source_jobs.append((platform, scraper.fetch(subject, count, **options)))

        tasks = [job for _, job in source_jobs]

        # 并行执行所有抓取 (fetch 自身不会抛出异常)
        if show_progress:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
            ) as progress:
                task = progress.add_task(f"[cyan]Fetching from {len(tasks)} sources...", total=None)
                results = await asyncio.gather(*tasks)
                progress.update(task, completed=True)
        else:
            results = await asyncio.gather(*tasks)

        items: List[ResearchItem] = []
        skipped: Dict[SourcePlatform, str] = {}
        for (platform, _), payload in zip(source_jobs, results):
            items.extend(payload)
            reason = self._scrapers[platform].last_skip_reason
            if reason:
                skipped[platform] = reason
                logger.warning(f"Source {platform.label} skipped: {reason}")

        bundle = bundle.model_copy(update={"items": items, "skipped": skipped})

        if show_progress:
            self._print_summary(bundle)

        return bundle

    def _print_summary(self, bundle: ResearchBundle):
        """打印结果摘要"""
        console.print()

        table = Table(title="📊 Research Summary", show_header=True)
        table.add_column("Source", style="cyan")
        table.add_column("Requested", justify="right", style="magenta")
        table.add_column("Count", justify="right", style="green")
        table.add_column("Note", style="yellow")

        counts = bundle.counts()
        for platform, requested in bundle.requested.items():
            table.add_row(
                platform.label,
                str(requested),
                str(counts.get(platform, 0)),
                bundle.skipped.get(platform, ""),
            )

        table.add_row("[bold]Total[/bold]", "", f"[bold]{bundle.total_count}[/bold]", "")
        console.print(table)
        console.print()

    async def close(self):
        """关闭聚合器创建的抓取器"""
        for scraper in self._owned:
            await scraper.close()
        self._owned.clear()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
