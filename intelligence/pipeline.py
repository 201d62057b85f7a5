"""
Content Pipeline
调研聚合 -> 提示词渲染 -> 生成 -> 解析 -> 导出 的端到端流水线
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union
import logging

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from aggregator import DataAggregator
from config import Settings, get_settings
from models import (
    BlogFormat,
    GeneratedDocument,
    GenerationRequest,
    RequestKind,
    ResearchBundle,
    SourcePlatform,
    TopicIdeaSet,
)
from outputs import (
    export_blog,
    export_topics,
    write_prompt_audit,
    write_research_snapshot,
)
from utils.exceptions import ConfigurationError, GenerationError

from .composer import DEFAULT_AUDIENCE, DEFAULT_TOPIC_COUNT, KeywordInput, PromptComposer
from .generation import GenerationClient
from .response_parser import extract_blog_fields, parse_topic_ideas


logger = logging.getLogger(__name__)

DEFAULT_BLOG_COUNTS: Dict[SourcePlatform, int] = {
    SourcePlatform.NEWS_SEARCH_A: 3,
    SourcePlatform.FORUM: 0,
    SourcePlatform.VIDEO: 0,
}

DEFAULT_TOPIC_COUNTS: Dict[SourcePlatform, int] = {
    SourcePlatform.NEWS_SEARCH_A: 3,
    SourcePlatform.NEWS_SEARCH_B: 3,
}

SourceOptions = Mapping[SourcePlatform, Mapping[str, Any]]


@dataclass
class PipelineResult:
    """一次流水线运行的结果"""
    kind: RequestKind
    request: GenerationRequest
    bundle: ResearchBundle
    raw_content: str
    document: Optional[GeneratedDocument] = None
    topics: Optional[TopicIdeaSet] = None
    output_path: Optional[Path] = None
    audit: Dict[str, Path] = field(default_factory=dict)


class ContentPipeline:
    """
    内容生成流水线

    Usage:
        async with ContentPipeline() as pipeline:
            result = await pipeline.create_blog("Dallas Mavericks", output_path="./output/blog-post.md")
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        aggregator: Optional[DataAggregator] = None,
        composer: Optional[PromptComposer] = None,
        generation_client: Optional[GenerationClient] = None,
        show_progress: bool = False,
    ):
        self.settings = settings or get_settings()
        self.aggregator = aggregator or DataAggregator(settings=self.settings)
        self.composer = composer or PromptComposer()
        self.generation_client = generation_client or GenerationClient(settings=self.settings.llm)
        self.show_progress = show_progress

    def check_preconditions(self, subject: str) -> None:
        """任何 I/O 之前检查必需的参数与凭证"""
        if not (subject or "").strip():
            raise ConfigurationError("A topic or category is required")
        if not self.generation_client.is_configured():
            raise ConfigurationError(
                f"{self.generation_client.required_credential} is not set; "
                "add it to your environment or .env file"
            )

    async def create_blog(
        self,
        topic: str,
        counts: Optional[Mapping[Any, int]] = None,
        *,
        audience: str = DEFAULT_AUDIENCE,
        keywords: KeywordInput = None,
        model: Optional[str] = None,
        output_path: Optional[Union[str, Path]] = None,
        source_options: Optional[SourceOptions] = None,
        blog_format: BlogFormat = BlogFormat.SECTIONS,
        current_date: Optional[date] = None,
    ) -> PipelineResult:
        """
        生成博客文章

        Args:
            topic: 博客主题
            counts: 各平台调研数量 (默认 Bing News 3 条)
            audience: 目标读者
            keywords: SEO 关键词 (逗号分隔或列表，第一个为主关键词)
            model: 模型名称
            output_path: 输出路径 (None 表示只在内存中返回)
            source_options: 各平台特有参数 (如 Reddit subreddit)
            blog_format: 输出契约 (分段标记或 front matter)
            current_date: 注入的当前日期

        Returns:
            PipelineResult (document 字段为解析后的文档)
        """
        self.check_preconditions(topic)
        current_date = current_date or date.today()
        options = self._with_default_options(source_options, purpose="blog")

        bundle = await self.aggregator.aggregate(
            topic, counts if counts is not None else DEFAULT_BLOG_COUNTS, options, show_progress=self.show_progress
        )
        request = self.composer.compose(
            RequestKind.BLOG, topic, audience, keywords, bundle,
            current_date=current_date, blog_format=blog_format,
        )
        raw = await self._generate(request, model)
        document = extract_blog_fields(raw)

        result = PipelineResult(kind=RequestKind.BLOG, request=request, bundle=bundle, raw_content=raw, document=document)
        if output_path is not None:
            result.audit = self._write_audit(output_path, "Topic", request, bundle)
            result.output_path = export_blog(
                output_path,
                document,
                fallback_title=topic,
                front_matter=blog_format == BlogFormat.FRONT_MATTER,
                current_date=current_date,
                author=self.composer.author,
            )
            logger.info(f"Blog post written to {result.output_path}")
        return result

    async def generate_topics(
        self,
        category: str,
        counts: Optional[Mapping[Any, int]] = None,
        *,
        count: int = DEFAULT_TOPIC_COUNT,
        audience: str = DEFAULT_AUDIENCE,
        keywords: KeywordInput = None,
        model: Optional[str] = None,
        output_path: Optional[Union[str, Path]] = None,
        source_options: Optional[SourceOptions] = None,
        current_date: Optional[date] = None,
    ) -> PipelineResult:
        """
        生成选题列表

        Returns:
            PipelineResult (topics 字段为选题集合；解析失败时为降级结构)
        """
        self.check_preconditions(category)
        current_date = current_date or date.today()
        options = self._with_default_options(source_options, purpose="topics")

        bundle = await self.aggregator.aggregate(
            category, counts if counts is not None else DEFAULT_TOPIC_COUNTS, options, show_progress=self.show_progress
        )
        request = self.composer.compose(
            RequestKind.TOPIC_LIST, category, audience, keywords, bundle,
            current_date=current_date, topic_count=count,
        )
        raw = await self._generate(request, model)
        topics = parse_topic_ideas(raw, request.subject, request.audience, current_date.isoformat())

        result = PipelineResult(kind=RequestKind.TOPIC_LIST, request=request, bundle=bundle, raw_content=raw, topics=topics)
        if output_path is not None:
            result.audit = self._write_audit(output_path, "Category", request, bundle)
            result.output_path = export_topics(output_path, topics)
            logger.info(f"Topic ideas written to {result.output_path}")
        return result

    async def _generate(self, request: GenerationRequest, model: Optional[str]) -> str:
        """调用生成端点；重试次数由 LLM_MAX_ATTEMPTS 决定 (默认不重试)"""
        attempts = max(1, int(self.settings.llm.max_attempts))
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(GenerationError),
            reraise=True,
        ):
            with attempt:
                return await self.generation_client.complete(request.prompt_text, model)
        raise GenerationError("Generation did not run")

    def _write_audit(
        self,
        output_path: Union[str, Path],
        label: str,
        request: GenerationRequest,
        bundle: ResearchBundle,
    ) -> Dict[str, Path]:
        audit: Dict[str, Path] = {}
        timestamp = datetime.now()
        if self.settings.output.save_prompt:
            audit["prompt"] = write_prompt_audit(
                output_path, label=label, subject=request.subject, prompt_text=request.prompt_text, timestamp=timestamp
            )
        if self.settings.output.save_research:
            audit["research"] = write_research_snapshot(output_path, label=label, bundle=bundle, timestamp=timestamp)
        return audit

    @staticmethod
    def _with_default_options(source_options: Optional[SourceOptions], purpose: str) -> Dict[SourcePlatform, Dict[str, Any]]:
        options = {SourcePlatform(platform): dict(values) for platform, values in (source_options or {}).items()}
        options.setdefault(SourcePlatform.NEWS_SEARCH_B, {}).setdefault("purpose", purpose)
        return options

    async def close(self):
        await self.aggregator.close()
        await self.generation_client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
