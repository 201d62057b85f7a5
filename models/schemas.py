"""
Data Models / Schemas
定义统一的数据结构
"""
from collections import OrderedDict
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# 研究条目正文预览的最大长度
BODY_PREVIEW_LIMIT = 500


def truncate_preview(text: Optional[str], limit: int = BODY_PREVIEW_LIMIT) -> str:
    """截断正文到预览长度，超出部分以 ... 结尾"""
    value = (text or "").strip()
    if len(value) <= limit:
        return value
    return value[: max(0, limit - 3)].rstrip() + "..."


class SourcePlatform(str, Enum):
    """数据来源平台"""
    NEWS_SEARCH_A = "bing"
    NEWS_SEARCH_B = "tavily"
    VIDEO = "youtube"
    FORUM = "reddit"
    NEWSLETTER = "substack"

    @property
    def label(self) -> str:
        return _PLATFORM_LABELS[self]


_PLATFORM_LABELS = {
    SourcePlatform.NEWS_SEARCH_A: "Bing News",
    SourcePlatform.NEWS_SEARCH_B: "Tavily News",
    SourcePlatform.VIDEO: "YouTube",
    SourcePlatform.FORUM: "Reddit",
    SourcePlatform.NEWSLETTER: "Substack",
}


class RequestKind(str, Enum):
    """生成请求类型"""
    BLOG = "blog"
    TOPIC_LIST = "topics"


class BlogFormat(str, Enum):
    """博客输出契约"""
    SECTIONS = "sections"
    FRONT_MATTER = "front_matter"


class ResearchItem(BaseModel):
    """统一的研究条目 (不可变)"""
    model_config = ConfigDict(frozen=True)

    platform: SourcePlatform = Field(..., description="数据来源平台")
    title: str = Field(..., description="标题")
    body: str = Field(default="", description="描述/摘要 (已截断)")
    url: Optional[str] = Field(None, description="原文链接")
    author: Optional[str] = Field(None, description="作者/频道/子版块")
    published_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="发布时间")
    engagement: Dict[str, int] = Field(default_factory=dict, description="互动数据 (views, likes, upvotes, comments)")
    extra: Dict[str, Any] = Field(default_factory=dict, description="来源特有信息")

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        value = (value or "").strip()
        if not value:
            raise ValueError("title must not be blank")
        return value

    @field_validator("body", mode="before")
    @classmethod
    def _bounded_body(cls, value: Any) -> str:
        return truncate_preview(value if isinstance(value, str) else ("" if value is None else str(value)))

    @field_validator("published_at", mode="before")
    @classmethod
    def _default_published_at(cls, value: Any) -> Any:
        if value is None or value == "":
            return datetime.now(timezone.utc)
        return value

    @field_validator("url", "author", mode="before")
    @classmethod
    def _empty_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def published_date(self) -> str:
        return self.published_at.date().isoformat()


class ResearchBundle(BaseModel):
    """一次运行的研究聚合结果"""
    subject: str = Field(..., description="主题/类别")
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="聚合时间")
    items: List[ResearchItem] = Field(default_factory=list, description="按平台提交顺序排列的条目")
    requested: Dict[SourcePlatform, int] = Field(default_factory=dict, description="各平台请求数量")
    skipped: Dict[SourcePlatform, str] = Field(default_factory=dict, description="被跳过的数据源及原因")

    @property
    def total_count(self) -> int:
        return len(self.items)

    def counts(self) -> Dict[SourcePlatform, int]:
        """各平台条目数 (仅包含已请求的平台)"""
        result = {platform: 0 for platform in self.requested}
        for item in self.items:
            result[item.platform] = result.get(item.platform, 0) + 1
        return result

    def by_platform(self) -> "OrderedDict[SourcePlatform, List[ResearchItem]]":
        """按平台分组，保持首次出现顺序与组内顺序"""
        groups: "OrderedDict[SourcePlatform, List[ResearchItem]]" = OrderedDict()
        for item in self.items:
            groups.setdefault(item.platform, []).append(item)
        return groups

    def summary(self) -> Dict[str, int]:
        data = {platform.value: count for platform, count in self.counts().items()}
        data["total"] = self.total_count
        return data

    def snapshot(self) -> Dict[str, Any]:
        """审计快照 (JSON 可序列化)"""
        return {
            "subject": self.subject,
            "timestamp": self.generated_at.isoformat(),
            "counts": self.summary(),
            "skipped": {platform.value: reason for platform, reason in self.skipped.items()},
            "items": [item.model_dump(mode="json") for item in self.items],
        }


class GenerationRequest(BaseModel):
    """渲染后的生成请求"""
    kind: RequestKind
    subject: str
    audience: str
    keywords: List[str] = Field(default_factory=list)
    context_blocks: List[str] = Field(default_factory=list, description="各平台渲染后的研究块")
    output_contract: str = Field(..., description="输出格式约束")
    current_date: date
    prompt_text: str

    @property
    def primary_keyword(self) -> Optional[str]:
        return self.keywords[0] if self.keywords else None


class GeneratedDocument(BaseModel):
    """生成的博客文档"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = ""
    meta_description: str = ""
    summary: str = ""
    tags: List[str] = Field(default_factory=list)
    body: str
    raw_content: str = ""

    @field_validator("body")
    @classmethod
    def _body_not_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("body must not be empty")
        return value


class TopicIdea(BaseModel):
    """单个选题"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = ""
    summary: str = ""
    key_points: List[str] = Field(default_factory=list)
    target_keyword: str = ""
    value_proposition: str = ""

    @field_validator("key_points", mode="before")
    @classmethod
    def _coerce_key_points(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return [str(point) for point in value]

    @field_validator("title", "summary", "target_keyword", "value_proposition", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value)


class TopicIdeaSet(BaseModel):
    """选题集合；解析失败时 topics 为空且 error 非空"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    category: str
    audience: str
    generated_at: str
    topics: List[TopicIdea] = Field(default_factory=list)
    raw_content: Optional[str] = None
    error: Optional[str] = None
    repairs: List[str] = Field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"repairs"})
