"""
Settings Configuration
使用 Pydantic 进行配置验证和管理
"""
import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_NEWS_DOMAINS = [
    "news.google.com",
    "cnn.com",
    "bbc.com",
    "reuters.com",
    "bloomberg.com",
    "nytimes.com",
    "wsj.com",
    "theguardian.com",
    "apnews.com",
    "npr.org",
]

# 旧版环境变量名 -> 当前名称
_LEGACY_ENV_NAMES = {
    "GROQ_API_KEY": "LLM_GROQ_API_KEY",
    "OPENAI_API_KEY": "LLM_OPENAI_API_KEY",
}


class BingSettings(BaseSettings):
    """Bing News RSS 配置"""
    base_url: str = Field(default="https://www.bing.com/news/search", description="RSS 搜索地址")
    max_results: int = Field(default=5, description="默认返回结果数")

    class Config:
        env_prefix = "BING_"


class TavilySettings(BaseSettings):
    """Tavily Search API 配置"""
    api_key: Optional[str] = Field(default=None, description="Tavily API Key")
    search_depth: str = Field(default="advanced", description="搜索深度: basic, advanced")
    include_domains: List[str] = Field(default_factory=lambda: list(DEFAULT_NEWS_DOMAINS), description="限定新闻域名")
    max_results: int = Field(default=5, description="默认返回结果数")

    class Config:
        env_prefix = "TAVILY_"


class YouTubeSettings(BaseSettings):
    """YouTube Data API 配置"""
    api_key: Optional[str] = Field(default=None, description="YouTube Data API Key")
    base_url: str = Field(default="https://www.googleapis.com/youtube/v3", description="API 地址")
    order: str = Field(default="relevance", description="排序方式")
    max_results: int = Field(default=5, description="默认返回结果数")

    class Config:
        env_prefix = "YOUTUBE_"


class RedditSettings(BaseSettings):
    """Reddit 公共 JSON 接口配置"""
    base_url: str = Field(default="https://www.reddit.com", description="Reddit 地址")
    sort: str = Field(default="relevance", description="排序方式")
    time_filter: str = Field(default="week", description="时间范围")
    max_results: int = Field(default=10, description="默认返回结果数")

    class Config:
        env_prefix = "REDDIT_"


class SubstackSettings(BaseSettings):
    """Substack 配置"""
    base_url: str = Field(default="https://substack.com", description="Substack 地址")
    sort: str = Field(default="recent", description="归档排序: recent, top")
    max_results: int = Field(default=5, description="默认返回结果数")

    class Config:
        env_prefix = "SUBSTACK_"


class GeneralSettings(BaseSettings):
    """通用设置"""
    request_timeout: float = Field(default=15.0, description="请求超时时间(秒)")
    user_agent: str = Field(default=BROWSER_USER_AGENT, description="浏览器 User-Agent")
    requests_per_second: float = Field(default=2.0, description="单个数据源的请求速率")


class LLMSettings(BaseSettings):
    """LLM 配置"""
    provider: str = Field(default="groq", description="LLM提供商: groq, openai")
    default_model: Optional[str] = Field(default=None, description="模型名称(不填则使用提供商默认)")
    temperature: float = Field(default=0.7, description="生成温度")
    max_tokens: int = Field(default=4096, description="最大生成token数")
    timeout: float = Field(default=120.0, description="调用超时(秒)")
    max_attempts: int = Field(default=1, description="生成调用的最大尝试次数 (1 表示不重试)")

    # API Keys
    groq_api_key: Optional[str] = Field(default=None, description="Groq API Key")
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API Key")

    class Config:
        env_prefix = "LLM_"

    def api_key_for(self, provider: Optional[str] = None) -> Optional[str]:
        """返回指定提供商的 API Key"""
        provider = (provider or self.provider).lower()
        return getattr(self, f"{provider}_api_key", None)


class OutputSettings(BaseSettings):
    """输出配置"""
    output_dir: str = Field(default="./output", description="默认输出目录")
    save_prompt: bool = Field(default=True, description="是否保存提示词审计文件")
    save_research: bool = Field(default=True, description="是否保存调研快照")

    class Config:
        env_prefix = "OUTPUT_"


class Settings(BaseSettings):
    """主配置类 - 聚合所有子配置"""

    bing: BingSettings = Field(default_factory=BingSettings)
    tavily: TavilySettings = Field(default_factory=TavilySettings)
    youtube: YouTubeSettings = Field(default_factory=YouTubeSettings)
    reddit: RedditSettings = Field(default_factory=RedditSettings)
    substack: SubstackSettings = Field(default_factory=SubstackSettings)
    general: GeneralSettings = Field(default_factory=GeneralSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """从 .env 文件加载配置 (默认依次查找 ./.env 与 config/.env)"""
        from dotenv import load_dotenv

        candidates = [env_path] if env_path else [Path.cwd() / ".env", Path(__file__).parent / ".env"]
        for path in candidates:
            if path and path.exists():
                load_dotenv(path)

        for legacy, current in _LEGACY_ENV_NAMES.items():
            if os.getenv(legacy) and not os.getenv(current):
                os.environ[current] = os.environ[legacy]

        return cls(
            bing=BingSettings(),
            tavily=TavilySettings(),
            youtube=YouTubeSettings(),
            reddit=RedditSettings(),
            substack=SubstackSettings(),
            general=GeneralSettings(),
            llm=LLMSettings(),
            output=OutputSettings(),
        )


@lru_cache()
def get_settings() -> Settings:
    """获取全局配置单例"""
    return Settings.load_from_env_file()


# 便捷访问
def get_llm_settings() -> LLMSettings:
    return get_settings().llm
