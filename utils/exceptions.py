"""
Custom Exceptions
自定义异常类

Source errors are contained inside each scraper, generation errors propagate,
parse errors degrade into data.
"""
from typing import Optional


class ContentBotError(Exception):
    """内容生成助手基础异常类"""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(ContentBotError):
    """配置错误 (缺少必要凭证或参数)"""
    pass


class ScraperError(ContentBotError):
    """抓取器错误"""

    def __init__(self, message: str, source: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.source = source


class TransportError(ScraperError):
    """网络层错误 (DNS / TLS / 超时 / 连接失败)"""
    pass


class UnexpectedStatusError(ScraperError):
    """非 2xx 响应"""

    def __init__(self, message: str, source: str = None, status_code: int = 0, **kwargs):
        super().__init__(message, source, status_code=status_code, **kwargs)
        self.status_code = status_code


class MalformedResponseError(ScraperError):
    """响应体与预期结构不符"""

    def __init__(self, message: str, source: str = None, snippet: Optional[str] = None, **kwargs):
        super().__init__(message, source, **kwargs)
        self.snippet = (snippet or "")[:200]


class AuthNotConfiguredError(ScraperError):
    """数据源所需凭证缺失"""
    pass


class GenerationError(ContentBotError):
    """LLM 调用错误"""

    def __init__(self, message: str, provider: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.provider = provider


class ResponseParseError(ContentBotError):
    """模型输出解析错误 (仅在解析器内部使用，不会穿出解析边界)"""
    pass
