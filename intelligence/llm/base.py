"""
Base LLM
LLM 抽象基类: 生成流程只需要单轮补全与资源释放
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Message:
    """对话消息 (role 为 OpenAI chat 格式的角色名)"""
    role: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)


@dataclass
class LLMResponse:
    """LLM 响应"""
    content: str
    model: str
    usage: Dict[str, int] = field(default_factory=dict)  # prompt_tokens, completion_tokens, total_tokens
    finish_reason: Optional[str] = None
    raw_response: Optional[Any] = None


class BaseLLM(ABC):
    """
    LLM 抽象基类

    供应商实现只需提供 provider 与 acomplete；持有网络客户端的实现覆盖 aclose
    """

    def __init__(
        self,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        timeout: float = 60.0,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    @property
    @abstractmethod
    def provider(self) -> str:
        """供应商名称，用于日志与错误信息"""
        pass

    @abstractmethod
    async def acomplete(self, messages: List[Message], **kwargs) -> LLMResponse:
        """
        单次补全请求，不做重试

        Args:
            messages: 对话消息列表
            **kwargs: 覆盖参数 (model, temperature, max_tokens)

        Returns:
            LLMResponse
        """
        pass

    async def aclose(self) -> None:
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model}, provider={self.provider})"
