"""
OpenAI LLM
OpenAI 及 OpenAI 兼容接口的实现
"""
from typing import List, Optional
import logging

from openai import AsyncOpenAI

from .base import BaseLLM, Message, LLMResponse


logger = logging.getLogger(__name__)


class OpenAILLM(BaseLLM):
    """
    OpenAI LLM 实现

    支持模型:
    - gpt-4o-mini (默认)
    - gpt-4o
    - 任意 OpenAI 兼容端点上的模型 (通过 base_url)
    """

    DEFAULT_BASE_URL: Optional[str] = None

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        timeout: float = 60.0,
    ):
        super().__init__(model, temperature, max_tokens, timeout)
        self.api_key = api_key
        self.base_url = base_url or self.DEFAULT_BASE_URL
        self._async_client = None

    @property
    def provider(self) -> str:
        return "openai"

    def _get_async_client(self) -> AsyncOpenAI:
        """获取异步客户端"""
        if self._async_client is None:
            self._async_client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
            )
        return self._async_client

    def _request_params(self, messages: List[Message], **kwargs) -> dict:
        return {
            "model": kwargs.get("model") or self.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": kwargs.get("temperature", self.temperature),
            "max_tokens": kwargs.get("max_tokens", self.max_tokens),
        }

    async def acomplete(self, messages: List[Message], **kwargs) -> LLMResponse:
        """异步生成响应"""
        client = self._get_async_client()
        response = await client.chat.completions.create(**self._request_params(messages, **kwargs))

        if not response.choices:
            return LLMResponse(content="", model=response.model, raw_response=response)

        choice = response.choices[0]
        return LLMResponse(
            content=choice.message.content or "",
            model=response.model,
            usage={
                "prompt_tokens": response.usage.prompt_tokens if response.usage else 0,
                "completion_tokens": response.usage.completion_tokens if response.usage else 0,
                "total_tokens": response.usage.total_tokens if response.usage else 0,
            },
            finish_reason=choice.finish_reason,
            raw_response=response,
        )

    async def aclose(self) -> None:
        if self._async_client is not None:
            await self._async_client.close()
            self._async_client = None
