"""
Groq LLM
支持 Llama 3.x, Mixtral 等托管在 Groq 上的模型
"""
from typing import Optional

from .openai_llm import OpenAILLM


class GroqLLM(OpenAILLM):
    """
    Groq LLM 实现

    使用 OpenAI 兼容接口

    支持模型:
    - llama-3.3-70b-versatile (默认)
    - llama-3.1-8b-instant (经济)
    """

    DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"

    def __init__(
        self,
        model: str = "llama-3.3-70b-versatile",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        timeout: float = 120.0,
    ):
        super().__init__(model, api_key, base_url, temperature, max_tokens, timeout)

    @property
    def provider(self) -> str:
        return "groq"
