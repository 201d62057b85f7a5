"""
LLM Factory
工厂函数 - 根据配置自动创建 LLM 实例
"""
from typing import Optional
import logging

from config import LLMSettings, get_llm_settings
from utils.exceptions import ConfigurationError

from .base import BaseLLM
from .openai_llm import OpenAILLM
from .groq_llm import GroqLLM


logger = logging.getLogger(__name__)


# 默认模型配置
DEFAULT_MODELS = {
    "groq": "llama-3.3-70b-versatile",
    "openai": "gpt-4o-mini",
}

LLM_CLASSES = {
    "groq": GroqLLM,
    "openai": OpenAILLM,
}


def get_llm(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    settings: Optional[LLMSettings] = None,
    **kwargs,
) -> BaseLLM:
    """
    获取 LLM 实例

    自动从 .env 读取配置，也可手动指定

    Args:
        provider: LLM 供应商 (groq, openai)
        model: 模型名称 (不传则使用默认)
        settings: LLM 配置 (不传则读取全局配置)
        **kwargs: 额外参数 (temperature, max_tokens, api_key, base_url 等)

    Returns:
        BaseLLM 实例

    Example:
        llm = get_llm()
        llm = get_llm(provider="openai", model="gpt-4o")
    """
    settings = settings or get_llm_settings()
    provider = (provider or settings.provider).lower()

    if provider not in LLM_CLASSES:
        raise ConfigurationError(f"Unsupported LLM provider: {provider}")

    model = model or settings.default_model or DEFAULT_MODELS[provider]
    api_key = kwargs.pop("api_key", None) or settings.api_key_for(provider)

    for key, value in {
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
        "timeout": settings.timeout,
    }.items():
        kwargs.setdefault(key, value)

    logger.debug(f"Creating LLM provider={provider} model={model}")
    return LLM_CLASSES[provider](model=model, api_key=api_key, **kwargs)
