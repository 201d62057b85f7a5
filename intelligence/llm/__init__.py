"""
LLM Module
多供应商 LLM 抽象层
"""
from .base import BaseLLM, LLMResponse, Message
from .openai_llm import OpenAILLM
from .groq_llm import GroqLLM
from .factory import DEFAULT_MODELS, get_llm

__all__ = [
    "BaseLLM",
    "LLMResponse",
    "Message",
    "OpenAILLM",
    "GroqLLM",
    "DEFAULT_MODELS",
    "get_llm",
]
