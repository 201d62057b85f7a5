"""
Intelligence Module
智能层 - LLM抽象 + 提示词渲染 + 输出解析 + 端到端流水线
"""
from .llm import (
    BaseLLM,
    OpenAILLM,
    GroqLLM,
    get_llm,
)
from .composer import PromptComposer, parse_keywords
from .generation import GenerationClient
from .response_parser import (
    REPAIR_STEPS,
    extract_blog_fields,
    parse_topic_ideas,
    repair_and_load,
)
from .pipeline import ContentPipeline, PipelineResult

__all__ = [
    # LLM
    "BaseLLM",
    "OpenAILLM",
    "GroqLLM",
    "get_llm",
    # Composer
    "PromptComposer",
    "parse_keywords",
    # Generation
    "GenerationClient",
    # Parser
    "REPAIR_STEPS",
    "extract_blog_fields",
    "parse_topic_ideas",
    "repair_and_load",
    # Pipeline
    "ContentPipeline",
    "PipelineResult",
]
