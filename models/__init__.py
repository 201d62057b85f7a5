"""
Data Models
"""
from .schemas import (
    BODY_PREVIEW_LIMIT,
    truncate_preview,
    SourcePlatform,
    RequestKind,
    BlogFormat,
    ResearchItem,
    ResearchBundle,
    GenerationRequest,
    GeneratedDocument,
    TopicIdea,
    TopicIdeaSet,
)

__all__ = [
    "BODY_PREVIEW_LIMIT",
    "truncate_preview",
    "SourcePlatform",
    "RequestKind",
    "BlogFormat",
    "ResearchItem",
    "ResearchBundle",
    "GenerationRequest",
    "GeneratedDocument",
    "TopicIdea",
    "TopicIdeaSet",
]
