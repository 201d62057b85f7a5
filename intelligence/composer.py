"""
Prompt Composer
把调研结果渲染为单一的生成请求

Rendering is a pure function of its inputs: the current date is passed in,
never read from the clock.
"""
from __future__ import annotations

import json
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Union

from models import (
    BlogFormat,
    GenerationRequest,
    RequestKind,
    ResearchBundle,
    ResearchItem,
    SourcePlatform,
)


DEFAULT_AUDIENCE = "general"
DEFAULT_TOPIC_COUNT = 5

KeywordInput = Union[str, Sequence[str], None]


# Per-platform block wording: (heading, entry noun, body label)
_PLATFORM_WORDING: Dict[SourcePlatform, tuple] = {
    SourcePlatform.NEWS_SEARCH_A: ("NEWS ARTICLES", "news articles", "Description"),
    SourcePlatform.NEWS_SEARCH_B: ("NEWS ARTICLES (MAJOR OUTLETS)", "news articles from major outlets", "Description"),
    SourcePlatform.FORUM: ("REDDIT DISCUSSIONS", "Reddit posts", "Content"),
    SourcePlatform.VIDEO: ("YOUTUBE VIDEOS", "YouTube videos", "Description"),
    SourcePlatform.NEWSLETTER: ("SUBSTACK NEWSLETTERS", "Substack newsletter posts", "Excerpt"),
}

_BLOG_LEAD_IN = "Here are some recent {noun} related to this topic that you should incorporate into the blog post:"
_TOPIC_LEAD_IN = "Here are some recent {noun} related to this category that you should use for inspiration:"

_BLOG_CLOSING = {
    SourcePlatform.NEWS_SEARCH_A: "Incorporate insights, facts, or perspectives from these articles, citing them where appropriate.",
    SourcePlatform.NEWS_SEARCH_B: "Incorporate insights, facts, or perspectives from these articles, citing them where appropriate.",
    SourcePlatform.FORUM: (
        "Integrate perspectives from these discussions naturally to connect the post to current conversations. "
        "Quote them with attribution or summarize their key points; do not just list them."
    ),
    SourcePlatform.VIDEO: (
        "Reference specific points or key takeaways from these videos; do not just list them."
    ),
    SourcePlatform.NEWSLETTER: (
        "Draw on the analysis in these newsletter posts where it adds depth, with attribution."
    ),
}
_TOPIC_CLOSING = "Use these to identify current trends, controversies, or interesting angles for the topic ideas."


BLOG_INSTRUCTIONS = """Write a comprehensive, engaging, and informative blog post about "{subject}" for a {audience} audience.
Today's date is {current_date}.

The blog post should:
- Have a catchy title
- Include an introduction that hooks the reader
- Contain at least 3-5 main sections with appropriate headings
- Include relevant facts, examples, and insights
- End with a conclusion and call to action
- Be written in a conversational yet professional tone
- Be formatted in Markdown

Format the body with proper Markdown syntax:
- ## for section headings
- ### for sub-section headings
- **bold** for emphasis
- *italic* for secondary emphasis
- > for blockquotes
- - for bullet points
- 1. for numbered lists

The blog post should be between 800-1200 words."""

BLOG_SECTIONS_CONTRACT = """OUTPUT FORMAT:
Return the post using exactly these section markers, each at the start of its own line and in this order:
TITLE: the post title
META_DESCRIPTION: a meta description of at most 160 characters
SUMMARY: a 2-3 sentence summary
TAGS: 3-8 comma-separated tags
BODY:
the full blog post in Markdown, without repeating the title
Do not write anything before TITLE: and do not wrap the output in a code block."""

BLOG_FRONT_MATTER_CONTRACT = """OUTPUT FORMAT:
Begin the document with a YAML front-matter block. The first line must be --- and the block must close with another --- line.
The block must contain exactly these keys:
title: the post title
date: {current_date}
description: a meta description of at most 160 characters
summary: a 2-3 sentence summary
tags: a YAML list of 3-8 tags
author: {author}
After the closing --- line, write the full blog post in Markdown, without repeating the title.
Do not wrap the output in a code block."""

CITATION_INSTRUCTIONS = """CITATIONS:
- Each research entry above is numbered. When a sentence relies on an entry, cite it by writing that entry's number inside square brackets right after the claim.
- Only cite numbers that appear in the research above and never invent sources.
- End the body with a "## References" section that lists every cited entry as its bracketed number followed by its exact title and URL, in ascending order."""

TOPIC_INSTRUCTIONS = """You are a specialized AI that ONLY outputs valid, parseable JSON.

Your task is to generate {count} unique and engaging blog topic ideas related to "{subject}" for a {audience} audience.

For each topic idea, include:
- A catchy, SEO-friendly title
- A 2-3 sentence summary explaining what the blog post would cover
- 3-5 key points that would be addressed
- A suggested primary keyword for SEO
- Explanation of why this topic is valuable to the target audience"""

TOPIC_CONTRACT = """The output MUST be valid JSON with this exact structure:
{{
  "category": {category_json},
  "audience": {audience_json},
  "generatedAt": "{current_date}",
  "topics": [
    {{
      "title": "Example Title",
      "summary": "Example summary.",
      "keyPoints": ["Point one", "Point two", "Point three"],
      "targetKeyword": "keyword",
      "valueProposition": "Why it's valuable."
    }}
  ]
}}"""

TOPIC_RULES = """IMPORTANT:
1. Make topics specific, actionable, and based on current trends
2. Focus on unique angles and innovative approaches
3. Your response MUST only contain the JSON object - no markdown, no explanations, no extra text
4. Ensure all JSON keys and string values are properly double-quoted
5. Do not use single quotes in your JSON
6. Do not include comments in the JSON
7. Verify your response is valid JSON before returning it"""


def parse_keywords(value: KeywordInput) -> List[str]:
    """Split a comma-separated string (or list) into trimmed, non-blank, de-duplicated keywords."""
    if value is None:
        return []
    raw: Iterable[str] = value.split(",") if isinstance(value, str) else value
    keywords: List[str] = []
    seen = set()
    for entry in raw:
        keyword = str(entry or "").strip()
        if keyword and keyword.lower() not in seen:
            seen.add(keyword.lower())
            keywords.append(keyword)
    return keywords


def _format_count(value: int) -> str:
    return f"{value:,}"


def render_item(item: ResearchItem, ordinal: int) -> str:
    """Render one research entry, led by its bracketed citation number."""
    _, _, body_label = _PLATFORM_WORDING[item.platform]
    lines = [f"[{ordinal}] Title: {item.title}"]

    if item.platform == SourcePlatform.FORUM:
        if item.extra.get("subreddit"):
            lines.append(f"Subreddit: {item.extra['subreddit']}")
        if item.author:
            lines.append(f"Author: {item.author}")
    elif item.platform == SourcePlatform.VIDEO:
        if item.author:
            lines.append(f"Channel: {item.author}")
    elif item.platform == SourcePlatform.NEWSLETTER:
        if item.extra.get("publication"):
            lines.append(f"Publication: {item.extra['publication']}")
        if item.author and item.author != item.extra.get("publication"):
            lines.append(f"Author: {item.author}")
    elif item.author:
        lines.append(f"Source: {item.author}")

    if item.body:
        lines.append(f"{body_label}: {item.body}")

    engagement = item.engagement or {}
    if item.platform == SourcePlatform.FORUM and engagement:
        lines.append(f"Score: {_format_count(engagement.get('upvotes', 0))} upvotes")
        lines.append(f"Comments: {_format_count(engagement.get('comments', 0))}")
    elif item.platform == SourcePlatform.VIDEO and engagement:
        lines.append(f"Views: {_format_count(engagement.get('views', 0))}")
        lines.append(f"Likes: {_format_count(engagement.get('likes', 0))}")
        lines.append(f"Comments: {_format_count(engagement.get('comments', 0))}")

    lines.append(f"Date: {item.published_date}")
    lines.append(f"Link: {item.url or 'not available'}")
    return "\n".join(lines)


def render_context_blocks(kind: RequestKind, bundle: Optional[ResearchBundle]) -> List[str]:
    """Render one labeled block per non-empty platform, numbering entries across the whole bundle."""
    if bundle is None:
        return []

    blocks: List[str] = []
    ordinal = 0
    for platform, items in bundle.by_platform().items():
        heading, noun, _ = _PLATFORM_WORDING[platform]
        if kind == RequestKind.BLOG:
            lead_in, closing = _BLOG_LEAD_IN.format(noun=noun), _BLOG_CLOSING[platform]
        else:
            lead_in, closing = _TOPIC_LEAD_IN.format(noun=noun), _TOPIC_CLOSING

        entries = []
        for item in items:
            ordinal += 1
            entries.append(render_item(item, ordinal))

        blocks.append("\n\n".join([f"{heading}:", lead_in, *entries, closing]))
    return blocks


def render_keywords_block(kind: RequestKind, keywords: Sequence[str]) -> str:
    """Keywords block; empty when no keyword was supplied. The first keyword is the primary one."""
    if not keywords:
        return ""

    primary, secondary = keywords[0], list(keywords[1:])
    if kind == RequestKind.BLOG:
        lines = [
            "SEO KEYWORDS:",
            f'Primary keyword: "{primary}" (use it in the title, the first paragraph, and at least one heading)',
        ]
        if secondary:
            lines.append("Secondary keywords (use naturally where relevant):")
            lines.extend(f'- "{keyword}"' for keyword in secondary)
        return "\n".join(lines)

    lines = [
        "KEYWORDS TO INCLUDE:",
        "Try to incorporate some of these keywords into your topic ideas:",
        f'- "{primary}" (primary)',
    ]
    lines.extend(f'- "{keyword}"' for keyword in secondary)
    return "\n".join(lines)


class PromptComposer:
    """Deterministically renders blog and topic-list generation requests."""

    def __init__(self, author: str = "ContentBot"):
        self.author = author

    def compose(
        self,
        kind: RequestKind,
        subject: str,
        audience: Optional[str],
        keywords: KeywordInput,
        bundle: Optional[ResearchBundle],
        current_date: Optional[date] = None,
        topic_count: int = DEFAULT_TOPIC_COUNT,
        blog_format: BlogFormat = BlogFormat.SECTIONS,
    ) -> GenerationRequest:
        """
        Render a generation request.

        ``current_date`` defaults to the bundle's generation date so the output
        depends only on the arguments.
        """
        kind = RequestKind(kind)
        subject = (subject or "").strip()
        audience = (audience or "").strip() or DEFAULT_AUDIENCE
        keyword_list = parse_keywords(keywords)
        if current_date is None:
            if bundle is None:
                raise ValueError("current_date is required when no research bundle is given")
            current_date = bundle.generated_at.date()
        date_text = current_date.isoformat()

        context_blocks = render_context_blocks(kind, bundle)
        keywords_block = render_keywords_block(kind, keyword_list)

        if kind == RequestKind.BLOG:
            instructions = BLOG_INSTRUCTIONS.format(subject=subject, audience=audience, current_date=date_text)
            if BlogFormat(blog_format) == BlogFormat.FRONT_MATTER:
                contract = BLOG_FRONT_MATTER_CONTRACT.format(current_date=date_text, author=self.author)
            else:
                contract = BLOG_SECTIONS_CONTRACT
            citations = CITATION_INSTRUCTIONS if context_blocks else ""
            sections = [instructions, *context_blocks, keywords_block, citations, contract]
        else:
            instructions = TOPIC_INSTRUCTIONS.format(count=max(1, int(topic_count)), subject=subject, audience=audience)
            contract = TOPIC_CONTRACT.format(
                category_json=json.dumps(subject, ensure_ascii=False),
                audience_json=json.dumps(audience, ensure_ascii=False),
                current_date=date_text,
            )
            sections = [instructions, contract, *context_blocks, keywords_block, TOPIC_RULES]

        prompt_text = "\n\n".join(section for section in sections if section) + "\n"

        return GenerationRequest(
            kind=kind,
            subject=subject,
            audience=audience,
            keywords=keyword_list,
            context_blocks=context_blocks,
            output_contract=contract,
            current_date=current_date,
            prompt_text=prompt_text,
        )
