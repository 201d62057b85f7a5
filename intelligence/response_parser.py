"""
Response Parser
解析模型输出: 博客字段提取与选题 JSON 修复

Neither entry point raises on malformed model output. Blog extraction falls
back to the raw text for the body; topic parsing degrades to an empty topic
list carrying the failure reason.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import yaml
from pydantic import ValidationError

from models import GeneratedDocument, TopicIdea, TopicIdeaSet
from utils.exceptions import ResponseParseError


logger = logging.getLogger(__name__)

BLOG_MARKERS = ("TITLE", "META_DESCRIPTION", "SUMMARY", "TAGS", "BODY")

# Marker at the start of a line, tolerating Markdown emphasis or heading prefixes.
_MARKER_PATTERN = re.compile(
    r"^[ \t]*(?:#{1,6}[ \t]*)?(?:\*\*|__)?(" + "|".join(BLOG_MARKERS) + r")(?:\*\*|__)?[ \t]*:(?:\*\*|__)?[ \t]*",
    re.MULTILINE,
)
_FRONT_MATTER_PATTERN = re.compile(r"\A---[ \t]*\n(.*?)\n---[ \t]*(?:\n|\Z)(.*)\Z", re.DOTALL)
_CODE_FENCE_PATTERN = re.compile(r"```[A-Za-z]*[ \t]*\n?(.*?)\n?[ \t]*```", re.DOTALL)
_EDGE_RULES_PATTERN = re.compile(r"\A(?:[ \t]*-{3,}[ \t]*(?:\n|\Z))+|(?:\n[ \t]*-{3,}[ \t]*)+\Z")

# Front matter only counts as the blog layout when it names at least one document field.
FRONT_MATTER_KEYS = ("title", "description", "meta_description", "summary", "tags")


# --------------------------------------------------------------------- blog


def split_tags(value: Any) -> List[str]:
    """Comma-separated string (or list) to an ordered list of trimmed tags."""
    if value is None:
        return []
    parts = value.split(",") if isinstance(value, str) else [str(part) for part in value]
    return [part.strip() for part in parts if part and part.strip()]


def _unwrap_code_fence(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```") and stripped.endswith("```"):
        match = _CODE_FENCE_PATTERN.fullmatch(stripped)
        if match:
            return match.group(1)
    return text


def extract_marked_fields(raw: str) -> Dict[str, str]:
    """
    Locate section markers regardless of order.

    Each field runs until the next known marker or the end of the text. Only
    the first occurrence of a marker is used.
    """
    matches = list(_MARKER_PATTERN.finditer(raw))
    fields: Dict[str, str] = {}
    for index, match in enumerate(matches):
        end = matches[index + 1].start() if index + 1 < len(matches) else len(raw)
        value = _EDGE_RULES_PATTERN.sub("", raw[match.end():end].strip())
        fields.setdefault(match.group(1), value.strip())
    return fields


def extract_front_matter(raw: str) -> Optional[Tuple[Dict[str, Any], str]]:
    """Split a leading YAML front-matter block from the Markdown body, or return None."""
    match = _FRONT_MATTER_PATTERN.match(raw.lstrip())
    if not match:
        return None
    try:
        meta = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        logger.warning(f"Front matter is not valid YAML: {exc}")
        return None
    if not isinstance(meta, dict) or not any(key in meta for key in FRONT_MATTER_KEYS):
        return None
    return meta, match.group(2).strip()


def extract_blog_fields(raw: str) -> GeneratedDocument:
    """
    Extract TITLE / META_DESCRIPTION / SUMMARY / TAGS / BODY from a model response.

    Missing markers yield empty strings; a missing or empty BODY falls back to
    the whole raw text. A leading YAML front-matter block is accepted as an
    alternative layout.
    """
    if raw is None or not raw.strip():
        raise ResponseParseError("Cannot extract a document from an empty response")

    text = _unwrap_code_fence(raw)

    front_matter = extract_front_matter(text)
    if front_matter is not None:
        meta, body = front_matter
        return GeneratedDocument(
            title=str(meta.get("title") or "").strip(),
            meta_description=str(meta.get("description") or meta.get("meta_description") or "").strip(),
            summary=str(meta.get("summary") or "").strip(),
            tags=split_tags(meta.get("tags")),
            body=body or raw.strip(),
            raw_content=raw,
        )

    fields = extract_marked_fields(text)
    return GeneratedDocument(
        title=fields.get("TITLE", ""),
        meta_description=fields.get("META_DESCRIPTION", ""),
        summary=fields.get("SUMMARY", ""),
        tags=split_tags(fields.get("TAGS")),
        body=fields.get("BODY") or raw.strip(),
        raw_content=raw,
    )


# ------------------------------------------------------------------- topics


def strip_code_fence(text: str) -> str:
    """Keep only the content of the first Markdown code fence, if any."""
    match = _CODE_FENCE_PATTERN.search(text)
    return match.group(1).strip() if match else text


def extract_json_object(text: str) -> str:
    """Trim prose around the outermost JSON object."""
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        return text
    return text[start:end + 1]


def unescape_quotes(text: str) -> str:
    r"""Turn over-escaped quotes (\" or \\\") into plain quotes."""
    return re.sub(r'\\+"', '"', text)


MISKEYED_FIELDS = {
    "styleTypeKeyword": "targetKeyword",
}


def fix_miskeyed_field(text: str) -> str:
    """Rename field names the model is known to emit instead of the schema's names."""
    for wrong, right in MISKEYED_FIELDS.items():
        text = re.sub(rf'(["\']?){wrong}\1(\s*:)', rf'"{right}"\2', text)
    return text


_STRING_LITERAL_PATTERN = re.compile(r'"(?:\\.|[^"\\])*"')
_BARE_KEY_PATTERN = re.compile(r"([,{]\s*)([A-Za-z_][A-Za-z0-9_]*)(\s*:)")


def quote_unquoted_keys(text: str) -> str:
    """Wrap bare object keys in double quotes, leaving string literals untouched."""
    pieces, last = [], 0
    for match in _STRING_LITERAL_PATTERN.finditer(text):
        pieces.append(_BARE_KEY_PATTERN.sub(r'\1"\2"\3', text[last:match.start()]))
        pieces.append(match.group(0))
        last = match.end()
    pieces.append(_BARE_KEY_PATTERN.sub(r'\1"\2"\3', text[last:]))
    return "".join(pieces)


@dataclass(frozen=True)
class RepairStep:
    name: str
    apply: Callable[[str], str]


REPAIR_STEPS: Tuple[RepairStep, ...] = (
    RepairStep("strip_code_fence", strip_code_fence),
    RepairStep("extract_json_object", extract_json_object),
    RepairStep("unescape_quotes", unescape_quotes),
    RepairStep("fix_miskeyed_field", fix_miskeyed_field),
    RepairStep("quote_unquoted_keys", quote_unquoted_keys),
)


def _load_json(text: str) -> Dict[str, Any]:
    data = json.loads(text)
    if isinstance(data, list):
        return {"topics": data}
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


def repair_and_load(raw: str, steps: Sequence[RepairStep] = REPAIR_STEPS) -> Tuple[Dict[str, Any], List[str]]:
    """
    Parse JSON, applying repair steps cumulatively and in order until a parse succeeds.

    Returns:
        (payload, names of the steps that changed the text)

    Raises:
        ResponseParseError: when every attempt failed
    """
    try:
        return _load_json(raw), []
    except ValueError as exc:
        last_error: Exception = exc

    text, applied = raw, []
    for step in steps:
        repaired = step.apply(text)
        if repaired == text:
            continue
        text = repaired
        applied.append(step.name)
        try:
            return _load_json(text), applied
        except ValueError as exc:
            last_error = exc

    raise ResponseParseError(f"Failed to parse JSON: {last_error}", {"repairs": applied})


def _build_topics(entries: Any) -> List[TopicIdea]:
    if not isinstance(entries, list):
        return []
    topics = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        try:
            topics.append(TopicIdea.model_validate(entry))
        except ValidationError as exc:
            logger.warning(f"Skipping malformed topic entry: {exc.errors()[0].get('msg')}")
    return topics


def parse_topic_ideas(
    raw: str,
    category: str,
    audience: str,
    generated_at: Optional[str] = None,
) -> TopicIdeaSet:
    """
    Parse a topic-list response into a schema-complete TopicIdeaSet.

    Missing top-level fields are backfilled from the arguments. When the text
    cannot be repaired the result has no topics, keeps the raw text, and sets
    ``error``.
    """
    generated_at = generated_at or date.today().isoformat()
    raw = raw or ""

    try:
        payload, applied = repair_and_load(raw)
    except ResponseParseError as exc:
        logger.warning(f"Topic response degraded: {exc.message}")
        return TopicIdeaSet(
            category=category,
            audience=audience,
            generated_at=generated_at,
            topics=[],
            raw_content=raw,
            error=exc.message,
            repairs=list(exc.details.get("repairs", [])),
        )

    if applied:
        logger.info(f"Topic response repaired with: {', '.join(applied)}")

    def _text(key: str, default: str) -> str:
        value = payload.get(key)
        return str(value).strip() if value not in (None, "") and str(value).strip() else default

    return TopicIdeaSet(
        category=_text("category", category),
        audience=_text("audience", audience),
        generated_at=_text("generatedAt", _text("generated_at", generated_at)),
        topics=_build_topics(payload.get("topics")),
        repairs=applied,
    )
