"""
Output Exporter
把生成结果与审计信息导出为文件（Markdown/JSON/TXT）
"""

from __future__ import annotations

from datetime import date, datetime
import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from models import GeneratedDocument, ResearchBundle, TopicIdeaSet


PathLike = Union[str, Path]


def _normalize_json_obj(obj: Any) -> Any:
    if obj is None:
        return None

    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()

    model_dump = getattr(obj, "model_dump", None)
    if callable(model_dump):
        return model_dump(mode="json", by_alias=True)

    return obj


def _json_dump(obj: Any) -> str:
    return json.dumps(_normalize_json_obj(obj), ensure_ascii=False, indent=2, default=str) + "\n"


def _write(path: PathLike, text: str) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")
    return target


def _leading_heading(body: str) -> Optional[str]:
    first_line = body.lstrip().split("\n", 1)[0]
    if first_line.startswith("# "):
        return first_line[2:].strip()
    return None


def render_blog_markdown(
    document: GeneratedDocument,
    *,
    fallback_title: str = "",
    front_matter: bool = False,
    current_date: Optional[date] = None,
    author: Optional[str] = None,
) -> str:
    """
    渲染博客 Markdown: ``# {title}`` + 空行 + 正文，可选 YAML front matter
    """
    body = document.body.strip()
    title = document.title.strip() or _leading_heading(body) or fallback_title.strip()

    if _leading_heading(body) is not None:
        content = body
    elif title:
        content = f"# {title}\n\n{body}"
    else:
        content = body

    if front_matter:
        meta: Dict[str, Any] = {
            "title": title,
            "date": (current_date or date.today()).isoformat(),
            "description": document.meta_description,
            "summary": document.summary,
            "tags": list(document.tags),
        }
        if author:
            meta["author"] = author
        header = yaml.safe_dump(meta, sort_keys=False, allow_unicode=True, default_flow_style=False)
        content = f"---\n{header}---\n\n{content}"

    return content + "\n"


def topic_output_path(path: PathLike) -> Path:
    """选题列表总是写为 .json (把 .md 扩展名改为 .json)"""
    target = Path(path)
    if target.suffix.lower() != ".json":
        target = target.with_suffix(".json")
    return target


def audit_paths(output_path: PathLike) -> Dict[str, Path]:
    """输出文件旁的 prompts/ 与 research/ 审计文件路径"""
    target = Path(output_path)
    base = target.stem
    return {
        "prompt": target.parent / "prompts" / f"{base}-prompt.txt",
        "research": target.parent / "research" / f"{base}-research.json",
    }


def write_prompt_audit(
    output_path: PathLike,
    *,
    label: str,
    subject: str,
    prompt_text: str,
    timestamp: Optional[datetime] = None,
) -> Path:
    """保存完整提示词 (带主题与 ISO 时间戳)"""
    stamp = (timestamp or datetime.now()).isoformat()
    text = f"{label}: {subject}\nTimestamp: {stamp}\n\n{prompt_text}"
    return _write(audit_paths(output_path)["prompt"], text)


def write_research_snapshot(
    output_path: PathLike,
    *,
    label: str,
    bundle: ResearchBundle,
    timestamp: Optional[datetime] = None,
) -> Path:
    """保存调研快照 JSON"""
    snapshot = bundle.snapshot()
    payload = {
        label.lower(): bundle.subject,
        "timestamp": (timestamp or datetime.now()).isoformat(),
        **{key: value for key, value in snapshot.items() if key not in ("subject", "timestamp")},
    }
    return _write(audit_paths(output_path)["research"], _json_dump(payload))


def export_blog(
    output_path: PathLike,
    document: GeneratedDocument,
    **render_kwargs: Any,
) -> Path:
    """写出博客 Markdown"""
    return _write(output_path, render_blog_markdown(document, **render_kwargs))


def export_topics(output_path: PathLike, topics: TopicIdeaSet) -> Path:
    """写出选题 JSON"""
    return _write(topic_output_path(output_path), _json_dump(topics))


def export_json(output_path: PathLike, payload: Any) -> Path:
    """写出任意 JSON (scrape 命令使用)"""
    return _write(output_path, _json_dump(payload))
