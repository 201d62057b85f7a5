"""
Outputs Module
输出层 - 博客 Markdown / 选题 JSON / 审计文件导出
"""

from .exporter import (
    render_blog_markdown,
    topic_output_path,
    audit_paths,
    write_prompt_audit,
    write_research_snapshot,
    export_blog,
    export_topics,
    export_json,
)

__all__ = [
    "render_blog_markdown",
    "topic_output_path",
    "audit_paths",
    "write_prompt_audit",
    "write_research_snapshot",
    "export_blog",
    "export_topics",
    "export_json",
]
