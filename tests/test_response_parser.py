"""
Response parser tests: blog field extraction and topic JSON repair
"""

from __future__ import annotations

import json

import pytest

from intelligence.response_parser import (
    REPAIR_STEPS,
    extract_blog_fields,
    parse_topic_ideas,
    repair_and_load,
    split_tags,
)
from utils.exceptions import ResponseParseError


THREE_TOPICS = {
    "category": "Fintech",
    "audience": "founders",
    "generatedAt": "2025-03-01",
    "topics": [
        {
            "title": f"Idea {i}",
            "summary": "Summary.",
            "keyPoints": ["a", "b", "c"],
            "targetKeyword": f"keyword {i}",
            "valueProposition": "Useful.",
        }
        for i in range(1, 4)
    ],
}


class TestBlogExtraction:

    def test_all_markers(self):
        raw = (
            "TITLE: The Mavericks Are Back\n"
            "META_DESCRIPTION: How Dallas rebuilt its roster.\n"
            "SUMMARY: A look at the season so far.\n"
            "TAGS: nba, mavericks , , dallas\n"
            "BODY:\n"
            "## Introduction\n"
            "Dallas is winning again [1].\n"
        )

        document = extract_blog_fields(raw)

        assert document.title == "The Mavericks Are Back"
        assert document.meta_description == "How Dallas rebuilt its roster."
        assert document.summary == "A look at the season so far."
        assert document.tags == ["nba", "mavericks", "dallas"]
        assert document.body == "## Introduction\nDallas is winning again [1]."
        assert document.raw_content == raw

    def test_body_only(self):
        document = extract_blog_fields("BODY:\nJust the post.")

        assert document.title == ""
        assert document.tags == []
        assert document.body == "Just the post."

    def test_no_markers_uses_whole_text(self):
        document = extract_blog_fields("  A plain essay with no structure.\n")

        assert document.title == ""
        assert document.summary == ""
        assert document.body == "A plain essay with no structure."

    def test_markers_in_any_order_with_emphasis(self):
        raw = "**BODY:**\nThe post body.\n\n**TITLE:** Out of Order\n**TAGS:** x, y"

        document = extract_blog_fields(raw)

        assert document.title == "Out of Order"
        assert document.body == "The post body."
        assert document.tags == ["x", "y"]

    def test_code_fenced_response(self):
        document = extract_blog_fields("```markdown\nTITLE: Fenced\nBODY:\nInside the fence.\n```")

        assert document.title == "Fenced"
        assert document.body == "Inside the fence."

    def test_front_matter_layout(self):
        raw = (
            "---\n"
            "title: Rust in 2025\n"
            "date: 2025-03-01\n"
            "description: Where Rust stands.\n"
            "summary: A short summary.\n"
            "tags:\n"
            "  - rust\n"
            "  - systems\n"
            "author: ContentBot\n"
            "---\n"
            "\n"
            "## Why Rust\n"
            "Memory safety.\n"
        )

        document = extract_blog_fields(raw)

        assert document.title == "Rust in 2025"
        assert document.meta_description == "Where Rust stands."
        assert document.tags == ["rust", "systems"]
        assert document.body == "## Why Rust\nMemory safety."

    def test_markers_between_horizontal_rules(self):
        raw = "---\nTITLE: My Post\nSUMMARY: short\n---\nBODY:\nHello world"

        document = extract_blog_fields(raw)

        assert document.title == "My Post"
        assert document.summary == "short"
        assert document.body == "Hello world"

    def test_yaml_block_without_document_fields_is_not_front_matter(self):
        raw = "---\nauthor: ContentBot\n---\nTITLE: Plain Markers\nBODY:\nText."

        document = extract_blog_fields(raw)

        assert document.title == "Plain Markers"
        assert document.body == "Text."

    @pytest.mark.parametrize("raw", ["", "   \n", None])
    def test_empty_response_raises(self, raw):
        with pytest.raises(ResponseParseError):
            extract_blog_fields(raw)

    def test_split_tags(self):
        assert split_tags(" a, b ,,c ") == ["a", "b", "c"]
        assert split_tags(["a", " b "]) == ["a", "b"]
        assert split_tags(None) == []


class TestTopicParsing:

    def test_clean_json(self):
        result = parse_topic_ideas(json.dumps(THREE_TOPICS), "Fintech", "founders")

        assert not result.degraded
        assert result.repairs == []
        assert [topic.title for topic in result.topics] == ["Idea 1", "Idea 2", "Idea 3"]
        assert result.topics[0].key_points == ["a", "b", "c"]

    def test_code_fence_with_prose(self):
        raw = f"Sure! Here are your ideas:\n```json\n{json.dumps(THREE_TOPICS, indent=2)}\n```\nEnjoy."

        result = parse_topic_ideas(raw, "Fintech", "founders")

        assert len(result.topics) == 3
        assert result.repairs == ["strip_code_fence"]
        assert result.error is None

    def test_prose_degrades_without_raising(self):
        raw = "I am unable to produce topic ideas right now."

        result = parse_topic_ideas(raw, "Fintech", "founders", generated_at="2025-03-01")

        assert result.degraded
        assert result.topics == []
        assert result.raw_content == raw
        assert result.error.startswith("Failed to parse JSON")
        assert result.category == "Fintech"
        assert result.generated_at == "2025-03-01"

    def test_unquoted_keys_and_miskeyed_field(self):
        raw = '{topics: [{title: "Open banking", styleTypeKeyword: "open banking api", keyPoints: ["x"]}]}'

        result = parse_topic_ideas(raw, "Fintech", "founders", generated_at="2025-03-01")

        assert not result.degraded
        assert result.repairs == ["fix_miskeyed_field", "quote_unquoted_keys"]
        assert result.topics[0].target_keyword == "open banking api"

    def test_unquoted_keys_leave_string_values_alone(self):
        raw = '{topics: [{title: "Pros, cons: a guide"}]}'

        result = parse_topic_ideas(raw, "Fintech", "founders")

        assert not result.degraded
        assert result.repairs == ["quote_unquoted_keys"]
        assert result.topics[0].title == "Pros, cons: a guide"

    def test_over_escaped_quotes(self):
        raw = '{\\"category\\": \\"Payments\\", \\"topics\\": [{\\"title\\": \\"A\\"}]}'

        result = parse_topic_ideas(raw, "Fintech", "founders")

        assert result.repairs == ["unescape_quotes"]
        assert result.category == "Payments"
        assert result.topics[0].title == "A"

    def test_missing_top_level_fields_are_backfilled(self):
        raw = json.dumps({"topics": THREE_TOPICS["topics"][:1]})

        result = parse_topic_ideas(raw, "Fintech", "founders", generated_at="2025-03-01")

        assert result.category == "Fintech"
        assert result.audience == "founders"
        assert result.generated_at == "2025-03-01"

    def test_top_level_list_is_accepted(self):
        result = parse_topic_ideas(json.dumps(THREE_TOPICS["topics"]), "Fintech", "founders")

        assert len(result.topics) == 3

    def test_to_dict_uses_schema_names(self):
        good = parse_topic_ideas(json.dumps(THREE_TOPICS), "Fintech", "founders").to_dict()
        bad = parse_topic_ideas("nope", "Fintech", "founders", generated_at="2025-03-01").to_dict()

        assert set(good) == {"category", "audience", "generatedAt", "topics"}
        assert set(good["topics"][0]) == {"title", "summary", "keyPoints", "targetKeyword", "valueProposition"}
        assert bad["topics"] == []
        assert bad["rawContent"] == "nope"
        assert "error" in bad

    def test_to_dict_omits_repair_names(self):
        result = parse_topic_ideas('```json\n{"topics": []}\n```', "Fintech", "founders")

        assert result.repairs == ["strip_code_fence"]
        assert "repairs" not in result.to_dict()


class TestRepairSteps:

    SAMPLES = [
        '```json\n{"topics": []}\n```',
        'prefix {"topics": []} suffix',
        '{\\"topics\\": []}',
        '{"styleTypeKeyword": "x"}',
        '{topics: [{title: "a"}]}',
        'no json here at all',
    ]

    @pytest.mark.parametrize("step", REPAIR_STEPS, ids=lambda step: step.name)
    def test_steps_are_idempotent(self, step):
        for sample in self.SAMPLES:
            once = step.apply(sample)
            assert step.apply(once) == once

    def test_failure_reports_attempted_repairs(self):
        with pytest.raises(ResponseParseError) as exc_info:
            repair_and_load("prefix {not: valid, json here} suffix")

        assert "extract_json_object" in exc_info.value.details["repairs"]

    def test_valid_json_needs_no_repairs(self):
        payload, applied = repair_and_load('{"topics": []}')

        assert payload == {"topics": []}
        assert applied == []
