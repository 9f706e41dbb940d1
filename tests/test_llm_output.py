"""Tests for LLM output parsing helpers."""

from storyboard_engine.utils.llm_output import parse_json_object, strip_code_fences


class TestStripCodeFences:
    def test_plain_text_unchanged(self) -> None:
        assert strip_code_fences("  hello  ") == "hello"

    def test_json_fence_removed(self) -> None:
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence_removed(self) -> None:
        assert strip_code_fences("```\nScene 1: Hook\n```") == "Scene 1: Hook"


class TestParseJsonObject:
    def test_plain_object(self) -> None:
        assert parse_json_object('{"imagePrompt": "shoe"}') == {"imagePrompt": "shoe"}

    def test_fenced_object(self) -> None:
        assert parse_json_object('```json\n{"a": [1, 2]}\n```') == {"a": [1, 2]}

    def test_object_inside_prose(self) -> None:
        content = 'Here is the scene:\n{"imagePrompt": "shoe on sand"}\nHope it helps!'
        assert parse_json_object(content) == {"imagePrompt": "shoe on sand"}

    def test_array_is_rejected(self) -> None:
        assert parse_json_object("[1, 2, 3]") is None

    def test_garbage_returns_none(self) -> None:
        assert parse_json_object("not json at all") is None
        assert parse_json_object("{broken: }") is None
        assert parse_json_object("") is None
