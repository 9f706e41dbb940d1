"""Tests for input extraction against inputs contracts."""

import pytest

from storyboard_engine.domain.errors import ValidationError
from storyboard_engine.services.content_types import parse_content_type, parse_inputs_contract
from storyboard_engine.services.inputs import extract_inputs, format_inputs, get_path


def content_type_with(fields):
    return parse_content_type({"id": "x", "name": "X", "inputs_contract": {"fields": fields}})


class TestGetPath:
    def test_nested(self) -> None:
        assert get_path({"a": {"b": {"c": 1}}}, "a.b.c") == 1

    def test_missing(self) -> None:
        assert get_path({"a": {"b": 1}}, "a.x") is None
        assert get_path({"a": "flat"}, "a.b") is None


class TestExtractInputs:
    def test_label_keyed(self, content_type_record, sample_inputs) -> None:
        content_type = parse_content_type(content_type_record)

        extracted = extract_inputs(content_type, sample_inputs)

        assert extracted == {
            "Product Name": "AeroRun Sneaker",
            "Offer": "20% off this week",
            "Platform": "tiktok",
        }

    def test_required_missing(self, content_type_record) -> None:
        content_type = parse_content_type(content_type_record)

        with pytest.raises(ValidationError, match=r'Required field "Product Name" \(subject.name\)'):
            extract_inputs(content_type, {"platform": "tiktok"})

    def test_required_empty_string(self) -> None:
        content_type = content_type_with([{"key": "goal", "required": True}])
        with pytest.raises(ValidationError):
            extract_inputs(content_type, {"goal": ""})

    def test_optional_empty_omitted(self) -> None:
        content_type = content_type_with([{"key": "goal"}, {"key": "tone", "type": "list"}])
        assert extract_inputs(content_type, {"goal": "", "tone": []}) == {}

    def test_number_coercion(self) -> None:
        content_type = content_type_with([{"key": "price", "type": "number"}])
        assert extract_inputs(content_type, {"price": "49"}) == {"price": 49}
        assert extract_inputs(content_type, {"price": "49.5"}) == {"price": 49.5}

    def test_number_rejects_text_and_bool(self) -> None:
        content_type = content_type_with([{"key": "price", "type": "number"}])
        with pytest.raises(ValidationError):
            extract_inputs(content_type, {"price": "cheap"})
        with pytest.raises(ValidationError):
            extract_inputs(content_type, {"price": True})

    def test_boolean(self) -> None:
        content_type = content_type_with([{"key": "music", "type": "boolean"}])
        assert extract_inputs(content_type, {"music": "true"}) == {"music": True}
        with pytest.raises(ValidationError):
            extract_inputs(content_type, {"music": "maybe"})

    def test_enum_membership(self) -> None:
        content_type = content_type_with(
            [{"key": "platform", "type": "enum", "options": [{"value": "tiktok"}, {"value": "reels"}]}]
        )
        assert extract_inputs(content_type, {"platform": "reels"}) == {"platform": "reels"}
        with pytest.raises(ValidationError, match="must be one of"):
            extract_inputs(content_type, {"platform": "myspace"})

    def test_list_from_comma_string(self) -> None:
        content_type = content_type_with([{"key": "colors", "type": "list"}])
        assert extract_inputs(content_type, {"colors": "red, blue ,"}) == {"colors": ["red", "blue"]}

    def test_list_rejects_dict(self) -> None:
        content_type = content_type_with([{"key": "colors", "type": "list"}])
        with pytest.raises(ValidationError):
            extract_inputs(content_type, {"colors": {"a": 1}})

    def test_no_contract(self) -> None:
        content_type = parse_content_type({"id": "x", "name": "X"})
        assert parse_inputs_contract(None) == ()
        assert extract_inputs(content_type, {"anything": 1}) == {}


def test_format_inputs() -> None:
    rendered = format_inputs({"Product Name": "AeroRun", "Colors": ["red", "blue"]})
    assert rendered == "Product Name: AeroRun\nColors: red, blue"
