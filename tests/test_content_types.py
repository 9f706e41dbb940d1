"""Tests for content type parsing and agent workflow normalization."""

import json

import pytest

from storyboard_engine.domain.enums import InputFieldType
from storyboard_engine.domain.errors import ConfigurationError, NoAgentsConfigured
from storyboard_engine.services.content_types import (
    ROLE_SYSTEM_PROMPTS,
    get_role_system_prompt,
    parse_content_type,
    parse_inputs_contract,
    parse_scene_policy,
    resolve_agent_workflow,
    to_role,
)


class TestInputsContract:
    def test_fields_object(self) -> None:
        fields = parse_inputs_contract(
            {"fields": [{"key": "subject.name", "label": "Product Name", "required": True}]}
        )
        assert len(fields) == 1
        assert fields[0].key == "subject.name"
        assert fields[0].label == "Product Name"
        assert fields[0].type == InputFieldType.STRING
        assert fields[0].required is True

    def test_bare_list_and_label_fallback(self) -> None:
        fields = parse_inputs_contract([{"key": "platform", "type": "enum"}])
        assert fields[0].label == "platform"
        assert fields[0].type == InputFieldType.ENUM

    def test_json_string(self) -> None:
        raw = json.dumps({"fields": [{"key": "goal", "type": "string"}]})
        assert parse_inputs_contract(raw)[0].key == "goal"

    def test_options_moved_into_constraints(self) -> None:
        fields = parse_inputs_contract([{"key": "tone", "type": "enum", "options": ["bold", "calm"]}])
        assert fields[0].constraints["options"] == ["bold", "calm"]

    def test_empty(self) -> None:
        assert parse_inputs_contract(None) == ()
        assert parse_inputs_contract({"fields": []}) == ()

    def test_invalid_json_string(self) -> None:
        with pytest.raises(ConfigurationError):
            parse_inputs_contract("{not json")

    def test_unknown_type(self) -> None:
        with pytest.raises(ConfigurationError):
            parse_inputs_contract([{"key": "x", "type": "date"}])

    def test_field_without_key(self) -> None:
        with pytest.raises(ConfigurationError):
            parse_inputs_contract([{"label": "No key"}])


class TestScenePolicy:
    def test_camel_case(self) -> None:
        policy = parse_scene_policy(
            {"minScenes": 3, "maxScenes": 5, "rules": {"mustStartStrong": True}}
        )
        assert policy.min_scenes == 3
        assert policy.max_scenes == 5
        assert policy.rules.must_start_strong is True
        assert policy.rules.as_instructions() == [
            "First scene must start strong (hook-like opening)"
        ]

    def test_snake_case(self) -> None:
        policy = parse_scene_policy(
            {"min_scenes": 2, "max_scenes": 2, "rules": {"avoid_repetition": True}}
        )
        assert (policy.min_scenes, policy.max_scenes) == (2, 2)
        assert policy.rules.avoid_repetition is True

    def test_defaults(self) -> None:
        policy = parse_scene_policy(None)
        assert policy.min_scenes == 1
        assert policy.max_scenes == 8
        assert policy.rules.as_instructions() == []

    def test_max_below_min(self) -> None:
        with pytest.raises(ConfigurationError):
            parse_scene_policy({"minScenes": 4, "maxScenes": 2})

    def test_min_below_one(self) -> None:
        with pytest.raises(ConfigurationError):
            parse_scene_policy({"minScenes": 0, "maxScenes": 2})

    def test_shot_library_from_scene_blueprint(self) -> None:
        policy = parse_scene_policy(
            {"minScenes": 1, "maxScenes": 3},
            {"agentWorkflow": {"sceneBlueprint": [{"type": "hook"}, {"purpose": "demo"}, "cta"]}},
        )
        assert policy.shot_library == ("hook", "demo", "cta")


class TestParseContentType:
    def test_full_record(self, content_type_record) -> None:
        content_type = parse_content_type(content_type_record)

        assert content_type.id == "ct-ugc-ad"
        assert content_type.name == "UGC Product Ad"
        assert content_type.system_prompt_template.startswith("You create")
        assert len(content_type.inputs_contract) == 3
        assert content_type.scene_generation_policy.max_scenes == 4

    def test_prompting_as_json_string(self, content_type_record) -> None:
        content_type_record["prompting"] = json.dumps(content_type_record["prompting"])
        content_type = parse_content_type(content_type_record)
        assert content_type.prompting["agentWorkflow"]["executionOrder"] == "sequential"

    def test_snake_case_template(self) -> None:
        content_type = parse_content_type(
            {"id": "x", "name": "X", "prompting": {"system_prompt_template": "Be brief."}}
        )
        assert content_type.system_prompt_template == "Be brief."


class TestAgentWorkflow:
    def test_agent_workflow_agents(self, content_type_record) -> None:
        workflow = resolve_agent_workflow(parse_content_type(content_type_record))

        roles = [agent.role for agent in workflow.ordered_agents]
        assert roles == ["brand_strategist", "video_director"]
        assert workflow.ordered_agents[0].system_prompt == ROLE_SYSTEM_PROMPTS["brand_strategist"]

    def test_ordered_by_order_field(self, content_type_record) -> None:
        agents = content_type_record["prompting"]["agentWorkflow"]["agents"]
        agents[0]["order"], agents[1]["order"] = 2, 1

        workflow = resolve_agent_workflow(parse_content_type(content_type_record))

        assert [a.id for a in workflow.ordered_agents] == ["agent-director", "agent-brand"]

    def test_bare_agent_names(self) -> None:
        content_type = parse_content_type(
            {"id": "x", "name": "X", "prompting": {"agents": ["Sales Person", "Copywriter"]}}
        )
        workflow = resolve_agent_workflow(content_type)

        assert [a.role for a in workflow.ordered_agents] == ["sales_person", "copywriter"]
        assert [a.order for a in workflow.ordered_agents] == [1, 2]
        assert workflow.ordered_agents[1].system_prompt == ROLE_SYSTEM_PROMPTS["copywriter"]

    def test_custom_prompt_and_temperature(self) -> None:
        content_type = parse_content_type(
            {
                "id": "x",
                "name": "X",
                "prompting": {
                    "agents": [
                        {
                            "name": "Color Nerd",
                            "systemPrompt": "You obsess over palettes.",
                            "prompt": "Pick three colors.",
                            "temperature": 0.2,
                        }
                    ]
                },
            }
        )
        agent = resolve_agent_workflow(content_type).ordered_agents[0]

        assert agent.role == "color_nerd"
        assert agent.system_prompt == "You obsess over palettes."
        assert agent.task_prompt == "Pick three colors."
        assert agent.temperature == 0.2

    def test_no_agents(self) -> None:
        content_type = parse_content_type({"id": "x", "name": "Empty", "prompting": {}})
        with pytest.raises(NoAgentsConfigured):
            resolve_agent_workflow(content_type)

    def test_parallel_not_supported(self, content_type_record) -> None:
        content_type_record["prompting"]["agentWorkflow"]["executionOrder"] = "parallel"
        with pytest.raises(ConfigurationError):
            resolve_agent_workflow(parse_content_type(content_type_record))


class TestRolePrompts:
    def test_custom_prompt_wins(self) -> None:
        assert get_role_system_prompt("copywriter", "Custom.") == "Custom."

    def test_unknown_role(self) -> None:
        assert "lighting_guru" in get_role_system_prompt("lighting_guru")

    def test_to_role(self) -> None:
        assert to_role("  Brand   Strategist ") == "brand_strategist"
