"""Content type parsing and agent workflow normalization.

Content types are stored with loosely shaped JSON columns that accumulated
several formats over time. Everything is translated here, once, into the
frozen domain models the pipeline works with.
"""

import json
import re
from typing import Any

from storyboard_engine.domain.enums import ExecutionOrder, InputFieldType
from storyboard_engine.domain.errors import ConfigurationError, NoAgentsConfigured
from storyboard_engine.domain.models import (
    AgentSpec,
    AgentWorkflow,
    ContentType,
    InputField,
    SceneGenerationPolicy,
    SceneRules,
)
from storyboard_engine.logging import get_logger

logger = get_logger(__name__)

DEFAULT_AGENT_TEMPERATURE = 0.7

ROLE_SYSTEM_PROMPTS: dict[str, str] = {
    "fashion_expert": (
        "You are a fashion expert with deep knowledge of trends, styles, and aesthetics. "
        "You understand what makes clothing appealing and how to present fashion items "
        "in the best light."
    ),
    "fabrics_expert": (
        "You are a fabrics and materials expert. You understand textile properties, quality "
        "indicators, comfort factors, and how to highlight material benefits."
    ),
    "sales_person": (
        "You are a persuasive sales professional. You know how to create compelling offers, "
        "highlight value propositions, and create urgency that drives action."
    ),
    "trend_identifier": (
        "You are a trend identifier who understands current market trends, seasonal "
        "patterns, and what resonates with target audiences."
    ),
    "video_director": (
        "You are a video director specializing in short-form content. You understand camera "
        "angles, movements, visual composition, and how to create engaging video sequences."
    ),
    "copywriter": (
        "You are a copywriter who crafts compelling on-screen text, captions, and messaging "
        "that captures attention and drives engagement."
    ),
    "brand_strategist": (
        "You are a brand strategist who understands brand positioning, target audience "
        "psychology, and how to align product messaging with brand values."
    ),
    "visual_stylist": (
        "You are a visual stylist who creates beautiful, cohesive visual presentations. "
        "You understand color, composition, lighting, and aesthetic appeal."
    ),
}


def get_role_system_prompt(role: str, custom_prompt: str | None = None) -> str:
    """Custom prompt if given, else the built-in prompt for the role, else a generic one."""
    if custom_prompt:
        return custom_prompt
    if role in ROLE_SYSTEM_PROMPTS:
        return ROLE_SYSTEM_PROMPTS[role]
    return (
        f"You are an AI agent specialized in {role}. "
        "Provide expert analysis and recommendations."
    )


def to_role(name: str) -> str:
    """Snake-case an agent name: "Brand Strategist" becomes "brand_strategist"."""
    return re.sub(r"\s+", "_", name.strip().lower())


def _first(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return default


# =============================================================================
# Inputs contract and scene policy
# =============================================================================


def parse_inputs_contract(raw: Any) -> tuple[InputField, ...]:
    """Accept ``{"fields": [...]}``, a bare list, or either as a JSON string."""
    if raw is None:
        return ()
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid inputs contract: {e}") from e

    fields = raw.get("fields") if isinstance(raw, dict) else raw
    if not fields:
        return ()
    if not isinstance(fields, list):
        raise ConfigurationError("Invalid inputs contract: fields must be a list")

    parsed = []
    for item in fields:
        if not isinstance(item, dict) or not item.get("key"):
            raise ConfigurationError(f"Invalid inputs contract field: {item!r}")

        try:
            field_type = InputFieldType(item.get("type") or InputFieldType.STRING)
        except ValueError as e:
            raise ConfigurationError(
                f"Unknown type {item.get('type')!r} for input field {item['key']!r}"
            ) from e

        constraints = dict(item.get("constraints") or {})
        if "options" in item and "options" not in constraints:
            constraints["options"] = item["options"]

        parsed.append(
            InputField(
                key=item["key"],
                label=item.get("label") or item["key"],
                type=field_type,
                required=bool(item.get("required", False)),
                constraints=constraints,
            )
        )
    return tuple(parsed)


def _shot_library(policy: dict[str, Any], prompting: dict[str, Any]) -> tuple[str, ...]:
    workflow = prompting.get("agentWorkflow") or {}
    entries = (
        policy.get("shotLibrary")
        or policy.get("shot_library")
        or (workflow.get("shotLibrary") if isinstance(workflow, dict) else None)
        or (workflow.get("sceneBlueprint") if isinstance(workflow, dict) else None)
        or []
    )

    purposes = []
    for entry in entries:
        if isinstance(entry, str):
            purposes.append(entry)
        elif isinstance(entry, dict):
            purpose = _first(entry, "type", "purpose")
            if purpose:
                purposes.append(str(purpose))
    return tuple(purposes)


def parse_scene_policy(
    raw: dict[str, Any] | None, prompting: dict[str, Any] | None = None
) -> SceneGenerationPolicy:
    policy = raw or {}
    rules = policy.get("rules") or {}

    min_scenes = int(_first(policy, "minScenes", "min_scenes", default=1))
    max_scenes = int(_first(policy, "maxScenes", "max_scenes", default=max(min_scenes, 8)))
    if min_scenes < 1:
        raise ConfigurationError(f"minScenes must be at least 1, got {min_scenes}")
    if max_scenes < min_scenes:
        raise ConfigurationError(
            f"maxScenes ({max_scenes}) must not be less than minScenes ({min_scenes})"
        )

    return SceneGenerationPolicy(
        min_scenes=min_scenes,
        max_scenes=max_scenes,
        rules=SceneRules(
            must_start_strong=bool(_first(rules, "mustStartStrong", "must_start_strong", default=False)),
            must_end_with_closure=bool(
                _first(rules, "mustEndWithClosure", "must_end_with_closure", default=False)
            ),
            avoid_repetition=bool(_first(rules, "avoidRepetition", "avoid_repetition", default=False)),
            platform_aware_ordering=bool(
                _first(rules, "platformAwareOrdering", "platform_aware_ordering", default=False)
            ),
        ),
        shot_library=_shot_library(policy, prompting or {}),
    )


def parse_content_type(row: dict[str, Any]) -> ContentType:
    """Build a ``ContentType`` from a raw store record.

    Raises:
        ConfigurationError: If a contract or policy is malformed
    """
    prompting = row.get("prompting") or {}
    if isinstance(prompting, str):
        try:
            prompting = json.loads(prompting)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid prompting config: {e}") from e

    return ContentType(
        id=str(row.get("id") or ""),
        name=row.get("name") or "Untitled",
        category=row.get("category"),
        description=row.get("description"),
        version=int(row.get("version") or 1),
        inputs_contract=parse_inputs_contract(row.get("inputs_contract")),
        output_contract=row.get("output_contract") or {},
        scene_generation_policy=parse_scene_policy(row.get("scene_generation_policy"), prompting),
        system_prompt_template=_first(
            prompting, "systemPromptTemplate", "system_prompt_template", default=""
        ),
        prompting=prompting,
    )


# =============================================================================
# Agent workflow
# =============================================================================


def normalize_agent(raw: dict[str, Any] | str, position: int) -> AgentSpec:
    """Translate one stored agent (object or bare name) into an ``AgentSpec``.

    ``position`` is the 1-based position in the stored list.
    """
    if isinstance(raw, str):
        role = to_role(raw)
        return AgentSpec(
            id=f"agent-{position}",
            name=raw,
            role=role,
            system_prompt=get_role_system_prompt(role),
            order=position,
        )

    name = _first(raw, "name", "role", default=f"Agent {position}")
    role = _first(raw, "role", default=None) or to_role(str(name))
    temperature = raw.get("temperature")

    return AgentSpec(
        id=str(_first(raw, "id", default=f"agent-{position}")),
        name=str(name),
        role=str(role),
        system_prompt=get_role_system_prompt(
            str(role), _first(raw, "systemPrompt", "system_prompt")
        ),
        task_prompt=_first(raw, "prompt", "taskPrompt", "task_prompt", default=""),
        temperature=(
            float(temperature) if temperature is not None else DEFAULT_AGENT_TEMPERATURE
        ),
        order=int(_first(raw, "order", default=position)),
    )


def resolve_agent_workflow(content_type: ContentType) -> AgentWorkflow:
    """Find and normalize the agent workflow of a content type.

    Looks at ``prompting.agentWorkflow`` first, then ``prompting.agents``
    (a list of agent objects or of bare agent names).

    Raises:
        NoAgentsConfigured: If no agents are configured
        ConfigurationError: If the workflow is not sequential or is malformed
    """
    prompting = content_type.prompting
    workflow = prompting.get("agentWorkflow")

    if isinstance(workflow, dict) and workflow.get("agents"):
        raw_agents = workflow["agents"]
        execution_order = workflow.get("executionOrder") or ExecutionOrder.SEQUENTIAL
    else:
        raw_agents = prompting.get("agents") or []
        execution_order = ExecutionOrder.SEQUENTIAL

    if not isinstance(raw_agents, list) or not raw_agents:
        raise NoAgentsConfigured(content_type.name)

    try:
        execution_order = ExecutionOrder(execution_order)
    except ValueError as e:
        raise ConfigurationError(f"Unknown executionOrder {execution_order!r}") from e

    if execution_order != ExecutionOrder.SEQUENTIAL:
        raise ConfigurationError(
            f"executionOrder {execution_order.value!r} is not supported; "
            "scene workflows run agents sequentially"
        )

    agents = []
    for position, raw in enumerate(raw_agents, start=1):
        if not isinstance(raw, dict | str):
            raise ConfigurationError(f"Invalid agent definition at position {position}")
        agents.append(normalize_agent(raw, position))

    logger.debug(
        "agent_workflow_resolved",
        content_type=content_type.name,
        agent_count=len(agents),
        roles=[a.role for a in agents],
    )

    return AgentWorkflow(agents=tuple(agents), execution_order=execution_order)
