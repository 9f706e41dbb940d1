"""Scene planning: decide how many scenes a storyboard has and what each is for."""

import json
import re
from typing import Any

from storyboard_engine.adapters.llm import LLMMessage, LLMProvider, get_llm_provider
from storyboard_engine.config import settings
from storyboard_engine.domain.models import ContentType, ScenePlan, ScenePurpose
from storyboard_engine.logging import get_logger
from storyboard_engine.services.agent_executor import SCENE_PLAN_KEY
from storyboard_engine.services.inputs import format_inputs
from storyboard_engine.services.scratchpad import Scratchpad
from storyboard_engine.utils.llm_output import parse_json_object, strip_code_fences

logger = get_logger(__name__)

PLAN_REQUEST_HEADER = "## Scene Plan Request"

_SCENE_LINE = re.compile(r"^\s*(?:[-*]\s*)?\**scene\s+\d+\**\s*[:.\-)]\s*(.+)$", re.IGNORECASE)
_NUMBERED_LINE = re.compile(r"^\s*\d+\s*[.)]\s*(.+)$")


def parse_scene_purposes(content: str) -> list[str]:
    """Read scene purposes from a planner response.

    Accepts ``{"scenes": [{"purpose": ...}]}`` JSON (or a list of strings
    under ``scenes``), or a plain text list of ``Scene N: purpose``,
    ``N. purpose`` or bare lines.
    """
    data = parse_json_object(content)
    if data is not None and isinstance(data.get("scenes"), list):
        purposes = []
        for item in data["scenes"]:
            if isinstance(item, str):
                purpose = item
            elif isinstance(item, dict):
                purpose = item.get("purpose") or item.get("type") or ""
            else:
                continue
            if str(purpose).strip():
                purposes.append(str(purpose).strip())
        return purposes

    purposes = []
    for line in strip_code_fences(content).splitlines():
        line = line.strip()
        if not line:
            continue
        match = _SCENE_LINE.match(line) or _NUMBERED_LINE.match(line)
        purpose = match.group(1).strip() if match else line
        if purpose:
            purposes.append(purpose)
    return purposes


def bound_scene_purposes(purposes: list[str], min_scenes: int, max_scenes: int) -> ScenePlan:
    """Pad with ``Scene N`` placeholders up to the minimum, truncate to the maximum."""
    bounded = list(purposes[:max_scenes])
    while len(bounded) < min_scenes:
        bounded.append(f"Scene {len(bounded) + 1}")
    return ScenePlan(
        scenes=tuple(ScenePurpose(index=i, purpose=p) for i, p in enumerate(bounded, start=1))
    )


class ScenePlanner:
    """Plans scene purposes with one LLM call."""

    def __init__(
        self,
        llm_provider: LLMProvider | None = None,
        temperature: float | None = None,
    ) -> None:
        self.llm = llm_provider or get_llm_provider()
        self.temperature = (
            temperature if temperature is not None else settings.planner_temperature
        )

    def _build_user_prompt(self, content_type: ContentType, inputs: dict[str, Any]) -> str:
        policy = content_type.scene_generation_policy
        rules = policy.rules.as_instructions()

        rules_section = ""
        if rules:
            rules_section = "\n### Rules\n" + "\n".join(f"- {r}" for r in rules) + "\n"

        library_section = ""
        if policy.shot_library:
            library_section = (
                f"\n### Available scene purposes/types\n{', '.join(policy.shot_library)}\n"
            )

        return f"""{PLAN_REQUEST_HEADER}
You are planning the scenes of an advertising storyboard.

All scene purposes MUST respect the system prompt above. If it sets requirements for
specific scenes (e.g. "Scene 1: pure white background"), reflect them in those purposes.

### Inputs
{format_inputs(inputs) or "None"}

### Scene count
- Minimum scenes: {policy.min_scenes}
- Maximum scenes: {policy.max_scenes}
{rules_section}{library_section}
Choose a scene count between {policy.min_scenes} and {policy.max_scenes} and define the
purpose of each scene so the storyboard flows logically.

Respond with a JSON object: {{"scenes": [{{"purpose": "..."}}, ...]}}"""

    async def plan(
        self,
        content_type: ContentType,
        inputs: dict[str, Any],
        scratchpad: Scratchpad,
    ) -> ScenePlan:
        """Plan the scenes of a storyboard.

        Args:
            content_type: Content type supplying system prompt and scene policy
            inputs: Validated, label-keyed inputs
            scratchpad: Session scratchpad; receives the plan under ``scene_plan``

        Returns:
            ScenePlan bounded by the content type's min/max scene counts

        Raises:
            ProviderError: If the LLM call fails
        """
        policy = content_type.scene_generation_policy

        logger.info(
            "planning_scenes",
            content_type=content_type.name,
            min_scenes=policy.min_scenes,
            max_scenes=policy.max_scenes,
            llm_provider=self.llm.name,
        )

        messages = []
        if content_type.system_prompt_template:
            messages.append(LLMMessage(role="system", content=content_type.system_prompt_template))
        messages.append(
            LLMMessage(role="user", content=self._build_user_prompt(content_type, inputs))
        )

        response = await self.llm.complete(
            messages=messages,
            temperature=self.temperature,
            max_tokens=2048,
            json_mode=True,
        )

        purposes = parse_scene_purposes(response.content)
        plan = bound_scene_purposes(purposes, policy.min_scenes, policy.max_scenes)

        if len(purposes) != plan.scene_count:
            logger.warning(
                "scene_plan_adjusted",
                proposed=len(purposes),
                planned=plan.scene_count,
            )

        scratchpad.write(SCENE_PLAN_KEY, plan.to_dict())

        logger.info(
            "scenes_planned",
            content_type=content_type.name,
            scene_count=plan.scene_count,
            purposes=json.dumps([s.purpose for s in plan.scenes])[:500],
        )
        return plan
