"""Single agent step within a scene workflow.

Each agent sees the content type's system prompt, its own persona, the
scene it works on, the user's inputs and everything earlier agents wrote to
the scene scratchpad. Intermediate agents refine a working prompt; the final
agent must produce the structured scene.
"""

import json
from typing import Any

from storyboard_engine.adapters.llm import LLMMessage, LLMProvider, get_llm_provider
from storyboard_engine.config import settings
from storyboard_engine.domain.errors import ProviderError
from storyboard_engine.domain.models import AgentContribution, AgentSpec, ScenePurpose
from storyboard_engine.logging import get_logger
from storyboard_engine.services.inputs import format_inputs
from storyboard_engine.services.scratchpad import MISSING, Scratchpad
from storyboard_engine.services.session import GenerationSession
from storyboard_engine.utils.llm_output import parse_json_object

logger = get_logger(__name__)

LAST_PROMPT_KEY = "last_prompt"
SCENE_PLAN_KEY = "scene_plan"

FINAL_OUTPUT_SCHEMA = """{
  "imagePrompt": "complete, detailed image generation prompt",
  "negativePrompt": "things the image must not contain",
  "camera": {"shot": "...", "lens": "...", "movement": "..."},
  "environment": {"location": "...", "timeOfDay": "...", "lighting": "..."},
  "onScreenText": {"text": "...", "styleNotes": "..."},
  "compositionNotes": "..."
}"""

INTERMEDIATE_OUTPUT_SCHEMA = """{
  "critique": "what should change and why, from your expertise",
  "changes": "the concrete changes you made",
  "modified_prompt": "the full revised image prompt"
}"""


class AgentStepExecutor:
    """Runs one agent against one scene with exactly one LLM call."""

    def __init__(
        self,
        llm_provider: LLMProvider | None = None,
        max_tokens: int | None = None,
    ) -> None:
        self.llm = llm_provider or get_llm_provider()
        self.max_tokens = max_tokens or settings.agent_max_tokens

    def _build_system_prompt(self, agent: AgentSpec, session: GenerationSession) -> str:
        persona = f"You are {agent.name}, a {agent.role}. {agent.system_prompt}".strip()
        template = session.content_type.system_prompt_template
        return f"{template}\n\n{persona}" if template else persona

    def _prior_outputs(
        self, agent: AgentSpec, scratchpad: Scratchpad, session: GenerationSession
    ) -> list[tuple[AgentSpec, Any]]:
        # Prior means earlier in run order; agents may share an ``order`` value
        outputs = []
        for prior in session.workflow.ordered_agents:
            if prior is agent or prior.id == agent.id:
                break
            value = scratchpad.read(prior.role)
            if value is not MISSING:
                outputs.append((prior, value))
        return outputs

    def _build_user_prompt(
        self,
        agent: AgentSpec,
        scene: ScenePurpose,
        scratchpad: Scratchpad,
        session: GenerationSession,
        is_final: bool,
    ) -> str:
        sections = [
            f"## Scene {scene.index}",
            f"Scene Index: {scene.index}\nScene Purpose: {scene.purpose}",
            "IMPORTANT: The system prompt above contains constraints that take precedence "
            "over the scene purpose. If they conflict, follow the system prompt while keeping "
            "the scene's core intent.",
        ]

        plan = scratchpad.read(SCENE_PLAN_KEY)
        if plan is not MISSING:
            storyboard = "\n".join(
                f"Scene {s['index']}: {s['purpose']}" for s in plan.get("scenes", [])
            )
            sections.append(f"### Full storyboard (for consistency)\n{storyboard}")

        if session.inputs:
            sections.append(f"### Inputs\n{format_inputs(session.inputs)}")

        prior = self._prior_outputs(agent, scratchpad, session)
        if prior:
            rendered = "\n\n".join(
                f"#### {p.name} ({p.role})\n{json.dumps(value, indent=2, default=str)}"
                for p, value in prior
            )
            sections.append(f"### Work from previous agents\n{rendered}")

        draft = scratchpad.read(LAST_PROMPT_KEY)
        sections.append(
            "### Current prompt draft\n"
            + (draft if draft is not MISSING else "None yet - create the first version.")
        )

        if agent.task_prompt:
            sections.append(f"### Your task\n{agent.task_prompt}")

        if is_final:
            sections.append(
                "### Final assembly\n"
                "You are the final agent. Produce the finished scene. Replace every generic "
                "placeholder with the actual input values and make the image prompt complete, "
                "specific and ready for image generation."
            )
            if session.content_type.output_contract:
                sections.append(
                    "### Output contract\n"
                    + json.dumps(session.content_type.output_contract, indent=2)
                )
            sections.append(f"Respond with a JSON object of this shape:\n{FINAL_OUTPUT_SCHEMA}")
        else:
            sections.append(
                f"Critique and improve the current prompt draft from your expertise "
                f"({agent.role}). Respond with a JSON object of this shape:\n"
                f"{INTERMEDIATE_OUTPUT_SCHEMA}"
            )

        return "\n\n".join(sections)

    async def execute(
        self,
        agent: AgentSpec,
        scene: ScenePurpose,
        scratchpad: Scratchpad,
        session: GenerationSession,
        is_final: bool,
    ) -> AgentContribution:
        """Run the agent for a scene and record its output in the scratchpad.

        Args:
            agent: The agent to run
            scene: Scene being generated
            scratchpad: The scene's own scratchpad
            session: The surrounding generation session
            is_final: Whether this agent assembles the scene

        Returns:
            The agent's contribution record

        Raises:
            ProviderError: If the LLM call fails or its output is unusable
        """
        previous_prompt = scratchpad.read(LAST_PROMPT_KEY, None)

        messages = [
            LLMMessage(role="system", content=self._build_system_prompt(agent, session)),
            LLMMessage(
                role="user",
                content=self._build_user_prompt(agent, scene, scratchpad, session, is_final),
            ),
        ]

        logger.debug(
            "agent_step_started",
            project_id=session.project_id,
            scene_index=scene.index,
            agent_id=agent.id,
            role=agent.role,
            is_final=is_final,
        )

        response = await self.llm.complete(
            messages=messages,
            temperature=agent.temperature,
            max_tokens=self.max_tokens,
            json_mode=True,
        )

        output = parse_json_object(response.content)
        if output is None:
            logger.error(
                "agent_output_unparseable",
                scene_index=scene.index,
                agent_id=agent.id,
                content=response.content[:500],
            )
            raise ProviderError(
                f"Agent {agent.name} ({agent.role}) returned unparseable output",
                provider=self.llm.name,
            )

        if is_final:
            image_prompt = output.get("imagePrompt")
            if not isinstance(image_prompt, str) or not image_prompt.strip():
                raise ProviderError(
                    f"Final agent ({agent.name} - {agent.role}) response missing "
                    "required 'imagePrompt' field",
                    provider=self.llm.name,
                )

        scratchpad.write(agent.role, output)
        draft = output.get("imagePrompt") if is_final else output.get("modified_prompt")
        if isinstance(draft, str) and draft.strip():
            scratchpad.write(LAST_PROMPT_KEY, draft)

        logger.info(
            "agent_step_completed",
            project_id=session.project_id,
            scene_index=scene.index,
            agent_id=agent.id,
            role=agent.role,
            output_keys=sorted(output),
        )

        return AgentContribution(
            agent_id=agent.id,
            agent_name=agent.name,
            role=agent.role,
            order=agent.order,
            input={
                "previousPrompt": previous_prompt,
                "dynamicInputs": session.inputs,
                "sceneContext": {"sceneIndex": scene.index, "scenePurpose": scene.purpose},
            },
            output=output,
        )
