"""Tests for the per-scene agent workflow runner."""

import asyncio

import pytest
from conftest import ScriptedLLMProvider

from storyboard_engine.domain.errors import GenerationCancelled, SceneGenerationError
from storyboard_engine.domain.models import ScenePurpose
from storyboard_engine.services.agent_executor import AgentStepExecutor
from storyboard_engine.services.scene_workflow import SceneWorkflowRunner


def runner_for(llm: ScriptedLLMProvider) -> SceneWorkflowRunner:
    return SceneWorkflowRunner(AgentStepExecutor(llm_provider=llm))


class TestSceneWorkflowRunner:
    @pytest.mark.asyncio
    async def test_runs_agents_in_order(self, make_session) -> None:
        llm = ScriptedLLMProvider()
        session = make_session()
        scene = ScenePurpose(index=1, purpose="Hook: bold product reveal")

        result = await runner_for(llm).run(scene, session)

        assert [role for _, role, _ in llm.calls] == ["brand_strategist", "video_director"]
        assert [c.role for c in result.agent_contributions] == ["brand_strategist", "video_director"]
        assert [c.order for c in result.agent_contributions] == [1, 2]
        assert result.index == 1
        assert result.purpose == "Hook: bold product reveal"
        assert result.image_prompt == "Scene 1: studio product photograph, soft light"
        assert result.negative_prompt == "blurry, distorted, watermark"
        assert result.camera.lens == "50mm"
        assert result.environment.time_of_day == "day"

    @pytest.mark.asyncio
    async def test_generation_context(self, make_session, sample_inputs) -> None:
        session = make_session()
        result = await runner_for(ScriptedLLMProvider()).run(
            ScenePurpose(index=3, purpose="Offer and call to action"), session
        )

        context = result.generation_context
        assert context["inputs"] == sample_inputs
        assert context["contentTypeName"] == "UGC Product Ad"
        assert context["systemPrompt"] == "You create scroll-stopping vertical video ads."
        assert context["userPromptContext"]["Product Name"] == "AeroRun Sneaker"
        assert context["planIndex"] == 3
        assert context["scenePurpose"] == "Offer and call to action"
        assert context["sceneSpecificContext"]["camera"]["shot"] == "medium"

    @pytest.mark.asyncio
    async def test_agent_failure_aborts_scene(self, make_session) -> None:
        llm = ScriptedLLMProvider(fail=lambda scene, role: role == "brand_strategist")

        with pytest.raises(SceneGenerationError) as exc_info:
            await runner_for(llm).run(ScenePurpose(index=2, purpose="Demo"), make_session())

        assert exc_info.value.plan_index == 2
        # The second agent never ran
        assert [role for _, role, _ in llm.calls] == ["brand_strategist"]

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, make_session, store, seed_project) -> None:
        project = await seed_project()
        await store.request_stop(project.id)
        llm = ScriptedLLMProvider()

        with pytest.raises(GenerationCancelled):
            await runner_for(llm).run(
                ScenePurpose(index=1, purpose="Hook"), make_session(project_id=project.id)
            )
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_concurrent_scenes_do_not_share_agent_outputs(self, make_session) -> None:
        llm = ScriptedLLMProvider(delay=lambda scene, role: 0.01 if scene == 1 else 0.0)
        session = make_session()
        runner = runner_for(llm)

        await asyncio.gather(
            runner.run(ScenePurpose(index=1, purpose="Hook"), session),
            runner.run(ScenePurpose(index=2, purpose="Demo"), session),
        )

        for scene, role, messages in llm.calls:
            if role != "video_director":
                continue
            user = messages[1].content
            other = 2 if scene == 1 else 1
            assert f"Scene {scene}: refined product shot" in user
            assert f"Scene {other}: refined product shot" not in user
