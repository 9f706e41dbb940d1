"""Stub LLM provider for testing."""

import json
import re

from storyboard_engine.adapters.llm.base import LLMMessage, LLMProvider, LLMResponse
from storyboard_engine.logging import get_logger

logger = get_logger(__name__)

PLAN_REQUEST_MARKER = "## Scene Plan Request"
VIDEO_PROMPT_MARKER = "## Video Prompt Request"

STUB_PURPOSES = [
    "Hook: bold product reveal",
    "Product in use by the target audience",
    "Close-up of key features and materials",
    "Lifestyle moment showing the benefit",
    "Offer and call to action",
]


class StubLLMProvider(LLMProvider):
    """Stub provider that returns canned scene plans and agent outputs."""

    def __init__(self, scene_count: int = 3) -> None:
        self.scene_count = scene_count

    @property
    def name(self) -> str:
        return "stub"

    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,  # noqa: ARG002
        max_tokens: int = 4096,  # noqa: ARG002
        json_mode: bool = False,
    ) -> LLMResponse:
        """Return a mock completion response."""
        logger.info(
            "stub_llm_complete",
            message_count=len(messages),
            json_mode=json_mode,
        )

        user_message = ""
        for msg in reversed(messages):
            if msg.role == "user":
                user_message = msg.content
                break

        if VIDEO_PROMPT_MARKER in user_message:
            content = "i2v: The camera slowly pushes in as the product turns toward the light."
        elif PLAN_REQUEST_MARKER in user_message:
            content = json.dumps(
                {
                    "scenes": [
                        {"purpose": STUB_PURPOSES[i % len(STUB_PURPOSES)]}
                        for i in range(self.scene_count)
                    ]
                },
                indent=2,
            )
        else:
            match = re.search(r"Scene (\d+)", user_message)
            scene_label = f"Scene {match.group(1)}" if match else "Scene"
            content = json.dumps(
                {
                    "modified_prompt": f"{scene_label}: refined product shot",
                    "imagePrompt": f"{scene_label}: studio product photograph, soft light",
                    "negativePrompt": "blurry, distorted, watermark",
                    "camera": {"shot": "medium", "lens": "50mm", "movement": "static"},
                    "environment": {
                        "location": "studio",
                        "timeOfDay": "day",
                        "lighting": "softbox",
                    },
                    "onScreenText": {"text": "", "styleNotes": ""},
                    "compositionNotes": "Product centered, rule of thirds",
                },
                indent=2,
            )

        return LLMResponse(
            content=content,
            model="stub-model",
            usage={
                "prompt_tokens": len(user_message.split()),
                "completion_tokens": len(content.split()),
                "total_tokens": len(user_message.split()) + len(content.split()),
            },
            finish_reason="stop",
        )

    async def health_check(self) -> bool:
        """Stub provider is always healthy."""
        return True
