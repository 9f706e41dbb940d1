"""Key/value scratchpads shared between agents.

A generation session owns one ``SessionScratchpad``. Planner output lives in
the session partition; every scene gets its own child ``Scratchpad`` so
concurrently running scene workflows never see each other's agent outputs.
"""

import copy
from typing import Any


class _Missing:
    """Sentinel type for "key not found"."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class Scratchpad:
    """Mutable key/value store for one scope (a session or a single scene)."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._entries: dict[str, Any] = dict(initial or {})

    def reset(self) -> None:
        self._entries.clear()

    def write(self, key: str, value: Any) -> None:
        self._entries[key] = value

    def read(self, key: str, default: Any = MISSING) -> Any:
        return self._entries.get(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def snapshot(self) -> dict[str, Any]:
        """Deep copy of all entries."""
        return copy.deepcopy(self._entries)


class SessionScratchpad(Scratchpad):
    """Session-level scratchpad that hands out one partition per scene."""

    def __init__(self) -> None:
        super().__init__()
        self._scenes: dict[int, Scratchpad] = {}

    def reset(self) -> None:
        """Clear session entries and drop every scene partition."""
        super().reset()
        self._scenes.clear()

    def for_scene(self, scene_index: int) -> Scratchpad:
        """Get the scene's partition, seeding it from session entries on first use."""
        pad = self._scenes.get(scene_index)
        if pad is None:
            pad = Scratchpad(self.snapshot())
            self._scenes[scene_index] = pad
        return pad

    @property
    def scene_indices(self) -> list[int]:
        return sorted(self._scenes)
