"""Shared fixtures: a scripted generation port and ready-made settings."""

import re
import threading
import time
from typing import Dict, List, Optional, Sequence, Tuple, Type

import pytest

from comicbook_lib.core.config import ComicSettings
from comicbook_lib.core.exceptions import LLMConnectionError
from comicbook_lib.core.models import (
    CharacterProfile,
    Critique,
    NarrativePhase,
    SceneDraft,
    SettingProfile,
    StoryPlan,
    VisualDraft,
)
from comicbook_lib.generation.port import GenerationPort
from comicbook_lib.workflow.context import build_run_config


SAMPLE_INPUTS = [
    {"category": "character", "description": "A retired astronaut"},
    {"category": "setting", "description": "A vertical redwood city"},
]

_SCENE_COUNT = re.compile(r"exactly (\d+) scenes")
_NUMBER_SUFFIX = re.compile(r"_(\d+)$")


def _number(name: str) -> int:
    match = _NUMBER_SUFFIX.search(name)
    return int(match.group(1)) if match else 0


class ScriptedGenerationPort(GenerationPort):
    """In-memory port answering every request from fixed scripts.

    Args:
        phase_count: Phases in each returned plan (the count asked for in the
            prompt when omitted)
        plan_approvals: Successive plan critique outcomes; the last one repeats
        visual_approvals: Successive visual critique outcomes per scene
        fail_scene: Scene number whose generation raises a connection error
        slow_scene: Scene number whose generation is delayed
    """

    def __init__(
        self,
        phase_count: Optional[int] = None,
        plan_approvals: Sequence[bool] = (True,),
        visual_approvals: Sequence[bool] = (True,),
        fail_scene: Optional[int] = None,
        slow_scene: Optional[int] = None,
    ):
        self.phase_count = phase_count
        self.plan_approvals = list(plan_approvals)
        self.visual_approvals = list(visual_approvals)
        self.fail_scene = fail_scene
        self.slow_scene = slow_scene
        self.calls: List[Tuple[str, Type, str]] = []
        self._counts: Dict[str, int] = {}
        self._lock = threading.Lock()

    def generate(self, prompt, schema, name):
        with self._lock:
            self.calls.append((name, schema, prompt))
            attempt = self._counts.get(name, 0) + 1
            self._counts[name] = attempt

        if schema is StoryPlan:
            return self._plan(prompt, attempt)
        if schema is Critique:
            approvals = (
                self.plan_approvals if name == "story_plan_review" else self.visual_approvals
            )
            approved = approvals[min(attempt, len(approvals)) - 1]
            feedback = "" if approved else f"Feedback {attempt} for {name}"
            return Critique(approved=approved, feedback=feedback)
        if schema is SceneDraft:
            return self._scene(_number(name))
        if schema is VisualDraft:
            number = _number(name)
            return VisualDraft(
                visual_elements=f"Wide shot of scene {number}, attempt {attempt}",
                image_prompt=f"comic panel of scene {number}, moody lighting",
            )
        raise AssertionError(f"Unexpected schema {schema.__name__}")

    def _plan(self, prompt: str, attempt: int) -> StoryPlan:
        count = self.phase_count
        if count is None:
            match = _SCENE_COUNT.search(prompt)
            count = int(match.group(1)) if match else 3
        title = "Signal in the Redwoods"
        if attempt > 1:
            title += f" v{attempt}"
        return StoryPlan(
            title=title,
            premise="A retired astronaut hunts a killer through a vertical redwood city.",
            characters=[
                CharacterProfile(name="Commander Vega", description="A retired astronaut"),
                CharacterProfile(name="Ranger Holt", description="A wary canopy ranger"),
            ],
            settings=[
                SettingProfile(name="Redwood Spire", description="A vertical redwood city"),
            ],
            narrative_phases=[
                NarrativePhase(phase=f"Phase {i}", description=f"What happens in phase {i}")
                for i in range(1, count + 1)
            ],
        )

    def _scene(self, number: int) -> SceneDraft:
        if number == self.fail_scene:
            raise LLMConnectionError("Request timed out")
        if number == self.slow_scene:
            time.sleep(0.05)
        return SceneDraft(
            title=f"Scene {number} title",
            description=f"Description of scene {number}",
            characters=["Commander Vega"],
            setting="Redwood Spire",
        )

    def names(self, prefix: str = "") -> List[str]:
        return [name for name, _, _ in self.calls if name.startswith(prefix)]

    def prompts(self, name: str) -> List[str]:
        return [prompt for call_name, _, prompt in self.calls if call_name == name]


@pytest.fixture
def port():
    return ScriptedGenerationPort()


@pytest.fixture
def settings():
    return ComicSettings()


@pytest.fixture
def run_config(settings, port):
    return build_run_config(settings, port)


@pytest.fixture
def sample_inputs():
    return [dict(item) for item in SAMPLE_INPUTS]
