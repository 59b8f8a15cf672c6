"""
Scene generation, either in one sequential step or as fan-out writers.

Both shapes build the same isolated SceneTask per narrative phase and
produce identical scenes; only the dispatch differs.
"""

from typing import List

from langchain_core.runnables import RunnableConfig

from comicbook_lib.core.config import ComicSettings
from comicbook_lib.core.constants import NodeNames
from comicbook_lib.core.exceptions import InvalidStateError, LLMError, SceneGenerationError
from comicbook_lib.core.logger import get_logger, track_progress
from comicbook_lib.core.models import ComicState, Scene, SceneDraft, SceneTask, StoryPlan
from comicbook_lib.generation.port import GenerationPort
from comicbook_lib.prompts.renderer import render_prompt
from comicbook_lib.workflow.context import get_run_context

logger = get_logger(__name__)


def scene_tasks(plan: StoryPlan, scene_count: int) -> List[SceneTask]:
    """One task per scene slot, carrying only that slot's phase plus the cast lists."""
    if len(plan.narrative_phases) < scene_count:
        raise InvalidStateError(
            f"Story plan has {len(plan.narrative_phases)} phases, expected {scene_count}"
        )
    character_names = [c.name for c in plan.characters]
    setting_names = [s.name for s in plan.settings]
    return [
        SceneTask(
            scene_number=number,
            scene_count=scene_count,
            phase=plan.narrative_phases[number - 1],
            story_title=plan.title,
            premise=plan.premise,
            character_names=character_names,
            setting_names=setting_names,
        )
        for number in range(1, scene_count + 1)
    ]


def build_scene_prompt(task: SceneTask, genre: str) -> str:
    return render_prompt(
        "write_scene",
        genre=genre,
        scene_number=task["scene_number"],
        scene_count=task["scene_count"],
        story_title=task["story_title"],
        premise=task["premise"],
        phase=task["phase"],
        character_names=task["character_names"],
        setting_names=task["setting_names"],
    )


def write_scene_from_task(
    task: SceneTask, settings: ComicSettings, port: GenerationPort, step: str
) -> Scene:
    """Generate the scene for one task.

    The scene number always comes from the task, whatever the generator says,
    so concurrent writers never collide.
    """
    scene_number = task["scene_number"]
    prompt = build_scene_prompt(task, settings.genre)
    try:
        draft = port.generate(prompt, SceneDraft, name=f"scene_{scene_number}")
    except LLMError as e:
        raise SceneGenerationError(
            f"Scene {scene_number} generation failed: {e}",
            step=step,
            scene=scene_number,
            details=e.details,
        ) from e

    scene = Scene(
        scene_number=scene_number,
        title=draft.title,
        description=draft.description,
        characters=draft.characters,
        setting=draft.setting,
        narrative_phase=task["phase"].phase,
    )
    logger.info(f"Generated scene {scene_number}: {scene.title}")
    return scene


@track_progress
def generate_scenes(state: ComicState, config: RunnableConfig) -> dict:
    """Write every scene in order within a single step."""
    settings, port = get_run_context(config)
    plan = state.get("story_plan")
    if plan is None:
        raise InvalidStateError("Cannot generate scenes without a story plan")

    scenes = [
        write_scene_from_task(task, settings, port, NodeNames.GENERATE_SCENES)
        for task in scene_tasks(plan, settings.scene_count)
    ]
    return {"scenes": scenes}


@track_progress
def dispatch_scenes(state: ComicState) -> dict:
    """Join point before the scene fan-out; the writers are sent by its router."""
    plan = state.get("story_plan")
    if plan is None:
        raise InvalidStateError("Cannot dispatch scenes without a story plan")
    return {}


@track_progress
def write_scene(task: SceneTask, config: RunnableConfig) -> dict:
    """Fan-out worker: write the single scene described by ``task``."""
    settings, port = get_run_context(config)
    scene = write_scene_from_task(task, settings, port, NodeNames.WRITE_SCENE)
    return {"scenes": [scene]}
