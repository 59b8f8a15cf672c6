"""
Per-scene visual descriptions.

Each scene runs through its own small sub-workflow (generate, critique,
regenerate while rejected and under the limit). The main graph calls that
sub-workflow either for every scene in one step or once per fan-out branch.
"""

from typing import List, Optional

from langchain_core.runnables import RunnableConfig

from comicbook_lib.core.config import ComicSettings
from comicbook_lib.core.constants import (
    IMAGE_PROMPT_MAX_CHARS,
    IMAGE_PROMPT_MAX_WORDS,
    NodeNames,
    RevisionModes,
)
from comicbook_lib.core.exceptions import InvalidStateError, LLMError, VisualGenerationError
from comicbook_lib.core.logger import get_logger, track_progress
from comicbook_lib.core.models import (
    ComicState,
    Critique,
    Scene,
    VisualDescription,
    VisualDraft,
    VisualState,
    VisualTask,
)
from comicbook_lib.generation.port import GenerationPort
from comicbook_lib.prompts.renderer import render_prompt
from comicbook_lib.workflow.context import build_run_config, get_run_context
from comicbook_lib.workflow.nodes.outline import apply_critique

logger = get_logger(__name__)


def clamp_image_prompt(
    text: str,
    max_words: int = IMAGE_PROMPT_MAX_WORDS,
    max_chars: int = IMAGE_PROMPT_MAX_CHARS,
) -> str:
    """Trim an image prompt to the word and character bounds on a word boundary."""
    words = text.split()[:max_words]
    clamped = " ".join(words)
    if len(clamped) > max_chars:
        clamped = clamped[:max_chars]
        if " " in clamped:
            clamped = clamped.rsplit(" ", 1)[0]
    return clamped


def visual_tasks(scenes: List[Scene], scene_count: int) -> List[VisualTask]:
    return [
        VisualTask(scene=scene, scene_count=scene_count)
        for scene in sorted(scenes, key=lambda s: s.scene_number)
    ]


# Sub-workflow steps


@track_progress
def generate_visual(state: VisualState, config: RunnableConfig) -> dict:
    """Describe the visuals of one scene, folding in critique feedback if any."""
    settings, port = get_run_context(config)
    scene = state["scene"]
    review = state.get("review")
    feedback = review.feedback if review and not review.approved else ""
    previous = state.get("visual")
    if not feedback or settings.revision_mode != RevisionModes.AMEND:
        previous = None

    prompt = render_prompt(
        "generate_visual",
        genre=settings.genre,
        scene=scene,
        scene_count=state["scene_count"],
        max_words=IMAGE_PROMPT_MAX_WORDS,
        max_chars=IMAGE_PROMPT_MAX_CHARS,
        feedback=feedback,
        previous_visual=previous,
    )
    try:
        draft = port.generate(prompt, VisualDraft, name=f"visual_{scene.scene_number}")
    except LLMError as e:
        raise VisualGenerationError(
            f"Visual generation for scene {scene.scene_number} failed: {e}",
            step=NodeNames.GENERATE_VISUAL,
            scene=scene.scene_number,
            details=e.details,
        ) from e

    visual = VisualDescription(
        scene_number=scene.scene_number,
        visual_elements=draft.visual_elements,
        image_prompt=clamp_image_prompt(draft.image_prompt),
    )
    return {"visual": visual}


@track_progress
def review_visual(state: VisualState, config: RunnableConfig) -> dict:
    """Critique the scene's visual description and update its verdict."""
    settings, port = get_run_context(config)
    scene = state["scene"]
    visual = state.get("visual")
    if visual is None:
        raise InvalidStateError(f"No visual to review for scene {scene.scene_number}")

    prompt = render_prompt(
        "review_visual",
        genre=settings.genre,
        scene=scene,
        visual=visual,
        max_words=IMAGE_PROMPT_MAX_WORDS,
    )
    try:
        critique = port.generate(prompt, Critique, name=f"visual_review_{scene.scene_number}")
    except LLMError as e:
        raise VisualGenerationError(
            f"Visual review for scene {scene.scene_number} failed: {e}",
            step=NodeNames.REVIEW_VISUAL,
            scene=scene.scene_number,
            details=e.details,
        ) from e

    verdict = apply_critique(state.get("review"), critique, settings.visual_revision_limit)
    logger.debug(
        f"Visual review {verdict.revision_count} for scene {scene.scene_number}: "
        f"approved={verdict.approved}"
    )
    return {"review": verdict}


def run_visual_workflow(
    scene: Scene, scene_count: int, settings: ComicSettings, port: GenerationPort
) -> VisualDescription:
    """Run the visual sub-workflow for one scene in isolation and return its result."""
    from comicbook_lib.workflow.graph import get_visual_graph

    final_state = get_visual_graph().invoke(
        {"scene": scene, "scene_count": scene_count},
        config=build_run_config(settings, port, settings.visual_recursion_limit),
    )
    visual: Optional[VisualDescription] = final_state.get("visual")
    if visual is None:
        raise InvalidStateError(f"Visual sub-workflow produced nothing for scene {scene.scene_number}")
    return visual


# Main graph steps


@track_progress
def generate_visuals(state: ComicState, config: RunnableConfig) -> dict:
    """Run the visual sub-workflow for every scene, one after another."""
    settings, port = get_run_context(config)
    tasks = visual_tasks(state.get("scenes") or [], settings.scene_count)
    visuals = [
        run_visual_workflow(task["scene"], task["scene_count"], settings, port)
        for task in tasks
    ]
    return {"visual_descriptions": visuals}


@track_progress
def dispatch_visuals(state: ComicState) -> dict:
    """Join point after scene generation; renderers are sent by its router."""
    if not state.get("scenes"):
        raise InvalidStateError("Cannot dispatch visuals without scenes")
    return {}


@track_progress
def render_scene_visuals(task: VisualTask, config: RunnableConfig) -> dict:
    """Fan-out worker: run the visual sub-workflow for the task's scene."""
    settings, port = get_run_context(config)
    visual = run_visual_workflow(task["scene"], task["scene_count"], settings, port)
    return {"visual_descriptions": [visual]}
