"""
Final output assembly.
"""

from typing import Dict, List

from comicbook_lib.core.exceptions import InvalidStateError
from comicbook_lib.core.logger import get_logger, track_progress
from comicbook_lib.core.models import (
    ComicState,
    FinalOutput,
    FinalScene,
    Scene,
    StoryPlan,
    VisualDescription,
)

logger = get_logger(__name__)


def assemble_output(
    plan: StoryPlan, scenes: List[Scene], visuals: List[VisualDescription]
) -> FinalOutput:
    """
    Join scenes with their visuals by scene number and sort by scene number.

    Scenes without a visual get an empty image prompt; visuals without a
    scene are dropped. Completion order of the inputs does not matter.
    """
    prompts: Dict[int, str] = {v.scene_number: v.image_prompt for v in visuals}
    scene_numbers = {scene.scene_number for scene in scenes}
    orphans = sorted(set(prompts) - scene_numbers)
    if orphans:
        logger.warning(f"Dropping visuals for unknown scenes: {orphans}")

    final_scenes = [
        FinalScene(
            scene_number=scene.scene_number,
            title=scene.title,
            description=scene.description,
            characters=scene.characters,
            setting=scene.setting,
            image_prompt=prompts.get(scene.scene_number, ""),
        )
        for scene in sorted(scenes, key=lambda s: s.scene_number)
    ]
    return FinalOutput(title=plan.title, premise=plan.premise, scenes=final_scenes)


@track_progress
def format_output(state: ComicState) -> dict:
    """Build the final output from the plan, scenes and visual descriptions."""
    plan = state.get("story_plan")
    if plan is None:
        raise InvalidStateError("Cannot format output without a story plan")

    final_output = assemble_output(
        plan, state.get("scenes") or [], state.get("visual_descriptions") or []
    )
    logger.info(f"Assembled '{final_output.title}' with {len(final_output.scenes)} scenes")
    return {"final_output": final_output}
