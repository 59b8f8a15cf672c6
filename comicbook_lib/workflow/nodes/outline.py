"""
Comic book generator - Story planning and plan review nodes.
"""

from typing import List, Optional

from langchain_core.runnables import RunnableConfig

from comicbook_lib.core.config import ComicSettings
from comicbook_lib.core.constants import (
    PLACEHOLDER_PHASE_DESCRIPTION,
    PLACEHOLDER_PHASE_TITLE,
    NodeNames,
    RevisionModes,
)
from comicbook_lib.core.exceptions import InvalidStateError, LLMError, PlanGenerationError
from comicbook_lib.core.logger import get_logger, track_progress
from comicbook_lib.core.models import (
    AudienceInput,
    ComicState,
    Critique,
    NarrativePhase,
    RevisionVerdict,
    StoryCategory,
    StoryPlan,
)
from comicbook_lib.prompts.renderer import clip_text, render_prompt
from comicbook_lib.workflow.context import get_run_context
from comicbook_lib.workflow.nodes.inputs import group_inputs_by_category

logger = get_logger(__name__)


def enforce_phase_count(plan: StoryPlan, scene_count: int) -> StoryPlan:
    """
    Return a copy of ``plan`` with exactly ``scene_count`` narrative phases.

    Missing phases are padded with placeholders, surplus phases are dropped.
    """
    phases = list(plan.narrative_phases)
    if len(phases) != scene_count:
        logger.info(f"Adjusting narrative phases from {len(phases)} to {scene_count}")
        while len(phases) < scene_count:
            phases.append(
                NarrativePhase(
                    phase=PLACEHOLDER_PHASE_TITLE.format(number=len(phases) + 1),
                    description=PLACEHOLDER_PHASE_DESCRIPTION,
                )
            )
        phases = phases[:scene_count]
    return plan.model_copy(update={"narrative_phases": phases})


def build_plan_prompt(
    inputs: List[AudienceInput],
    settings: ComicSettings,
    feedback: str = "",
    previous_plan: Optional[StoryPlan] = None,
) -> str:
    """Render the planning prompt from the non-empty category groups.

    Each group keeps at most ``max_items_per_category`` items, each clipped to
    ``max_description_chars``, so the prompt stays bounded.
    """
    groups = group_inputs_by_category(inputs)
    limit = settings.max_description_chars
    rendered_groups = [
        (
            category.label,
            [clip_text(d, limit) for d in descriptions[: settings.max_items_per_category]],
        )
        for category, descriptions in groups.items()
    ]
    previous = None
    if previous_plan is not None and settings.revision_mode == RevisionModes.AMEND:
        previous = previous_plan.model_dump_json(indent=2)

    return render_prompt(
        "plan_story",
        genre=settings.genre,
        scene_count=settings.scene_count,
        groups=rendered_groups,
        has_characters=StoryCategory.CHARACTER in groups,
        has_settings=StoryCategory.SETTING in groups,
        feedback=feedback,
        previous_plan=previous,
    )


@track_progress
def plan_story(state: ComicState, config: RunnableConfig) -> dict:
    """Create the story plan: title, premise, characters, settings and phases.

    On a revision pass the critique feedback goes into the prompt; the result
    always replaces the previous plan.
    """
    settings, port = get_run_context(config)
    review = state.get("narrative_review")
    feedback = review.feedback if review and not review.approved else ""
    previous_plan = state.get("story_plan") if feedback else None

    prompt = build_plan_prompt(
        state.get("audience_inputs") or [], settings, feedback, previous_plan
    )
    try:
        plan = port.generate(prompt, StoryPlan, name="story_plan")
    except LLMError as e:
        raise PlanGenerationError(
            f"Story planning failed: {e}", step=NodeNames.PLAN_STORY, details=e.details
        ) from e

    plan = enforce_phase_count(plan, settings.scene_count)
    logger.info(f"Planned '{plan.title}' with {len(plan.narrative_phases)} phases")
    return {"story_plan": plan}


def apply_critique(
    verdict: Optional[RevisionVerdict], critique: Critique, revision_limit: int
) -> RevisionVerdict:
    """Record one critique attempt.

    The attempt counter always increases. With a positive limit, approval is
    forced once the counter reaches it; with a limit of 0 the critique stands.
    """
    count = (verdict.revision_count if verdict else 0) + 1
    approved = critique.approved
    if not approved and revision_limit > 0 and count >= revision_limit:
        logger.info(f"Revision limit {revision_limit} reached; forcing approval")
        approved = True
    return RevisionVerdict(approved=approved, feedback=critique.feedback, revision_count=count)


@track_progress
def review_story_plan(state: ComicState, config: RunnableConfig) -> dict:
    """Critique the current story plan and update the narrative verdict."""
    settings, port = get_run_context(config)
    plan = state.get("story_plan")
    if plan is None:
        raise InvalidStateError("Cannot review a story plan that does not exist")

    prompt = render_prompt(
        "review_story_plan",
        genre=settings.genre,
        plan=plan,
        scene_count=settings.scene_count,
    )
    try:
        critique = port.generate(prompt, Critique, name="story_plan_review")
    except LLMError as e:
        raise PlanGenerationError(
            f"Story plan review failed: {e}",
            step=NodeNames.REVIEW_STORY_PLAN,
            details=e.details,
        ) from e

    verdict = apply_critique(state.get("narrative_review"), critique, settings.revision_limit)
    logger.info(
        f"Plan review {verdict.revision_count}: approved={verdict.approved}"
        + (f", feedback: {verdict.feedback}" if not verdict.approved else "")
    )
    return {"narrative_review": verdict}
