"""
Comic book generator - Conditional routing between workflow steps.

Routers only read state and settings; they never write.
"""

from typing import Iterable, List

from langchain_core.runnables import RunnableConfig
from langgraph.types import Send

from comicbook_lib.core.constants import NodeNames, Routes
from comicbook_lib.core.exceptions import InvalidStateError, StateTransitionError
from comicbook_lib.core.logger import get_logger
from comicbook_lib.core.models import ComicState, RevisionVerdict, VisualState
from comicbook_lib.workflow.context import get_run_context
from comicbook_lib.workflow.nodes.scenes import scene_tasks
from comicbook_lib.workflow.nodes.visuals import visual_tasks

logger = get_logger(__name__)

REVIEW_ROUTES = (Routes.REVISE, Routes.CONTINUE)


def _checked(from_node: str, route: str, allowed: Iterable[str]) -> str:
    if route not in allowed:
        raise StateTransitionError(
            f"Router at '{from_node}' chose undeclared destination '{route}'",
            from_node=from_node,
            to_node=route,
        )
    return route


def review_route(verdict: RevisionVerdict, revision_limit: int) -> str:
    """Continue once approved or once the revision limit is reached."""
    if verdict.approved or verdict.revision_count >= revision_limit:
        return Routes.CONTINUE
    return Routes.REVISE


def route_after_plan_review(state: ComicState, config: RunnableConfig) -> str:
    """Send a rejected plan back to planning while revisions remain."""
    settings, _ = get_run_context(config)
    verdict = state.get("narrative_review")
    if verdict is None:
        raise InvalidStateError("Plan review finished without a verdict")

    route = review_route(verdict, settings.revision_limit)
    if route == Routes.REVISE:
        logger.info(
            f"Story plan rejected (review {verdict.revision_count}/{settings.revision_limit}), revising"
        )
    else:
        logger.debug("Story plan accepted, continuing to scenes")
    return _checked(NodeNames.REVIEW_STORY_PLAN, route, REVIEW_ROUTES)


def route_after_visual_review(state: VisualState, config: RunnableConfig) -> str:
    """Loop a rejected visual back to generation while revisions remain."""
    settings, _ = get_run_context(config)
    verdict = state.get("review")
    if verdict is None:
        raise InvalidStateError("Visual review finished without a verdict")

    route = review_route(verdict, settings.visual_revision_limit)
    if route == Routes.REVISE:
        scene = state.get("scene")
        logger.info(
            f"Visual for scene {scene.scene_number if scene else '?'} rejected, regenerating"
        )
    return _checked(NodeNames.REVIEW_VISUAL, route, REVIEW_ROUTES)


def route_to_scene_writers(state: ComicState, config: RunnableConfig) -> List[Send]:
    """Fan out one isolated write_scene task per narrative phase."""
    settings, _ = get_run_context(config)
    plan = state.get("story_plan")
    if plan is None:
        raise InvalidStateError("Cannot dispatch scenes without a story plan")

    tasks = scene_tasks(plan, settings.scene_count)
    logger.info(f"Dispatching {len(tasks)} scene writers")
    return [Send(NodeNames.WRITE_SCENE, task) for task in tasks]


def route_to_visual_renderers(state: ComicState, config: RunnableConfig) -> List[Send]:
    """Fan out one isolated visual sub-workflow run per scene."""
    settings, _ = get_run_context(config)
    tasks = visual_tasks(state.get("scenes") or [], settings.scene_count)
    if not tasks:
        raise InvalidStateError("Cannot dispatch visuals without scenes")

    logger.info(f"Dispatching {len(tasks)} visual renderers")
    return [Send(NodeNames.RENDER_SCENE_VISUALS, task) for task in tasks]
