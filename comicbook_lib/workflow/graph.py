"""
Graph construction for the comic book workflow.

One builder covers every variant: sequential or fan-out scenes, an optional
story plan review loop, and optional per-scene visuals run through their own
sub-workflow.
"""

from functools import lru_cache

from langgraph.graph import END, START, StateGraph

from comicbook_lib.core.config import ComicSettings
from comicbook_lib.core.constants import NodeNames, Routes, SceneModes
from comicbook_lib.core.logger import get_logger
from comicbook_lib.core.models import ComicState, VisualState
from comicbook_lib.workflow.nodes.inputs import process_inputs
from comicbook_lib.workflow.nodes.outline import plan_story, review_story_plan
from comicbook_lib.workflow.nodes.output import format_output
from comicbook_lib.workflow.nodes.scenes import dispatch_scenes, generate_scenes, write_scene
from comicbook_lib.workflow.nodes.visuals import (
    dispatch_visuals,
    generate_visual,
    generate_visuals,
    render_scene_visuals,
    review_visual,
)
from comicbook_lib.workflow.transitions import (
    route_after_plan_review,
    route_after_visual_review,
    route_to_scene_writers,
    route_to_visual_renderers,
)

logger = get_logger(__name__)


def create_visual_graph():
    """Compile the per-scene visual sub-workflow over its own VisualState."""
    graph_builder = StateGraph(VisualState)

    graph_builder.add_node(NodeNames.GENERATE_VISUAL, generate_visual)
    graph_builder.add_node(NodeNames.REVIEW_VISUAL, review_visual)

    graph_builder.add_edge(START, NodeNames.GENERATE_VISUAL)
    graph_builder.add_edge(NodeNames.GENERATE_VISUAL, NodeNames.REVIEW_VISUAL)
    graph_builder.add_conditional_edges(
        NodeNames.REVIEW_VISUAL,
        route_after_visual_review,
        {Routes.REVISE: NodeNames.GENERATE_VISUAL, Routes.CONTINUE: END},
    )

    return graph_builder.compile()


@lru_cache(maxsize=1)
def get_visual_graph():
    """The compiled visual sub-workflow, shared by all runs."""
    return create_visual_graph()


def create_comic_graph(settings: ComicSettings):
    """
    Create the comic generation graph for the given settings.

    Settings choose the shape of the graph here; the same settings object must
    also be passed in the run config when invoking it.
    """
    graph_builder = StateGraph(ComicState)

    # Story setup
    graph_builder.add_node(NodeNames.PROCESS_INPUTS, process_inputs)
    graph_builder.add_node(NodeNames.PLAN_STORY, plan_story)
    graph_builder.add_edge(START, NodeNames.PROCESS_INPUTS)
    graph_builder.add_edge(NodeNames.PROCESS_INPUTS, NodeNames.PLAN_STORY)

    # Scene generation
    if settings.scene_mode == SceneModes.FANOUT:
        graph_builder.add_node(NodeNames.DISPATCH_SCENES, dispatch_scenes)
        graph_builder.add_node(NodeNames.WRITE_SCENE, write_scene)
        graph_builder.add_conditional_edges(
            NodeNames.DISPATCH_SCENES, route_to_scene_writers, [NodeNames.WRITE_SCENE]
        )
        scenes_entry, scenes_exit = NodeNames.DISPATCH_SCENES, NodeNames.WRITE_SCENE
    else:
        graph_builder.add_node(NodeNames.GENERATE_SCENES, generate_scenes)
        scenes_entry = scenes_exit = NodeNames.GENERATE_SCENES

    # Optional plan review loop
    if settings.narrative_review:
        graph_builder.add_node(NodeNames.REVIEW_STORY_PLAN, review_story_plan)
        graph_builder.add_edge(NodeNames.PLAN_STORY, NodeNames.REVIEW_STORY_PLAN)
        graph_builder.add_conditional_edges(
            NodeNames.REVIEW_STORY_PLAN,
            route_after_plan_review,
            {Routes.REVISE: NodeNames.PLAN_STORY, Routes.CONTINUE: scenes_entry},
        )
    else:
        graph_builder.add_edge(NodeNames.PLAN_STORY, scenes_entry)

    # Optional visuals
    graph_builder.add_node(NodeNames.FORMAT_OUTPUT, format_output)
    if settings.visuals:
        if settings.visual_mode == SceneModes.FANOUT:
            graph_builder.add_node(NodeNames.DISPATCH_VISUALS, dispatch_visuals)
            graph_builder.add_node(NodeNames.RENDER_SCENE_VISUALS, render_scene_visuals)
            graph_builder.add_edge(scenes_exit, NodeNames.DISPATCH_VISUALS)
            graph_builder.add_conditional_edges(
                NodeNames.DISPATCH_VISUALS,
                route_to_visual_renderers,
                [NodeNames.RENDER_SCENE_VISUALS],
            )
            graph_builder.add_edge(NodeNames.RENDER_SCENE_VISUALS, NodeNames.FORMAT_OUTPUT)
        else:
            graph_builder.add_node(NodeNames.GENERATE_VISUALS, generate_visuals)
            graph_builder.add_edge(scenes_exit, NodeNames.GENERATE_VISUALS)
            graph_builder.add_edge(NodeNames.GENERATE_VISUALS, NodeNames.FORMAT_OUTPUT)
    else:
        graph_builder.add_edge(scenes_exit, NodeNames.FORMAT_OUTPUT)

    graph_builder.add_edge(NodeNames.FORMAT_OUTPUT, END)

    graph = graph_builder.compile()
    logger.info(
        f"Comic graph created (scenes={settings.scene_mode}, "
        f"review={settings.narrative_review}, visuals="
        f"{settings.visual_mode if settings.visuals else 'off'})"
    )
    return graph
