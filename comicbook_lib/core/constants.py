"""Constants and magic strings used throughout the comic book generator.

This module centralizes all constant values to avoid magic strings
scattered throughout the codebase.
"""


# Node names in the comic generation graph
class NodeNames:
    """Constants for workflow node names.

    These constants define the names of nodes in the comic generation graph.
    They are used for edge definitions and flow control.
    """

    PROCESS_INPUTS = "process_inputs"
    PLAN_STORY = "plan_story"
    REVIEW_STORY_PLAN = "review_story_plan"
    DISPATCH_SCENES = "dispatch_scenes"
    GENERATE_SCENES = "generate_scenes"
    WRITE_SCENE = "write_scene"
    DISPATCH_VISUALS = "dispatch_visuals"
    GENERATE_VISUALS = "generate_visuals"
    RENDER_SCENE_VISUALS = "render_scene_visuals"
    FORMAT_OUTPUT = "format_output"
    # Per-scene visual sub-workflow
    GENERATE_VISUAL = "generate_visual"
    REVIEW_VISUAL = "review_visual"


# Router outcomes
class Routes:
    """Labels returned by the conditional routers."""

    REVISE = "revise"
    CONTINUE = "continue"


class SceneModes:
    """How scenes and visuals are dispatched."""

    SEQUENTIAL = "sequential"
    FANOUT = "fanout"


class RevisionModes:
    """How a rejected artifact is revised."""

    REGENERATE = "regenerate"
    AMEND = "amend"


class ConfigDefaults:
    """Default values for configuration."""

    SCENE_COUNT = 3
    REVISION_LIMIT = 1
    VISUAL_REVISION_LIMIT = 1
    GENRE = "murder mystery"
    MAX_CONCURRENCY = 4
    MAX_ITEMS_PER_CATEGORY = 5
    MAX_DESCRIPTION_CHARS = 300
    DEFAULT_MODEL_PROVIDER = "openai"
    DEFAULT_TEMPERATURE = 0.5
    DEFAULT_MAX_TOKENS = 1500
    DEFAULT_TIMEOUT = 60.0
    DEFAULT_MAX_RETRIES = 3


# Key under which callers sometimes wrap the input list a second time
AUDIENCE_INPUTS_KEY = "audience_inputs"

# Placeholder text used when the plan comes back short
PLACEHOLDER_PHASE_TITLE = "Scene {number}"
PLACEHOLDER_PHASE_DESCRIPTION = "Continuation of the story..."

# Image prompt bounds
IMAGE_PROMPT_MAX_WORDS = 75
IMAGE_PROMPT_MAX_CHARS = 300
