"""
Main entry points for comic generation.
"""

import time
from typing import Any, Dict, Optional

from comicbook_lib.core.config import ComicSettings
from comicbook_lib.core.exceptions import InvalidStateError
from comicbook_lib.core.logger import get_logger
from comicbook_lib.core.models import FinalOutput
from comicbook_lib.generation.port import GenerationPort, LLMGenerationPort
from comicbook_lib.workflow.context import build_run_config
from comicbook_lib.workflow.graph import create_comic_graph

logger = get_logger(__name__)


def run_comic_generation(
    initial_state: Dict[str, Any],
    settings: Optional[ComicSettings] = None,
    port: Optional[GenerationPort] = None,
) -> Dict[str, Any]:
    """
    Run the comic workflow once and return its final state.

    Args:
        initial_state: ``{"audience_inputs": [...]}`` (the list may also arrive
            wrapped once more under ``audience_inputs``)
        settings: Settings for this run (read from the environment if omitted)
        port: Generation port (an LLM port built from ``settings.llm`` if omitted)

    Returns:
        The final workflow state; ``final_output`` holds the result
    """
    settings = settings or ComicSettings.from_env()
    port = port or LLMGenerationPort.from_config(settings.llm)

    start_time = time.time()
    logger.info(
        f"Starting comic generation - Genre: {settings.genre}, Scenes: {settings.scene_count}"
    )

    graph = create_comic_graph(settings)
    final_state = graph.invoke(initial_state, config=build_run_config(settings, port))

    elapsed_time = time.time() - start_time
    logger.info(f"Comic generation completed in {elapsed_time:.2f} seconds")
    return final_state


def generate_comic(
    audience_inputs: Any,
    settings: Optional[ComicSettings] = None,
    port: Optional[GenerationPort] = None,
) -> FinalOutput:
    """
    Generate a comic book story from audience inputs.

    Args:
        audience_inputs: List of ``{"category", "description"}`` items
        settings: Settings for this run (read from the environment if omitted)
        port: Generation port to use (built from settings if omitted)

    Returns:
        The final output with title, premise and scenes sorted by scene number
    """
    final_state = run_comic_generation(
        {"audience_inputs": audience_inputs}, settings=settings, port=port
    )
    final_output = final_state.get("final_output")
    if final_output is None:
        raise InvalidStateError("Workflow finished without a final output")
    return final_output
