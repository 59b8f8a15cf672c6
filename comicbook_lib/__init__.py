"""
Comic book generator - turns audience story elements into a short comic plan,
scenes and optional image prompts.
"""

# Export public API
from comicbook_lib.api.comicbook import generate_comic, run_comic_generation
from comicbook_lib.core.config import ComicSettings, LLMConfig
from comicbook_lib.core.models import FinalOutput
from comicbook_lib.workflow.graph import create_comic_graph

__all__ = [
    "generate_comic",
    "run_comic_generation",
    "create_comic_graph",
    "ComicSettings",
    "LLMConfig",
    "FinalOutput",
]
