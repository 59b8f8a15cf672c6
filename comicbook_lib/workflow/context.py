"""
Run context helpers: how settings and the generation port reach the steps.

Both travel in ``config["configurable"]`` so every step receives them as an
explicit parameter and one graph can serve many independent runs.
"""

from typing import Any, Dict, Optional, Tuple

from langchain_core.runnables import RunnableConfig

from comicbook_lib.core.config import ComicSettings
from comicbook_lib.core.exceptions import ConfigurationError
from comicbook_lib.generation.port import GenerationPort

SETTINGS_KEY = "settings"
PORT_KEY = "port"


def build_run_config(
    settings: ComicSettings,
    port: GenerationPort,
    recursion_limit: Optional[int] = None,
) -> Dict[str, Any]:
    """Assemble the RunnableConfig for one graph invocation."""
    return {
        "configurable": {SETTINGS_KEY: settings, PORT_KEY: port},
        "recursion_limit": recursion_limit or settings.recursion_limit,
        "max_concurrency": settings.max_concurrency,
    }


def get_run_context(config: Optional[RunnableConfig]) -> Tuple[ComicSettings, GenerationPort]:
    """Return the settings and generation port carried by ``config``."""
    configurable = (config or {}).get("configurable", {})
    settings = configurable.get(SETTINGS_KEY)
    port = configurable.get(PORT_KEY)
    if not isinstance(settings, ComicSettings):
        raise ConfigurationError("Run config carries no ComicSettings")
    if not isinstance(port, GenerationPort):
        raise ConfigurationError("Run config carries no GenerationPort")
    return settings, port
