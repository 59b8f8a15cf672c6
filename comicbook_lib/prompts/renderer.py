"""Prompt template management for the comic book generator.

Prompts are Jinja2 templates stored next to this module under ``templates/``.
"""

from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateNotFound

from comicbook_lib.core.exceptions import ConfigurationError
from comicbook_lib.core.logger import get_logger

logger = get_logger(__name__)


class PromptTemplateManager:
    """Loads and renders the prompt templates."""

    def __init__(self, template_dir: Optional[Path] = None):
        self.template_dir = template_dir or Path(__file__).parent / "templates"
        self.jinja_env = self._setup_jinja_environment()

    def _setup_jinja_environment(self) -> Environment:
        """Set up the Jinja2 environment."""
        env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

        # Custom filters
        env.filters["clip"] = clip_text

        return env

    def render(self, template_name: str, **kwargs) -> str:
        """Render a template with the provided variables.

        Args:
            template_name: Name of the template file (without .jinja2 extension)
            **kwargs: Variables to pass to the template

        Returns:
            Rendered template string, stripped of surrounding whitespace
        """
        try:
            template = self.jinja_env.get_template(f"{template_name}.jinja2")
        except TemplateNotFound as e:
            logger.error(f"Template '{template_name}' not found in {self.template_dir}")
            raise ConfigurationError(f"Prompt template '{template_name}' not found") from e
        return template.render(**kwargs).strip()


def clip_text(text: str, limit: int) -> str:
    """Cut ``text`` to at most ``limit`` characters, marking the cut."""
    text = " ".join(str(text).split())
    if len(text) <= limit:
        return text
    return text[: max(limit - 3, 0)].rstrip() + "..."


_manager: Optional[PromptTemplateManager] = None


def get_template_manager() -> PromptTemplateManager:
    global _manager
    if _manager is None:
        _manager = PromptTemplateManager()
    return _manager


def render_prompt(template_name: str, **kwargs) -> str:
    """Render the named prompt template with the shared manager."""
    return get_template_manager().render(template_name, **kwargs)
