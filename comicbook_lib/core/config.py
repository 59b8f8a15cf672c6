"""
Comic book generator - Configuration and setup.

This module provides the immutable settings object threaded through the
workflow, plus LLM initialization for the supported providers.
"""

# Standard library imports
import os
from typing import Any, Dict, Literal, Mapping, Optional

# Third party imports
from dotenv import load_dotenv
from langchain_core.language_models import BaseChatModel
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

# Local imports
from comicbook_lib.core.constants import ConfigDefaults, RevisionModes, SceneModes
from comicbook_lib.core.exceptions import ConfigurationError
from comicbook_lib.core.logger import config_logger as logger

# LLM Configuration
# Model provider options
MODEL_PROVIDER_OPTIONS = ["openai", "anthropic", "gemini", "groq"]
DEFAULT_PROVIDER = ConfigDefaults.DEFAULT_MODEL_PROVIDER

# Model configurations for each provider
MODEL_CONFIGS = {
    "openai": {
        "default_model": "gpt-4.1-mini",
        "env_key": "OPENAI_API_KEY",
    },
    "anthropic": {
        "default_model": "claude-sonnet-4",
        "env_key": "ANTHROPIC_API_KEY",
    },
    "gemini": {
        "default_model": "gemini-2.5-flash",
        "env_key": "GEMINI_API_KEY",
    },
    "groq": {
        "default_model": "gemma2-9b-it",
        "env_key": "GROQ_API_KEY",
    },
}


class LLMConfig(BaseModel):
    """Configuration for Language Model settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    provider: Literal["openai", "anthropic", "gemini", "groq"] = Field(
        default=DEFAULT_PROVIDER, description="LLM provider to use"
    )
    model: Optional[str] = Field(
        default=None,
        description="Specific model to use (defaults to provider's default)",
    )
    temperature: float = Field(
        default=ConfigDefaults.DEFAULT_TEMPERATURE, ge=0.0, le=2.0
    )
    max_tokens: int = Field(default=ConfigDefaults.DEFAULT_MAX_TOKENS, ge=100)
    timeout: float = Field(
        default=ConfigDefaults.DEFAULT_TIMEOUT,
        gt=0,
        description="Per-call timeout in seconds",
    )
    max_retries: int = Field(
        default=ConfigDefaults.DEFAULT_MAX_RETRIES,
        ge=0,
        description="Retries after the first failed call",
    )


class ComicSettings(BaseModel):
    """Process-wide settings, built once and passed to the graph."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    scene_count: int = Field(default=ConfigDefaults.SCENE_COUNT, ge=1)
    revision_limit: int = Field(
        default=ConfigDefaults.REVISION_LIMIT,
        ge=0,
        description="Story plan critiques before approval is forced",
    )
    visual_revision_limit: int = Field(
        default=ConfigDefaults.VISUAL_REVISION_LIMIT,
        ge=0,
        description="Visual critiques per scene before approval is forced",
    )
    scene_mode: Literal["sequential", "fanout"] = SceneModes.SEQUENTIAL
    visual_mode: Literal["sequential", "fanout"] = SceneModes.FANOUT
    narrative_review: bool = False
    visuals: bool = False
    revision_mode: Literal["regenerate", "amend"] = RevisionModes.REGENERATE
    strict_inputs: bool = True
    genre: str = ConfigDefaults.GENRE
    max_concurrency: int = Field(default=ConfigDefaults.MAX_CONCURRENCY, ge=1)
    max_items_per_category: int = Field(
        default=ConfigDefaults.MAX_ITEMS_PER_CATEGORY, ge=1
    )
    max_description_chars: int = Field(
        default=ConfigDefaults.MAX_DESCRIPTION_CHARS, ge=20
    )
    llm: LLMConfig = Field(default_factory=LLMConfig)

    @property
    def recursion_limit(self) -> int:
        """Superstep cap of the main graph, large enough for the plan review loop."""
        return 25 + 2 * (self.revision_limit + 1)

    @property
    def visual_recursion_limit(self) -> int:
        """Superstep cap of one visual sub-workflow run."""
        return 10 + 2 * (self.visual_revision_limit + 1)

    @classmethod
    def from_env(
        cls, env: Optional[Mapping[str, str]] = None, **overrides: Any
    ) -> "ComicSettings":
        """Build settings from environment variables (``.env`` is loaded first).

        Keyword overrides win over the environment; ``None`` overrides are
        ignored so CLI flags can be passed straight through.
        """
        if env is None:
            load_dotenv()
            env = os.environ

        values: Dict[str, Any] = {}
        for field_name, env_name in _SETTINGS_ENV.items():
            if env.get(env_name) not in (None, ""):
                values[field_name] = env[env_name]

        llm_values: Dict[str, Any] = {}
        for field_name, env_name in _LLM_ENV.items():
            if env.get(env_name) not in (None, ""):
                llm_values[field_name] = env[env_name]

        llm_overrides = overrides.pop("llm", None) or {}
        llm_values.update({k: v for k, v in llm_overrides.items() if v is not None})
        values.update({k: v for k, v in overrides.items() if v is not None})
        values["llm"] = llm_values

        try:
            return cls.model_validate(values)
        except PydanticValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration: {e}", {"errors": e.errors()}
            ) from e


_SETTINGS_ENV = {
    "scene_count": "COMIC_SCENE_COUNT",
    "revision_limit": "COMIC_REVISION_LIMIT",
    "visual_revision_limit": "COMIC_VISUAL_REVISION_LIMIT",
    "scene_mode": "COMIC_SCENE_MODE",
    "visual_mode": "COMIC_VISUAL_MODE",
    "narrative_review": "COMIC_NARRATIVE_REVIEW",
    "visuals": "COMIC_VISUALS",
    "revision_mode": "COMIC_REVISION_MODE",
    "strict_inputs": "COMIC_STRICT_INPUTS",
    "genre": "COMIC_GENRE",
    "max_concurrency": "COMIC_MAX_CONCURRENCY",
}

_LLM_ENV = {
    "provider": "MODEL_PROVIDER",
    "model": "DEFAULT_MODEL",
    "temperature": "MODEL_TEMPERATURE",
    "max_tokens": "MODEL_MAX_TOKENS",
    "timeout": "MODEL_TIMEOUT",
    "max_retries": "MODEL_MAX_RETRIES",
}


def get_llm(llm_config: Optional[LLMConfig] = None) -> BaseChatModel:
    """
    Get an instance of the chat model described by ``llm_config``.

    Args:
        llm_config: Provider, model and sampling settings (defaults apply if omitted)

    Returns:
        A configured LLM instance

    Raises:
        ConfigurationError: If no API key is available for the provider or the fallback
    """
    llm_config = llm_config or LLMConfig()
    provider = llm_config.provider

    provider_config = MODEL_CONFIGS[provider]
    model_name = llm_config.model or provider_config["default_model"]
    api_key = os.environ.get(provider_config["env_key"])

    # Check if API key is available
    if not api_key and provider != DEFAULT_PROVIDER:
        logger.warning(
            f"No API key found for {provider} (env: {provider_config['env_key']}). "
            f"Falling back to {DEFAULT_PROVIDER}."
        )
        provider = DEFAULT_PROVIDER
        provider_config = MODEL_CONFIGS[provider]
        model_name = provider_config["default_model"]
        api_key = os.environ.get(provider_config["env_key"])

    if not api_key:
        raise ConfigurationError(
            f"No API key found for {provider}. Please set {provider_config['env_key']} in your .env file.",
            {"provider": provider},
        )

    logger.info(f"Using {provider} model {model_name}")

    # Provider packages are imported lazily so only the selected one must be installed.
    # Client-side retries are disabled; LLMGenerationPort owns the retry policy.
    if provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=model_name,
            temperature=llm_config.temperature,
            api_key=api_key,
            max_tokens=llm_config.max_tokens,
            max_retries=0,
            timeout=llm_config.timeout,
        )
    elif provider == "anthropic":
        from langchain_anthropic import ChatAnthropic

        return ChatAnthropic(
            model=model_name,
            temperature=llm_config.temperature,
            api_key=api_key,
            max_tokens=llm_config.max_tokens,
            max_retries=0,
            timeout=llm_config.timeout,
        )
    elif provider == "gemini":
        from langchain_google_genai import ChatGoogleGenerativeAI

        return ChatGoogleGenerativeAI(
            model=model_name,
            temperature=llm_config.temperature,
            google_api_key=api_key,
            max_tokens=llm_config.max_tokens,
            max_retries=0,
            timeout=llm_config.timeout,
        )
    elif provider == "groq":
        from langchain_groq import ChatGroq

        return ChatGroq(
            model=model_name,
            temperature=llm_config.temperature,
            api_key=api_key,
            max_tokens=llm_config.max_tokens,
            max_retries=0,
            timeout=llm_config.timeout,
        )
    else:
        raise ConfigurationError(f"Unsupported provider: {provider}")
