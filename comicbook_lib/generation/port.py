"""
Generation port - the structured-output language model call used by every step.

Steps only see :class:`GenerationPort`; the LangChain-backed adapter lives
here so tests can swap in a scripted port.
"""

from typing import Any, Optional, Type, TypeVar

from langchain_core.language_models import BaseChatModel
from langchain_core.runnables import Runnable, RunnableLambda
from pydantic import BaseModel

from comicbook_lib.core.config import LLMConfig, get_llm
from comicbook_lib.core.exceptions import (
    LLMConnectionError,
    LLMError,
    LLMQuotaError,
    LLMResponseError,
    handle_llm_error,
)
from comicbook_lib.core.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)

# Failures worth another attempt; everything else fails the call at once
RETRYABLE_ERRORS = (LLMConnectionError, LLMQuotaError, LLMResponseError)


class GenerationPort:
    """Given a prompt and a result schema, return a value of that schema or fail."""

    def generate(self, prompt: str, schema: Type[T], name: str) -> T:
        raise NotImplementedError


def validate_structured_output(schema: Type[T], result: Any) -> T:
    """Coerce a provider result into ``schema`` or raise LLMResponseError."""
    if isinstance(result, schema):
        return result
    if result is None:
        raise LLMResponseError(
            f"Model returned no structured output for {schema.__name__}"
        )
    if isinstance(result, BaseModel):
        result = result.model_dump()
    try:
        return schema.model_validate(result)
    except Exception as e:
        raise LLMResponseError(
            f"Structured output does not match {schema.__name__}: {e}",
            {"schema": schema.__name__},
        ) from e


class LLMGenerationPort(GenerationPort):
    """Generation port backed by a LangChain chat model."""

    def __init__(self, llm: BaseChatModel, max_retries: int = 3, backoff: bool = True):
        """
        Args:
            llm: Chat model supporting ``with_structured_output``
            max_retries: Retries after the first failed attempt
            backoff: Wait with exponential jitter between attempts
        """
        self.llm = llm
        self.max_retries = max_retries
        self.backoff = backoff

    @classmethod
    def from_config(cls, llm_config: Optional[LLMConfig] = None) -> "LLMGenerationPort":
        llm_config = llm_config or LLMConfig()
        return cls(get_llm(llm_config), max_retries=llm_config.max_retries)

    def _chain(self, schema: Type[T], name: str) -> Runnable:
        structured_llm = self.llm.with_structured_output(schema)

        def call_model(prompt: str, config) -> Any:
            # Classify provider failures here so the retry sees LLMError types
            try:
                return structured_llm.invoke(prompt, config)
            except LLMError:
                raise
            except Exception as e:
                raise handle_llm_error(e, context=name) from e

        validate = RunnableLambda(lambda result: validate_structured_output(schema, result))
        return (RunnableLambda(call_model) | validate).with_retry(
            retry_if_exception_type=RETRYABLE_ERRORS,
            stop_after_attempt=self.max_retries + 1,
            wait_exponential_jitter=self.backoff,
        )

    def generate(self, prompt: str, schema: Type[T], name: str) -> T:
        logger.debug(f"Requesting {name} ({schema.__name__}), prompt length {len(prompt)}")
        try:
            return self._chain(schema, name).invoke(prompt, config={"run_name": name})
        except LLMError as e:
            logger.error(f"Generation '{name}' failed: {e}")
            raise
        except Exception as e:
            logger.error(f"Generation '{name}' failed: {e}")
            raise handle_llm_error(e, context=name) from e
