"""
Audience input normalization and grouping.
"""

from typing import Any, Dict, List, Optional, Union

from langchain_core.runnables import RunnableConfig
from pydantic import ValidationError as PydanticValidationError

from comicbook_lib.core.constants import AUDIENCE_INPUTS_KEY
from comicbook_lib.core.exceptions import InputValidationError
from comicbook_lib.core.logger import get_logger, track_progress
from comicbook_lib.core.models import (
    AudienceInput,
    ComicState,
    StoryCategory,
    category_key,
)
from comicbook_lib.workflow.context import get_run_context

logger = get_logger(__name__)


def _unwrap(raw: Any) -> Optional[List[Any]]:
    """Return the flat list form of ``raw`` or None if the shape is unknown."""
    if isinstance(raw, (list, tuple)):
        return list(raw)
    # Tolerate {"audience_inputs": [...]} passed where the list belongs
    if isinstance(raw, dict) and isinstance(raw.get(AUDIENCE_INPUTS_KEY), (list, tuple)):
        logger.info("Unwrapping nested audience_inputs structure")
        return list(raw[AUDIENCE_INPUTS_KEY])
    return None


def normalize_audience_inputs(raw: Any, strict: bool = True) -> List[AudienceInput]:
    """
    Turn raw audience submissions into a flat list of AudienceInput.

    Args:
        raw: A list of input items, or a dict wrapping that list under ``audience_inputs``
        strict: Raise on unknown shapes and malformed items instead of dropping them

    Returns:
        The validated inputs, in submission order

    Raises:
        InputValidationError: In strict mode, for an unrecognized shape or a malformed item
    """
    items = _unwrap(raw)
    if items is None:
        message = f"Unrecognized audience_inputs structure: {type(raw).__name__}"
        if strict:
            raise InputValidationError(message, received_type=type(raw).__name__)
        logger.warning(f"{message}; continuing with no inputs")
        return []

    inputs = []
    for index, item in enumerate(items):
        try:
            inputs.append(
                item if isinstance(item, AudienceInput) else AudienceInput.model_validate(item)
            )
        except PydanticValidationError as e:
            message = f"Malformed audience input at position {index}: {item!r}"
            if strict:
                raise InputValidationError(
                    message, received_type=type(item).__name__, details={"errors": e.errors()}
                ) from e
            logger.warning(f"{message}; skipping")
    return inputs


def items_for_category(
    inputs: List[AudienceInput], category: Union[str, StoryCategory]
) -> List[str]:
    """Descriptions of all inputs in ``category``.

    The lookup ignores case and treats hyphens, spaces and underscores alike,
    so ``"plot-twist"`` finds items submitted as ``"plot_twist"``.
    """
    wanted = category.value if isinstance(category, StoryCategory) else category_key(category)
    return [item.description for item in inputs if item.category.value == wanted]


def group_inputs_by_category(inputs: List[AudienceInput]) -> Dict[StoryCategory, List[str]]:
    """Non-empty category groups, ordered as StoryCategory declares them."""
    groups = {}
    for category in StoryCategory:
        descriptions = items_for_category(inputs, category)
        if descriptions:
            groups[category] = descriptions
    return groups


@track_progress
def process_inputs(state: ComicState, config: RunnableConfig) -> dict:
    """Normalize the audience inputs into their flat list form."""
    settings, _ = get_run_context(config)
    inputs = normalize_audience_inputs(
        state.get("audience_inputs"), strict=settings.strict_inputs
    )
    logger.info(f"Received {len(inputs)} audience inputs")
    return {"audience_inputs": inputs}
