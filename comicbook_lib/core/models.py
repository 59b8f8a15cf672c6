"""
Comic book generator - Data models and state definitions.
"""

# Standard library imports
import re
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional

# Third party imports
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing_extensions import TypedDict


# Audience input categories


class StoryCategory(str, Enum):
    """Canonical audience input categories."""

    CHARACTER = "character"
    SETTING = "setting"
    PLOT_TWIST = "plot_twist"
    SIGNIFICANT_PROP = "significant_prop"
    CHARACTER_BACKSTORY = "character_backstory"
    ATMOSPHERIC_CONDITIONS = "atmospheric_conditions"
    SYMBOLIC_MOTIF = "symbolic_motif"
    SPECIAL_ABILITY = "special_ability"
    CULTURAL_ELEMENT = "cultural_element"
    TECHNOLOGY_CONCEPT = "technology_concept"
    CONFLICT = "conflict"
    THEME = "theme"
    CHARACTER_RELATIONSHIP = "character_relationship"
    OTHER = "other"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").upper()


_SEPARATORS = re.compile(r"[\s\-_]+")


def category_key(label: str) -> str:
    """Fold a category spelling to its canonical underscore form.

    ``"Plot-Twist"``, ``"plot twist"`` and ``"plot_twist"`` all become
    ``"plot_twist"``.
    """
    return _SEPARATORS.sub("_", label.strip().lower()).strip("_")


def normalize_category(label: Any) -> StoryCategory:
    """Map a free-form category label to a StoryCategory (OTHER if unknown)."""
    if isinstance(label, StoryCategory):
        return label
    try:
        return StoryCategory(category_key(str(label)))
    except ValueError:
        return StoryCategory.OTHER


class AudienceInput(BaseModel):
    """One story element submitted by the audience."""

    model_config = ConfigDict(frozen=True)

    category: StoryCategory
    description: str

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, v):
        return normalize_category(v)


# Story plan


class CharacterProfile(BaseModel):
    name: str = Field(description="Character name")
    description: str = Field(description="Brief character description")


class SettingProfile(BaseModel):
    name: str = Field(description="Setting name")
    description: str = Field(description="Setting description")


class NarrativePhase(BaseModel):
    phase: str = Field(description="Short title of this phase of the story")
    description: str = Field(description="What happens in this phase")


class StoryPlan(BaseModel):
    """The blueprint for the comic: one narrative phase per scene."""

    title: str = Field(description="Title for the comic")
    premise: str = Field(description="Brief premise of the story")
    characters: List[CharacterProfile] = Field(default_factory=list)
    settings: List[SettingProfile] = Field(default_factory=list)
    narrative_phases: List[NarrativePhase] = Field(
        default_factory=list,
        description="One entry per scene, in story order",
    )


# Critique and revision bookkeeping


class Critique(BaseModel):
    """Structured critique returned by a review step."""

    approved: bool = Field(description="Whether the work is good enough as it is")
    feedback: str = Field(
        default="", description="Specific changes to make if not approved"
    )


class RevisionVerdict(BaseModel):
    approved: bool = False
    feedback: str = ""
    revision_count: int = 0


# Scenes and visuals


class SceneDraft(BaseModel):
    """Scene content as requested from the generator."""

    title: str = Field(description="Scene title")
    description: str = Field(description="Scene description (max 100 words)")
    characters: List[str] = Field(
        default_factory=list, description="Characters present in the scene"
    )
    setting: str = Field(default="", description="Setting name")


class Scene(BaseModel):
    scene_number: int = Field(ge=1)
    title: str
    description: str
    characters: List[str] = Field(default_factory=list)
    setting: str = ""
    narrative_phase: Optional[str] = None


class VisualDraft(BaseModel):
    """Visual description as requested from the generator."""

    visual_elements: str = Field(
        description="Key visual elements: composition, lighting, mood, colors"
    )
    image_prompt: str = Field(
        description="Image generation prompt, at most 75 words / 300 characters"
    )


class VisualDescription(BaseModel):
    scene_number: int = Field(ge=1)
    visual_elements: str
    image_prompt: str


# Final output


class FinalScene(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    scene_number: int
    title: str
    description: str
    characters: Optional[List[str]] = None
    setting: Optional[str] = None
    image_prompt: Optional[str] = None


class FinalOutput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str
    premise: str
    scenes: List[FinalScene] = Field(default_factory=list)

    def to_json_dict(self) -> Dict[str, Any]:
        """Return the camelCase JSON form, omitting absent optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


# State reducers


def merge_lists(existing: List[Any], new: List[Any]) -> List[Any]:
    """Merge two lists, appending new values to existing list."""
    if not existing:
        return list(new or [])
    if not new:
        return existing
    return existing + new


# Graph state definitions


class ComicState(TypedDict, total=False):
    """Shared state of the main comic graph.

    Keys without a reducer are replaced on every write; ``scenes`` and
    ``visual_descriptions`` accumulate across steps and fan-out branches.
    """

    audience_inputs: Any
    story_plan: StoryPlan
    narrative_review: RevisionVerdict
    scenes: Annotated[List[Scene], merge_lists]
    visual_descriptions: Annotated[List[VisualDescription], merge_lists]
    final_output: FinalOutput


class SceneTask(TypedDict):
    """Isolated input of one fan-out scene writer."""

    scene_number: int
    scene_count: int
    phase: NarrativePhase
    story_title: str
    premise: str
    character_names: List[str]
    setting_names: List[str]


class VisualTask(TypedDict):
    """Isolated input of one fan-out visual renderer."""

    scene: Scene
    scene_count: int


class VisualState(TypedDict, total=False):
    """State of the per-scene visual sub-workflow."""

    scene: Scene
    scene_count: int
    visual: VisualDescription
    review: RevisionVerdict
