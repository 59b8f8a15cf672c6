import pytest

from comicbook_lib.core.config import ComicSettings
from comicbook_lib.core.constants import PLACEHOLDER_PHASE_DESCRIPTION
from comicbook_lib.core.exceptions import LLMQuotaError, PlanGenerationError
from comicbook_lib.core.models import (
    Critique,
    NarrativePhase,
    RevisionVerdict,
    StoryPlan,
)
from comicbook_lib.workflow.context import build_run_config
from comicbook_lib.workflow.nodes.inputs import normalize_audience_inputs
from comicbook_lib.workflow.nodes.outline import (
    apply_critique,
    build_plan_prompt,
    enforce_phase_count,
    plan_story,
    review_story_plan,
)

from conftest import ScriptedGenerationPort


def _plan(phase_count):
    return StoryPlan(
        title="T",
        premise="P",
        narrative_phases=[
            NarrativePhase(phase=f"Phase {i}", description=f"Desc {i}")
            for i in range(1, phase_count + 1)
        ],
    )


@pytest.mark.parametrize("scene_count", [1, 3, 5])
@pytest.mark.parametrize("offset", ["zero", -1, 0, 3])
def test_phase_count_is_repaired(scene_count, offset):
    returned = 0 if offset == "zero" else max(scene_count + offset, 0)
    plan = enforce_phase_count(_plan(returned), scene_count)
    assert len(plan.narrative_phases) == scene_count


def test_short_plan_is_padded_with_placeholders():
    plan = enforce_phase_count(_plan(1), 3)
    assert plan.narrative_phases[0].phase == "Phase 1"
    assert [p.phase for p in plan.narrative_phases[1:]] == ["Scene 2", "Scene 3"]
    assert plan.narrative_phases[2].description == PLACEHOLDER_PHASE_DESCRIPTION


def test_long_plan_keeps_leading_phases():
    plan = enforce_phase_count(_plan(6), 3)
    assert [p.phase for p in plan.narrative_phases] == ["Phase 1", "Phase 2", "Phase 3"]


def test_plan_prompt_lists_only_present_categories():
    inputs = normalize_audience_inputs(
        [
            {"category": "plot-twist", "description": "The detective is the killer"},
            {"category": "setting", "description": "A vertical redwood city"},
        ]
    )
    prompt = build_plan_prompt(inputs, ComicSettings(genre="noir", scene_count=4))
    assert "PLOT TWIST: The detective is the killer" in prompt
    assert "SETTING: A vertical redwood city" in prompt
    assert "THEME" not in prompt
    assert "Create 2-3 characters." in prompt
    assert "Create 1-2 settings." not in prompt
    assert "exactly 4 scenes" in prompt
    assert "noir" in prompt


def test_plan_prompt_bounds_each_group():
    raw = [{"category": "character", "description": f"Hero {i} " + "x" * 500} for i in range(9)]
    settings = ComicSettings(max_items_per_category=2, max_description_chars=50)
    prompt = build_plan_prompt(normalize_audience_inputs(raw), settings)
    assert "Hero 1" in prompt
    assert "Hero 2" not in prompt
    assert "x" * 60 not in prompt


def test_plan_prompt_without_inputs_invents_everything():
    prompt = build_plan_prompt([], ComicSettings())
    assert "The audience gave no ideas" in prompt


def test_revision_prompt_carries_feedback_only():
    prompt = build_plan_prompt(
        [], ComicSettings(), feedback="Give the owl a motive", previous_plan=_plan(3)
    )
    assert "Give the owl a motive" in prompt
    assert "Previous plan" not in prompt


def test_amend_prompt_carries_previous_plan():
    settings = ComicSettings(revision_mode="amend")
    prompt = build_plan_prompt([], settings, feedback="Shorter", previous_plan=_plan(3))
    assert "Previous plan" in prompt
    assert '"Phase 2"' in prompt


def test_plan_story_node_enforces_scene_count(sample_inputs):
    port = ScriptedGenerationPort(phase_count=7)
    settings = ComicSettings(scene_count=3)
    state = {"audience_inputs": normalize_audience_inputs(sample_inputs)}
    update = plan_story(state, build_run_config(settings, port))
    assert len(update["story_plan"].narrative_phases) == 3


def test_plan_story_node_uses_rejection_feedback(port):
    state = {
        "audience_inputs": [],
        "story_plan": _plan(3),
        "narrative_review": RevisionVerdict(approved=False, feedback="More owls", revision_count=1),
    }
    plan_story(state, build_run_config(ComicSettings(), port))
    assert "More owls" in port.prompts("story_plan")[0]


def test_plan_story_failure_names_step():
    class FailingPort(ScriptedGenerationPort):
        def generate(self, prompt, schema, name):
            raise LLMQuotaError("Rate limit reached")

    with pytest.raises(PlanGenerationError) as excinfo:
        plan_story({"audience_inputs": []}, build_run_config(ComicSettings(), FailingPort()))
    assert excinfo.value.step == "plan_story"
    assert isinstance(excinfo.value.__cause__, LLMQuotaError)


def test_review_story_plan_counts_attempts():
    port = ScriptedGenerationPort(plan_approvals=[False])
    config = build_run_config(ComicSettings(revision_limit=3), port)
    state = {"story_plan": _plan(3)}
    state.update(review_story_plan(state, config))
    state.update(review_story_plan(state, config))
    verdict = state["narrative_review"]
    assert verdict.revision_count == 2
    assert not verdict.approved
    assert verdict.feedback == "Feedback 2 for story_plan_review"


@pytest.mark.parametrize(
    "limit, count, expected",
    [(0, 0, False), (1, 0, True), (2, 0, False), (2, 1, True)],
)
def test_apply_critique_forces_approval_at_limit(limit, count, expected):
    previous = RevisionVerdict(revision_count=count) if count else None
    verdict = apply_critique(previous, Critique(approved=False, feedback="no"), limit)
    assert verdict.revision_count == count + 1
    assert verdict.approved is expected


def test_apply_critique_keeps_real_approval():
    verdict = apply_critique(None, Critique(approved=True), 0)
    assert verdict.approved
