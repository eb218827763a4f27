"""Tests for the blueprint outline and interview helpers."""

from guildsmith.ai.interview import QUESTIONS, InterviewResult, Question, format_question, resolve_answer
from guildsmith.blueprint.preview import build_preview


def test_preview(canonical_blueprint):
    canonical_blueprint["categories"]["COMMUNITY"].append({"name": "staff", "private": True})
    preview = build_preview(canonical_blueprint)

    assert preview.startswith("```\n") and preview.endswith("\n```")
    lines = preview.splitlines()
    assert "Theme: neon-gold" in lines
    assert "Emoji Prefix: 💸" in lines
    assert "  - Admin [Administrator]" in lines
    assert "  - Member" in lines
    assert "  * SERVER INFO" in lines
    assert "     - rules" in lines
    assert "     - staff (private)" in lines


def test_preview_without_style():
    preview = build_preview({"roles": [], "categories": {}})
    assert "Theme: -" in preview
    assert "Emoji Prefix: -" in preview


class TestInterviewHelpers:

    QUESTION = Question("Pick one", ("alpha", "beta"))

    def test_numeric_pick(self):
        assert resolve_answer(self.QUESTION, " 2 ") == "beta"

    def test_out_of_range_pick_kept(self):
        assert resolve_answer(self.QUESTION, "9") == "9"

    def test_free_text(self):
        assert resolve_answer(self.QUESTION, "gamma") == "gamma"
        assert resolve_answer(Question("Yes?"), "1") == "1"

    def test_format_lists_suggestions(self):
        text = format_question(self.QUESTION)
        assert text.startswith("📋 **Pick one**")
        assert "  1. alpha" in text
        assert "(1-2)" in text
        assert format_question(Question("Yes?")) == "📋 **Yes?**"

    def test_result_properties(self):
        answers = ["gaming"] + [""] * (len(QUESTIONS) - 1)
        answers[3] = "Yes please"
        result = InterviewResult(answers=answers)
        assert result.about == "gaming"
        assert result.wants_info_channels
        assert not InterviewResult().wants_info_channels
