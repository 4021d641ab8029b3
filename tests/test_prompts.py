"""Tests for prompt assembly — pure string building, no I/O."""

from __future__ import annotations

from lecture_analyzer_mcp.prompts.analysis import (
    ANALYSIS_SYSTEM,
    GROUNDED_ANALYSIS_SYSTEM,
    TRANSCRIPT_END,
    TRANSCRIPT_START,
    build_analysis_prompt,
    build_grounded_prompt,
    wrap_transcript,
)
from lecture_analyzer_mcp.prompts.followup import (
    DOUBT_SYSTEM,
    NOT_COVERED_ANSWER,
    build_doubt_prompt,
    build_eli5_prompt,
    build_evaluation_prompt,
)
from lecture_analyzer_mcp.prompts.pilot import DEEP_DIVE_PHASE, EXAM_PHASE, STRUCTURE_PHASE


class TestAnalysisPrompt:
    def test_transcript_embedded_verbatim_between_markers(self):
        transcript = "Line one.\n  Line two with {braces} and $dollars$."
        prompt = build_analysis_prompt(transcript)
        start = prompt.user.index(TRANSCRIPT_START)
        end = prompt.user.index(TRANSCRIPT_END)
        assert transcript in prompt.user[start:end]

    def test_system_states_source_of_truth_and_contract(self):
        prompt = build_analysis_prompt("x")
        assert prompt.system == ANALYSIS_SYSTEM
        assert "SINGLE SOURCE OF TRUTH" in prompt.system
        assert '"Easy" | "Medium" | "Hard"' in prompt.system
        assert "$$" in prompt.system
        assert "Do NOT wrap the output in Markdown code fences" in prompt.system
        for key in ("videoTitle", "examNotes", "mindMap", "confidenceQuestions"):
            assert key in prompt.system

    def test_title_hint(self):
        prompt = build_analysis_prompt("x", title_hint="Thermodynamics 101")
        assert '"Thermodynamics 101"' in prompt.user

    def test_no_title_hint(self):
        assert "as the videoTitle" not in build_analysis_prompt("x").user

    def test_transcript_is_not_in_system_prompt(self):
        prompt = build_analysis_prompt("UNIQUE-TRANSCRIPT-TOKEN")
        assert "UNIQUE-TRANSCRIPT-TOKEN" not in prompt.system

    def test_wrap_transcript(self):
        assert wrap_transcript("abc") == f"{TRANSCRIPT_START}:\nabc\n{TRANSCRIPT_END}"


class TestGroundedPrompt:
    def test_includes_url_and_grounded_system(self):
        prompt = build_grounded_prompt("https://youtu.be/dQw4w9WgXcQ")
        assert prompt.system == GROUNDED_ANALYSIS_SYSTEM
        assert "https://youtu.be/dQw4w9WgXcQ" in prompt.user
        assert "Google Search" in prompt.system
        assert "Do NOT wrap the output in Markdown code fences" in prompt.system


class TestFollowupPrompts:
    def test_doubt_prompt_names_exact_fallback(self):
        prompt = build_doubt_prompt("The cat sat on the mat.", "What is mitochondria?")
        assert prompt.system == DOUBT_SYSTEM
        assert NOT_COVERED_ANSWER in prompt.system
        assert "What is mitochondria?" in prompt.user
        assert "PREVIOUS CONVERSATION" not in prompt.user

    def test_doubt_prompt_renders_history_in_order(self):
        prompt = build_doubt_prompt(
            "t",
            "And then?",
            [("user", "Where did the cat sit?"), ("assistant", "On the mat.")],
        )
        assert "PREVIOUS CONVERSATION:" in prompt.user
        first = prompt.user.index("USER: Where did the cat sit?")
        second = prompt.user.index("ASSISTANT: On the mat.")
        question = prompt.user.index("And then?")
        assert first < second < question

    def test_eli5_prompt(self):
        prompt = build_eli5_prompt("photosynthesis", "Plants make food from light.")
        assert '"photosynthesis"' in prompt.user
        assert "Plants make food from light." in prompt.user
        assert "ONLY from the provided transcript" in prompt.system

    def test_evaluation_prompt(self):
        prompt = build_evaluation_prompt("Cats", "A cat sits.", "The cat sat on the mat.")
        assert "TOPIC: Cats" in prompt.user
        assert "STUDENT EXPLANATION: A cat sits." in prompt.user
        assert "0 to 100" in prompt.system


class TestPilotTemplates:
    def test_templates_format_with_braces_in_values(self):
        text = wrap_transcript('{"not": "a placeholder"}')
        assert text in STRUCTURE_PHASE.format(transcript=text)
        assert "{}" in DEEP_DIVE_PHASE.format(transcript=text, structure="{}")
        assert "[]" in EXAM_PHASE.format(transcript=text, structure="{}", deep_dive="[]")
