"""Tests for the follow-up modules: doubts, ELI5, grading, speech."""

from __future__ import annotations

import base64

import pytest

from lecture_analyzer_mcp.errors import GenerationFailed, InvalidInput
from lecture_analyzer_mcp.followup import (
    ask_doubt,
    evaluate_explanation,
    explain_like_im_5,
    generate_speech,
)
from lecture_analyzer_mcp.models.followup import ChatMessage, Evaluation
from lecture_analyzer_mcp.prompts.followup import NOT_COVERED_ANSWER

TRANSCRIPT = "The cat sat on the mat. 2+2=4."


# ── Doubt resolver ───────────────────────────────────────────────────────


class TestAskDoubt:
    @pytest.mark.asyncio
    async def test_answers_from_transcript(self, fake_client):
        fake_client.generate.return_value = "  The cat sat on the mat.  "
        answer = await ask_doubt(fake_client, TRANSCRIPT, "Where did the cat sit?")

        assert answer == "The cat sat on the mat."
        prompt = fake_client.generate.call_args.args[0]
        assert TRANSCRIPT in prompt
        assert "Where did the cat sit?" in prompt
        assert NOT_COVERED_ANSWER in fake_client.generate.call_args.kwargs["system_instruction"]

    @pytest.mark.parametrize(
        "model_output",
        [
            NOT_COVERED_ANSWER,
            "this topic was not covered in the lecture",
            f'"{NOT_COVERED_ANSWER}"',
            f"  {NOT_COVERED_ANSWER}\n",
        ],
    )
    @pytest.mark.asyncio
    async def test_uncovered_topic_returns_exact_sentence(self, fake_client, model_output):
        """GIVEN an off-transcript question THEN the fixed sentence comes back verbatim."""
        fake_client.generate.return_value = model_output
        answer = await ask_doubt(fake_client, TRANSCRIPT, "What is mitochondria?")
        assert answer == "This topic was not covered in the lecture."

    @pytest.mark.asyncio
    async def test_history_included(self, fake_client):
        fake_client.generate.return_value = "ok"
        history = [
            ChatMessage(role="user", content="Where did the cat sit?"),
            ChatMessage(role="assistant", content="On the mat."),
        ]
        await ask_doubt(fake_client, TRANSCRIPT, "Why?", history)
        prompt = fake_client.generate.call_args.args[0]
        assert "USER: Where did the cat sit?" in prompt
        assert "ASSISTANT: On the mat." in prompt

    @pytest.mark.parametrize(("transcript", "question"), [("", "q"), (TRANSCRIPT, "  ")])
    @pytest.mark.asyncio
    async def test_blank_inputs_rejected_before_call(self, fake_client, transcript, question):
        with pytest.raises(InvalidInput):
            await ask_doubt(fake_client, transcript, question)
        fake_client.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_provider_failure_propagates(self, fake_client):
        fake_client.generate.side_effect = GenerationFailed("503 unavailable")
        with pytest.raises(GenerationFailed):
            await ask_doubt(fake_client, TRANSCRIPT, "q")


# ── ELI5 ─────────────────────────────────────────────────────────────────


class TestExplainLikeIm5:
    @pytest.mark.asyncio
    async def test_returns_stripped_explanation(self, fake_client):
        fake_client.generate.return_value = "\nA kitty sat on a rug!\n"
        result = await explain_like_im_5(fake_client, "The cat sat", TRANSCRIPT)
        assert result == "A kitty sat on a rug!"
        prompt = fake_client.generate.call_args.args[0]
        assert '"The cat sat"' in prompt
        assert TRANSCRIPT in prompt

    @pytest.mark.asyncio
    async def test_requires_selection(self, fake_client):
        with pytest.raises(InvalidInput, match="selectedText"):
            await explain_like_im_5(fake_client, "", TRANSCRIPT)


# ── Explanation grading ──────────────────────────────────────────────────


class TestEvaluateExplanation:
    @pytest.mark.asyncio
    async def test_returns_structured_evaluation(self, fake_client):
        expected = Evaluation(score=70, feedback="f", missing_points=["mat"], correction="c")
        fake_client.generate_structured.return_value = expected

        result = await evaluate_explanation(fake_client, "Cats", "A cat sat.", TRANSCRIPT)

        assert result is expected
        call = fake_client.generate_structured.call_args
        assert call.kwargs["schema"] is Evaluation
        assert "STUDENT EXPLANATION: A cat sat." in call.args[0]

    @pytest.mark.asyncio
    async def test_requires_explanation(self, fake_client):
        with pytest.raises(InvalidInput, match="userExplanation"):
            await evaluate_explanation(fake_client, "Cats", " ", TRANSCRIPT)


# ── Speech ───────────────────────────────────────────────────────────────


class TestGenerateSpeech:
    @pytest.mark.asyncio
    async def test_returns_base64(self, fake_client):
        fake_client.synthesize_speech.return_value = b"\x00\xffaudio"
        encoded = await generate_speech(fake_client, "Hello")
        assert base64.b64decode(encoded) == b"\x00\xffaudio"
        fake_client.synthesize_speech.assert_awaited_once_with("Hello")

    @pytest.mark.asyncio
    async def test_no_audio_propagates(self, fake_client):
        fake_client.synthesize_speech.side_effect = GenerationFailed("No audio generated")
        with pytest.raises(GenerationFailed, match="No audio generated"):
            await generate_speech(fake_client, "Hello")

    @pytest.mark.asyncio
    async def test_requires_text(self, fake_client):
        with pytest.raises(InvalidInput):
            await generate_speech(fake_client, "")
