"""Tests for the URL/text → dashboard pipeline."""

from __future__ import annotations

import pytest
from google.genai import types

from lecture_analyzer_mcp.errors import (
    GenerationFailed,
    InvalidInput,
    InvalidUrl,
    MalformedResponse,
    NoTranscriptAvailable,
)
from lecture_analyzer_mcp.pipeline import analyze_transcript, process_text, process_url
from lecture_analyzer_mcp.prompts.analysis import GROUNDED_ANALYSIS_SYSTEM
from tests.conftest import dashboard_json

URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
TRANSCRIPT = "The cat sat on the mat. 2+2=4."


class TestAnalyzeTranscript:
    @pytest.mark.asyncio
    async def test_cat_and_mat_lecture(self, fake_client):
        """GIVEN a two-fact transcript THEN chapters cite the cat and the sum is LaTeX."""
        fake_client.generate.return_value = dashboard_json(
            formulas=[{"equation": "2+2=4", "context": "Stated in the lecture."}],
        )

        analysis = await analyze_transcript(fake_client, TRANSCRIPT)

        assert analysis.formulas[0].equation == "$$2+2=4$$"
        notes = " ".join(n for c in analysis.chapters for n in c.notes)
        assert "cat" in notes
        assert analysis.transcript == TRANSCRIPT
        assert analysis.video_url is None

    @pytest.mark.asyncio
    async def test_uses_json_mode_and_transcript_prompt(self, fake_client):
        fake_client.generate.return_value = dashboard_json()
        await analyze_transcript(fake_client, TRANSCRIPT, title="Cats")

        call = fake_client.generate.call_args
        assert call.kwargs["json_mode"] is True
        assert TRANSCRIPT in call.args[0]
        assert '"Cats"' in call.args[0]
        assert "SINGLE SOURCE OF TRUTH" in call.kwargs["system_instruction"]

    @pytest.mark.asyncio
    async def test_model_transcript_replaced_by_input(self, fake_client):
        fake_client.generate.return_value = dashboard_json(transcript="invented")
        analysis = await analyze_transcript(fake_client, TRANSCRIPT)
        assert analysis.transcript == TRANSCRIPT

    @pytest.mark.asyncio
    async def test_empty_transcript_rejected(self, fake_client):
        with pytest.raises(InvalidInput):
            await analyze_transcript(fake_client, "   ")
        fake_client.generate.assert_not_awaited()


class TestProcessUrl:
    @pytest.mark.asyncio
    async def test_fetches_analyzes_and_saves(self, fake_client, fake_fetcher, store):
        fake_client.generate.return_value = dashboard_json()

        analysis = await process_url(fake_client, fake_fetcher, URL, store=store)

        fake_fetcher.fetch.assert_awaited_once_with("dQw4w9WgXcQ")
        assert analysis.video_url == URL
        assert analysis.transcript == "The cat sat on the mat. 2+2=4."
        assert [a.id for a in store.list()] == [analysis.id]

    @pytest.mark.asyncio
    async def test_invalid_url_makes_no_calls(self, fake_client, fake_fetcher, store):
        with pytest.raises(InvalidUrl):
            await process_url(fake_client, fake_fetcher, "https://example.com/x", store=store)
        fake_fetcher.fetch.assert_not_awaited()
        fake_client.generate.assert_not_awaited()
        assert store.list() == []

    @pytest.mark.asyncio
    async def test_missing_transcript_is_not_fabricated(self, fake_client, fake_fetcher, store):
        fake_fetcher.fetch.side_effect = NoTranscriptAvailable("dQw4w9WgXcQ", "disabled")
        with pytest.raises(NoTranscriptAvailable):
            await process_url(fake_client, fake_fetcher, URL, store=store)
        fake_client.generate.assert_not_awaited()
        assert store.list() == []

    @pytest.mark.asyncio
    async def test_generation_failure_stores_nothing(self, fake_client, fake_fetcher, store):
        fake_client.generate.side_effect = GenerationFailed("500 internal")
        with pytest.raises(GenerationFailed):
            await process_url(fake_client, fake_fetcher, URL, store=store)
        assert store.list() == []

    @pytest.mark.asyncio
    async def test_malformed_output_stores_nothing(self, fake_client, fake_fetcher, store):
        fake_client.generate.return_value = "Sorry, I cannot help with that."
        with pytest.raises(MalformedResponse):
            await process_url(fake_client, fake_fetcher, URL, store=store)
        assert store.list() == []

    @pytest.mark.asyncio
    async def test_grounded_mode_uses_search_without_json_mode(
        self, fake_client, fake_fetcher, store,
    ):
        fake_client.generate.return_value = f"Here you go:\n```json\n{dashboard_json()}\n```"

        analysis = await process_url(fake_client, fake_fetcher, URL, store=store, grounded=True)

        fake_fetcher.fetch.assert_not_awaited()
        call = fake_client.generate.call_args
        assert call.kwargs["system_instruction"] == GROUNDED_ANALYSIS_SYSTEM
        assert "json_mode" not in call.kwargs
        tool = call.kwargs["tools"][0]
        assert isinstance(tool, types.Tool)
        assert tool.google_search is not None
        assert analysis.video_url == URL
        assert analysis.transcript == "The cat sat on the mat. 2+2=4."
        assert store.get(analysis.id) is not None


class TestProcessText:
    @pytest.mark.asyncio
    async def test_saves_with_no_url(self, fake_client, store):
        fake_client.generate.return_value = dashboard_json()
        analysis = await process_text(fake_client, TRANSCRIPT, title="Cats", store=store)
        assert analysis.video_url is None
        assert store.get(analysis.id) == analysis

    @pytest.mark.asyncio
    async def test_without_store(self, fake_client):
        fake_client.generate.return_value = dashboard_json()
        analysis = await process_text(fake_client, TRANSCRIPT)
        assert analysis.id

    @pytest.mark.asyncio
    async def test_each_run_gets_fresh_id(self, fake_client, store):
        fake_client.generate.return_value = dashboard_json()
        first = await process_text(fake_client, TRANSCRIPT, store=store)
        second = await process_text(fake_client, TRANSCRIPT, store=store)
        assert first.id != second.id
        assert len(store.list()) == 2
