"""Gemini client wrapper — text, structured JSON, and speech generation."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from google import genai
from google.genai import types
from pydantic import BaseModel, ValidationError

from .config import VALID_THINKING_LEVELS, ServerConfig
from .errors import GenerationFailed, MalformedResponse

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _resolve_thinking_level(value: str) -> str:
    """Normalize and validate a thinking level string ("" means unset).

    Raises:
        ValueError: If the level is not in VALID_THINKING_LEVELS.
    """
    level = value.strip().lower()
    if level and level not in VALID_THINKING_LEVELS:
        allowed = ", ".join(sorted(VALID_THINKING_LEVELS))
        raise ValueError(f"Invalid thinking level '{value}'. Allowed: {allowed}")
    return level


def _response_text(response: Any) -> str:
    """Join the user-visible text parts of a response, skipping thoughts."""
    candidates = getattr(response, "candidates", None) or []
    content = candidates[0].content if candidates else None
    parts = (content.parts if content else None) or []
    text_parts = [p.text for p in parts if p.text and not getattr(p, "thought", False)]
    return "\n".join(text_parts) if text_parts else (response.text or "")


class GeminiClient:
    """One configured Gemini connection, built once and passed to each module.

    No call is retried: a failure surfaces immediately as
    :class:`GenerationFailed` with the provider message attached.
    """

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "gemini-2.5-flash",
        tts_model: str = "gemini-2.5-flash-preview-tts",
        tts_voice: str = "Kore",
        thinking_level: str = "",
        temperature: float | None = None,
        timeout_seconds: float = 120.0,
        client: genai.Client | None = None,
    ) -> None:
        if client is None:
            if not api_key:
                raise ValueError("No Gemini API key — set GEMINI_API_KEY")
            client = genai.Client(
                api_key=api_key,
                http_options=types.HttpOptions(timeout=int(timeout_seconds * 1000)),
            )
            logger.info("Created Gemini client (key …%s)", api_key[-4:])
        self._client = client
        self.model = model
        self.tts_model = tts_model
        self.tts_voice = tts_voice
        self.thinking_level = _resolve_thinking_level(thinking_level)
        self.temperature = temperature

    @classmethod
    def from_config(cls, cfg: ServerConfig) -> GeminiClient:
        """Build a client from the resolved server config."""
        return cls(
            cfg.gemini_api_key,
            model=cfg.default_model,
            tts_model=cfg.tts_model,
            tts_voice=cfg.tts_voice,
            thinking_level=cfg.default_thinking_level,
            temperature=cfg.default_temperature,
            timeout_seconds=cfg.request_timeout_seconds,
        )

    def _build_config(
        self,
        *,
        system_instruction: str | None,
        response_schema: dict | None,
        json_mode: bool,
        tools: list[types.Tool] | None,
    ) -> types.GenerateContentConfig:
        config = types.GenerateContentConfig()
        if self.thinking_level:
            config.thinking_config = types.ThinkingConfig(thinking_level=self.thinking_level)
        if self.temperature is not None:
            config.temperature = self.temperature
        if system_instruction:
            config.system_instruction = system_instruction
        if response_schema:
            config.response_mime_type = "application/json"
            config.response_json_schema = response_schema
        elif json_mode:
            config.response_mime_type = "application/json"
        if tools:
            config.tools = tools
        return config

    async def generate(
        self,
        contents: Any,
        *,
        system_instruction: str | None = None,
        response_schema: dict | None = None,
        json_mode: bool = False,
        tools: list[types.Tool] | None = None,
        model: str | None = None,
    ) -> str:
        """Generate text, optionally constrained to JSON.

        Args:
            contents: Prompt contents (text or Content parts).
            system_instruction: Fixed policy prepended to the prompt.
            response_schema: JSON schema the output must follow.
            json_mode: Request ``application/json`` output without a schema.
            tools: Gemini tool wiring (e.g. GoogleSearch for grounding).
            model: Override model ID.

        Returns:
            The model's text response with thinking parts stripped.

        Raises:
            GenerationFailed: The provider call failed or returned no text.
        """
        config = self._build_config(
            system_instruction=system_instruction,
            response_schema=response_schema,
            json_mode=json_mode,
            tools=tools,
        )
        resolved_model = model or self.model
        try:
            response = await self._client.aio.models.generate_content(
                model=resolved_model,
                contents=contents,
                config=config,
            )
        except Exception as exc:
            logger.error("Gemini call to %s failed: %s", resolved_model, exc)
            raise GenerationFailed(str(exc)) from exc

        text = _response_text(response)
        if not text.strip():
            raise GenerationFailed(f"{resolved_model} returned an empty response")
        return text

    async def generate_structured(
        self,
        contents: Any,
        *,
        schema: type[M],
        system_instruction: str | None = None,
        model: str | None = None,
    ) -> M:
        """Generate and validate into a Pydantic model via response_json_schema.

        Raises:
            GenerationFailed: The provider call failed.
            MalformedResponse: The output does not satisfy *schema*.
        """
        raw = await self.generate(
            contents,
            system_instruction=system_instruction,
            response_schema=schema.model_json_schema(),
            model=model,
        )
        try:
            return schema.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("%s output failed validation: %r", schema.__name__, raw[:500])
            issues = [f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors()]
            raise MalformedResponse(
                f"Response did not match {schema.__name__}", raw=raw, issues=issues,
            ) from exc

    async def synthesize_speech(self, text: str, *, voice: str | None = None) -> bytes:
        """Render *text* to audio with the TTS model.

        Returns:
            Raw audio bytes (24 kHz 16-bit PCM from the current TTS models).

        Raises:
            GenerationFailed: The call failed or produced no audio part.
        """
        config = types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(
                        voice_name=voice or self.tts_voice,
                    ),
                ),
            ),
        )
        try:
            response = await self._client.aio.models.generate_content(
                model=self.tts_model,
                contents=text,
                config=config,
            )
        except Exception as exc:
            logger.error("Speech synthesis failed: %s", exc)
            raise GenerationFailed(str(exc)) from exc

        candidates = response.candidates or []
        parts = (candidates[0].content.parts if candidates and candidates[0].content else None) or []
        for part in parts:
            if part.inline_data is not None and part.inline_data.data:
                return part.inline_data.data
        raise GenerationFailed("No audio generated")

    async def aclose(self) -> None:
        """Release the underlying HTTP connections."""
        try:
            await self._client.aio.aclose()
        except Exception:
            logger.debug("Gemini async client close failed", exc_info=True)
