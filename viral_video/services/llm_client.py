"""LLM Client - centralized OpenAI client for script planning."""

import json
from typing import Any

from openai import OpenAI, OpenAIError

from viral_video.core.config import Settings
from viral_video.core.exceptions import ConfigurationError, TransportError, ValidationError

SYSTEM_PROMPT = "Return only valid JSON. No commentary."


def build_plan_prompt(topic: str, scenes_count: int, video_sec: int) -> str:
    """Build the scriptwriter prompt for a topic."""
    return f"""You are a concise scriptwriter for {video_sec}-second vertical videos (TikTok).
Audience: beginner to intermediate.
Goal: educational, calm, trustworthy voice.
Topic: "{topic}"

Deliver JSON with:
{{
  "title": "Short catchy title",
  "hook": "0-3s strong hook",
  "sections": [
    {{"label": "Intro/Context", "sec": 10, "text": "..."}},
    {{"label": "Point 1", "sec": 14, "text": "..."}},
    {{"label": "Point 2", "sec": 14, "text": "..."}},
    {{"label": "Point 3", "sec": 10, "text": "..."}},
    {{"label": "Wrap/CTA", "sec": 9, "text": "..."}}
  ],
  "image_prompts": [
    // exactly {scenes_count} prompts for vertical 1080x1920 frames, descriptive, vivid, non-duplicative
  ],
  "tts_style": "male or female, smooth, educational",
  "disclaimer": "Educational only. Not financial advice."
}}
Total seconds should sum to ~{video_sec}. Keep jargon minimal."""


class LLMClient:
    """Centralized LLM client for OpenAI operations."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize LLM client.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self._client = None

    def _get_client(self) -> OpenAI:
        """Get or create OpenAI client."""
        if self._client is None:
            if not self.settings.openai_api_key:
                raise ConfigurationError(
                    "Missing OPENAI_API_KEY. Set environment variable or run 'viral setup'."
                )
            self._client = OpenAI(api_key=self.settings.openai_api_key)
        return self._client

    def generate_plan_json(self, topic: str, scenes_count: int, video_sec: int) -> dict[str, Any]:
        """
        Ask the text model for a structured video plan.

        Args:
            topic: Video topic
            scenes_count: Number of image prompts to request
            video_sec: Target duration in seconds

        Returns:
            Parsed JSON object as returned by the model

        Raises:
            TransportError: If the API call fails
            ValidationError: If the response is not a JSON object
        """
        client = self._get_client()
        model = self.settings.text_model
        self.logger.info(f"Requesting plan from {model} for topic: {topic}")

        try:
            response = client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_plan_prompt(topic, scenes_count, video_sec)},
                ],
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            self.logger.error(f"LLM plan generation failed: {e}")
            raise TransportError("OpenAI", str(e)) from e

        content = response.choices[0].message.content or ""
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ValidationError("Model did not return valid JSON.", {"content": content[:200]}) from e

        if not isinstance(data, dict):
            raise ValidationError("Model did not return valid JSON.", {"content": content[:200]})

        self.logger.debug(f"Plan JSON keys: {sorted(data)}")
        return data
