"""TTS (Text-to-Speech) client for the OpenAI and ElevenLabs providers."""

from pathlib import Path
from typing import Any, Optional

import requests
from openai import OpenAI, OpenAIError

from viral_video.core.config import Settings
from viral_video.core.exceptions import ConfigurationError, TransportError, ValidationError

ELEVENLABS_URL = "https://api.elevenlabs.io/v1/text-to-speech/{voice_id}"
ELEVENLABS_MODEL = "eleven_turbo_v2"
ELEVENLABS_TIMEOUT = 60


class TTSClient:
    """Voiceover synthesis through OpenAI speech or ElevenLabs."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize TTS client.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.provider = self._detect_provider()

    def _detect_provider(self) -> str:
        """ElevenLabs needs both a key and a voice ID; otherwise OpenAI is used."""
        if self.settings.elevenlabs_api_key and self.settings.elevenlabs_voice_id:
            return "elevenlabs"
        return "openai"

    def generate_speech(self, text: str, output_path: Path, voice: Optional[str] = None) -> Path:
        """
        Generate speech from text and save to file.

        Args:
            text: Text to convert to speech
            output_path: Path to save audio file
            voice: OpenAI voice name (defaults to settings.tts_voice)

        Returns:
            Path to the written audio file

        Raises:
            ValidationError: If the text is empty
            TransportError: If the provider call fails
        """
        if not text or not text.strip():
            raise ValidationError("Voiceover text cannot be empty")

        self.logger.info(f"Generating speech using {self.provider} provider for {len(text)} characters...")
        output_path.parent.mkdir(parents=True, exist_ok=True)

        if self.provider == "elevenlabs":
            self._generate_elevenlabs(text, output_path)
        else:
            self._generate_openai(text, output_path, voice or self.settings.tts_voice)

        self.logger.info(f"Speech generated: {output_path}")
        return output_path

    def _generate_elevenlabs(self, text: str, output_path: Path) -> None:
        """Generate speech using ElevenLabs API."""
        url = ELEVENLABS_URL.format(voice_id=self.settings.elevenlabs_voice_id)
        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": self.settings.elevenlabs_api_key,
        }
        data = {
            "text": text,
            "model_id": ELEVENLABS_MODEL,
            "voice_settings": {
                "stability": 0.5,
                "similarity_boost": 0.75,
            },
        }

        try:
            response = requests.post(url, json=data, headers=headers, timeout=ELEVENLABS_TIMEOUT)
        except requests.exceptions.RequestException as e:
            raise TransportError("ElevenLabs", f"network error: {e}") from e

        if response.status_code != 200:
            raise TransportError("ElevenLabs", f"status {response.status_code}: {response.text[:200]}")

        with open(output_path, "wb") as f:
            f.write(response.content)

    def _generate_openai(self, text: str, output_path: Path, voice: str) -> None:
        """Generate speech using OpenAI speech API."""
        if not self.settings.openai_api_key:
            raise ConfigurationError("Missing OPENAI_API_KEY. Set environment variable or run 'viral setup'.")

        client = OpenAI(api_key=self.settings.openai_api_key)
        try:
            response = client.audio.speech.create(
                model=self.settings.tts_model,
                voice=voice,
                input=text,
            )
        except OpenAIError as e:
            raise TransportError("OpenAI", str(e)) from e

        with open(output_path, "wb") as f:
            f.write(response.content)

    def create_placeholder(self, output_path: Path) -> Path:
        """Write an empty voiceover file (dry runs); the renderer treats it as absent."""
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(b"")
        self.logger.debug(f"Created empty voiceover placeholder: {output_path}")
        return output_path
