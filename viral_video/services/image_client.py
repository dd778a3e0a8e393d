"""Image Client - OpenAI image generation for scene frames."""

import base64
import binascii
from pathlib import Path
from typing import Any, Union

from openai import OpenAI, OpenAIError
from PIL import Image, ImageDraw, ImageFont

from viral_video.core.config import Settings
from viral_video.core.exceptions import ConfigurationError, TransportError, ValidationError
from viral_video.models.schemas import ImageStyle

# Portrait size supported by the images API; ffmpeg scales it to the canvas
GENERATION_SIZE = "1024x1536"
GENERATION_QUALITY = "high"

STYLE_BLOCKS = {
    ImageStyle.REALISTIC: "photorealistic, high detail, realistic lighting, natural textures",
    ImageStyle.AI_GENERATED: "AI-generated art style, algorithmic patterns, modern generative design",
    ImageStyle.CARTOON: "stylized, cartoon, bold outlines, soft gradients, high contrast",
}


def image_style_block(image_style: Union[ImageStyle, str]) -> str:
    """Style description appended to every image prompt (cartoon by default)."""
    try:
        return STYLE_BLOCKS[ImageStyle(image_style)]
    except ValueError:
        return STYLE_BLOCKS[ImageStyle.CARTOON]


def build_image_prompt(prompt: str, image_style: Union[ImageStyle, str]) -> str:
    return f"{prompt}\nStyle: {image_style_block(image_style)}; vertical 1080x1920, clean composition, minimal text."


class ImageClient:
    """Generates scene images with the OpenAI images API."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize image client.

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

    def generate_image(
        self,
        prompt: str,
        output_path: Path,
        image_style: Union[ImageStyle, str] = ImageStyle.CARTOON,
    ) -> Path:
        """
        Generate one portrait image and save it as PNG.

        Args:
            prompt: Scene prompt
            output_path: Where to write the PNG
            image_style: Visual style

        Returns:
            Path to the written image

        Raises:
            TransportError: If the API call fails
            ValidationError: If the response carries no decodable image
        """
        client = self._get_client()
        self.logger.info(f"Generating image {output_path.name} ({getattr(image_style, 'value', image_style)})")

        try:
            response = client.images.generate(
                model=self.settings.image_model,
                prompt=build_image_prompt(prompt, image_style),
                size=GENERATION_SIZE,
                quality=GENERATION_QUALITY,
            )
        except OpenAIError as e:
            self.logger.error(f"Image generation failed for {output_path.name}: {e}")
            raise TransportError("OpenAI", str(e)) from e

        b64_data = response.data[0].b64_json if response.data else None
        if not b64_data:
            raise ValidationError(f"Image response for {output_path.name} contained no image data")
        try:
            image_bytes = base64.b64decode(b64_data)
        except (binascii.Error, ValueError) as e:
            raise ValidationError(f"Image response for {output_path.name} was not valid base64") from e

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(image_bytes)
        return output_path

    def create_placeholder_image(self, output_path: Path, label: str = "") -> Path:
        """
        Create a placeholder scene image for dry runs.

        Args:
            output_path: Path to save image
            label: Optional text drawn in the centre

        Returns:
            Path to the written image
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)

        target_size = (self.settings.video_width, self.settings.video_height)
        image = Image.new("RGB", target_size, color=(30, 30, 40))

        if label:
            draw = ImageDraw.Draw(image)
            font = ImageFont.load_default()
            bbox = draw.textbbox((0, 0), label, font=font)
            text_width = bbox[2] - bbox[0]
            text_height = bbox[3] - bbox[1]
            position = ((target_size[0] - text_width) // 2, (target_size[1] - text_height) // 2)
            draw.text(position, label, fill=(200, 200, 200), font=font)

        image.save(output_path, "PNG")
        self.logger.debug(f"Created placeholder image: {output_path}")
        return output_path
