"""Tests for the image client."""

import base64
from unittest.mock import MagicMock, patch

import pytest
from openai import OpenAIError
from PIL import Image

from viral_video.core.exceptions import ConfigurationError, TransportError, ValidationError
from viral_video.models.schemas import ImageStyle
from viral_video.services.image_client import ImageClient, build_image_prompt, image_style_block


@pytest.fixture
def keyed_settings(settings):
    return settings.model_copy(update={"openai_api_key": "sk-test"})


def image_response(b64_json):
    response = MagicMock()
    response.data = [MagicMock(b64_json=b64_json)]
    return response


@pytest.mark.parametrize(
    "style,expected",
    [
        (ImageStyle.REALISTIC, "photorealistic, high detail, realistic lighting, natural textures"),
        ("ai-generated", "AI-generated art style, algorithmic patterns, modern generative design"),
        ("cartoon", "stylized, cartoon, bold outlines, soft gradients, high contrast"),
        ("watercolor", "stylized, cartoon, bold outlines, soft gradients, high contrast"),
    ],
)
def test_image_style_block(style, expected):
    assert image_style_block(style) == expected


def test_build_image_prompt():
    assert build_image_prompt("A chart", "realistic") == (
        "A chart\nStyle: photorealistic, high detail, realistic lighting, natural textures; "
        "vertical 1080x1920, clean composition, minimal text."
    )


def test_missing_api_key(settings, logger, tmp_path):
    with pytest.raises(ConfigurationError):
        ImageClient(settings, logger).generate_image("A chart", tmp_path / "scene01.png")


@patch("viral_video.services.image_client.OpenAI")
def test_generate_image_writes_decoded_bytes(mock_openai, keyed_settings, logger, tmp_path):
    client = mock_openai.return_value
    client.images.generate.return_value = image_response(base64.b64encode(b"png-bytes").decode())
    output = tmp_path / "scenes" / "scene01.png"

    result = ImageClient(keyed_settings, logger).generate_image("A chart", output, ImageStyle.CARTOON)

    assert result == output
    assert output.read_bytes() == b"png-bytes"
    kwargs = client.images.generate.call_args.kwargs
    assert kwargs["model"] == "gpt-image-1"
    assert kwargs["size"] == "1024x1536"
    assert kwargs["quality"] == "high"
    assert kwargs["prompt"] == build_image_prompt("A chart", ImageStyle.CARTOON)


@patch("viral_video.services.image_client.OpenAI")
def test_generate_image_without_data(mock_openai, keyed_settings, logger, tmp_path):
    mock_openai.return_value.images.generate.return_value = image_response(None)

    with pytest.raises(ValidationError):
        ImageClient(keyed_settings, logger).generate_image("A chart", tmp_path / "scene01.png")
    assert not (tmp_path / "scene01.png").exists()


@patch("viral_video.services.image_client.OpenAI")
def test_generate_image_api_failure(mock_openai, keyed_settings, logger, tmp_path):
    mock_openai.return_value.images.generate.side_effect = OpenAIError("content policy")

    with pytest.raises(TransportError, match="content policy"):
        ImageClient(keyed_settings, logger).generate_image("A chart", tmp_path / "scene01.png")


def test_placeholder_image_fills_canvas(settings, logger, tmp_path):
    output = tmp_path / "scenes" / "scene01.png"

    ImageClient(settings, logger).create_placeholder_image(output, label="Scene 1")

    with Image.open(output) as image:
        assert image.format == "PNG"
        assert image.size == (1080, 1920)
