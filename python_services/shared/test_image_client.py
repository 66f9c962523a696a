"""Tests for placeholder images and the image generation race."""

import asyncio
import base64

import httpx
import pytest

from conftest import FailingImageGenerator, HangingImageGenerator, StaticImageGenerator
from shared.config import Settings
from shared.exceptions import ImageError
from shared.image_client import (
    GeminiImageGenerator,
    HuggingFaceImageGenerator,
    PLACEHOLDER_COLORS,
    build_image_prompt,
    get_image_generator,
    placeholder_image,
    race_image,
)
from shared.usage import UsageTracker


def decode_svg(data_uri: str) -> str:
    prefix = "data:image/svg+xml;base64,"
    assert data_uri.startswith(prefix)
    return base64.b64decode(data_uri[len(prefix):]).decode("utf-8")


def test_placeholder_is_deterministic():
    assert placeholder_image("Key Concepts") == placeholder_image("Key Concepts")
    assert placeholder_image("Key Concepts") != placeholder_image("Key Concepts!")


def test_placeholder_color_depends_on_title_length():
    svg = decode_svg(placeholder_image("abcdefg"))
    assert f'fill="#{PLACEHOLDER_COLORS[7 % 6]}"' in svg
    assert 'width="400" height="300"' in svg


def test_placeholder_truncates_and_escapes_title():
    svg = decode_svg(placeholder_image("Risks & <Rewards> of a very long slide title"))
    assert "Risks &amp; &lt;Rewards&gt; of a very lo..." in svg
    assert "<Rewards>" not in svg


def test_placeholder_for_empty_title():
    assert ">Slide</text>" in decode_svg(placeholder_image(""))


def test_image_prompt_uses_first_three_bullets():
    prompt = build_image_prompt("Quantum Basics", "- Qubits\n- Superposition\n- Entanglement\n- Decoherence")
    assert '"Quantum Basics"' in prompt
    assert "Key concepts: Qubits, Superposition, Entanglement." in prompt
    assert "Decoherence" not in prompt


def test_get_image_generator_by_name(settings):
    assert isinstance(get_image_generator("gemini", settings), GeminiImageGenerator)
    assert isinstance(get_image_generator("HuggingFace", settings), HuggingFaceImageGenerator)
    assert isinstance(get_image_generator("dalle", settings), HuggingFaceImageGenerator)


async def test_race_returns_provider_image():
    usage = UsageTracker()
    image = await race_image(StaticImageGenerator("https://img.example/a.png"), "Title", "- a", 1.0, usage=usage)
    assert image == "https://img.example/a.png"
    assert usage.image_usages[0].success is True


async def test_race_uses_placeholder_when_provider_returns_nothing():
    usage = UsageTracker()
    image = await race_image(StaticImageGenerator(None), "Title", "- a", 1.0, usage=usage)
    assert image == placeholder_image("Title")
    assert usage.image_usages[0].success is False


async def test_race_uses_placeholder_when_provider_fails():
    image = await race_image(FailingImageGenerator(), "Title", "- a", 1.0)
    assert image == placeholder_image("Title")


async def test_race_times_out_and_cancels_provider_call():
    generator = HangingImageGenerator()
    loop = asyncio.get_running_loop()
    started = loop.time()

    image = await race_image(generator, "Slow Slide", "- a", 0.05)

    assert image == placeholder_image("Slow Slide")
    assert loop.time() - started < 1.0
    await asyncio.sleep(0.01)
    assert generator.cancelled is True


async def test_huggingface_without_key_returns_none(settings):
    assert await HuggingFaceImageGenerator(settings).generate_image("Title", "- a") is None


async def test_huggingface_returns_data_uri():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer hf_test"
        return httpx.Response(200, content=b"\x89PNG", headers={"content-type": "image/png"})

    settings = Settings(huggingface_api_key="hf_test")
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        image = await HuggingFaceImageGenerator(settings, client=client).generate_image("Title", "- a")

    assert image == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode("ascii")


async def test_huggingface_error_status_raises_image_error():
    settings = Settings(huggingface_api_key="hf_test")
    transport = httpx.MockTransport(lambda request: httpx.Response(402, json={"error": "quota"}))
    async with httpx.AsyncClient(transport=transport) as client:
        with pytest.raises(ImageError):
            await HuggingFaceImageGenerator(settings, client=client).generate_image("Title", "- a")


async def test_huggingface_non_image_response_returns_none():
    settings = Settings(huggingface_api_key="hf_test")
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"estimated_time": 20}))
    async with httpx.AsyncClient(transport=transport) as client:
        assert await HuggingFaceImageGenerator(settings, client=client).generate_image("Title", "- a") is None
