"""
Slide image generation with a bounded wait and a local placeholder.

Providers may be slow or unavailable, so every call goes through
``race_image``: the provider gets a fixed deadline and anything other than a
usable reference within it is replaced by ``placeholder_image(title)``.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from abc import ABC, abstractmethod
from html import escape
from typing import Optional

import httpx

from .config import Settings, get_settings
from .exceptions import ImageError
from .models import ImageProvider, parse_bullets
from .usage import UsageTracker

logger = logging.getLogger(__name__)

PLACEHOLDER_COLORS = ["3b82f6", "10b981", "f59e0b", "ef4444", "8b5cf6", "ec4899"]
PLACEHOLDER_TITLE_LIMIT = 30

HUGGINGFACE_INFERENCE_URL = "https://api-inference.huggingface.co/models/{model}"


def placeholder_image(title: str) -> str:
    """Deterministic SVG placeholder embedding the slide title, as a data URI."""
    safe_title = title or "Slide"
    bg_color = PLACEHOLDER_COLORS[len(safe_title) % len(PLACEHOLDER_COLORS)]
    label = safe_title[:PLACEHOLDER_TITLE_LIMIT] + ("..." if len(safe_title) > PLACEHOLDER_TITLE_LIMIT else "")
    svg = (
        '<svg width="400" height="300" xmlns="http://www.w3.org/2000/svg">'
        f'<rect width="100%" height="100%" fill="#{bg_color}"/>'
        '<text x="50%" y="50%" font-family="Arial, sans-serif" font-size="16" fill="white" '
        'text-anchor="middle" dominant-baseline="central">'
        f"{escape(label)}"
        "</text>"
        "</svg>"
    )
    encoded = base64.b64encode(svg.encode("utf-8")).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"


def build_image_prompt(title: str, content: str) -> str:
    """Describe the slide for a text-to-image model."""
    safe_title = title or "Slide"
    concepts = ", ".join(parse_bullets(content or "")[:3])
    prompt = f'Professional business presentation slide illustration for "{safe_title}". '
    if concepts:
        prompt += f"Key concepts: {concepts}. "
    prompt += "Clean, modern, minimalist design. Corporate style. High quality. No text or words in image."
    return prompt


class ImageGenerator(ABC):
    """Abstract base class for image providers."""

    provider: str = ""
    model: str = ""

    @abstractmethod
    async def generate_image(self, title: str, content: str) -> Optional[str]:
        """Return an image reference (URL or data URI), or None when nothing was produced."""
        pass


class HuggingFaceImageGenerator(ImageGenerator):
    """Text-to-image through the Hugging Face inference API."""

    provider = ImageProvider.HUGGINGFACE.value

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None) -> None:
        self.settings = settings or get_settings()
        self.model = self.settings.huggingface_image_model
        self._client = client

    async def generate_image(self, title: str, content: str) -> Optional[str]:
        if not self.settings.huggingface_configured:
            logger.info("Hugging Face API key not configured, using placeholder")
            return None

        prompt = build_image_prompt(title, content)
        logger.info(f"🎨 Attempting to generate image for: \"{title}\"")
        logger.debug(f"📝 Prompt: \"{prompt[:100]}...\"")

        payload = {
            "inputs": prompt,
            "parameters": {"num_inference_steps": 4, "width": 1024, "height": 768},
        }
        headers = {"Authorization": f"Bearer {self.settings.huggingface_api_key}"}
        url = HUGGINGFACE_INFERENCE_URL.format(model=self.model)

        try:
            if self._client is not None:
                response = await self._client.post(url, json=payload, headers=headers,
                                                   timeout=self.settings.huggingface_request_timeout)
            else:
                async with httpx.AsyncClient(timeout=self.settings.huggingface_request_timeout) as client:
                    response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 402:
                logger.warning(f"💳 API quota exceeded for \"{title}\"")
            raise ImageError(f"Hugging Face returned {e.response.status_code}", cause=e,
                             context={"title": title}) from e
        except httpx.RequestError as e:
            raise ImageError("Hugging Face request failed", cause=e, context={"title": title}) from e

        content_type = response.headers.get("content-type", "")
        if not content_type.startswith("image/") or not response.content:
            logger.warning(f"⚠️ No valid image response for: \"{title}\" ({content_type or 'no content type'})")
            return None

        encoded = base64.b64encode(response.content).decode("ascii")
        logger.info(f"✅ Successfully generated image for: \"{title}\"")
        return f"data:{content_type.split(';')[0]};base64,{encoded}"


class GeminiImageGenerator(ImageGenerator):
    """Image generation through Google Gemini's image-capable model."""

    provider = ImageProvider.GEMINI.value

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self.model = self.settings.gemini_image_model

    async def generate_image(self, title: str, content: str) -> Optional[str]:
        if not self.settings.gemini_configured:
            logger.info("Gemini API key not configured, using placeholder")
            return None

        import google.generativeai as genai

        genai.configure(api_key=self.settings.google_api_key)
        model = genai.GenerativeModel(self.model)
        prompt = build_image_prompt(title, content)
        logger.info(f"🎨 Generating Google Gemini image for: \"{title}\"")

        try:
            response = await asyncio.to_thread(
                model.generate_content,
                prompt,
                generation_config={
                    "response_modalities": ["TEXT", "IMAGE"],
                    "temperature": 0.4,
                },
            )
        except Exception as e:  # noqa: BLE001
            raise ImageError("Gemini request failed", cause=e, context={"title": title}) from e

        for candidate in getattr(response, "candidates", None) or []:
            parts = getattr(getattr(candidate, "content", None), "parts", None) or []
            for part in parts:
                inline = getattr(part, "inline_data", None)
                if inline and inline.data:
                    data = inline.data
                    if isinstance(data, bytes):
                        data = base64.b64encode(data).decode("ascii")
                    mime_type = getattr(inline, "mime_type", None) or "image/png"
                    logger.info(f"✅ Google Gemini image generated for: \"{title}\"")
                    return f"data:{mime_type};base64,{data}"
        logger.warning(f"⚠️ No image data found in Gemini response for: \"{title}\"")
        return None


def get_image_generator(provider: Optional[str] = None, settings: Optional[Settings] = None) -> ImageGenerator:
    """Return the generator for ``provider``; unknown names use the configured default."""
    settings = settings or get_settings()
    name = (provider or settings.image_provider or "").lower()
    if name not in {p.value for p in ImageProvider}:
        logger.warning(f"Unknown image provider '{provider}', using '{settings.image_provider}'")
        name = settings.image_provider
    if name == ImageProvider.GEMINI.value:
        return GeminiImageGenerator(settings)
    return HuggingFaceImageGenerator(settings)


def _discard_late_result(task: "asyncio.Task[Optional[str]]") -> None:
    # Retrieve the outcome of an abandoned call so it is never reported as unhandled
    if not task.cancelled() and task.exception() is not None:
        logger.debug(f"Abandoned image call finished with: {task.exception()}")


async def race_image(
    generator: ImageGenerator,
    title: str,
    content: str,
    timeout: float,
    *,
    operation: str = "slide_image",
    usage: Optional[UsageTracker] = None,
) -> str:
    """Generate an image within ``timeout`` seconds or fall back to the placeholder.

    The provider call runs as its own task. If the deadline passes first the
    task is cancelled and left behind; a late result is dropped.
    """
    task = asyncio.ensure_future(generator.generate_image(title, content))
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout)
    except asyncio.CancelledError:
        task.add_done_callback(_discard_late_result)
        task.cancel()
        raise

    image_ref: Optional[str] = None
    if not done:
        task.add_done_callback(_discard_late_result)
        task.cancel()
        logger.warning(f"⏰ {generator.provider} image generation for \"{title}\" exceeded {timeout}s, using placeholder")
    elif task.cancelled():
        logger.warning(f"❌ {generator.provider} image generation for \"{title}\" was cancelled")
    elif task.exception() is not None:
        logger.warning(f"❌ {generator.provider} image generation failed for \"{title}\": {task.exception()}")
    else:
        image_ref = task.result()

    if usage is not None:
        usage.track_image(generator.provider, generator.model, operation, success=bool(image_ref))
    return image_ref or placeholder_image(title)
