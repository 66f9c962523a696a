"""Shared fixtures: scripted text generator, fake image providers, fast settings."""

import asyncio
import inspect
import sys
from collections import defaultdict, deque
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import pytest

# Add current directory to Python path
sys.path.insert(0, str(Path(__file__).parent))

from shared.config import Settings
from shared.exceptions import GenerationError
from shared.image_client import ImageGenerator
from shared.llm_client import TextGenerator, decode_structured, Err
from shared.usage import UsageTracker

Reply = Union[str, Exception, Callable[[Dict[str, Any]], Any]]


class ScriptedTextGenerator(TextGenerator):
    """Replies from per-operation queues of raw text, exceptions or callables.

    Raw text goes through the real decoder, so malformed replies behave like
    they would from a model. An empty queue falls back to ``default`` for that
    operation, or raises ``GenerationError`` when there is none.
    """

    def __init__(self, replies: Optional[Dict[str, List[Reply]]] = None,
                 defaults: Optional[Dict[str, Reply]] = None) -> None:
        self.replies = defaultdict(deque, {op: deque(items) for op, items in (replies or {}).items()})
        self.defaults = defaults or {}
        self.calls: List[Dict[str, Any]] = []

    async def generate_structured(self, prompt_template, variables, shape, *, operation, usage=None):
        self.calls.append({"operation": operation, "variables": dict(variables)})
        queue = self.replies[operation]
        reply = queue.popleft() if queue else self.defaults.get(operation)
        if reply is None:
            raise GenerationError(f"{operation}: no scripted reply")
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            reply = reply(variables)
            if inspect.isawaitable(reply):
                reply = await reply
        if usage is not None:
            usage.track_tokens("gpt-4o", operation, 10, 5)
        result = decode_structured(reply, shape)
        if isinstance(result, Err):
            raise GenerationError(f"{operation} returned unusable output: {result.reason}")
        return result.value

    def operations(self) -> List[str]:
        return [call["operation"] for call in self.calls]


class StaticImageGenerator(ImageGenerator):
    """Answers immediately with a fixed reference (or None)."""

    def __init__(self, image_ref: Optional[str] = "https://img.example/slide.png",
                 provider: str = "huggingface") -> None:
        self.image_ref = image_ref
        self.provider = provider
        self.model = "fake-model"
        self.calls: List[str] = []

    async def generate_image(self, title, content):
        self.calls.append(title)
        return self.image_ref


class FailingImageGenerator(ImageGenerator):
    provider = "huggingface"
    model = "fake-model"

    async def generate_image(self, title, content):
        raise RuntimeError("provider exploded")


class HangingImageGenerator(ImageGenerator):
    """Never answers within any test deadline."""

    provider = "huggingface"
    model = "fake-model"

    def __init__(self) -> None:
        self.cancelled = False

    async def generate_image(self, title, content):
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return "https://img.example/too-late.png"


def slide_reply(title: str, bullets: List[str]) -> str:
    content = "\\n".join(f"- {b}" for b in bullets)
    return f'{{"title": "{title}", "content": "{content}"}}'


def critique_reply(revision_needed: bool, critique: str = "") -> str:
    flag = "true" if revision_needed else "false"
    return f'{{"revision_needed": {flag}, "critique": "{critique}"}}'


@pytest.fixture
def settings():
    return Settings(
        openai_api_key=None,
        huggingface_api_key=None,
        google_api_key=None,
        image_provider="huggingface",
        huggingface_image_timeout=0.2,
        gemini_image_timeout=0.2,
        feedback_image_timeout=0.2,
    )


@pytest.fixture
def usage():
    return UsageTracker(session_id="session_test")


@pytest.fixture
def image_generator():
    return StaticImageGenerator()
