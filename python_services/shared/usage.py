"""
Token and image usage accounting for a single request.

A ``UsageTracker`` is created when a request starts and dropped when the
response is finished; nothing is shared between requests.
"""

from __future__ import annotations

import logging
import math
import random
import string
import time
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# USD per 1K tokens (approximate)
TOKEN_COSTS: Dict[str, Dict[str, float]] = {
    "gpt-4": {"input": 0.03, "output": 0.06},
    "gpt-4o": {"input": 0.005, "output": 0.015},
    "gpt-3.5-turbo": {"input": 0.0015, "output": 0.002},
    "claude-3-opus": {"input": 0.015, "output": 0.075},
    "claude-3-sonnet": {"input": 0.003, "output": 0.015},
    "claude-3-haiku": {"input": 0.00025, "output": 0.00125},
    "gemini-pro": {"input": 0.0005, "output": 0.0015},
    "gemini-1.5-pro": {"input": 0.0035, "output": 0.0105},
    "llama-2-70b": {"input": 0.0007, "output": 0.0009},
    "mistral-7b": {"input": 0.0002, "output": 0.0002},
    "default": {"input": 0.001, "output": 0.002},
}

# USD per image (approximate)
IMAGE_COSTS: Dict[str, Dict[str, float]] = {
    "huggingface": {
        "black-forest-labs/FLUX.1-schnell": 0.003,
        "runwayml/stable-diffusion-v1-5": 0.002,
        "default": 0.002,
    },
    "gemini": {
        "imagegeneration": 0.004,
        "default": 0.004,
    },
}


@dataclass
class TokenUsage:
    model: str
    operation: str
    input_tokens: int
    output_tokens: int
    total_tokens: int
    cost: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class ImageUsage:
    provider: str
    model: str
    operation: str
    image_count: int
    success: bool
    cost: float
    timestamp: float = field(default_factory=time.time)


def estimate_token_count(text: str) -> int:
    """Rough estimate: one token per four characters of English text."""
    return math.ceil(len(text or "") / 4)


def generate_session_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"session_{int(time.time() * 1000)}_{suffix}"


def token_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    costs = TOKEN_COSTS.get((model or "").lower(), TOKEN_COSTS["default"])
    return (input_tokens / 1000) * costs["input"] + (output_tokens / 1000) * costs["output"]


def image_cost(provider: str, model: str, image_count: int) -> float:
    provider_costs = IMAGE_COSTS.get(provider, IMAGE_COSTS["huggingface"])
    return image_count * provider_costs.get(model, provider_costs["default"])


class UsageTracker:
    """Accumulates LLM token and image generation usage for one session."""

    def __init__(self, session_id: Optional[str] = None) -> None:
        self.session_id = session_id or generate_session_id()
        self.start_time = time.time()
        self.token_usages: List[TokenUsage] = []
        self.image_usages: List[ImageUsage] = []

    def track_tokens(self, model: str, operation: str, input_tokens: int, output_tokens: int,
                     total_tokens: Optional[int] = None) -> TokenUsage:
        total = total_tokens if total_tokens is not None else input_tokens + output_tokens
        usage = TokenUsage(
            model=model,
            operation=operation,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=total,
            cost=token_cost(model, input_tokens, output_tokens),
        )
        self.token_usages.append(usage)
        logger.info(
            f"🧮 Token Usage - {operation}: model={model} input={input_tokens} "
            f"output={output_tokens} total={total} cost=${usage.cost:.4f}"
        )
        return usage

    def track_image(self, provider: str, model: str, operation: str, success: bool,
                    image_count: int = 1) -> ImageUsage:
        usage = ImageUsage(
            provider=provider,
            model=model,
            operation=operation,
            image_count=image_count,
            success=success,
            cost=image_cost(provider, model, image_count),
        )
        self.image_usages.append(usage)
        logger.info(
            f"🎨 Image Generation - {operation}: provider={provider} model={model} "
            f"count={image_count} success={success} cost=${usage.cost:.4f}"
        )
        return usage

    @property
    def total_input_tokens(self) -> int:
        return sum(u.input_tokens for u in self.token_usages)

    @property
    def total_output_tokens(self) -> int:
        return sum(u.output_tokens for u in self.token_usages)

    @property
    def total_tokens(self) -> int:
        return sum(u.total_tokens for u in self.token_usages)

    @property
    def total_images(self) -> int:
        return sum(u.image_count for u in self.image_usages)

    @property
    def estimated_cost(self) -> float:
        return sum(u.cost for u in self.token_usages) + sum(u.cost for u in self.image_usages)

    def summary(self) -> Dict[str, Any]:
        """JSON-ready session usage, sent as ``usage_summary`` in the last frame."""
        return {
            "id": self.session_id,
            "startTime": int(self.start_time * 1000),
            "tokenUsages": [asdict(u) for u in self.token_usages],
            "imageUsages": [asdict(u) for u in self.image_usages],
            "totalInputTokens": self.total_input_tokens,
            "totalOutputTokens": self.total_output_tokens,
            "totalTokens": self.total_tokens,
            "totalImages": self.total_images,
            "estimatedCost": round(self.estimated_cost, 6),
        }

    def report(self) -> str:
        """Human-readable usage report."""
        duration = int(round(time.time() - self.start_time))
        lines = [
            f"📊 Usage Report for Session: {self.session_id}",
            f"⏱️ Duration: {duration // 60}m {duration % 60}s",
            "",
            "🤖 LLM Token Usage:",
            f"   Input Tokens: {self.total_input_tokens:,}",
            f"   Output Tokens: {self.total_output_tokens:,}",
            f"   Total Tokens: {self.total_tokens:,}",
            "",
        ]

        if self.token_usages:
            lines.append("📝 Token Operations:")
            per_operation: Dict[str, Dict[str, float]] = defaultdict(lambda: {"count": 0, "tokens": 0, "cost": 0.0})
            for u in self.token_usages:
                entry = per_operation[u.operation]
                entry["count"] += 1
                entry["tokens"] += u.total_tokens
                entry["cost"] += u.cost
            for operation, entry in per_operation.items():
                lines.append(
                    f"   {operation}: {int(entry['count'])} calls, {int(entry['tokens']):,} tokens, ${entry['cost']:.4f}"
                )
            lines.append("")

        lines.append("🎨 Image Generation:")
        lines.append(f"   Total Images: {self.total_images}")
        if self.image_usages:
            per_key: Dict[str, Dict[str, float]] = defaultdict(lambda: {"count": 0, "images": 0, "cost": 0.0, "success": 0})
            for u in self.image_usages:
                entry = per_key[f"{u.provider}-{u.operation}"]
                entry["count"] += 1
                entry["images"] += u.image_count
                entry["cost"] += u.cost
                if u.success:
                    entry["success"] += 1
            for key, entry in per_key.items():
                lines.append(
                    f"   {key}: {int(entry['success'])}/{int(entry['count'])} successful, "
                    f"{int(entry['images'])} images, ${entry['cost']:.4f}"
                )
            lines.append("")

        lines.append(f"💰 Total Estimated Cost: ${self.estimated_cost:.4f}")
        return "\n".join(lines)
