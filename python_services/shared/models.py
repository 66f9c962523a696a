"""
Shared Pydantic models for the slide pipeline service.
"""

from datetime import datetime
from typing import Optional, Dict, Any, List
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from enum import Enum


class ImageProvider(str, Enum):
    """Supported image generation providers."""
    HUGGINGFACE = "huggingface"
    GEMINI = "gemini"


class Language(str, Enum):
    """Prompt languages for outline and slide generation."""
    ENGLISH = "en"
    CHINESE = "zh"


class Slide(BaseModel):
    """A single presentation slide as it travels over the wire.

    ``content`` holds newline-delimited bullet lines, each prefixed with "- ".
    ``imageUrl`` is either an http(s) URL or a ``data:`` URI.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    title: str
    content: str
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    critique: Optional[str] = None
    revision_needed: Optional[bool] = Field(
        default=None,
        validation_alias=AliasChoices("revision_needed", "revisionNeeded"),
        serialization_alias="revision_needed",
    )

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def bullets(self) -> List[str]:
        return parse_bullets(self.content)


def parse_bullets(content: str) -> List[str]:
    """Split slide content into bullet texts, dropping lines that are not bullets."""
    bullets = []
    for line in (content or "").split("\n"):
        stripped = line.strip()
        if stripped.startswith("-"):
            bullets.append(stripped[1:].strip())
    return bullets


def format_bullets(bullets: List[str]) -> str:
    return "\n".join(f"- {b.strip()}" for b in bullets if str(b).strip())


class TemplateContext(BaseModel):
    """Presentation template chosen in the UI."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = "modern"
    prompt_prefix: Optional[str] = Field(default=None, alias="promptPrefix")
    prompt_prefix_cn: Optional[str] = Field(default=None, alias="promptPrefixCN")


class GenerateRequest(BaseModel):
    """Body of POST /api/generate."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    topic: Optional[str] = None
    template: Optional[TemplateContext] = None
    theme: Optional[Dict[str, Any]] = None
    language: Optional[str] = None
    image_provider: Optional[str] = Field(default=None, alias="imageProvider")


class FeedbackRequest(BaseModel):
    """Body of POST /api/feedback."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    slides: Optional[List[Slide]] = None
    feedback: Optional[str] = None
    slide_index: Optional[int] = Field(default=None, alias="slideIndex")
    template: Optional[TemplateContext] = None


class FeedbackResponse(BaseModel):
    slides: List[Dict[str, Any]]


class HealthCheck(BaseModel):
    """Health check response model."""
    service: str
    status: str = "healthy"
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    version: str = "0.1.0"
    providers: Dict[str, bool] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str
