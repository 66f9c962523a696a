"""
Structured text generation on top of LangChain chat models.

Callers hand over a prompt template, its variables and the pydantic shape they
expect back. The reply is decoded into that shape or a ``GenerationError`` is
raised; there is no retry, so every caller keeps a fallback value ready.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union

from langchain_core.exceptions import OutputParserException
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.output_parsers import JsonOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import ChatOpenAI
from pydantic import (
    AliasChoices,
    BaseModel,
    Field,
    RootModel,
    ValidationError,
    field_validator,
    model_validator,
)

from .config import Settings, get_settings
from .exceptions import GenerationError
from .models import format_bullets
from .usage import UsageTracker, estimate_token_count

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

MIN_OUTLINE_LENGTH = 5
MAX_OUTLINE_LENGTH = 7


# ---------------------------------------------------------------------------
# Expected reply shapes -------------------------------------------------------
# ---------------------------------------------------------------------------


class OutlineShape(RootModel[List[str]]):
    """Ordered slide titles."""

    @model_validator(mode="before")
    @classmethod
    def _unwrap(cls, data: Any) -> Any:
        # Some replies wrap the array: {"outline": [...]} or {"titles": [...]}
        if isinstance(data, dict):
            for key in ("outline", "titles", "slides"):
                if isinstance(data.get(key), list):
                    data = data[key]
                    break
        if isinstance(data, list):
            return [item.get("title", "") if isinstance(item, dict) else item for item in data]
        return data

    @model_validator(mode="after")
    def _check_length(self) -> "OutlineShape":
        titles = [t.strip() for t in self.root if t and t.strip()]
        if len(titles) < MIN_OUTLINE_LENGTH:
            raise ValueError(f"expected at least {MIN_OUTLINE_LENGTH} titles, got {len(titles)}")
        self.root = titles[:MAX_OUTLINE_LENGTH]
        return self


class SlideDraft(BaseModel):
    """Title and bullet content of one slide."""

    title: str
    content: str

    @field_validator("content", mode="before")
    @classmethod
    def _join_bullets(cls, value: Any) -> Any:
        if isinstance(value, list):
            return format_bullets([str(v).lstrip("-• ").strip() for v in value])
        return value

    @model_validator(mode="after")
    def _normalize(self) -> "SlideDraft":
        self.title = self.title.strip()
        lines = [line.strip() for line in self.content.split("\n") if line.strip()]
        self.content = "\n".join(line if line.startswith("-") else f"- {line}" for line in lines)
        if not self.title or not self.content:
            raise ValueError("slide needs a non-empty title and content")
        return self


class CritiqueResult(BaseModel):
    """Verdict of the slide critic."""

    revision_needed: bool = Field(validation_alias=AliasChoices("revision_needed", "revisionNeeded"))
    critique: str = ""

    @model_validator(mode="after")
    def _default_critique(self) -> "CritiqueResult":
        if not self.critique.strip() and not self.revision_needed:
            self.critique = "No issues found."
        return self


# ---------------------------------------------------------------------------
# Decoding --------------------------------------------------------------------
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    reason: str


DecodeResult = Union[Ok[T], Err]

_json_parser = JsonOutputParser()


def decode_structured(text: str, shape: Type[T]) -> DecodeResult:
    """Parse an LLM reply (optionally fenced in markdown) into ``shape``."""
    try:
        data = _json_parser.parse(text or "")
    except OutputParserException as e:
        return Err(f"reply is not valid JSON: {e}")
    try:
        return Ok(shape.model_validate(data))
    except ValidationError as e:
        return Err(f"reply does not match {shape.__name__}: {e.error_count()} error(s): {e.errors()[0]['msg']}")


# ---------------------------------------------------------------------------
# Generators ------------------------------------------------------------------
# ---------------------------------------------------------------------------


class TextGenerator(ABC):
    """Abstract base class for structured text generation."""

    @abstractmethod
    async def generate_structured(
        self,
        prompt_template: str,
        variables: Dict[str, Any],
        shape: Type[T],
        *,
        operation: str,
        usage: Optional[UsageTracker] = None,
    ) -> T:
        """Return the reply decoded into ``shape`` or raise ``GenerationError``."""
        pass


class LangChainTextGenerator(TextGenerator):
    """Runs ``ChatPromptTemplate | chat model`` and decodes the JSON reply."""

    def __init__(self, settings: Optional[Settings] = None, llm: Optional[BaseChatModel] = None) -> None:
        self.settings = settings or get_settings()
        self._llm = llm

    @property
    def model_name(self) -> str:
        return getattr(self._llm, "model_name", None) or self.settings.openai_model

    def _build_llm(self) -> BaseChatModel:
        # Built on first use so the service can start without a key
        return ChatOpenAI(
            model=self.settings.openai_model,
            temperature=self.settings.llm_temperature,
            api_key=self.settings.openai_api_key,
            timeout=self.settings.llm_request_timeout,
            max_retries=0,
        )

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = self._build_llm()
        return self._llm

    async def generate_structured(
        self,
        prompt_template: str,
        variables: Dict[str, Any],
        shape: Type[T],
        *,
        operation: str,
        usage: Optional[UsageTracker] = None,
    ) -> T:
        prompt = ChatPromptTemplate.from_template(prompt_template)
        try:
            chain = prompt | self.llm
            message = await chain.ainvoke(variables)
        except Exception as e:  # noqa: BLE001
            raise GenerationError(f"{operation} call failed", cause=e, context={"operation": operation}) from e

        text = _message_text(message.content)
        if usage is not None:
            self._record_usage(usage, operation, prompt, variables, message, text)

        result = decode_structured(text, shape)
        if isinstance(result, Err):
            logger.warning(f"⚠️ {operation}: {result.reason}")
            raise GenerationError(f"{operation} returned unusable output: {result.reason}",
                                  context={"operation": operation})
        return result.value

    def _record_usage(self, usage: UsageTracker, operation: str, prompt: ChatPromptTemplate,
                      variables: Dict[str, Any], message: Any, text: str) -> None:
        metadata = getattr(message, "usage_metadata", None) or {}
        if metadata:
            usage.track_tokens(
                self.model_name,
                operation,
                int(metadata.get("input_tokens", 0)),
                int(metadata.get("output_tokens", 0)),
                metadata.get("total_tokens"),
            )
            return
        usage.track_tokens(
            self.model_name,
            operation,
            estimate_token_count(prompt.format(**variables)),
            estimate_token_count(text),
        )


def _message_text(content: Union[str, List[Any]]) -> str:
    if isinstance(content, str):
        return content
    parts = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


# Global client instance
_text_generator: Optional[TextGenerator] = None


def get_text_generator() -> TextGenerator:
    """Get the process-wide text generator."""
    global _text_generator
    if _text_generator is None:
        _text_generator = LangChainTextGenerator()
    return _text_generator
