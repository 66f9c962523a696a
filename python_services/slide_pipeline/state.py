"""State definitions for the slide pipeline LangGraph workflow."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, TypedDict

from shared.models import GenerateRequest, ImageProvider, Language, Slide, TemplateContext

# ---------------------------------------------------------------------------
# TypedDict representing the state that flows through the LangGraph.
# ---------------------------------------------------------------------------


class PipelineState(TypedDict, total=False):
    """State owned by one pipeline run.

    Only pipeline nodes write to it, one node at a time. ``current_slide``
    only grows, from 0 up to ``len(outline)``.
    """

    # Request options ----------------------------------------------------------
    topic: str
    template: TemplateContext
    theme: Optional[Dict[str, Any]]
    language: str
    image_provider: str

    # Generated deck -----------------------------------------------------------
    outline: List[str]
    slides: List[Slide]

    # Control ------------------------------------------------------------------
    current_slide: int
    refinement_passes: int  # refinements applied to the current slide


# ---------------------------------------------------------------------------
# Helper initialiser ---------------------------------------------------------
# ---------------------------------------------------------------------------


def initial_state(request: GenerateRequest, default_image_provider: str = ImageProvider.HUGGINGFACE.value) -> PipelineState:
    """Return the state a run starts from."""
    language = request.language if request.language in {l.value for l in Language} else Language.ENGLISH.value
    return PipelineState(
        topic=(request.topic or "").strip(),
        template=request.template or TemplateContext(),
        theme=request.theme,
        language=language,
        image_provider=(request.image_provider or default_image_provider).lower(),
        outline=[],
        slides=[],
        current_slide=0,
        refinement_passes=0,
    )


def current(state: PipelineState) -> Slide:
    """The slide the pipeline is working on."""
    return state["slides"][state["current_slide"]]


def replace_current(state: PipelineState, slide: Slide) -> List[Slide]:
    """Copy of the slide list with the current slide swapped for ``slide``."""
    slides = list(state["slides"])
    slides[state["current_slide"]] = slide
    return slides
