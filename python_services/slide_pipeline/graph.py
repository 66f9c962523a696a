"""LangGraph state machine that drafts a presentation one slide at a time.

generate_outline -> generate_slide_content -> critique_slide
    -> [refine_slide -> critique_slide] -> move_to_next_slide -> ... -> END

Every AI call has a local fallback, so a run always reaches END with a full
deck. At most one refinement happens per slide whatever the second critique says.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Callable, Dict, List, Optional

from langgraph.graph import StateGraph, START, END

from shared.config import Settings, get_settings
from shared.exceptions import GenerationError, StreamError
from shared.image_client import ImageGenerator, get_image_generator, race_image
from shared.llm_client import CritiqueResult, OutlineShape, SlideDraft, TextGenerator
from shared.models import GenerateRequest, Slide
from shared.usage import UsageTracker

from .events import PipelineEvent
from .prompts import (
    CRITIQUE_PROMPT,
    DEFAULT_TEMPLATE_PREFIX,
    REFINE_PROMPT,
    outline_prompt,
    slide_content_prompt,
)
from .state import PipelineState, current, initial_state, replace_current

logger = logging.getLogger(__name__)

MAX_REFINEMENT_PASSES = 1
NO_ISSUES_CRITIQUE = "No issues found."
REFINEMENT_FAILED_CRITIQUE = "Refinement completed"

ImageGeneratorFactory = Callable[[Optional[str], Settings], ImageGenerator]


def fallback_outline(topic: str) -> List[str]:
    return [
        f"Introduction to {topic}",
        "Key Concepts",
        "Main Applications",
        "Benefits and Advantages",
        "Challenges and Solutions",
        "Future Outlook",
        "Conclusion and Summary",
    ]


def fallback_slide_content(topic: str) -> str:
    return (
        f"- Key aspects of {topic}\n"
        "- Important considerations\n"
        "- Benefits and applications\n"
        "- Current developments\n"
        "- Future implications"
    )


# --- CONDITIONAL ROUTERS ---

def route_after_critique(state: PipelineState) -> str:
    """Refine once if the critic asked for it, otherwise move on."""
    slide = current(state)
    passes = state.get("refinement_passes", 0)
    if slide.revision_needed and passes < MAX_REFINEMENT_PASSES:
        logger.info(f"✏️ Slide {state['current_slide'] + 1} needs revision: {slide.critique}")
        return "refine_slide"
    if slide.revision_needed:
        logger.info(f"➡️ Slide {state['current_slide'] + 1} still flagged after {passes} refinement(s), moving on")
    return "move_to_next_slide"


def route_after_advance(state: PipelineState) -> str:
    if state["current_slide"] < len(state["outline"]):
        return "generate_slide_content"
    return "END"


class SlidePipeline:
    """Runs the deck state machine for one request and streams its transitions."""

    def __init__(
        self,
        text_generator: TextGenerator,
        image_generator_factory: ImageGeneratorFactory = get_image_generator,
        settings: Optional[Settings] = None,
        usage: Optional[UsageTracker] = None,
    ) -> None:
        self.text_generator = text_generator
        self.image_generator_factory = image_generator_factory
        self.settings = settings or get_settings()
        self.usage = usage or UsageTracker()

    # --- WORKER NODES ---

    async def generate_outline(self, state: PipelineState) -> Dict:
        topic = state["topic"]
        language = state["language"]
        template = state["template"]
        if language == "zh":
            prefix = template.prompt_prefix_cn or template.prompt_prefix
        else:
            prefix = template.prompt_prefix
        logger.info(f"🗂️ Generating outline for '{topic}' (template: {template.name}, language: {language})")
        try:
            outline = await self.text_generator.generate_structured(
                outline_prompt(language),
                {"topic": topic, "template_prefix": prefix or DEFAULT_TEMPLATE_PREFIX},
                OutlineShape,
                operation="generate_outline",
                usage=self.usage,
            )
            titles = list(outline.root)
        except GenerationError as e:
            logger.warning(f"⚠️ Outline generation failed, using fallback outline: {e}")
            titles = fallback_outline(topic)
        logger.info(f"✅ Outline ready with {len(titles)} slides")
        return {"outline": titles, "current_slide": 0}

    async def generate_slide_content(self, state: PipelineState) -> Dict:
        index = state["current_slide"]
        topic = state["topic"]
        slide_title = state["outline"][index]
        logger.info(f"📝 Generating slide {index + 1}/{len(state['outline'])}: {slide_title}")
        try:
            draft = await self.text_generator.generate_structured(
                slide_content_prompt(state["language"]),
                {"topic": topic, "slide_title": slide_title},
                SlideDraft,
                operation="generate_slide_content",
                usage=self.usage,
            )
            title, content = draft.title, draft.content
        except GenerationError as e:
            logger.warning(f"⚠️ Slide content generation failed, using fallback slide: {e}")
            title, content = slide_title, fallback_slide_content(topic)

        image_url = await self._slide_image(state["image_provider"], title, content)
        slides = list(state["slides"]) + [Slide(title=title, content=content, image_url=image_url)]
        return {"slides": slides, "refinement_passes": 0}

    async def critique_slide(self, state: PipelineState) -> Dict:
        slide = current(state)
        try:
            verdict = await self.text_generator.generate_structured(
                CRITIQUE_PROMPT,
                {"title": slide.title, "content": slide.content},
                CritiqueResult,
                operation="critique_slide",
                usage=self.usage,
            )
            revision_needed, critique = verdict.revision_needed, verdict.critique
        except GenerationError as e:
            # A broken critic never blocks the deck
            logger.warning(f"⚠️ Critique failed, assuming no revision needed: {e}")
            revision_needed, critique = False, NO_ISSUES_CRITIQUE
        critiqued = slide.model_copy(update={"revision_needed": revision_needed, "critique": critique})
        return {"slides": replace_current(state, critiqued)}

    async def refine_slide(self, state: PipelineState) -> Dict:
        slide = current(state).model_copy(update={"revision_needed": False})
        try:
            draft = await self.text_generator.generate_structured(
                REFINE_PROMPT,
                {
                    "topic": state["topic"],
                    "title": slide.title,
                    "content": slide.content,
                    "critique": slide.critique or "No critique provided",
                },
                SlideDraft,
                operation="refine_slide",
                usage=self.usage,
            )
            # The image from generate_slide_content is kept as is
            refined = Slide(title=draft.title, content=draft.content, image_url=slide.image_url)
            logger.info(f"✅ Refined slide {state['current_slide'] + 1}: {refined.title}")
        except GenerationError as e:
            logger.warning(f"⚠️ Refinement failed, keeping slide as is: {e}")
            refined = slide.model_copy(update={"critique": REFINEMENT_FAILED_CRITIQUE})
        return {
            "slides": replace_current(state, refined),
            "refinement_passes": state.get("refinement_passes", 0) + 1,
        }

    async def move_to_next_slide(self, state: PipelineState) -> Dict:
        finished = current(state).model_copy(update={"revision_needed": False})
        return {
            "slides": replace_current(state, finished),
            "current_slide": state["current_slide"] + 1,
        }

    async def _slide_image(self, provider: str, title: str, content: str) -> str:
        generator = self.image_generator_factory(provider, self.settings)
        timeout = self.settings.image_timeout_for(generator.provider)
        return await race_image(generator, title, content, timeout,
                                operation="generate_slide_content", usage=self.usage)

    # --- GRAPH WIRING ---

    def build_graph(self):
        """Return the compiled slide graph."""
        graph = StateGraph(PipelineState)
        graph.add_node("generate_outline", self.generate_outline)
        graph.add_node("generate_slide_content", self.generate_slide_content)
        graph.add_node("critique_slide", self.critique_slide)
        graph.add_node("refine_slide", self.refine_slide)
        graph.add_node("move_to_next_slide", self.move_to_next_slide)

        graph.add_edge(START, "generate_outline")
        graph.add_edge("generate_outline", "generate_slide_content")
        graph.add_edge("generate_slide_content", "critique_slide")
        graph.add_conditional_edges(
            "critique_slide",
            route_after_critique,
            {"refine_slide": "refine_slide", "move_to_next_slide": "move_to_next_slide"},
        )
        graph.add_edge("refine_slide", "critique_slide")
        graph.add_conditional_edges(
            "move_to_next_slide",
            route_after_advance,
            {"generate_slide_content": "generate_slide_content", "END": END},
        )
        return graph.compile()

    # --- RUNNERS ---

    async def stream(self, request: GenerateRequest) -> AsyncIterator[PipelineEvent]:
        """Yield one event per state transition, in order, then a ``done`` event."""
        state = initial_state(request, self.settings.image_provider)
        logger.info(
            f"🚀 Starting presentation generation for topic: {state['topic']}, template: {state['template'].name}, "
            f"theme: {(state['theme'] or {}).get('name')}, language: {state['language']}, "
            f"imageProvider: {state['image_provider']}"
        )
        graph = self.build_graph()
        node = None
        try:
            async for update in graph.astream(
                state,
                config={"recursion_limit": self.settings.graph_recursion_limit},
                stream_mode="updates",
            ):
                for node, changes in update.items():
                    state.update(changes or {})
                    if node == "move_to_next_slide" and state["current_slide"] >= len(state["outline"]):
                        # Advancing past the last slide ends the run, announced by ``done``
                        continue
                    yield self._event(node, state)
        except StreamError:
            raise
        except Exception as e:
            raise StreamError(f"Pipeline failed after {node or 'start'}: {e}", cause=e, context={"topic": state["topic"]}) from e

        logger.info(f"🎉 Presentation complete: {len(state['slides'])} slides")
        yield self._event("done", state)

    async def run(self, request: GenerateRequest) -> PipelineEvent:
        """Run to completion and return the final ``done`` event."""
        last = None
        async for event in self.stream(request):
            last = event
        return last

    @staticmethod
    def _event(kind: str, state: PipelineState) -> PipelineEvent:
        return PipelineEvent(
            type=kind,
            outline=list(state["outline"]),
            slides=list(state["slides"]),
            current_slide=state["current_slide"],
        )
