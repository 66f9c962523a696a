"""Revise existing slides from free-text user feedback.

Independent of the generation pipeline: callers pass the full slide list and
get a new list back. With a valid target index only that slide is revised;
otherwise every slide is revised concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from shared.config import Settings, get_settings
from shared.exceptions import FeedbackRevisionError, GenerationError
from shared.image_client import ImageGenerator, HuggingFaceImageGenerator, race_image
from shared.llm_client import SlideDraft, TextGenerator
from shared.models import Slide, TemplateContext
from shared.usage import UsageTracker

from .prompts import FEEDBACK_PROMPT

logger = logging.getLogger(__name__)

IMAGE_KEYWORDS = ("visual", "image", "chart", "graphic")


def should_regenerate_image(original_title: str, revised_title: str, feedback: str) -> bool:
    """A new image is worth it when the title changed or the feedback is about visuals."""
    if revised_title.strip() != original_title.strip():
        return True
    lowered = (feedback or "").lower()
    return any(keyword in lowered for keyword in IMAGE_KEYWORDS)


def template_context(template: Optional[TemplateContext]) -> str:
    if template is not None:
        return f"This is part of a {template.name} presentation template"
    return "This is a general presentation"


def applied_critique(feedback: str) -> str:
    return f'Applied feedback: "{feedback}"'


def failed_critique(feedback: str) -> str:
    return f'Failed to apply feedback: "{feedback}". Please try rephrasing your request.'


class FeedbackReviser:
    """Applies human feedback to slides through the text generator."""

    def __init__(
        self,
        text_generator: TextGenerator,
        image_generator: Optional[ImageGenerator] = None,
        settings: Optional[Settings] = None,
        usage: Optional[UsageTracker] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.text_generator = text_generator
        self.image_generator = image_generator or HuggingFaceImageGenerator(self.settings)
        self.usage = usage

    async def apply_feedback(
        self,
        slides: List[Slide],
        feedback: str,
        target_index: Optional[int] = None,
        template: Optional[TemplateContext] = None,
    ) -> List[Slide]:
        """Return the revised deck.

        Slides left untouched are the very objects that were passed in.
        """
        if target_index is not None and 0 <= target_index < len(slides):
            logger.info(f"💬 Applying feedback to slide {target_index + 1}: \"{feedback}\"")
            revised = await self.revise_slide(slides[target_index], feedback, template)
            updated = list(slides)
            updated[target_index] = revised
            return updated

        logger.info(f"💬 Applying feedback to all {len(slides)} slides: \"{feedback}\"")
        return list(await asyncio.gather(*[
            self.revise_slide(slide, feedback, template, slide_number=index + 1)
            for index, slide in enumerate(slides)
        ]))

    async def revise_slide(
        self,
        slide: Slide,
        feedback: str,
        template: Optional[TemplateContext] = None,
        slide_number: Optional[int] = None,
    ) -> Slide:
        """Revise one slide; a failure is reported on the slide instead of raised."""
        try:
            draft = await self._rewrite(slide, feedback, template, slide_number)
        except FeedbackRevisionError as e:
            logger.error(f"❌ Error applying feedback to slide '{slide.title}': {e}")
            return slide.model_copy(update={"critique": failed_critique(feedback), "revision_needed": True})

        title, content = draft.title, draft.content
        image_url = slide.image_url
        if should_regenerate_image(slide.title, title, feedback):
            logger.info(f"Regenerating image for improved slide: {title}")
            image_url = await race_image(
                self.image_generator,
                title,
                content,
                self.settings.feedback_image_timeout,
                operation="apply_feedback",
                usage=self.usage,
            )

        return Slide(
            title=title,
            content=content,
            image_url=image_url,
            critique=applied_critique(feedback),
            revision_needed=False,
        )

    async def _rewrite(
        self,
        slide: Slide,
        feedback: str,
        template: Optional[TemplateContext],
        slide_number: Optional[int],
    ) -> SlideDraft:
        try:
            return await self.text_generator.generate_structured(
                FEEDBACK_PROMPT,
                {
                    "title": slide.title,
                    "content": slide.content,
                    "feedback": feedback,
                    "template_context": template_context(template),
                    "slide_number": str(slide_number) if slide_number else "N/A",
                },
                SlideDraft,
                operation="apply_feedback",
                usage=self.usage,
            )
        except GenerationError as e:
            raise FeedbackRevisionError(f"Could not revise slide '{slide.title}'", cause=e,
                                        context={"slide_number": slide_number}) from e
