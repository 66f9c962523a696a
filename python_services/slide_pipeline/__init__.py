"""Slide Pipeline package.

LangGraph state machine that drafts a presentation slide by slide
(outline, content, critique, one optional refinement), streamed to the
browser as Server-Sent Events, plus a feedback reviser for finished decks.

The FastAPI app lives in ``api_server.py``.
"""

from .graph import SlidePipeline
from .feedback import FeedbackReviser

__all__ = ["SlidePipeline", "FeedbackReviser"]
