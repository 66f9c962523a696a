from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from shared.models import Slide

EventType = Literal[
    "generate_outline",
    "generate_slide_content",
    "critique_slide",
    "refine_slide",
    "move_to_next_slide",
    "done",
    "error",
]


class PipelineEvent(BaseModel):
    """One state transition of a pipeline run, free of any wire format."""

    type: EventType
    outline: List[str] = Field(default_factory=list)
    slides: List[Slide] = Field(default_factory=list)
    current_slide: int = 0
    message: Optional[str] = None  # for error

    def payload(self) -> Dict[str, Any]:
        """Snapshot sent to clients under the event name."""
        if self.type == "generate_outline":
            return {"outline": list(self.outline)}
        if self.type == "error":
            return {"message": self.message or "Unknown error"}
        return {
            "slides": [s.to_wire() for s in self.slides],
            "current_slide": self.current_slide,
        }
