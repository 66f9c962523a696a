import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from shared import __version__
from shared.config import Settings, get_settings
from shared.exceptions import ProtocolError
from shared.image_client import HuggingFaceImageGenerator, ImageGenerator, get_image_generator
from shared.llm_client import TextGenerator, get_text_generator
from shared.models import ErrorResponse, FeedbackRequest, FeedbackResponse, GenerateRequest, HealthCheck, Slide
from shared.usage import UsageTracker

from .feedback import FeedbackReviser
from .graph import SlidePipeline
from .streaming import SSE_HEADERS, stream_frames

logging.basicConfig(
    level=getattr(logging, get_settings().log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Slide Pipeline Service",
    description="Streams AI-generated presentations slide by slide and revises them from feedback",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- DEPENDENCIES ---

def get_image_generator_factory() -> Callable[[Optional[str], Settings], ImageGenerator]:
    return get_image_generator


def get_feedback_image_generator(settings: Settings = Depends(get_settings)) -> ImageGenerator:
    return HuggingFaceImageGenerator(settings)


def wire_slides(raw_slides: List[Dict[str, Any]], originals: List[Slide], revised: List[Slide]) -> List[Dict[str, Any]]:
    """Serialize the revised deck, echoing untouched slides exactly as the client sent them."""
    return [
        raw if new is old else new.to_wire()
        for raw, old, new in zip(raw_slides, originals, revised)
    ]


# --- ERROR HANDLERS ---

@app.exception_handler(ProtocolError)
async def protocol_error_handler(request: Request, exc: ProtocolError):
    logger.warning(f"Rejected {request.url.path}: {exc.message}")
    return JSONResponse(status_code=400, content=ErrorResponse(error=exc.message).model_dump())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    logger.warning(f"Rejected {request.url.path}: {detail}")
    return JSONResponse(status_code=400, content=ErrorResponse(error=f"Invalid request: {detail}").model_dump())


# --- ROUTES ---

@app.get("/health")
async def health(settings: Settings = Depends(get_settings)):
    return HealthCheck(
        service=settings.service_name,
        timestamp=datetime.utcnow(),
        version=__version__,
        providers={
            "openai": settings.openai_configured,
            "huggingface": settings.huggingface_configured,
            "gemini": settings.gemini_configured,
        },
    )


@app.post("/api/generate")
async def generate_presentation(
    req: GenerateRequest,
    request: Request,
    text_generator: TextGenerator = Depends(get_text_generator),
    image_generator_factory=Depends(get_image_generator_factory),
    settings: Settings = Depends(get_settings),
):
    """Stream the presentation as Server-Sent Events.

    Frames, in order:
      data: {"generate_outline": {"outline": [...]}}
      data: {"generate_slide_content" | "critique_slide" | "refine_slide" | "move_to_next_slide":
             {"slides": [...], "current_slide": N}}
      data: {"usage_report": str, "session_id": str, "usage_summary": {...}}
    or a terminal data: {"error": {"message": str}}
    """
    if not req.topic or not req.topic.strip():
        raise ProtocolError("Topic is required")

    usage = UsageTracker()
    logger.info(f"📊 Tracking session: {usage.session_id}")
    pipeline = SlidePipeline(text_generator, image_generator_factory, settings, usage)
    return StreamingResponse(
        stream_frames(pipeline.stream(req), usage, request.is_disconnected),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@app.post("/api/feedback")
async def apply_feedback(
    req: FeedbackRequest,
    request: Request,
    text_generator: TextGenerator = Depends(get_text_generator),
    image_generator: ImageGenerator = Depends(get_feedback_image_generator),
    settings: Settings = Depends(get_settings),
):
    """Revise one slide (``slideIndex``) or all slides from free-text feedback."""
    if req.slides is None or not req.feedback or not req.feedback.strip():
        raise ProtocolError("Missing required fields: slides and feedback")

    reviser = FeedbackReviser(text_generator, image_generator, settings, UsageTracker())
    try:
        slides = await reviser.apply_feedback(req.slides, req.feedback, req.slide_index, req.template)
    except Exception:  # noqa: BLE001
        logger.exception("Error processing feedback")
        return JSONResponse(status_code=500, content=ErrorResponse(error="Failed to process feedback").model_dump())
    raw_slides = (await request.json())["slides"]
    return FeedbackResponse(slides=wire_slides(raw_slides, req.slides, slides))
