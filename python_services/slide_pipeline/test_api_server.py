"""Tests for the HTTP surface of the slide pipeline service."""

import json

import pytest
from fastapi.testclient import TestClient

from conftest import ScriptedTextGenerator, StaticImageGenerator, critique_reply, slide_reply
from shared.config import get_settings
from shared.llm_client import get_text_generator
from shared.models import FeedbackRequest, Slide
from slide_pipeline.api_server import app, get_feedback_image_generator, get_image_generator_factory, wire_slides

OUTLINE = '["Intro", "Basics", "Uses", "Limits", "Summary"]'


def parse_sse(body: str):
    frames = [chunk for chunk in body.split("\n\n") if chunk.strip()]
    assert all(chunk.startswith("data: ") for chunk in frames)
    return [json.loads(chunk[len("data: "):]) for chunk in frames]


@pytest.fixture
def text_generator():
    return ScriptedTextGenerator(
        replies={"generate_outline": [OUTLINE]},
        defaults={
            "generate_slide_content": lambda v: slide_reply(v["slide_title"], ["One", "Two"]),
            "critique_slide": critique_reply(False),
            "apply_feedback": lambda v: slide_reply(v["title"], ["Simpler"]),
        },
    )


@pytest.fixture
def client(text_generator, settings):
    images = StaticImageGenerator("https://img.example/slide.png")
    app.dependency_overrides[get_text_generator] = lambda: text_generator
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_image_generator_factory] = lambda: (lambda provider, _settings: images)
    app.dependency_overrides[get_feedback_image_generator] = lambda: images
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["providers"] == {"openai": False, "huggingface": False, "gemini": False}


def test_generate_streams_events(client):
    response = client.post("/api/generate", json={"topic": "Quantum Computing", "language": "en"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["cache-control"] == "no-cache"

    frames = parse_sse(response.text)
    names = [next(iter(frame)) for frame in frames]
    assert names[0] == "generate_outline"
    assert names.count("generate_slide_content") == 5
    assert "done" not in names
    assert "usage_report" in frames[-1]
    assert frames[-1]["usage_summary"]["totalImages"] == 5

    last_slides = [f for f in frames if "critique_slide" in f][-1]["critique_slide"]["slides"]
    assert len(last_slides) == 5
    assert last_slides[0]["imageUrl"] == "https://img.example/slide.png"


def test_generate_requires_topic(client):
    response = client.post("/api/generate", json={"template": {"name": "modern"}})
    assert response.status_code == 400
    assert response.json() == {"error": "Topic is required"}


def test_generate_rejects_malformed_body(client):
    response = client.post("/api/generate", json={"topic": ["not", "a", "string"]})
    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid request")


def test_feedback_single_slide(client):
    slides = [
        {"title": "Intro", "content": "- One", "imageUrl": "https://img.example/1.png"},
        {"title": "Basics", "content": "- Two", "imageUrl": "https://img.example/2.png"},
    ]
    response = client.post("/api/feedback", json={"slides": slides, "feedback": "Simplify", "slideIndex": 1})

    assert response.status_code == 200
    revised = response.json()["slides"]
    assert revised[0] == slides[0]
    assert revised[1]["content"] == "- Simpler"
    assert revised[1]["critique"] == 'Applied feedback: "Simplify"'
    assert revised[1]["revision_needed"] is False


def test_feedback_requires_slides_and_feedback(client):
    response = client.post("/api/feedback", json={"slides": [{"title": "Intro", "content": "- One"}]})
    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields: slides and feedback"}


def test_feedback_echoes_untouched_slides_verbatim(client):
    untouched = {
        "title": "Intro",
        "content": "- One",
        "imageUrl": None,
        "critique": None,
        "revisionNeeded": True,
        "notes": {"speaker": "Open with a question"},
    }
    target = {"title": "Basics", "content": "- Two", "imageUrl": "https://img.example/2.png"}

    response = client.post(
        "/api/feedback",
        json={"slides": [untouched, target], "feedback": "Simplify", "slideIndex": 1},
    )

    assert response.status_code == 200
    revised = response.json()["slides"]
    assert revised[0] == untouched
    assert list(revised[0]) == list(untouched)
    assert revised[1]["content"] == "- Simpler"


def test_wire_slides_keeps_client_keys():
    body = {
        "slides": [
            {"title": "A", "content": "- a", "imageUrl": None, "revisionNeeded": True},
            {"title": "B", "content": "- b"},
        ],
        "feedback": "Shorter",
        "slideIndex": 1,
    }
    req = FeedbackRequest.model_validate(body)
    replacement = Slide(title="B", content="- b, shorter", critique='Applied feedback: "Shorter"',
                        revision_needed=False)

    wire = wire_slides(body["slides"], req.slides, [req.slides[0], replacement])

    assert wire[0] == {"title": "A", "content": "- a", "imageUrl": None, "revisionNeeded": True}
    assert wire[1] == {
        "title": "B",
        "content": "- b, shorter",
        "critique": 'Applied feedback: "Shorter"',
        "revision_needed": False,
    }
