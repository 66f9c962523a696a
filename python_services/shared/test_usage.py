"""Tests for per-request usage accounting."""

import re

from shared.usage import UsageTracker, estimate_token_count, generate_session_id, image_cost, token_cost


def test_session_id_format():
    assert re.fullmatch(r"session_\d+_[a-z0-9]{9}", generate_session_id())


def test_estimate_token_count_rounds_up():
    assert estimate_token_count("") == 0
    assert estimate_token_count("abcd") == 1
    assert estimate_token_count("abcde") == 2


def test_costs_fall_back_to_defaults():
    assert token_cost("gpt-4o", 1000, 1000) == 0.005 + 0.015
    assert token_cost("unknown-model", 1000, 0) == 0.001
    assert image_cost("huggingface", "black-forest-labs/FLUX.1-schnell", 2) == 0.006
    assert image_cost("gemini", "other", 1) == 0.004


def test_totals_and_summary():
    usage = UsageTracker(session_id="session_1")
    usage.track_tokens("gpt-4o", "generate_outline", 100, 50)
    usage.track_tokens("gpt-4o", "critique_slide", 20, 10, total_tokens=31)
    usage.track_image("huggingface", "black-forest-labs/FLUX.1-schnell", "generate_slide_content", success=False)

    assert usage.total_input_tokens == 120
    assert usage.total_output_tokens == 60
    assert usage.total_tokens == 181
    assert usage.total_images == 1

    summary = usage.summary()
    assert summary["id"] == "session_1"
    assert summary["totalTokens"] == 181
    assert summary["totalImages"] == 1
    assert len(summary["tokenUsages"]) == 2
    assert summary["imageUsages"][0]["success"] is False
    assert summary["estimatedCost"] > 0


def test_report_lists_operations_and_cost():
    usage = UsageTracker(session_id="session_2")
    usage.track_tokens("gpt-4o", "generate_outline", 10, 10)
    usage.track_tokens("gpt-4o", "generate_outline", 10, 10)
    usage.track_image("gemini", "imagegeneration", "generate_slide_content", success=True)

    report = usage.report()
    assert "session_2" in report
    assert "generate_outline: 2 calls, 40 tokens" in report
    assert "gemini-generate_slide_content: 1/1 successful" in report
    assert report.splitlines()[-1].startswith("💰 Total Estimated Cost: $")


def test_trackers_do_not_share_state():
    first, second = UsageTracker(), UsageTracker()
    first.track_tokens("gpt-4o", "critique_slide", 1, 1)
    assert second.token_usages == []
    assert first.session_id != second.session_id
