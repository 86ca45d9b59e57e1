import pytest

from errors import GenerationFailed, MalformedResponse, ServiceUnavailable
from extraction import (
    ExtractionTasks,
    NO_CONTENT_PLACEHOLDER,
    extract_grades,
    extract_student_names,
    generate_session_content,
)
from prompts import GRADE_RECORD_SCHEMA
from records import ExtractedGradeRecord


def test_generate_description(gateway):
    gateway.reply = "  Learn to dribble.  "
    assert generate_session_content(gateway, "Dribbling", "description") == "Learn to dribble."
    request = gateway.requests[0]
    assert "Dribbling" in request.prompt
    assert request.attachment is None
    assert request.schema is None


def test_generate_empty_reply_uses_placeholder(gateway):
    assert generate_session_content(gateway, "Relay", "quiz") == NO_CONTENT_PLACEHOLDER


def test_generate_rejects_extraction_kinds(gateway):
    with pytest.raises(ValueError):
        generate_session_content(gateway, "Relay", "name-extraction")


@pytest.mark.parametrize("error", [ServiceUnavailable("no key"), GenerationFailed("boom")])
def test_generate_surfaces_gateway_failures(gateway, error):
    gateway.error = error
    with pytest.raises(type(error)):
        generate_session_content(gateway, "Relay", "quiz")


def test_extract_names_sends_image_and_parses_lines(gateway):
    gateway.reply = "Alice Smith\n\nBob Jones\n"
    names = extract_student_names(gateway, b"img", "image/png", known_names=["Alice Smith"])
    assert names == ["Alice Smith", "Bob Jones"]
    request = gateway.requests[0]
    assert request.attachment == b"img"
    assert request.mime_type == "image/png"
    assert "CRITICAL ROSTER MAPPING" in request.prompt


def test_extract_names_missing_key_propagates(gateway):
    gateway.error = ServiceUnavailable("no key")
    with pytest.raises(ServiceUnavailable):
        extract_student_names(gateway, b"img")


def test_extract_grades_uses_schema(gateway):
    gateway.reply = '```json\n[{"name": "A", "note1": 1, "note2": 2, "note3": 3}]\n```'
    assert extract_grades(gateway, b"img") == [ExtractedGradeRecord("A", 1, 2, 3)]
    assert gateway.requests[0].schema is GRADE_RECORD_SCHEMA


def test_extract_grades_malformed_output_is_surfaced(gateway):
    gateway.reply = "Sorry, I could not read this sheet."
    with pytest.raises(MalformedResponse):
        extract_grades(gateway, b"img")


def test_tasks_return_futures(gateway):
    gateway.reply = "Alice Smith\nBob Jones"
    with ExtractionTasks(gateway, max_workers=2) as tasks:
        names_future = tasks.submit_names(b"img")
        content_future = tasks.submit_content("Relay", "quiz")
        assert names_future.result(timeout=5) == ["Alice Smith", "Bob Jones"]
        assert content_future.result(timeout=5) == "Alice Smith\nBob Jones"


def test_task_failures_come_back_through_the_future(gateway):
    gateway.reply = "not json"
    with ExtractionTasks(gateway) as tasks:
        future = tasks.submit_grades(b"img")
        with pytest.raises(MalformedResponse):
            future.result(timeout=5)
