import pytest

from prompts import GRADE_RECORD_SCHEMA, TaskKind, build_prompt


def test_description_prompt_asks_for_three_objectives_and_length_limit():
    prompt = build_prompt("Basketball dribbling", "description")
    assert '"Basketball dribbling"' in prompt
    assert "3 key learning objectives" in prompt
    assert "under 150 words" in prompt


def test_quiz_prompt_asks_for_three_questions_with_answers():
    prompt = build_prompt("Volleyball", TaskKind.QUIZ)
    assert "3 multiple choice" in prompt
    assert "correct answer" in prompt


def test_prompts_are_deterministic():
    assert build_prompt("Relay", "quiz") == build_prompt("Relay", "quiz")


def test_name_extraction_prompt_requests_one_name_per_line():
    prompt = build_prompt(None, "name-extraction")
    assert "ONLY the names, one per line" in prompt
    assert "ROSTER" not in prompt


def test_grade_extraction_prompt_requests_zero_for_missing():
    prompt = build_prompt(None, "grade-extraction")
    for field in ("name", "note1", "note2", "note3"):
        assert '"{}"'.format(field) in prompt
    assert "use 0" in prompt


def test_roster_hint_is_appended_to_extraction_prompts():
    prompt = build_prompt(None, "grade-extraction", known_names=["Alice Smith", " "])
    assert "CRITICAL ROSTER MAPPING" in prompt
    assert "'Alice Smith'" in prompt


def test_unknown_kind_is_rejected():
    with pytest.raises(ValueError):
        build_prompt("Relay", "essay")


def test_content_prompt_requires_topic():
    with pytest.raises(ValueError):
        build_prompt("   ", "description")


def test_grade_schema_describes_record_fields():
    fields = set(GRADE_RECORD_SCHEMA.items.properties.keys())
    assert fields == {"name", "note1", "note2", "note3"}
