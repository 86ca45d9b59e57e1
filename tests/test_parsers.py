import math

import pytest

from errors import MalformedResponse
from parsers import parse_grades, parse_names, strip_code_fence, to_grade_records, to_number
from records import ExtractedGradeRecord


def test_parse_names_drops_blank_lines():
    assert parse_names("Alice Smith\n\nBob Jones\n  \n") == ["Alice Smith", "Bob Jones"]


def test_parse_names_keeps_order_and_drops_duplicates():
    text = "  Zoe Adams \r\nAlice Smith\nZoe Adams\n```\n"
    assert parse_names(text) == ["Zoe Adams", "Alice Smith"]


@pytest.mark.parametrize("text", ["", None, "\n\n   \n"])
def test_parse_names_never_fails(text):
    assert parse_names(text) == []


def test_parse_grades_strips_json_fence():
    text = '```json\n[{"name":"A","note1":1,"note2":2,"note3":3}]\n```'
    assert parse_grades(text) == [ExtractedGradeRecord(name="A", note1=1, note2=2, note3=3)]


def test_parse_grades_invalid_json_raises():
    with pytest.raises(MalformedResponse):
        parse_grades('```json\n[{"name": "A", "note1": 1,\n```')


def test_parse_grades_empty_output_is_no_grades():
    assert parse_grades("") == []
    assert parse_grades("```json\n```") == []


def test_parse_grades_coerces_missing_and_bad_scores():
    records = parse_grades('[{"name": "  Bob Jones ", "note1": "14.5", "note2": "abs"}]')
    assert records == [ExtractedGradeRecord(name="Bob Jones", note1=14.5, note2=0, note3=0)]


def test_parse_grades_drops_rows_without_a_name():
    text = '[{"note1": 3}, {"name": "   ", "note1": 4}, {"name": "Ann", "note1": 5}]'
    assert [r.name for r in parse_grades(text)] == ["Ann"]


def test_parse_grades_accepts_single_object():
    assert parse_grades('{"name": "Ann", "note1": 9, "note2": 8, "note3": 7}')[0].note3 == 7


@pytest.mark.parametrize("text", ['"just a string"', "42", '["Ann", "Bob"]'])
def test_parse_grades_rejects_wrong_shape(text):
    with pytest.raises(MalformedResponse):
        parse_grades(text)


def test_to_grade_records_from_decoded_rows():
    records = to_grade_records([{"name": "Ann", "note1": 1, "note2": 2, "note3": 3}])
    assert records[0].to_dict() == {"name": "Ann", "note1": 1.0, "note2": 2.0, "note3": 3.0}


def test_strip_code_fence_leaves_plain_json_alone():
    assert strip_code_fence('  [1, 2]  ') == "[1, 2]"
    assert strip_code_fence('```\n[1]\n```') == "[1]"


@pytest.mark.parametrize("value, expected", [
    (12, 12.0),
    ("15", 15.0),
    (" 7.5 ", 7.5),
    (None, 0.0),
    ("", 0.0),
    ("n/a", 0.0),
    (True, 0.0),
    (float("nan"), 0.0),
    (float("inf"), 0.0),
    ([1], 0.0),
])
def test_to_number(value, expected):
    result = to_number(value)
    assert not math.isnan(result)
    assert result == expected
