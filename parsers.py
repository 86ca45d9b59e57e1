import json
import logging
import math

from errors import MalformedResponse
from records import ExtractedGradeRecord

logger = logging.getLogger(__name__)


def to_number(value):
    """Coerce a score to float. Anything that is not a finite number becomes 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def parse_names(text):
    """Split a newline-delimited name list. Never raises; worst case is []."""
    names = []
    seen = set()
    for line in (text or "").splitlines():
        name = line.strip()
        if not name or name.startswith("```"):
            continue
        if name in seen:
            continue
        seen.add(name)
        names.append(name)
    return names


def strip_code_fence(text):
    text = (text or "").strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_grades(text):
    """Parse the grade-extraction JSON into ExtractedGradeRecord objects.

    Empty output means "no grades on the sheet" and yields []. Output that is
    not usable JSON raises MalformedResponse so the caller can tell the two
    apart. Rows without a name are dropped.
    """
    cleaned = strip_code_fence(text)
    if not cleaned:
        return []

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error("Error parsing grade JSON from model: %s", e)
        raise MalformedResponse("Failed to extract grades from image: response was not valid JSON.") from e

    return to_grade_records(data)


def to_grade_records(data):
    """Validate decoded rows into ExtractedGradeRecord objects (see parse_grades)."""
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise MalformedResponse("Failed to extract grades from image: expected a JSON array of records.")

    records = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise MalformedResponse("Failed to extract grades from image: row {} is not an object.".format(i))
        name = item.get("name")
        name = str(name).strip() if name is not None else ""
        if not name:
            logger.warning("Dropping grade row %d with no student name: %r", i, item)
            continue
        records.append(ExtractedGradeRecord(
            name=name,
            note1=to_number(item.get("note1")),
            note2=to_number(item.get("note2")),
            note3=to_number(item.get("note3")),
        ))
    return records
