from enum import Enum

import google.generativeai as genai


class TaskKind(str, Enum):
    DESCRIPTION = "description"
    QUIZ = "quiz"
    NAME_EXTRACTION = "name-extraction"
    GRADE_EXTRACTION = "grade-extraction"


CONTENT_KINDS = (TaskKind.DESCRIPTION, TaskKind.QUIZ)
EXTRACTION_KINDS = (TaskKind.NAME_EXTRACTION, TaskKind.GRADE_EXTRACTION)

DESCRIPTION_PROMPT = (
    'Create a short, engaging description for a physical education session about "{topic}". '
    'Include exactly 3 key learning objectives. Keep it under 150 words.'
)

QUIZ_PROMPT = (
    'Create exactly 3 multiple choice exam questions for a PE class session about "{topic}". '
    'Include the correct answer for each question. Format as simple text.'
)

NAME_EXTRACTION_PROMPT = (
    "Extract the list of student names from this image. "
    "Return ONLY the names, one per line. "
    "Do not include numbers, grades, dates, or headers. Just the First and Last names."
)

GRADE_EXTRACTION_PROMPT = """
Analyze this image of a grade sheet.
Extract the student names and their scores for Term 1, Term 2, and Term 3.
For each student return ONLY these fields:
- "name": the student's full name
- "note1": the Term 1 score
- "note2": the Term 2 score
- "note3": the Term 3 score
If a note is missing or unreadable, use 0.
Extract as accurately as possible.
"""

ROSTER_HINT = (
    "\nCRITICAL ROSTER MAPPING: The students in this class are exactly: {}. "
    "You MUST map the extracted handwritten/typed names to exactly match a name from this list "
    "whenever visually possible. Do not invent alternate spellings if a direct visual resemblance "
    "exists in this roster."
)

# Structured-output constraint for grade extraction: [{name, note1, note2, note3}]
GRADE_RECORD_SCHEMA = genai.protos.Schema(
    type=genai.protos.Type.ARRAY,
    items=genai.protos.Schema(
        type=genai.protos.Type.OBJECT,
        properties={
            "name": genai.protos.Schema(type=genai.protos.Type.STRING),
            "note1": genai.protos.Schema(type=genai.protos.Type.NUMBER),
            "note2": genai.protos.Schema(type=genai.protos.Type.NUMBER),
            "note3": genai.protos.Schema(type=genai.protos.Type.NUMBER),
        },
        required=["name"],
    ),
)


def build_prompt(topic, kind, known_names=None):
    """Build the instruction text for one Gemini task.

    ``topic`` is required for content kinds and ignored for extraction kinds.
    ``known_names`` adds the roster-mapping hint to extraction prompts so the
    model reuses the spelling already on file.
    """
    try:
        kind = TaskKind(kind)
    except ValueError as e:
        raise ValueError("Unsupported prompt kind: {!r}".format(kind)) from e

    if kind in CONTENT_KINDS:
        topic = (topic or "").strip()
        if not topic:
            raise ValueError("A topic is required for {} prompts".format(kind.value))
        template = DESCRIPTION_PROMPT if kind is TaskKind.DESCRIPTION else QUIZ_PROMPT
        return template.format(topic=topic)

    prompt = NAME_EXTRACTION_PROMPT if kind is TaskKind.NAME_EXTRACTION else GRADE_EXTRACTION_PROMPT.strip()
    roster = [n for n in (known_names or []) if n and n.strip()]
    if roster:
        prompt += ROSTER_HINT.format(roster)
    return prompt
