import logging
from concurrent.futures import ThreadPoolExecutor

from gemini_client import GenerationRequest
from imaging import DEFAULT_MIME_TYPE
from parsers import parse_grades, parse_names
from prompts import GRADE_RECORD_SCHEMA, TaskKind, build_prompt

logger = logging.getLogger(__name__)

NO_CONTENT_PLACEHOLDER = "No content generated."


def generate_session_content(gateway, topic, kind):
    """Session description or quiz text for ``topic``.

    ServiceUnavailable and GenerationFailed propagate to the caller.
    """
    kind = TaskKind(kind)
    if kind not in (TaskKind.DESCRIPTION, TaskKind.QUIZ):
        raise ValueError("Content kind must be 'description' or 'quiz', got {!r}".format(kind.value))
    prompt = build_prompt(topic, kind)
    text = gateway.generate(GenerationRequest(prompt=prompt))
    return text.strip() or NO_CONTENT_PLACEHOLDER


def extract_student_names(gateway, image, mime_type=DEFAULT_MIME_TYPE, known_names=None):
    prompt = build_prompt(None, TaskKind.NAME_EXTRACTION, known_names=known_names)
    text = gateway.generate(GenerationRequest(prompt=prompt, attachment=image, mime_type=mime_type))
    names = parse_names(text)
    logger.info("Extracted %d names from image", len(names))
    return names


def extract_grades(gateway, image, mime_type=DEFAULT_MIME_TYPE, known_names=None):
    """Grade records read off a grade-sheet image. MalformedResponse propagates."""
    prompt = build_prompt(None, TaskKind.GRADE_EXTRACTION, known_names=known_names)
    text = gateway.generate(GenerationRequest(
        prompt=prompt,
        attachment=image,
        mime_type=mime_type,
        schema=GRADE_RECORD_SCHEMA,
    ))
    records = parse_grades(text)
    logger.info("Extracted %d grade records from image", len(records))
    return records


class ExtractionTasks:
    """Runs the extraction calls in a worker pool and hands back futures.

    Callers own busy flags, timeouts, and error display; a submitted call
    always runs to completion or failure.
    """

    def __init__(self, gateway, max_workers=3):
        self.gateway = gateway
        self._executor = ThreadPoolExecutor(max_workers=max_workers)

    def submit_content(self, topic, kind):
        return self._executor.submit(generate_session_content, self.gateway, topic, kind)

    def submit_names(self, image, mime_type=DEFAULT_MIME_TYPE, known_names=None):
        return self._executor.submit(extract_student_names, self.gateway, image, mime_type, known_names)

    def submit_grades(self, image, mime_type=DEFAULT_MIME_TYPE, known_names=None):
        return self._executor.submit(extract_grades, self.gateway, image, mime_type, known_names)

    def shutdown(self, wait=True):
        self._executor.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.shutdown()
        return False
