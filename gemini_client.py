import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import google.generativeai as genai

from config import clean_api_key
from errors import GenerationFailed, ServiceUnavailable
from imaging import DEFAULT_MIME_TYPE, encode_image

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
BACKOFF_TIMES = [3, 5, 8, 12, 15]


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    attachment: Optional[bytes] = None
    mime_type: str = DEFAULT_MIME_TYPE
    schema: Any = None


RATE_LIMIT_MARKERS = (
    '429',
    'quota',
    'rate limit',
    'rate-limit',
    'too many requests',
    'resource exhausted',
    'resource has been exhausted',
)


def is_rate_limited(err):
    err_str = str(err).lower()
    return any(marker in err_str for marker in RATE_LIMIT_MARKERS)


class GeminiClient:
    """Thin wrapper around ``genai.GenerativeModel.generate_content``.

    The credential is handed in at construction; a client built without one
    refuses every call with ``ServiceUnavailable`` and never touches the
    network. ``max_attempts`` above 1 retries rate-limit errors only.
    """

    def __init__(self, api_key=None, model_name=DEFAULT_MODEL, max_attempts=1, sleep=time.sleep):
        self.api_key = clean_api_key(api_key)
        self.model_name = model_name or DEFAULT_MODEL
        self.max_attempts = max(1, int(max_attempts or 1))
        self._sleep = sleep
        if self.api_key:
            genai.configure(api_key=self.api_key)
        else:
            logger.warning("Gemini API key is missing. AI features will report the service as unavailable.")

    @classmethod
    def from_config(cls, config):
        return cls(
            api_key=config.get("GEMINI_API_KEY"),
            model_name=config.get("GEMINI_MODEL", DEFAULT_MODEL),
            max_attempts=config.get("GEMINI_MAX_ATTEMPTS", 1),
        )

    @property
    def available(self):
        return bool(self.api_key)

    def _contents(self, request):
        if request.attachment is None:
            return request.prompt
        return [
            {"mime_type": request.mime_type or DEFAULT_MIME_TYPE, "data": encode_image(request.attachment)},
            request.prompt,
        ]

    def generate(self, request):
        """Send one request and return the raw text (possibly empty)."""
        if not self.available:
            raise ServiceUnavailable("AI Service Unavailable (Missing or Invalid API Key)")

        generation_config = None
        if request.schema is not None:
            generation_config = {
                "response_mime_type": "application/json",
                "response_schema": request.schema,
            }

        contents = self._contents(request)
        model = genai.GenerativeModel(self.model_name)
        response = None
        for attempt in range(self.max_attempts):
            try:
                response = model.generate_content(contents, generation_config=generation_config)
                break
            except Exception as model_err:
                if is_rate_limited(model_err) and attempt < self.max_attempts - 1:
                    wait = BACKOFF_TIMES[min(attempt, len(BACKOFF_TIMES) - 1)]
                    logger.warning("Rate limit hit on attempt %d, retrying in %ss", attempt + 1, wait)
                    self._sleep(wait)
                    continue
                logger.error("Gemini API error: %s", model_err)
                raise GenerationFailed("Gemini request failed: {}".format(model_err)) from model_err

        try:
            return response.text or ""
        except ValueError as e:
            # .text raises when the candidate carries no text parts (e.g. blocked or empty)
            logger.warning("Gemini returned no text content: %s", e)
            return ""
