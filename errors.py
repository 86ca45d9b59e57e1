class GradebookError(Exception):
    """Base class for failures the API reports back to the caller."""
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ServiceUnavailable(GradebookError):
    """No usable Gemini credential is configured."""
    status_code = 503


class GenerationFailed(GradebookError):
    """The provider call failed (transport, quota, blocked request...)."""
    status_code = 502


class MalformedResponse(GradebookError):
    """The model answered but the structured output could not be parsed."""
    status_code = 502


class NotFound(GradebookError):
    status_code = 404


class SaveFailed(GradebookError):
    status_code = 500


class InvalidStudent(SaveFailed):
    status_code = 400
