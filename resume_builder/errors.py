class ResumeBuilderError(Exception):
    """Base class for errors the UI shows to the user as-is."""


class InputError(ResumeBuilderError, ValueError):
    pass


class ApiKeyMissingError(ResumeBuilderError):
    def __init__(self, message: str = "API Key is not configured. AI features will be disabled. Please enter your API Key."):
        super().__init__(message)


class AIServiceError(ResumeBuilderError):
    pass


class ProfileNotFoundError(ResumeBuilderError, KeyError):
    def __str__(self):
        # KeyError would otherwise repr() the message
        return str(self.args[0]) if self.args else ""


class LastProfileError(ResumeBuilderError):
    pass


class UnsupportedFileError(ResumeBuilderError):
    pass


class FileParseError(ResumeBuilderError):
    pass


API_KEY_ERROR = "API Key error. Please ensure your API_KEY is valid."
API_KEY_NOT_SELECTED = "API key invalid or not selected. Please re-select your API key."


def describe_ai_failure(prefix: str, exc: BaseException) -> str:
    """Turn a provider/parse exception into the message shown to the user."""
    message = str(exc) or exc.__class__.__name__
    lowered = message.lower()
    if "api_key" in lowered or "api key" in lowered or "authentication" in lowered:
        return API_KEY_ERROR
    if "Requested entity was not found." in message:
        return API_KEY_NOT_SELECTED
    return f"{prefix} Details: {message}"
