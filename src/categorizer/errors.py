"""
Errors raised while categorizing a file.

Every error is terminal for the current attempt and carries a message that
is safe to show to the user as-is.
"""


class CategorizationError(Exception):
    """Base class for all categorization failures."""


class EmptyAllowListError(CategorizationError):
    """The project or tag list is empty, so no request is made."""

    def __init__(
        self,
        message: str = "Please define at least one project and one tag before categorizing.",
    ):
        super().__init__(message)


class UnsupportedMediaTypeError(CategorizationError):
    """The file is neither an image nor a text file."""

    def __init__(self, media_type: str, message: str | None = None):
        self.media_type = media_type
        super().__init__(message or f"Unsupported file type: {media_type or 'unknown'}")


class CategorizationFailedError(CategorizationError):
    """The model call failed or returned something we could not use."""

    def __init__(
        self,
        message: str = (
            "Failed to get categorization from the AI model. "
            "Please check your API key and network connection."
        ),
    ):
        super().__init__(message)
