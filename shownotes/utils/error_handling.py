"""
Centralized error handling for the application.

Every failure that reaches a user is reduced to a short message. Exceptions
raised by the service layer derive from ShowNotesError and carry the HTTP
status the API should answer with.
"""

import traceback
from typing import Optional

import requests

from shownotes.utils.logger import logging


RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again later."
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again."
INVALID_FORMAT_MESSAGE = "Invalid format. Please check your input."
SERVICE_UNAVAILABLE_MESSAGE = "Service temporarily unavailable. Please try again later."


class ShowNotesError(Exception):
    """Base class for errors with a user-facing message."""

    status_code = 500
    default_message = SERVICE_UNAVAILABLE_MESSAGE

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidYouTubeURLError(ShowNotesError):
    status_code = 400
    default_message = "Invalid YouTube URL format. Please provide a valid YouTube video URL."


class DuplicateEpisodeError(ShowNotesError):
    status_code = 409
    default_message = "This video has already been imported."


class InvalidFormatError(ShowNotesError):
    status_code = 400
    default_message = INVALID_FORMAT_MESSAGE


class EpisodeNotFoundError(ShowNotesError):
    status_code = 404
    default_message = "Episode not found."


class VideoUnavailableError(ShowNotesError):
    status_code = 404
    default_message = "Video is unavailable or private"


class CaptionsUnavailableError(ShowNotesError):
    status_code = 404
    default_message = (
        "This video does not have captions available. "
        "Please try a video with captions enabled."
    )


class UsageLimitExceededError(ShowNotesError):
    status_code = 402
    default_message = "You've reached your monthly limit. Upgrade to Pro for unlimited processing."


class RateLimitError(ShowNotesError):
    status_code = 429
    default_message = RATE_LIMIT_MESSAGE


class NetworkError(ShowNotesError):
    status_code = 502
    default_message = NETWORK_ERROR_MESSAGE


class ServiceUnavailableError(ShowNotesError):
    status_code = 503
    default_message = SERVICE_UNAVAILABLE_MESSAGE


class YouTubeAPIError(ShowNotesError):
    """The YouTube Data API answered with an error or could not be reached."""

    status_code = 502
    default_message = "YouTube API error"

    def __init__(self, message: Optional[str] = None, status: Optional[int] = None, transient: bool = False):
        super().__init__(message)
        self.status = status
        self.transient = transient


class YouTubeProcessingError(ShowNotesError):
    """Neither metadata nor captions could be retrieved for a video."""

    status_code = 502


def user_facing_message(error: Exception) -> str:
    """
    Map any exception to a message that is safe to show to a user.

    Args:
        error: The exception that occurred

    Returns:
        A short user-facing message
    """
    if isinstance(error, ShowNotesError):
        return error.message

    if isinstance(error, requests.exceptions.Timeout):
        return NETWORK_ERROR_MESSAGE
    if isinstance(error, requests.exceptions.ConnectionError):
        return NETWORK_ERROR_MESSAGE

    text = str(error).lower()
    if "429" in text or "rate limit" in text:
        return RATE_LIMIT_MESSAGE
    if "network" in text or "connection" in text or "timed out" in text:
        return NETWORK_ERROR_MESSAGE
    if "invalid" in text or "json" in text or "format" in text:
        return INVALID_FORMAT_MESSAGE
    return SERVICE_UNAVAILABLE_MESSAGE


def log_exception(context: str, error: Exception) -> None:
    """Log an error with its traceback."""
    logging.error(f"{context}: {str(error)}")
    logging.error(traceback.format_exc())
