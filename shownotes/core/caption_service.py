"""
Module for fetching and normalizing YouTube caption tracks.
"""

import html
import math
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

import requests
from youtube_transcript_api import (
    YouTubeTranscriptApi,
    CouldNotRetrieveTranscript,
    NoTranscriptFound,
    NotTranslatable,
    TranscriptsDisabled,
    TranslationLanguageNotAvailable,
    VideoUnavailable,
)

from shownotes.config import config
from shownotes.core.youtube_helpers import count_words, format_timestamp
from shownotes.models.schemas import CaptionResult, CaptionSegment
from shownotes.utils.error_handling import (
    CaptionsUnavailableError,
    NetworkError,
    ServiceUnavailableError,
    VideoUnavailableError,
)
from shownotes.utils.logger import logging

DEFAULT_SEGMENT_DURATION = 5.0

_TAG_PATTERN = re.compile(r"<[^>]*>")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def clean_caption_text(text: str) -> str:
    """Unescape entities, strip markup and collapse whitespace."""
    text = html.unescape(text or "")
    text = _TAG_PATTERN.sub("", text)
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def normalize_segments(raw_segments: Iterable[Dict[str, Any]]) -> List[CaptionSegment]:
    """
    Convert raw caption cues into CaptionSegments.

    Args:
        raw_segments: Dicts with "text", "start" (seconds) and "duration" (seconds)

    Returns:
        Segments with offsets in milliseconds. Cues with no text are dropped.
    """
    segments = []
    for raw in raw_segments:
        text = clean_caption_text(raw.get("text", ""))
        if not text:
            continue
        try:
            start = float(raw.get("start") or 0)
        except (TypeError, ValueError):
            start = 0.0
        try:
            duration = float(raw.get("duration") or 0)
        except (TypeError, ValueError):
            duration = 0.0
        segments.append(CaptionSegment(
            text=text,
            offset=int(math.floor(start * 1000)),
            duration=duration or DEFAULT_SEGMENT_DURATION,
        ))
    return segments


def estimate_duration_from_captions(segments: List[CaptionSegment]) -> int:
    """Duration in whole seconds, taken from the end of the last cue."""
    if not segments:
        return 0
    last = segments[-1]
    return int(math.ceil(last.offset / 1000 + last.duration))


def estimate_duration_from_word_count(text: str, words_per_minute: int = config.WORDS_PER_MINUTE) -> int:
    """Duration in whole seconds, assuming a constant speaking rate."""
    words = count_words(text)
    if words == 0 or words_per_minute <= 0:
        return 0
    return int(math.ceil(words / words_per_minute * 60))


def build_transcript(segments: List[CaptionSegment]) -> str:
    """Join caption texts into a plain transcript."""
    return " ".join(segment.text for segment in segments)


def build_timestamped_transcript(segments: List[CaptionSegment]) -> str:
    """One "[HH:MM:SS] text" line per cue."""
    return "\n".join(
        f"[{format_timestamp(segment.start_seconds)}] {segment.text}" for segment in segments
    )


class CaptionExtractor:
    """Class to fetch caption tracks through youtube-transcript-api."""

    def __init__(self, api: Optional[YouTubeTranscriptApi] = None):
        self.api = api or YouTubeTranscriptApi()

    def extract_captions(self, video_id: str, lang: str = config.DEFAULT_CAPTION_LANGUAGE) -> CaptionResult:
        """
        Fetch captions for a video.

        Track preference: manually created in `lang`, auto-generated in
        `lang`, a translation into `lang`, then any available track.

        Args:
            video_id: YouTube video ID
            lang: Preferred language code

        Returns:
            CaptionResult with normalized segments

        Raises:
            CaptionsUnavailableError: No usable caption track
            VideoUnavailableError: Video is private, removed or age restricted
            ServiceUnavailableError: YouTube refused or failed the request
            NetworkError: YouTube could not be reached
        """
        logging.info(f"Extracting captions for video: {video_id}, language: {lang}")
        languages = self._language_candidates(lang)

        try:
            transcript_list = self.api.list(video_id)
            transcript, is_translated = self._select_track(transcript_list, languages, lang)
            raw_segments = transcript.fetch().to_raw_data()
        except (TranscriptsDisabled, NoTranscriptFound):
            raise CaptionsUnavailableError()
        except VideoUnavailable:
            raise VideoUnavailableError()
        except CouldNotRetrieveTranscript as e:
            logging.error(f"Caption retrieval failed for {video_id}: {e}")
            raise ServiceUnavailableError(f"Failed to extract captions: {type(e).__name__}")
        except requests.exceptions.RequestException as e:
            # youtube-transcript-api lets transport errors through unwrapped
            logging.error(f"Network error extracting captions for {video_id}: {e}")
            raise NetworkError()

        segments = normalize_segments(raw_segments)
        if not segments:
            raise CaptionsUnavailableError()

        logging.info(f"Extracted {len(segments)} caption segments for {video_id}")
        return CaptionResult(
            video_id=video_id,
            language=getattr(transcript, "language_code", lang),
            is_generated=bool(getattr(transcript, "is_generated", False)),
            is_translated=is_translated,
            segments=segments,
        )

    @staticmethod
    def _language_candidates(lang: str) -> List[str]:
        candidates = [lang]
        base = lang.split("-")[0]
        if base != lang:
            candidates.append(base)
        return candidates

    def _select_track(self, transcript_list, languages: List[str], lang: str) -> Tuple[Any, bool]:
        """Pick a track and report whether it is a translation."""
        try:
            return transcript_list.find_manually_created_transcript(languages), False
        except NoTranscriptFound:
            pass
        try:
            return transcript_list.find_generated_transcript(languages), False
        except NoTranscriptFound:
            pass

        available = list(transcript_list)
        if not available:
            raise CaptionsUnavailableError()

        logging.info(f"No '{lang}' captions, falling back to available tracks")
        for transcript in available:
            if transcript.is_translatable:
                try:
                    return transcript.translate(lang), True
                except (NotTranslatable, TranslationLanguageNotAvailable) as e:
                    logging.warning(f"Translation to {lang} not available: {e}")
                    break
        return available[0], False
