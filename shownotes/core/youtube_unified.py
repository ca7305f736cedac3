"""
Combines YouTube Data API metadata with caption extraction.

Metadata and captions are fetched in parallel. Either one may fail on its
own: without metadata the title comes from oEmbed and the duration is
estimated from the captions; without captions the episode is created from
metadata alone.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from shownotes.config import config
from shownotes.core.caption_service import (
    CaptionExtractor,
    build_transcript,
    estimate_duration_from_captions,
)
from shownotes.core.youtube_data_api import YouTubeDataAPI
from shownotes.models.schemas import CaptionResult, VideoMetadata, YouTubeProcessingResult
from shownotes.utils.caching import cache_delete, cache_get, cache_set
from shownotes.utils.error_handling import (
    CaptionsUnavailableError,
    ShowNotesError,
    VideoUnavailableError,
    YouTubeProcessingError,
    log_exception,
    user_facing_message,
)
from shownotes.utils.logger import logging


def is_permanent_caption_failure(error: Exception) -> bool:
    """Missing captions or an unavailable video will not change on retry."""
    return isinstance(error, (CaptionsUnavailableError, VideoUnavailableError))


def metadata_warning(error_message: str) -> str:
    """Warning shown to the user when metadata could not be fetched."""
    text = (error_message or "").lower()
    if "quota exceeded" in text:
        return "YouTube API quota exceeded. Duration may be estimated from captions."
    if "timeout" in text:
        return "YouTube API timeout. Duration may be estimated from captions."
    if "network" in text:
        return "Network error. Duration may be estimated from captions."
    return "Video metadata unavailable. Duration may be estimated from captions."


def forget_video(video_id: str, lang: str = config.DEFAULT_CAPTION_LANGUAGE) -> None:
    """Drop the cached processing result and metadata for a video."""
    cache_delete(f"youtube:{video_id}:{lang}")
    cache_delete(f"youtube_metadata:{video_id}")
    logging.info(f"Cleared cached YouTube data for {video_id}")


class YouTubeProcessor:
    """Fetch everything needed to create an episode from a YouTube video."""

    def __init__(
        self,
        data_api: Optional[YouTubeDataAPI] = None,
        caption_extractor: Optional[CaptionExtractor] = None,
        use_cache: bool = True,
    ):
        self.data_api = data_api or YouTubeDataAPI()
        self.caption_extractor = caption_extractor or CaptionExtractor()
        self.use_cache = use_cache

    def process_video(self, video_id: str, lang: str = config.DEFAULT_CAPTION_LANGUAGE) -> YouTubeProcessingResult:
        """
        Fetch metadata and captions for a video and merge them.

        Args:
            video_id: YouTube video ID
            lang: Preferred caption language

        Returns:
            YouTubeProcessingResult

        Raises:
            YouTubeProcessingError: If neither metadata nor captions are available
        """
        cache_key = f"youtube:{video_id}:{lang}"
        if self.use_cache:
            cached_result = cache_get(cache_key)
            if cached_result is not None:
                logging.info(f"Using cached YouTube data for {video_id}")
                return YouTubeProcessingResult(**cached_result)

        start_time = time.time()
        logging.info(f"Processing video: {video_id} with language: {lang}")

        with ThreadPoolExecutor(max_workers=2) as executor:
            metadata_future = executor.submit(self.data_api.fetch_video_metadata, video_id)
            captions_future = executor.submit(self.caption_extractor.extract_captions, video_id, lang)

            metadata: Optional[VideoMetadata] = None
            metadata_error: Optional[str] = None
            try:
                metadata = metadata_future.result()
            except ShowNotesError as e:
                metadata_error = e.message
                logging.warning(f"Metadata fetch failed for {video_id}: {metadata_error}")
            except Exception as e:
                metadata_error = user_facing_message(e)
                log_exception(f"Metadata fetch failed for {video_id}", e)

            captions: Optional[CaptionResult] = None
            caption_error: Optional[str] = None
            caption_exception: Optional[Exception] = None
            try:
                captions = captions_future.result()
            except ShowNotesError as e:
                caption_error = e.message
                caption_exception = e
                logging.warning(f"Caption extraction failed for {video_id}: {caption_error}")
            except Exception as e:
                caption_error = user_facing_message(e)
                caption_exception = e
                log_exception(f"Caption extraction failed for {video_id}", e)

        if metadata is None and captions is None:
            raise YouTubeProcessingError(
                f"Failed to process video: {metadata_error or caption_error or 'Unknown error'}"
            )

        segments = captions.segments if captions else []
        transcript = build_transcript(segments)
        warning = metadata_warning(metadata_error) if metadata_error else None

        if metadata is None:
            oembed = self.data_api.fetch_oembed_info(video_id)
            metadata = VideoMetadata(
                video_id=video_id,
                title=oembed["title"],
                channel_title=oembed["author"],
                thumbnail_url=oembed["thumbnail_url"],
            )

        has_estimated_duration = False
        if metadata.duration <= 0 and segments:
            metadata.duration = estimate_duration_from_captions(segments)
            has_estimated_duration = True
            logging.info(f"Using estimated duration from captions: {metadata.duration} seconds")

        result = YouTubeProcessingResult(
            video_id=video_id,
            metadata=metadata,
            captions=segments,
            transcript=transcript,
            language=captions.language if captions else None,
            warning=warning,
            has_estimated_duration=has_estimated_duration,
            processing_time_ms=int((time.time() - start_time) * 1000),
        )

        logging.info(
            f"Processed {video_id}: metadata={metadata_error is None}, "
            f"captions={len(segments)}, duration={metadata.duration}s, "
            f"time={result.processing_time_ms}ms"
        )

        # Results with a placeholder title or estimated duration are not cached
        complete = metadata_error is None and (
            caption_exception is None or is_permanent_caption_failure(caption_exception)
        )
        if self.use_cache and complete:
            cache_set(cache_key, result.model_dump(), config.CACHE_TTL)
        return result
