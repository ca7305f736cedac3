"""
Main entry point for the Show Notes Generator.

Holds the episode pipeline used by the API and the command line:
importing a YouTube video, processing an uploaded audio file and generating
the episode content.
"""

import os
import sys
import math
import argparse
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv
from sqlalchemy.orm import Session

from shownotes.config import config
from shownotes.core.caption_service import estimate_duration_from_word_count, normalize_segments
from shownotes.core.content_generator import ContentGenerator
from shownotes.core.exporter import export_episode, to_show_notes
from shownotes.core.transcriber import AudioTranscriber, validate_audio_file
from shownotes.core.usage import PROCESS_AUDIO, USE_GPT, UsageService, seconds_to_minutes
from shownotes.core.youtube_helpers import (
    extract_video_id,
    format_duration,
    is_duplicate_url,
    is_valid_youtube_url,
)
from shownotes.core.youtube_unified import YouTubeProcessor, forget_video
from shownotes.db import crud
from shownotes.db.database import SessionLocal, init_db
from shownotes.db.models import Episode
from shownotes.models.schemas import (
    GenerationConfig,
    ProcessingStatus,
    SourceType,
    YouTubeProcessingResult,
)
from shownotes.utils.caching import setup_redis_cache
from shownotes.utils.error_handling import (
    DuplicateEpisodeError,
    EpisodeNotFoundError,
    InvalidYouTubeURLError,
    ShowNotesError,
    UsageLimitExceededError,
    log_exception,
    user_facing_message,
)
from shownotes.utils.helpers import save_text
from shownotes.utils.logger import logging


def import_youtube_video(
    db: Session,
    user_id: str,
    url: str,
    lang: str = config.DEFAULT_CAPTION_LANGUAGE,
    processor: Optional[YouTubeProcessor] = None,
) -> Tuple[Episode, YouTubeProcessingResult]:
    """
    Create an episode from a YouTube video.

    Args:
        db: Database session
        user_id: Owner of the new episode
        url: YouTube video URL
        lang: Preferred caption language
        processor: YouTubeProcessor to use (a default one is created if None)

    Returns:
        The pending episode and the processing result it was built from

    Raises:
        InvalidYouTubeURLError: The URL is not a YouTube video URL
        DuplicateEpisodeError: The user already imported this video
        UsageLimitExceededError: The video does not fit in the remaining minutes
        YouTubeProcessingError: Neither metadata nor captions could be fetched
    """
    url = (url or "").strip()
    video_id = extract_video_id(url) if is_valid_youtube_url(url) else None
    if not video_id:
        raise InvalidYouTubeURLError()

    if is_duplicate_url(url, crud.get_user_youtube_urls(db, user_id)) or \
            crud.get_user_episode_by_video_id(db, user_id, video_id):
        raise DuplicateEpisodeError()

    processor = processor or YouTubeProcessor()
    result = processor.process_video(video_id, lang)

    usage = UsageService(db)
    check = usage.can_process_youtube_video(user_id, result.metadata.duration)
    if not check.allowed:
        raise UsageLimitExceededError(check.reason)

    episode = crud.create_episode(
        db,
        user_id=user_id,
        title=result.metadata.title,
        transcript=result.transcript,
        caption_segments=[segment.model_dump() for segment in result.captions],
        source_type=SourceType.YOUTUBE.value,
        youtube_url=url,
        video_id=video_id,
        caption_language=lang,
        duration=result.metadata.duration,
        has_estimated_duration=result.has_estimated_duration,
        processing_status=ProcessingStatus.PENDING.value,
    )
    usage.update_usage_after_youtube_video(user_id, result.metadata.duration)
    return episode, result


def estimate_upload_minutes(file_size: int) -> int:
    """Rough length of an audio file in minutes, from its size."""
    return max(1, int(math.ceil(file_size / config.AUDIO_BYTES_PER_MINUTE)))


def process_audio_upload(
    db: Session,
    user_id: str,
    audio_path: str,
    filename: Optional[str] = None,
    transcriber: Optional[AudioTranscriber] = None,
) -> Episode:
    """
    Transcribe an uploaded audio file and create an episode from it.

    Args:
        db: Database session
        user_id: Owner of the new episode
        audio_path: Path of the stored upload
        filename: Original file name shown to the user
        transcriber: AudioTranscriber to use (a default one is created if None)

    Returns:
        The pending episode
    """
    validate_audio_file(audio_path)
    filename = filename or os.path.basename(audio_path)
    file_size = os.path.getsize(audio_path)

    usage = UsageService(db)
    check = usage.can_perform_action(user_id, PROCESS_AUDIO, estimate_upload_minutes(file_size))
    if not check.allowed:
        raise UsageLimitExceededError(check.reason)

    transcriber = transcriber or AudioTranscriber()
    transcription = transcriber.transcribe_file(audio_path)

    segments = normalize_segments(
        {
            "text": segment.get("text", ""),
            "start": segment.get("start", 0),
            "duration": (segment.get("end") or 0) - (segment.get("start") or 0),
        }
        for segment in transcription.segments
    )

    has_estimated_duration = not transcription.duration
    if transcription.duration:
        duration = int(math.ceil(transcription.duration))
    else:
        duration = estimate_duration_from_word_count(transcription.transcript_text)
        logging.info(f"No duration from transcription, estimated {duration}s from word count")

    episode = crud.create_episode(
        db,
        user_id=user_id,
        title=Path(filename).stem or "Untitled Episode",
        transcript=transcription.transcript_text,
        caption_segments=[segment.model_dump() for segment in segments],
        source_type=SourceType.AUDIO.value,
        audio_filename=filename,
        file_size=file_size,
        duration=duration,
        has_estimated_duration=has_estimated_duration,
        processing_status=ProcessingStatus.PENDING.value,
    )
    usage.update_usage(user_id, minutes_used=seconds_to_minutes(duration), episodes_processed=1)
    return episode


def generate_episode_content(
    db: Session,
    episode_id: str,
    user_id: Optional[str] = None,
    include_show_notes: bool = False,
    generator: Optional[ContentGenerator] = None,
) -> Episode:
    """
    Generate summary, chapters, keywords and quotes for an episode.

    The episode is marked processing while the LLM runs, then completed, or
    failed with a user-facing error message.

    Raises:
        EpisodeNotFoundError: No such episode for this user
        UsageLimitExceededError: Not enough GPT prompts left this month
    """
    episode = crud.get_episode(db, episode_id, user_id)
    if not episode:
        raise EpisodeNotFoundError()

    prompts_needed = 5 if include_show_notes else 4
    usage = UsageService(db)
    check = usage.can_perform_action(episode.user_id, USE_GPT, prompts_needed)
    if not check.allowed:
        raise UsageLimitExceededError(check.reason)

    crud.update_episode_status(db, episode, ProcessingStatus.PROCESSING)
    logging.info(f"Generating content for episode {episode.id}")

    try:
        generator = generator or ContentGenerator(GenerationConfig(include_show_notes=include_show_notes))
        content = generator.generate_episode_content(episode.transcript or "", episode.title)
    except Exception as e:
        log_exception(f"Content generation failed for episode {episode.id}", e)
        message = str(e) if isinstance(e, ValueError) else user_facing_message(e)
        crud.update_episode_status(db, episode, ProcessingStatus.FAILED, message)
        raise

    episode = crud.store_episode_content(db, episode, content)
    usage.update_usage(episode.user_id, gpt_prompts_used=prompts_needed)
    logging.info(f"Episode {episode.id} completed")
    return episode


def delete_episode(db: Session, episode_id: str, user_id: str) -> None:
    """
    Delete an episode and forget cached YouTube data for its video.

    Usage already recorded for the episode is kept.

    Raises:
        EpisodeNotFoundError: No such episode for this user
    """
    episode = crud.get_episode(db, episode_id, user_id)
    if not episode:
        raise EpisodeNotFoundError()

    video_id = episode.video_id
    lang = episode.caption_language or config.DEFAULT_CAPTION_LANGUAGE
    crud.delete_episode(db, episode_id, user_id)
    if video_id:
        forget_video(video_id, lang)


def main():
    """Main function to run the application from command line."""
    parser = argparse.ArgumentParser(description="Show Notes Generator")
    parser.add_argument("url", help="YouTube video URL")
    parser.add_argument("--lang", default=config.DEFAULT_CAPTION_LANGUAGE, help="Preferred caption language")
    parser.add_argument("--user", default="cli", help="User ID to record the episode and usage under")
    parser.add_argument("--export", dest="export_format", help="Export format (markdown, html, json, srt, ...)")
    parser.add_argument("--output", help="Output file path for the export")

    args = parser.parse_args()

    # Load environment variables
    load_dotenv()
    init_db()
    if config.REDIS_URL:
        setup_redis_cache(config.REDIS_URL)

    db = SessionLocal()
    try:
        episode, result = import_youtube_video(db, args.user, args.url, args.lang)
        print(f"Imported '{episode.title}' ({format_duration(episode.duration)})")
        if result.warning:
            print(f"Warning: {result.warning}")
        episode = generate_episode_content(db, episode.id, include_show_notes=True)
        episode_data = crud.episode_to_dict(episode)

        print("\n" + "=" * 80)
        print(to_show_notes(episode_data))
        print("=" * 80)

        if args.export_format:
            exported = export_episode(episode_data, args.export_format)
            output_file = args.output or str(Path(config.EXPORTS_DIR) / exported.filename)
            save_text(exported.content, output_file)
            print(f"Exported {args.export_format} to: {output_file}")
    except ShowNotesError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
