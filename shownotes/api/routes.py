"""
API routes for the Show Notes Generator application.
"""

import shutil
import traceback
from typing import List, Optional
from fastapi import (
    APIRouter, HTTPException, Depends, BackgroundTasks, File, Header, Path, Response, UploadFile, status,
)

from shownotes.api.schemas import (
    ChatRequest,
    ChatResponse,
    EpisodeResponse,
    GenerateRequest,
    GenerateResponse,
    UsageResponse,
    YouTubeImportRequest,
    YouTubeImportResponse,
    YouTubeValidateRequest,
    YouTubeValidateResponse,
)
from shownotes.config import config
from shownotes.core.chat_handler import ChatHandler
from shownotes.core.exporter import export_episode
from shownotes.core.usage import USE_GPT, UsageService, current_month
from shownotes.core.youtube_helpers import extract_video_id, is_duplicate_url, is_valid_youtube_url
from shownotes.db import crud, database
from shownotes.db.database import get_db
from shownotes.main import (
    delete_episode as delete_user_episode,
    generate_episode_content,
    import_youtube_video,
    process_audio_upload,
)
from shownotes.models.schemas import ProcessingStatus
from shownotes.utils.error_handling import (
    EpisodeNotFoundError,
    InvalidYouTubeURLError,
    ShowNotesError,
    UsageLimitExceededError,
    log_exception,
)
from shownotes.utils.helpers import upload_path
from shownotes.utils.logger import logging

router = APIRouter(prefix="/api/v1", tags=["shownotes"])


def get_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """The caller's user ID, taken from the X-User-Id header."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()


def _http_error(error: ShowNotesError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)


def _get_user_episode(db, episode_id: str, user_id: str):
    episode = crud.get_episode(db, episode_id, user_id)
    if not episode:
        raise _http_error(EpisodeNotFoundError())
    return episode


@router.post("/youtube/validate", response_model=YouTubeValidateResponse)
def validate_youtube_url(
    request: YouTubeValidateRequest,
    user_id: str = Depends(get_user_id),
    db=Depends(get_db),
):
    """Check a YouTube URL before importing it."""
    url = request.url.strip()
    video_id = extract_video_id(url) if is_valid_youtube_url(url) else None
    if not video_id:
        return YouTubeValidateResponse(valid=False, message=InvalidYouTubeURLError.default_message)

    if is_duplicate_url(url, crud.get_user_youtube_urls(db, user_id)) or \
            crud.get_user_episode_by_video_id(db, user_id, video_id):
        return YouTubeValidateResponse(
            valid=True, video_id=video_id, duplicate=True, message="This video has already been imported."
        )
    return YouTubeValidateResponse(valid=True, video_id=video_id)


@router.post("/youtube/import", response_model=YouTubeImportResponse, status_code=status.HTTP_201_CREATED)
def import_youtube(
    request: YouTubeImportRequest,
    user_id: str = Depends(get_user_id),
    db=Depends(get_db),
):
    """
    Import a YouTube video as an episode.

    - Fetches metadata and captions in parallel
    - Checks the video duration against the monthly minute allowance
    - Creates a pending episode with the caption transcript
    """
    try:
        episode, result = import_youtube_video(db, user_id, request.url, request.lang)
    except ShowNotesError as e:
        logging.warning(f"YouTube import failed for {request.url}: {e.message}")
        raise _http_error(e)

    return YouTubeImportResponse(
        episode=EpisodeResponse(**crud.episode_to_dict(episode)),
        warning=result.warning,
        has_captions=result.has_captions,
        has_estimated_duration=result.has_estimated_duration,
        processing_time_ms=result.processing_time_ms,
    )


@router.post("/episodes/upload", response_model=EpisodeResponse, status_code=status.HTTP_201_CREATED)
def upload_audio(
    file: UploadFile = File(...),
    user_id: str = Depends(get_user_id),
    db=Depends(get_db),
):
    """Upload an audio file, transcribe it and create an episode."""
    destination = upload_path(config.UPLOADS_DIR, file.filename or "upload")
    destination.parent.mkdir(parents=True, exist_ok=True)
    with open(destination, "wb") as buffer:
        shutil.copyfileobj(file.file, buffer)
    logging.info(f"Stored upload {file.filename} at {destination}")

    try:
        episode = process_audio_upload(db, user_id, str(destination), file.filename)
    except ShowNotesError as e:
        raise _http_error(e)
    except FileNotFoundError as e:
        raise HTTPException(status_code=400, detail=str(e))
    finally:
        destination.unlink(missing_ok=True)

    return EpisodeResponse(**crud.episode_to_dict(episode))


@router.get("/episodes", response_model=List[EpisodeResponse])
def list_episodes(user_id: str = Depends(get_user_id), db=Depends(get_db)):
    """List the caller's episodes without transcripts."""
    return [
        EpisodeResponse(**crud.episode_to_dict(episode, include_transcript=False))
        for episode in crud.list_episodes(db, user_id)
    ]


@router.get("/episodes/{episode_id}", response_model=EpisodeResponse)
def get_episode(
    episode_id: str = Path(..., description="Episode ID"),
    user_id: str = Depends(get_user_id),
    db=Depends(get_db),
):
    episode = _get_user_episode(db, episode_id, user_id)
    return EpisodeResponse(**crud.episode_to_dict(episode))


@router.delete("/episodes/{episode_id}")
def delete_episode(
    episode_id: str = Path(..., description="Episode ID"),
    user_id: str = Depends(get_user_id),
    db=Depends(get_db),
):
    """Delete an episode. Usage already recorded for it is kept."""
    try:
        delete_user_episode(db, episode_id, user_id)
    except EpisodeNotFoundError as e:
        raise _http_error(e)
    return {"deleted": True, "episode_id": episode_id}


@router.post("/episodes/{episode_id}/generate", response_model=GenerateResponse, status_code=status.HTTP_202_ACCEPTED)
def generate_content(
    background_tasks: BackgroundTasks,
    request: Optional[GenerateRequest] = None,
    episode_id: str = Path(..., description="Episode ID"),
    user_id: str = Depends(get_user_id),
    db=Depends(get_db),
):
    """
    Generate summary, chapters, keywords and quotes for an episode.

    Runs in the background. Poll GET /episodes/{episode_id} for the result.
    """
    request = request or GenerateRequest()
    episode = _get_user_episode(db, episode_id, user_id)

    prompts_needed = 5 if request.include_show_notes else 4
    check = UsageService(db).can_perform_action(user_id, USE_GPT, prompts_needed)
    if not check.allowed:
        raise _http_error(UsageLimitExceededError(check.reason))

    background_tasks.add_task(
        process_generation_in_background,
        episode_id=episode.id,
        user_id=user_id,
        include_show_notes=request.include_show_notes,
    )
    return GenerateResponse(
        episode_id=episode.id,
        processing_status=ProcessingStatus.PROCESSING.value,
        message="Content generation started. Please check back shortly.",
    )


@router.post("/episodes/{episode_id}/chat", response_model=ChatResponse)
def chat_with_episode(
    chat_request: ChatRequest,
    episode_id: str = Path(..., description="Episode ID"),
    user_id: str = Depends(get_user_id),
    db=Depends(get_db),
):
    """Ask a question about an episode using its transcript as context."""
    episode = _get_user_episode(db, episode_id, user_id)

    usage = UsageService(db)
    if chat_request.message and chat_request.message.strip():
        check = usage.can_perform_action(user_id, USE_GPT, 1)
        if not check.allowed:
            raise _http_error(UsageLimitExceededError(check.reason))

    try:
        result = ChatHandler().get_chat_response(
            db=db,
            episode=episode,
            message=chat_request.message,
            session_id=chat_request.session_id,
        )
    except Exception as e:
        logging.error(f"Error generating response: {str(e)}")
        logging.error(traceback.format_exc())
        raise HTTPException(status_code=500, detail="Error generating response")

    if result.pop("answered", False):
        usage.update_usage(user_id, gpt_prompts_used=1)
    return ChatResponse(answer=result["answer"], session_id=result["session_id"])


@router.get("/episodes/{episode_id}/export/{export_format}")
def export_episode_file(
    episode_id: str = Path(..., description="Episode ID"),
    export_format: str = Path(..., description="Export format"),
    user_id: str = Depends(get_user_id),
    db=Depends(get_db),
):
    """Download an episode in one of the export formats."""
    episode = _get_user_episode(db, episode_id, user_id)
    try:
        exported = export_episode(crud.episode_to_dict(episode), export_format)
    except ShowNotesError as e:
        raise _http_error(e)

    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )


@router.get("/usage", response_model=UsageResponse)
def get_usage(user_id: str = Depends(get_user_id), db=Depends(get_db)):
    """Plan limits and this month's usage for the caller."""
    usage = UsageService(db).get_current_usage(user_id)
    return UsageResponse(
        plan_name=usage.plan_name,
        month_year=current_month(),
        max_minutes=usage.max_minutes,
        max_gpt_prompts=usage.max_gpt_prompts,
        current_minutes=usage.current_minutes,
        current_gpt_prompts=usage.current_gpt_prompts,
        remaining_minutes=usage.remaining_minutes,
    )


def process_generation_in_background(episode_id: str, user_id: str, include_show_notes: bool = False):
    """Generate episode content with a database session of its own."""
    db = database.SessionLocal()
    try:
        generate_episode_content(db, episode_id, user_id, include_show_notes=include_show_notes)
    except Exception as e:
        # The episode already carries the failure status and message
        log_exception(f"Background generation error for episode {episode_id}", e)
    finally:
        db.close()
