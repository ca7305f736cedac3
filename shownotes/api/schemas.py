from pydantic import BaseModel, field_validator
from typing import Optional, List, Dict, Any

from shownotes.config import config


class YouTubeValidateRequest(BaseModel):
    """Model for checking a YouTube URL before import."""
    url: str


class YouTubeValidateResponse(BaseModel):
    valid: bool
    video_id: Optional[str] = None
    duplicate: bool = False
    message: Optional[str] = None


class YouTubeImportRequest(BaseModel):
    """Model for importing a YouTube video as an episode."""
    url: str
    lang: str = config.DEFAULT_CAPTION_LANGUAGE

    @field_validator('url')
    def validate_url(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('YouTube URL is required')
        return v


class EpisodeResponse(BaseModel):
    """Model for episode responses."""
    id: str
    title: str
    summary: Dict[str, Optional[str]]
    chapters: List[Dict[str, Any]] = []
    keywords: List[str] = []
    quotes: List[Dict[str, Any]] = []
    show_notes: Optional[Dict[str, Any]] = None
    source_type: str
    youtube_url: Optional[str] = None
    video_id: Optional[str] = None
    audio_filename: Optional[str] = None
    file_size: Optional[int] = None
    duration: int = 0
    has_estimated_duration: bool = False
    processing_status: str
    processing_error: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    transcript: Optional[str] = None
    caption_segments: Optional[List[Dict[str, Any]]] = None


class YouTubeImportResponse(BaseModel):
    """Model for YouTube import responses."""
    episode: EpisodeResponse
    warning: Optional[str] = None
    has_captions: bool
    has_estimated_duration: bool = False
    processing_time_ms: int = 0


class GenerateRequest(BaseModel):
    include_show_notes: bool = False


class GenerateResponse(BaseModel):
    episode_id: str
    processing_status: str
    message: str


class ChatRequest(BaseModel):
    """Model for chat requests."""
    message: str
    session_id: Optional[str] = None


class ChatResponse(BaseModel):
    """Model for chat responses."""
    answer: str
    session_id: str


class UsageResponse(BaseModel):
    """Model for the current month's usage."""
    plan_name: str
    month_year: str
    max_minutes: int
    max_gpt_prompts: int
    current_minutes: int
    current_gpt_prompts: int
    remaining_minutes: Optional[int] = None
