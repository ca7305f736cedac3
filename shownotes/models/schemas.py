"""
Data models for the Show Notes Generator application.
"""
import time
from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field

from shownotes.config import config


class SourceType(str, Enum):
    """Where an episode's transcript came from."""
    AUDIO = "audio"
    YOUTUBE = "youtube"


class ProcessingStatus(str, Enum):
    """Processing state of an episode."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ExportFormat(str, Enum):
    """Formats an episode can be exported to."""
    MARKDOWN = "markdown"
    HTML = "html"
    JSON = "json"
    CSV = "csv"
    XML = "xml"
    RTF = "rtf"
    RSS = "rss"
    SHOW_NOTES = "show_notes"
    TWITTER = "twitter"
    LINKEDIN = "linkedin"
    SRT = "srt"
    VTT = "vtt"


class CaptionSegment(BaseModel):
    """A single caption cue. offset is in milliseconds, duration in seconds."""
    text: str
    offset: int
    duration: float = 5.0

    @property
    def start_seconds(self) -> float:
        return self.offset / 1000

    @property
    def end_seconds(self) -> float:
        return self.offset / 1000 + self.duration


class CaptionResult(BaseModel):
    """Captions fetched for one video."""
    video_id: str
    language: str
    is_generated: bool = False
    is_translated: bool = False
    segments: List[CaptionSegment]


class VideoMetadata(BaseModel):
    """Video metadata from the YouTube Data API (or oEmbed fallback)."""
    video_id: str
    title: str
    description: str = ""
    duration: int = 0
    published_at: Optional[str] = None
    channel_title: Optional[str] = None
    thumbnail_url: Optional[str] = None


class YouTubeProcessingResult(BaseModel):
    """Metadata and captions for a video merged into one result."""
    video_id: str
    metadata: VideoMetadata
    captions: List[CaptionSegment] = []
    transcript: str = ""
    language: Optional[str] = None
    warning: Optional[str] = None
    has_estimated_duration: bool = False
    processing_time_ms: int = 0

    @property
    def has_captions(self) -> bool:
        return len(self.captions) > 0


class TranscriptionConfig(BaseModel):
    """Configuration for transcription operations."""
    model: str = config.DEFAULT_TRANSCRIPTION_MODEL
    language: Optional[str] = None
    prompt: Optional[str] = None
    response_format: str = "verbose_json"
    temperature: float = 0.0
    timestamp_granularities: List[str] = ["segment"]


class TranscriptedData(BaseModel):
    """Transcript text with timed segments as returned by the transcription API."""
    transcript_text: str
    segments: List[Dict[str, Any]] = []
    language: Optional[str] = None
    model: Optional[str] = None
    duration: Optional[float] = None


class GenerationConfig(BaseModel):
    """Configuration for LLM content generation."""
    model: str = config.DEFAULT_SUMMARY_MODEL
    model_provider: str = config.MODEL_PROVIDER
    temperature: float = config.TEMPERATURE
    max_tokens: int = config.MAX_TOKENS
    chunk_size: int = config.CHUNK_SIZE
    chunk_overlap: int = config.CHUNK_OVERLAP
    include_show_notes: bool = False


class EpisodeSummary(BaseModel):
    short: str
    long: str


class Chapter(BaseModel):
    timestamp: str
    title: str
    content: str = ""


class Quote(BaseModel):
    text: str
    speaker: Optional[str] = None
    timestamp: Optional[str] = None


class GeneratedContent(BaseModel):
    """Show notes produced by a single LLM call."""
    title: str
    summary: str
    takeaways: List[str]
    topics: List[str]
    cta: str


class EpisodeContent(BaseModel):
    """Everything generated for an episode."""
    summary: EpisodeSummary
    chapters: List[Chapter] = []
    keywords: List[str] = []
    quotes: List[Quote] = []
    show_notes: Optional[GeneratedContent] = None
    generated_at: str = Field(default_factory=lambda: time.strftime("%Y-%m-%d %H:%M:%S"))


class UsageLimits(BaseModel):
    """Plan limits and the current month's usage. -1 means unlimited."""
    max_minutes: int
    max_gpt_prompts: int
    current_minutes: int = 0
    current_gpt_prompts: int = 0
    plan_name: str

    @property
    def remaining_minutes(self) -> Optional[int]:
        if self.max_minutes == -1:
            return None
        return self.max_minutes - self.current_minutes


class UsageCheck(BaseModel):
    """Outcome of a usage limit check."""
    allowed: bool
    reason: Optional[str] = None
    estimated_duration: Optional[str] = None


class ExportedFile(BaseModel):
    """A rendered export ready to be written or downloaded."""
    content: str
    filename: str
    media_type: str
