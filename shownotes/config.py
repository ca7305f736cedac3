"""
Configuration settings for the Show Notes Generator application.
"""

import os
from typing import Dict, Any
from pathlib import Path
from dotenv import load_dotenv


# Ensure environment variables are loaded
load_dotenv()


class Config:
    """Base configuration class."""

    # Application info
    APP_NAME = "Show Notes Generator"
    APP_VERSION = "0.2.0"

    # Data directories
    BASE_DIR = Path(__file__).resolve().parent.parent.absolute()
    DATA_DIR = Path(os.getenv("DATA_DIR", BASE_DIR / "data"))
    UPLOADS_DIR = Path(os.getenv("UPLOADS_DIR", DATA_DIR / "uploads"))
    TRANSCRIPTS_DIR = Path(os.getenv("TRANSCRIPTS_DIR", DATA_DIR / "transcripts"))
    EXPORTS_DIR = Path(os.getenv("EXPORTS_DIR", DATA_DIR / "exports"))

    # API keys
    GROQ_API_KEY = os.getenv("GROQ_API_KEY")
    YOUTUBE_API_KEY = os.getenv("YOUTUBE_API_KEY")

    # Default models
    MODEL_PROVIDER = os.getenv("MODEL_PROVIDER", "groq")
    DEFAULT_TRANSCRIPTION_MODEL = os.getenv("TRANSCRIPTION_MODEL", "whisper-large-v3-turbo")
    DEFAULT_SUMMARY_MODEL = os.getenv("SUMMARY_MODEL", "llama-3.3-70b-versatile")
    TEMPERATURE = float(os.getenv("TEMPERATURE", "0.7"))
    MAX_TOKENS = int(os.getenv("MAX_TOKENS", "2000"))
    CHUNK_SIZE = int(os.getenv("CHUNK_SIZE", "12000"))
    CHUNK_OVERLAP = int(os.getenv("CHUNK_OVERLAP", "400"))
    CHAT_CONTEXT_CHARS = int(os.getenv("CHAT_CONTEXT_CHARS", "12000"))

    # YouTube
    YOUTUBE_API_URL = "https://www.googleapis.com/youtube/v3/videos"
    YOUTUBE_OEMBED_URL = "https://www.youtube.com/oembed"
    YOUTUBE_API_TIMEOUT = int(os.getenv("YOUTUBE_API_TIMEOUT", "10"))
    YOUTUBE_API_RETRIES = int(os.getenv("YOUTUBE_API_RETRIES", "3"))
    DEFAULT_CAPTION_LANGUAGE = os.getenv("CAPTION_LANGUAGE", "en")
    WORDS_PER_MINUTE = int(os.getenv("WORDS_PER_MINUTE", "150"))

    # Audio uploads (Whisper limit)
    MAX_AUDIO_UPLOAD_BYTES = 25 * 1024 * 1024
    SUPPORTED_AUDIO_EXTENSIONS = ("mp3", "mp4", "mpeg", "mpga", "m4a", "wav", "webm", "ogg", "flac")
    # Used to estimate minutes before transcription (128 kbps)
    AUDIO_BYTES_PER_MINUTE = int(os.getenv("AUDIO_BYTES_PER_MINUTE", "960000"))

    # Plans, -1 means unlimited
    PLAN_LIMITS: Dict[str, Dict[str, int]] = {
        "Free": {"max_minutes": 30, "max_gpt_prompts": 5},
        "Pro": {"max_minutes": -1, "max_gpt_prompts": -1},
    }
    DEFAULT_PLAN = "Free"

    # Caching
    REDIS_URL = os.getenv("REDIS_URL")
    CACHE_TTL = int(os.getenv("CACHE_TTL", "3600"))

    DEBUG = False
    LOG_LEVEL = "INFO"

    # Create data directories if they don't exist
    @classmethod
    def initialize(cls):
        """Initialize the application configuration."""
        cls.DATA_DIR.mkdir(parents=True, exist_ok=True)
        cls.UPLOADS_DIR.mkdir(parents=True, exist_ok=True)
        cls.TRANSCRIPTS_DIR.mkdir(parents=True, exist_ok=True)
        cls.EXPORTS_DIR.mkdir(parents=True, exist_ok=True)

    @classmethod
    def get_plan_limits(cls, plan_name: str) -> Dict[str, Any]:
        """Limits for a plan name, falling back to the default plan."""
        return cls.PLAN_LIMITS.get(plan_name, cls.PLAN_LIMITS[cls.DEFAULT_PLAN])


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True
    LOG_LEVEL = "DEBUG"


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False
    LOG_LEVEL = "INFO"


# Determine which configuration to use based on environment
def get_config():
    """Get the appropriate configuration based on environment."""
    env = os.getenv("ENVIRONMENT", "development").lower()
    if env == "production":
        return ProductionConfig
    else:
        return DevelopmentConfig


# Create a config instance
config = get_config()
config.initialize()
