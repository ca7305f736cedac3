"""
Module for transcribing uploaded audio files using Groq's API.
"""

import os
import json
from pathlib import Path
from typing import Optional

import groq
from groq import Groq

from shownotes.models.schemas import TranscriptionConfig, TranscriptedData
from shownotes.utils.error_handling import (
    InvalidFormatError,
    NetworkError,
    RateLimitError,
    ServiceUnavailableError,
)
from shownotes.utils.helpers import get_file_extension
from shownotes.utils.logger import logging
from shownotes.config import config


def validate_audio_file(audio_path: str) -> None:
    """
    Check that an audio file exists, has a supported extension and fits the API limit.

    Raises:
        FileNotFoundError: If the file does not exist
        InvalidFormatError: If the extension or size is not accepted
    """
    if not os.path.exists(audio_path) or not os.path.isfile(audio_path):
        raise FileNotFoundError(f"Audio file not found at {audio_path}")

    extension = get_file_extension(audio_path).lower()
    if extension not in config.SUPPORTED_AUDIO_EXTENSIONS:
        raise InvalidFormatError(
            f"Unsupported audio format '{extension}'. "
            f"Supported formats: {', '.join(config.SUPPORTED_AUDIO_EXTENSIONS)}"
        )

    if os.path.getsize(audio_path) > config.MAX_AUDIO_UPLOAD_BYTES:
        raise InvalidFormatError("Audio file is too large. Transcription supports files up to 25MB.")


class AudioTranscriber:
    """Class to handle audio transcription operations."""

    def __init__(
        self, transcribe_config: Optional[TranscriptionConfig] = None, api_key: Optional[str] = None
    ):
        """
        Initialize the transcriber with API key.

        Args:
            transcribe_config: Configuration for transcription
            api_key: Groq API key (if None, will try to get from environment)
        """
        self.transcribe_config = transcribe_config or TranscriptionConfig()
        self.api_key = api_key or os.getenv("GROQ_API_KEY")
        if not self.api_key:
            raise ValueError(
                "Groq API key is required. Set it in .env file or pass directly."
            )

        self.client = Groq(api_key=self.api_key)

    def transcribe_file(self, audio_path: str, save_transcript: bool = True) -> TranscriptedData:
        """
        Transcribe an audio file.

        Args:
            audio_path: Path to the uploaded audio file
            save_transcript: Whether to keep the raw API response in TRANSCRIPTS_DIR

        Returns:
            Transcript text with segments, language and duration
        """
        validate_audio_file(audio_path)
        audio_file_path = Path(audio_path)

        logging.info(f"Transcribing audio file: {audio_path}")

        try:
            with open(audio_path, "rb") as audio_file:
                transcription = self.client.audio.transcriptions.create(
                    file=(audio_file_path.name, audio_file.read()),
                    model=self.transcribe_config.model,
                    prompt=self.transcribe_config.prompt,
                    language=self.transcribe_config.language,
                    response_format=self.transcribe_config.response_format,
                    timestamp_granularities=self.transcribe_config.timestamp_granularities,
                    temperature=self.transcribe_config.temperature,
                )
        except groq.AuthenticationError:
            raise ServiceUnavailableError("Invalid Groq API key. Please check your GROQ_API_KEY.")
        except groq.RateLimitError:
            raise RateLimitError("Transcription rate limit exceeded. Please try again later.")
        except groq.APIConnectionError:
            raise NetworkError()
        except groq.APIStatusError as e:
            if e.status_code == 413:
                raise InvalidFormatError("Audio file is too large for transcription (max 25MB).")
            raise ServiceUnavailableError(f"Transcription failed: {e.status_code}")

        data = self._response_to_dict(transcription)
        transcript_text = (data.get("text") or "").strip()
        if not transcript_text:
            raise ServiceUnavailableError("Transcription returned empty text")

        if save_transcript:
            transcript_dir = Path(config.TRANSCRIPTS_DIR)
            transcript_dir.mkdir(parents=True, exist_ok=True)
            transcript_path = transcript_dir / f"{audio_file_path.stem}.json"
            logging.info(f"Saving transcription to: {transcript_path}")
            with open(transcript_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, default=str)

        logging.info(f"Transcription complete: {len(transcript_text)} characters")
        return TranscriptedData(
            transcript_text=transcript_text,
            segments=data.get("segments") or [],
            language=data.get("language"),
            model=self.transcribe_config.model,
            duration=data.get("duration"),
        )

    @staticmethod
    def _response_to_dict(transcription) -> dict:
        if hasattr(transcription, "model_dump_json"):
            return json.loads(transcription.model_dump_json())
        if isinstance(transcription, dict):
            return transcription
        return {"text": str(transcription)}
