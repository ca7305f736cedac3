"""
Helper utility functions for the Show Notes Generator.
"""

import os
import re
import time
import uuid
from pathlib import Path


def sanitize_filename(filename: str, default: str = "episode") -> str:
    """
    Sanitize a string to be used as a filename.

    Args:
        filename: The filename to sanitize
        default: Name to use when nothing is left after sanitizing

    Returns:
        Sanitized filename
    """
    # Remove invalid characters
    sanitized = re.sub(r'[\\/*?:"<>|\x00-\x1f]', "_", filename or "")
    sanitized = re.sub(r"\s+", "_", sanitized.strip())
    sanitized = sanitized.strip("._")
    if len(sanitized) > 100:
        sanitized = sanitized[:100]
    return sanitized or default


def get_timestamp() -> str:
    """Current time as YYYYmmdd_HHMMSS."""
    return time.strftime("%Y%m%d_%H%M%S")


def upload_path(upload_dir: Path, filename: str) -> Path:
    """Unique timestamped location for an uploaded file, keeping its extension."""
    name = sanitize_filename(Path(filename).stem, default="upload")
    extension = get_file_extension(filename).lower()
    suffix = f".{extension}" if extension else ""
    return Path(upload_dir) / f"{get_timestamp()}_{uuid.uuid4().hex[:12]}_{name}{suffix}"


def save_text(content: str, filepath: str) -> str:
    """
    Write text to a file, creating parent directories.

    Returns:
        The path written to
    """
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(filepath, 'w', encoding='utf-8') as f:
        f.write(content)
    return filepath


def get_file_extension(filepath: str) -> str:
    """File extension without the dot."""
    return Path(filepath).suffix.lstrip('.')


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """
    Truncate text to a maximum length.

    Args:
        text: Text to truncate
        max_length: Maximum length
        suffix: Suffix to add if truncated

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix
