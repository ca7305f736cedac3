"""
Client for the YouTube Data API v3 and the oEmbed endpoint.
"""

from typing import Dict, Optional

import requests
from retry.api import retry_call

from shownotes.config import config
from shownotes.core.youtube_helpers import parse_iso8601_duration
from shownotes.models.schemas import VideoMetadata
from shownotes.utils.caching import cache_get, cache_set, cached
from shownotes.utils.error_handling import YouTubeAPIError
from shownotes.utils.logger import logging

RETRYABLE_STATUSES = (429, 500, 503)
USER_AGENT = "ShowNotesGenerator/1.0"


class TransientYouTubeAPIError(YouTubeAPIError):
    """A failure worth retrying: throttling, server errors, timeouts."""


def oembed_defaults(video_id: str) -> Dict[str, Optional[str]]:
    return {
        "title": f"YouTube Video {video_id}",
        "author": "Unknown Creator",
        "thumbnail_url": None,
    }


class YouTubeDataAPI:
    """Class to fetch video metadata from the YouTube Data API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: int = config.YOUTUBE_API_TIMEOUT,
        max_retries: int = config.YOUTUBE_API_RETRIES,
        retry_delay: float = 1.0,
    ):
        """
        Initialize the client.

        Args:
            api_key: YouTube Data API key (if None, will try to get from config)
            timeout: Request timeout in seconds
            max_retries: Retries after the first attempt for transient failures
            retry_delay: First backoff delay in seconds, doubled on every retry
        """
        self.api_key = api_key or config.YOUTUBE_API_KEY
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    def fetch_video_metadata(self, video_id: str) -> VideoMetadata:
        """
        Fetch title, description and duration for a video.

        Args:
            video_id: YouTube video ID

        Returns:
            VideoMetadata for the video

        Raises:
            YouTubeAPIError: If the key is missing, the video is not found or the API keeps failing
        """
        if not self.api_key:
            logging.info("YOUTUBE_API_KEY not configured")
            raise YouTubeAPIError("YouTube API key not configured")

        cache_key = f"youtube_metadata:{video_id}"
        cached_metadata = cache_get(cache_key)
        if cached_metadata is not None:
            return VideoMetadata(**cached_metadata)

        metadata = retry_call(
            self._request_metadata,
            fargs=[video_id],
            exceptions=TransientYouTubeAPIError,
            tries=self.max_retries + 1,
            delay=self.retry_delay,
            backoff=2,
            logger=logging,
        )
        cache_set(cache_key, metadata.model_dump(), config.CACHE_TTL)
        return metadata

    def _request_metadata(self, video_id: str) -> VideoMetadata:
        logging.info(f"Fetching YouTube metadata for video: {video_id}")
        try:
            response = requests.get(
                config.YOUTUBE_API_URL,
                params={"id": video_id, "part": "contentDetails,snippet", "key": self.api_key},
                headers={"Accept": "application/json", "User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            raise TransientYouTubeAPIError(
                "Request timeout - YouTube API did not respond in time", transient=True
            )
        except requests.exceptions.ConnectionError:
            raise TransientYouTubeAPIError(
                "Network error - Unable to reach YouTube API", transient=True
            )
        except requests.exceptions.RequestException as e:
            logging.error(f"YouTube API request failed: {e}")
            raise TransientYouTubeAPIError(
                "Network error - YouTube API request failed", transient=True
            )

        if not response.ok:
            logging.error(f"YouTube API HTTP error {response.status_code}: {response.text[:200]}")
            if response.status_code in RETRYABLE_STATUSES:
                raise TransientYouTubeAPIError(
                    f"YouTube API error: {response.status_code} {response.reason}",
                    status=response.status_code,
                    transient=True,
                )
            if response.status_code == 403:
                raise YouTubeAPIError("YouTube API quota exceeded or API key invalid", status=403)
            if response.status_code == 404:
                raise YouTubeAPIError("Video not found or private", status=404)
            raise YouTubeAPIError(
                f"YouTube API error: {response.status_code} {response.reason}",
                status=response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            raise YouTubeAPIError("YouTube API returned an invalid response")

        items = data.get("items") or []
        if not items:
            raise YouTubeAPIError("Video not found or private", status=404)

        video = items[0]
        snippet = video.get("snippet") or {}
        content_details = video.get("contentDetails") or {}
        thumbnails = snippet.get("thumbnails") or {}
        thumbnail = thumbnails.get("high") or thumbnails.get("default") or {}

        metadata = VideoMetadata(
            video_id=video_id,
            title=snippet.get("title") or f"YouTube Video {video_id}",
            description=snippet.get("description") or "",
            duration=parse_iso8601_duration(content_details.get("duration") or "PT0S"),
            published_at=snippet.get("publishedAt"),
            channel_title=snippet.get("channelTitle"),
            thumbnail_url=thumbnail.get("url"),
        )
        logging.info(f"Fetched metadata for {video_id}: '{metadata.title}' ({metadata.duration}s)")
        return metadata

    def fetch_oembed_info(self, video_id: str) -> Dict[str, Optional[str]]:
        """
        Fetch title, author and thumbnail through oEmbed.

        Never raises. Defaults are returned when the request fails.
        """
        return self._lookup_oembed(video_id) or oembed_defaults(video_id)

    @cached(expires=config.CACHE_TTL, prefix="oembed")
    def _lookup_oembed(self, video_id: str) -> Optional[Dict[str, Optional[str]]]:
        # None on failure, so only successful lookups are cached
        try:
            response = requests.get(
                config.YOUTUBE_OEMBED_URL,
                params={"url": f"https://www.youtube.com/watch?v={video_id}", "format": "json"},
                timeout=self.timeout,
            )
            if not response.ok:
                logging.warning(f"oEmbed lookup failed for {video_id}: HTTP {response.status_code}")
                return None
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logging.warning(f"oEmbed lookup failed for {video_id}: {e}")
            return None

        info = oembed_defaults(video_id)
        info["title"] = data.get("title") or info["title"]
        info["author"] = data.get("author_name") or info["author"]
        info["thumbnail_url"] = data.get("thumbnail_url")
        return info
