"""
Tests for the YouTube Data API client.
"""

import pytest
import requests
from unittest.mock import patch, MagicMock

from shownotes.core.youtube_data_api import YouTubeDataAPI
from shownotes.utils.error_handling import YouTubeAPIError


def make_response(status_code=200, json_data=None, reason="OK"):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.reason = reason
    response.text = str(json_data)
    response.json.return_value = json_data
    return response


VIDEO_ITEM = {
    "items": [{
        "snippet": {
            "title": "Testing Podcast Episode 1",
            "description": "An episode about tests",
            "publishedAt": "2024-01-01T00:00:00Z",
            "channelTitle": "Test Channel",
            "thumbnails": {
                "default": {"url": "https://i.ytimg.com/default.jpg"},
                "high": {"url": "https://i.ytimg.com/high.jpg"},
            },
        },
        "contentDetails": {"duration": "PT10M4S"},
    }]
}


@pytest.fixture
def api():
    return YouTubeDataAPI(api_key="test_key", retry_delay=0)


@patch("shownotes.core.youtube_data_api.requests.get")
def test_fetch_video_metadata(mock_get, api):
    mock_get.return_value = make_response(json_data=VIDEO_ITEM)

    metadata = api.fetch_video_metadata("dQw4w9WgXcQ")

    assert metadata.title == "Testing Podcast Episode 1"
    assert metadata.duration == 604
    assert metadata.channel_title == "Test Channel"
    assert metadata.thumbnail_url == "https://i.ytimg.com/high.jpg"

    _, kwargs = mock_get.call_args
    assert kwargs["params"]["id"] == "dQw4w9WgXcQ"
    assert kwargs["params"]["part"] == "contentDetails,snippet"
    assert kwargs["timeout"] == 10


@patch("shownotes.core.youtube_data_api.requests.get")
def test_fetch_video_metadata_is_cached(mock_get, api):
    mock_get.return_value = make_response(json_data=VIDEO_ITEM)

    first = api.fetch_video_metadata("dQw4w9WgXcQ")
    second = api.fetch_video_metadata("dQw4w9WgXcQ")

    assert second == first
    assert mock_get.call_count == 1


@patch("shownotes.core.youtube_data_api.requests.get")
def test_fetch_video_metadata_fallback_title(mock_get, api):
    item = {"items": [{"snippet": {"thumbnails": {}}, "contentDetails": {}}]}
    mock_get.return_value = make_response(json_data=item)

    metadata = api.fetch_video_metadata("dQw4w9WgXcQ")

    assert metadata.title == "YouTube Video dQw4w9WgXcQ"
    assert metadata.duration == 0
    assert metadata.thumbnail_url is None


def test_missing_api_key():
    with patch("shownotes.core.youtube_data_api.config.YOUTUBE_API_KEY", None):
        api = YouTubeDataAPI(api_key=None)
    with pytest.raises(YouTubeAPIError, match="YouTube API key not configured"):
        api.fetch_video_metadata("dQw4w9WgXcQ")


@patch("shownotes.core.youtube_data_api.requests.get")
def test_quota_error_is_not_retried(mock_get, api):
    mock_get.return_value = make_response(status_code=403, json_data={}, reason="Forbidden")

    with pytest.raises(YouTubeAPIError, match="quota exceeded"):
        api.fetch_video_metadata("dQw4w9WgXcQ")
    assert mock_get.call_count == 1


@patch("shownotes.core.youtube_data_api.requests.get")
def test_empty_items_means_not_found(mock_get, api):
    mock_get.return_value = make_response(json_data={"items": []})

    with pytest.raises(YouTubeAPIError, match="Video not found or private") as exc_info:
        api.fetch_video_metadata("dQw4w9WgXcQ")
    assert exc_info.value.status == 404


@patch("shownotes.core.youtube_data_api.requests.get")
def test_transient_errors_are_retried(mock_get, api):
    mock_get.side_effect = [
        make_response(status_code=503, json_data={}, reason="Service Unavailable"),
        requests.exceptions.Timeout(),
        make_response(json_data=VIDEO_ITEM),
    ]

    metadata = api.fetch_video_metadata("dQw4w9WgXcQ")

    assert metadata.duration == 604
    assert mock_get.call_count == 3


@patch("shownotes.core.youtube_data_api.requests.get")
def test_retries_give_up_after_max_retries(mock_get, api):
    mock_get.side_effect = requests.exceptions.ConnectionError()

    with pytest.raises(YouTubeAPIError, match="Network error") as exc_info:
        api.fetch_video_metadata("dQw4w9WgXcQ")
    assert exc_info.value.transient
    assert mock_get.call_count == 4


@patch("shownotes.core.youtube_data_api.requests.get")
def test_fetch_oembed_info(mock_get, api):
    mock_get.return_value = make_response(json_data={
        "title": "Oembed Title",
        "author_name": "Some Creator",
        "thumbnail_url": "https://i.ytimg.com/hq.jpg",
    })

    info = api.fetch_oembed_info("dQw4w9WgXcQ")

    assert info == {
        "title": "Oembed Title",
        "author": "Some Creator",
        "thumbnail_url": "https://i.ytimg.com/hq.jpg",
    }


@patch("shownotes.core.youtube_data_api.requests.get")
def test_fetch_oembed_info_defaults_on_failure(mock_get, api):
    mock_get.side_effect = requests.exceptions.ConnectionError()

    info = api.fetch_oembed_info("abcdefghijk")

    assert info["title"] == "YouTube Video abcdefghijk"
    assert info["author"] == "Unknown Creator"
    assert info["thumbnail_url"] is None


@patch("shownotes.core.youtube_data_api.requests.get")
def test_other_request_errors_are_retried(mock_get, api):
    mock_get.side_effect = [
        requests.exceptions.ChunkedEncodingError("connection broken"),
        make_response(json_data=VIDEO_ITEM),
    ]

    metadata = api.fetch_video_metadata("dQw4w9WgXcQ")

    assert metadata.title == "Testing Podcast Episode 1"
    assert mock_get.call_count == 2


@patch("shownotes.core.youtube_data_api.requests.get")
def test_fetch_oembed_info_caches_only_success(mock_get, api):
    mock_get.side_effect = [
        requests.exceptions.ConnectionError(),
        make_response(json_data={"title": "Oembed Title", "author_name": "Some Creator"}),
    ]

    assert api.fetch_oembed_info("dQw4w9WgXcQ")["title"] == "YouTube Video dQw4w9WgXcQ"
    assert api.fetch_oembed_info("dQw4w9WgXcQ")["title"] == "Oembed Title"
    assert api.fetch_oembed_info("dQw4w9WgXcQ")["author"] == "Some Creator"
    assert mock_get.call_count == 2
