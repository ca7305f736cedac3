"""
Tests for episode exports.
"""

import csv
import io
import json
import xml.etree.ElementTree as ET

import pytest

from shownotes.core.exporter import (
    THREAD_SEPARATOR,
    TWEET_LIMIT,
    export_episode,
    to_csv,
    to_html,
    to_json,
    to_linkedin,
    to_markdown,
    to_rss,
    to_rtf,
    to_show_notes,
    to_srt,
    to_twitter_thread,
    to_vtt,
    to_xml,
)
from shownotes.db.crud import episode_to_dict
from shownotes.utils.error_handling import InvalidFormatError


@pytest.fixture
def episode(sample_episode):
    data = episode_to_dict(sample_episode)
    data["show_notes"] = {
        "title": "Why Tests Matter",
        "summary": "We talk about tests.",
        "takeaways": ["Write tests first", "Mock the network"],
        "topics": ["testing", "mocking"],
        "cta": "Subscribe for more testing tips",
    }
    return data


def test_markdown(episode):
    markdown = to_markdown(episode)

    assert markdown.startswith("# Testing Podcast Episode 1\n")
    assert "## Summary\nA short chat about testing." in markdown
    assert "- **[00:01:05](https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=1m5s)** Testing" in markdown
    assert "## Keywords\ntesting, python, podcast" in markdown
    assert '> "Tests are documentation." - Alice' in markdown
    assert "- Write tests first" in markdown
    assert "## Full Transcript" in markdown


def test_markdown_without_video_has_plain_timestamps(episode):
    episode["video_id"] = None

    assert "- **00:01:05** Testing" in to_markdown(episode)


def test_html_escapes_content(episode):
    episode["title"] = "Tests <script>alert(1)</script> & more"

    page = to_html(episode)

    assert "<script>" not in page
    assert "<title>Tests &lt;script&gt;alert(1)&lt;/script&gt; &amp; more</title>" in page
    assert "<h2>Chapters</h2>" in page


def test_json(episode):
    data = json.loads(to_json(episode))

    assert data["title"] == "Testing Podcast Episode 1"
    assert data["summary"]["short"] == "A short chat about testing."
    assert len(data["chapters"]) == 2
    assert data["show_notes"]["cta"] == "Subscribe for more testing tips"
    assert "exported_at" in data


def test_csv(episode):
    rows = list(csv.reader(io.StringIO(to_csv(episode))))

    assert rows[0] == ["Type", "Content"]
    assert ["Title", "Testing Podcast Episode 1"] in rows
    assert ["Chapter 2", "00:01:05 - Testing"] in rows
    assert ["Keyword 3", "podcast"] in rows
    assert ["Quote 1", '"Tests are documentation." - Alice'] in rows
    assert rows[-1][0] == "Transcript"


def test_xml(episode):
    document = to_xml(episode)
    root = ET.fromstring(document.split("?>", 1)[1])

    assert document.startswith("<?xml")
    assert root.findtext("title") == "Testing Podcast Episode 1"
    assert root.find("chapters/chapter").get("timestamp") == "00:00:00"
    assert [k.text for k in root.findall("keywords/keyword")] == ["testing", "python", "podcast"]
    assert root.find("quotes/quote").get("speaker") == "Alice"


def test_rtf_escapes_control_characters_and_unicode(episode):
    episode["title"] = "Braces {and} back\\slash café"

    rtf = to_rtf(episode)

    assert rtf.startswith("{\\rtf1")
    assert rtf.endswith("}")
    assert "Braces \\{and\\} back\\\\slash caf\\u233?" in rtf


def test_rss(episode):
    document = to_rss(episode)
    rss = ET.fromstring(document.split("?>", 1)[1])
    item = rss.find("channel/item")

    assert rss.get("version") == "2.0"
    assert item.findtext("link") == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
    assert [c.text for c in item.findall("category")] == ["testing", "python", "podcast"]
    assert item.findtext("guid") == episode["id"]
    assert item.findtext("pubDate")


def test_show_notes(episode):
    notes = to_show_notes(episode)

    assert notes.startswith("# Testing Podcast Episode 1 - Show Notes")
    assert "1. 00:00:00 - Intro" in notes
    assert "• mocking" in notes
    assert "• Write tests first" in notes
    assert "Subscribe for more testing tips" in notes
    assert "Watch the full episode: https://www.youtube.com/watch?v=dQw4w9WgXcQ" in notes


def test_show_notes_topics_fall_back_to_keywords(episode):
    episode["show_notes"] = None

    assert "• python" in to_show_notes(episode)


def test_twitter_thread_fits_tweet_limit(episode):
    episode["summary"]["long"] = " ".join(
        f"Sentence number {i} explains one more reason why automated tests keep podcasts honest."
        for i in range(12)
    )

    tweets = to_twitter_thread(episode).split(THREAD_SEPARATOR)

    assert len(tweets) > 1
    assert tweets[0].startswith("🧵 Testing Podcast Episode 1")
    assert all(len(tweet) <= TWEET_LIMIT for tweet in tweets)
    assert tweets[-1].endswith(f"{len(tweets)}/{len(tweets)}")
    assert "#Testing #Python #Podcast" in tweets[-1]


def test_twitter_thread_truncates_long_sentences(episode):
    episode["summary"]["long"] = "word " * 200

    tweets = to_twitter_thread(episode).split(THREAD_SEPARATOR)

    assert all(len(tweet) <= TWEET_LIMIT for tweet in tweets)


def test_linkedin(episode):
    post = to_linkedin(episode)

    assert post.startswith("🎙️ Testing Podcast Episode 1")
    assert "• Write tests first" in post
    assert "🔍 Keywords: testing, python, podcast" in post
    assert "🎧 Listen here: https://www.youtube.com/watch?v=dQw4w9WgXcQ" in post


def test_linkedin_uses_chapters_without_takeaways(episode):
    episode["show_notes"] = None

    assert "• Intro" in to_linkedin(episode)


def test_srt(episode):
    srt = to_srt(episode)

    assert srt.startswith("1\n00:00:00,000 --> 00:00:04,000\nWelcome to the show.\n\n2\n")
    assert "3\n00:10:00,000 --> 00:10:03,200\nThanks for listening." in srt


def test_vtt(episode):
    vtt = to_vtt(episode)

    assert vtt.startswith("WEBVTT\n\n00:00:00.000 --> 00:00:04.000\nWelcome to the show.")
    assert "00:00:04.000 --> 00:00:09.500" in vtt


@pytest.mark.parametrize("export_format", ["srt", "vtt"])
def test_subtitles_require_caption_segments(episode, export_format):
    episode["caption_segments"] = []

    with pytest.raises(InvalidFormatError, match="requires caption segments"):
        export_episode(episode, export_format)


@pytest.mark.parametrize("export_format,filename,media_type", [
    ("markdown", "Testing_Podcast_Episode_1.md", "text/markdown"),
    ("json", "Testing_Podcast_Episode_1.json", "application/json"),
    ("rss", "Testing_Podcast_Episode_1.xml", "application/rss+xml"),
    ("show_notes", "Testing_Podcast_Episode_1_show_notes.md", "text/markdown"),
    ("twitter", "Testing_Podcast_Episode_1_twitter.txt", "text/plain"),
    ("linkedin", "Testing_Podcast_Episode_1_linkedin.txt", "text/plain"),
    ("vtt", "Testing_Podcast_Episode_1.vtt", "text/vtt"),
])
def test_export_episode_filenames(episode, export_format, filename, media_type):
    exported = export_episode(episode, export_format)

    assert exported.filename == filename
    assert exported.media_type == media_type
    assert exported.content


def test_export_episode_unknown_format(episode):
    with pytest.raises(InvalidFormatError, match="Unsupported export format 'pdf'"):
        export_episode(episode, "pdf")
