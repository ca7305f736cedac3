"""
Tests for the episode content generator module.
"""

import os
import json
import pytest
from unittest.mock import patch, MagicMock

from shownotes.models.schemas import EpisodeContent, GenerationConfig
from shownotes.core.content_generator import (
    ContentGenerator,
    parse_chapters,
    parse_keywords,
    parse_quotes,
    parse_show_notes,
    parse_summary,
)
from shownotes.utils.error_handling import InvalidFormatError

SUMMARY_RESPONSE = "SHORT: A short chat about testing.\nLONG: A longer look at why tests matter."

CHAPTERS_RESPONSE = (
    "CHAPTER 1: 00:00:00 - Intro\nHosts say hello\n\n"
    "CHAPTER 2: 00:05:30 - Deep dive\nWhy tests matter"
)

KEYWORDS_RESPONSE = "testing, python, , podcast"

QUOTES_RESPONSE = (
    'QUOTE 1: "Tests are documentation." - Alice (host)\n'
    'QUOTE 2: "Ship it."'
)

SHOW_NOTES_RESPONSE = json.dumps({
    "title": "Why Tests Matter",
    "summary": "We talk about tests.",
    "takeaways": ["Write tests first", "Mock the network"],
    "topics": ["testing", "mocking"],
    "cta": "Subscribe for more testing tips",
})


def respond(messages):
    """Answer each prompt with a canned response for its task."""
    prompt = messages[-1].content
    if "Create two versions" in prompt:
        content = SUMMARY_RESPONSE
    elif "logical chapters" in prompt:
        content = CHAPTERS_RESPONSE
    elif "SEO-optimized" in prompt:
        content = KEYWORDS_RESPONSE
    elif "quotable moments" in prompt:
        content = QUOTES_RESPONSE
    elif "Return ONLY a JSON" in prompt:
        content = SHOW_NOTES_RESPONSE
    elif "Summarize this part" in prompt:
        content = "partial summary"
    else:
        content = ""
    return MagicMock(content=content)


@pytest.fixture
def mock_langchain_model():
    """Fixture to mock the langchain chat model."""
    with patch('shownotes.core.content_generator.init_chat_model') as mock_init_model:
        mock_model = MagicMock()
        mock_model.invoke.side_effect = respond
        mock_init_model.return_value = mock_model
        yield mock_model


@pytest.fixture
def transcript():
    return (
        "Welcome to the show. Today we talk about testing. "
        "Tests are documentation. Ship it. Thanks for listening."
    )


def test_parse_summary():
    summary = parse_summary(SUMMARY_RESPONSE)
    assert summary.short == "A short chat about testing."
    assert summary.long == "A longer look at why tests matter."


def test_parse_summary_fallbacks():
    summary = parse_summary("The model ignored the format")
    assert summary.short == "Summary not available"
    assert summary.long == "Detailed summary not available"


def test_parse_chapters():
    chapters = parse_chapters(CHAPTERS_RESPONSE)
    assert [c.timestamp for c in chapters] == ["00:00:00", "00:05:30"]
    assert chapters[0].title == "Intro"
    assert chapters[0].content == "Hosts say hello"
    assert chapters[1].content == "Why tests matter"


def test_parse_chapters_last_chapter_without_description():
    chapters = parse_chapters("CHAPTER 1: 00:00:00 - Intro\nHello\n\nCHAPTER 2: 00:05:00 - Wrap up")

    assert [c.title for c in chapters] == ["Intro", "Wrap up"]
    assert chapters[0].content == "Hello"
    assert chapters[1].content == ""


def test_parse_chapters_pads_single_digit_hours():
    chapters = parse_chapters("CHAPTER 1: 0:05:30 - Testing\nWhy tests matter\n")

    assert chapters[0].timestamp == "00:05:30"
    assert chapters[0].content == "Why tests matter"


def test_parse_keywords_drops_empty_and_caps_count():
    assert parse_keywords(KEYWORDS_RESPONSE) == ["testing", "python", "podcast"]
    many = ", ".join(f"keyword{i}" for i in range(20))
    assert len(parse_keywords(many)) == 15


def test_parse_quotes():
    quotes = parse_quotes(QUOTES_RESPONSE)
    assert quotes[0].text == "Tests are documentation."
    assert quotes[0].speaker == "Alice"
    assert quotes[1].text == "Ship it."
    assert quotes[1].speaker is None


def test_parse_show_notes_strips_code_fence():
    notes = parse_show_notes(f"```json\n{SHOW_NOTES_RESPONSE}\n```")
    assert notes.title == "Why Tests Matter"
    assert notes.takeaways == ["Write tests first", "Mock the network"]


def test_parse_show_notes_invalid_json():
    with pytest.raises(InvalidFormatError, match="not valid JSON"):
        parse_show_notes("Here are your show notes!")


def test_parse_show_notes_missing_fields():
    with pytest.raises(InvalidFormatError, match="missing required fields"):
        parse_show_notes(json.dumps({"title": "Only a title"}))


def test_parse_show_notes_accepts_empty_lists():
    response = json.loads(SHOW_NOTES_RESPONSE)
    response["takeaways"] = []

    notes = parse_show_notes(json.dumps(response))

    assert notes.takeaways == []
    assert notes.topics == ["testing", "mocking"]


def test_parse_show_notes_rejects_empty_text_fields():
    response = json.loads(SHOW_NOTES_RESPONSE)
    response["cta"] = ""

    with pytest.raises(InvalidFormatError, match="missing required fields"):
        parse_show_notes(json.dumps(response))


@patch.dict(os.environ, {"GROQ_API_KEY": "test_api_key"})
def test_init_generator(mock_langchain_model):
    """Test initializing the generator."""
    generator = ContentGenerator(GenerationConfig(model="llama-3.3-70b-versatile", temperature=0.0))
    assert generator.api_key == "test_api_key"
    assert generator.llm is mock_langchain_model


def test_init_without_api_key():
    with patch.dict(os.environ, {}, clear=True):
        with pytest.raises(ValueError, match="Groq API key is required"):
            ContentGenerator()


def test_generate_episode_content(mock_langchain_model, transcript):
    generator = ContentGenerator(api_key="test_api_key")

    content = generator.generate_episode_content(transcript, title="Testing Podcast")

    assert isinstance(content, EpisodeContent)
    assert content.summary.short == "A short chat about testing."
    assert len(content.chapters) == 2
    assert content.keywords == ["testing", "python", "podcast"]
    assert len(content.quotes) == 2
    assert content.show_notes is None
    assert mock_langchain_model.invoke.call_count == 4


def test_generate_episode_content_with_show_notes(mock_langchain_model, transcript):
    generator = ContentGenerator(GenerationConfig(include_show_notes=True), api_key="test_api_key")

    content = generator.generate_episode_content(transcript, title="Testing Podcast")

    assert content.show_notes.title == "Why Tests Matter"
    assert mock_langchain_model.invoke.call_count == 5


def test_generate_show_notes_includes_title(mock_langchain_model, transcript):
    generator = ContentGenerator(api_key="test_api_key")

    notes = generator.generate_show_notes(transcript, title="Testing Podcast")

    messages = mock_langchain_model.invoke.call_args[0][0]
    assert "Video Title: Testing Podcast" in messages[-1].content
    assert notes.cta == "Subscribe for more testing tips"


@pytest.mark.parametrize("empty", ["", "   "])
def test_empty_transcript_is_rejected(mock_langchain_model, empty):
    generator = ContentGenerator(api_key="test_api_key")

    with pytest.raises(ValueError, match="Transcript is required"):
        generator.generate_episode_content(empty)
    with pytest.raises(ValueError, match="Transcript is required"):
        generator.generate_show_notes(empty)
    mock_langchain_model.invoke.assert_not_called()


def test_long_transcripts_are_condensed(mock_langchain_model):
    generator = ContentGenerator(
        GenerationConfig(chunk_size=50, chunk_overlap=0), api_key="test_api_key"
    )
    long_transcript = " ".join(["This sentence keeps the transcript going."] * 10)

    condensed = generator.condense_transcript(long_transcript)

    map_calls = mock_langchain_model.invoke.call_count
    assert map_calls > 1
    assert condensed == "\n\n".join(["partial summary"] * map_calls)


def test_short_transcripts_are_not_condensed(mock_langchain_model, transcript):
    generator = ContentGenerator(api_key="test_api_key")

    assert generator.condense_transcript(transcript) == transcript
    mock_langchain_model.invoke.assert_not_called()
