"""
Module for generating episode content (summaries, chapters, keywords, quotes
and show notes) from transcripts using LLM models.
"""

import os
import re
import json
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from langchain.chat_models import init_chat_model
from langchain_core.prompts import ChatPromptTemplate
from langchain_text_splitters import RecursiveCharacterTextSplitter

from shownotes.core.prompts import (
    system_template,
    summary_template,
    chapters_template,
    keywords_template,
    quotes_template,
    show_notes_template,
    map_template,
)
from shownotes.models.schemas import (
    Chapter,
    EpisodeContent,
    EpisodeSummary,
    GeneratedContent,
    GenerationConfig,
    Quote,
)
from shownotes.utils.error_handling import InvalidFormatError
from shownotes.utils.logger import logging

MAX_KEYWORDS = 15
SHOW_NOTES_TEXT_FIELDS = ("title", "summary", "cta")
SHOW_NOTES_LIST_FIELDS = ("takeaways", "topics")

_SHORT_PATTERN = re.compile(r"SHORT:\s*(.*?)(?=LONG:|$)", re.S)
_LONG_PATTERN = re.compile(r"LONG:\s*(.*?)$", re.S)
_CHAPTER_PATTERN = re.compile(
    r"CHAPTER \d+:\s*(\d{1,2}:\d{2}:\d{2})\s*-\s*([^\n]*)(?:\n(.*?))?(?=CHAPTER \d+:|$)", re.S
)
_QUOTE_PATTERN = re.compile(r'QUOTE \d+:\s*"([^"]+)"\s*(?:-\s*([^(\n]+))?')
_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$")


def parse_summary(text: str) -> EpisodeSummary:
    short_match = _SHORT_PATTERN.search(text or "")
    long_match = _LONG_PATTERN.search(text or "")
    short = short_match.group(1).strip() if short_match else ""
    long = long_match.group(1).strip() if long_match else ""
    return EpisodeSummary(
        short=short or "Summary not available",
        long=long or "Detailed summary not available",
    )


def parse_chapters(text: str) -> List[Chapter]:
    """
    Parse "CHAPTER n: HH:MM:SS - Title" blocks.

    The description lines after a title are optional. Single-digit hours are
    padded, so "0:05:30" becomes "00:05:30".
    """
    return [
        Chapter(timestamp=timestamp.zfill(8), title=title.strip(), content=content.strip())
        for timestamp, title, content in _CHAPTER_PATTERN.findall(text or "")
    ]


def parse_keywords(text: str) -> List[str]:
    keywords = [keyword.strip() for keyword in (text or "").split(",")]
    return [keyword for keyword in keywords if keyword][:MAX_KEYWORDS]


def parse_quotes(text: str) -> List[Quote]:
    """Parse 'QUOTE n: "text" - Speaker' lines. The speaker part is optional."""
    quotes = []
    for quote_text, speaker in _QUOTE_PATTERN.findall(text or ""):
        quotes.append(Quote(text=quote_text.strip(), speaker=speaker.strip() or None))
    return quotes


def parse_show_notes(text: str) -> GeneratedContent:
    """
    Parse the JSON show notes returned by the model.

    Raises:
        InvalidFormatError: If the response is not JSON or a required field is missing
    """
    cleaned = _FENCE_PATTERN.sub("", (text or "").strip())
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        logging.error(f"Show notes response is not valid JSON: {cleaned[:200]}")
        raise InvalidFormatError("Generated content is not valid JSON")

    # Text fields must be non-empty, list fields only present
    if not isinstance(data, dict) or \
            not all(data.get(field) for field in SHOW_NOTES_TEXT_FIELDS) or \
            any(data.get(field) is None for field in SHOW_NOTES_LIST_FIELDS):
        raise InvalidFormatError("Generated content missing required fields")

    takeaways = data["takeaways"] if isinstance(data["takeaways"], list) else [data["takeaways"]]
    topics = data["topics"] if isinstance(data["topics"], list) else [data["topics"]]
    return GeneratedContent(
        title=str(data["title"]).strip(),
        summary=str(data["summary"]).strip(),
        takeaways=[str(item) for item in takeaways],
        topics=[str(item) for item in topics],
        cta=str(data["cta"]).strip(),
    )


class ContentGenerator:
    """Class to handle episode content generation."""

    def __init__(self, generation_config: Optional[GenerationConfig] = None, api_key: Optional[str] = None):
        """
        Initialize the generator with API key.

        Args:
            generation_config: Model and chunking configuration
            api_key: Groq API key (if None, will try to get from environment)
        """
        self.generation_config = generation_config or GenerationConfig()
        self.api_key = api_key or os.getenv("GROQ_API_KEY")
        if not self.api_key:
            raise ValueError("Groq API key is required. Set it in .env file or pass directly.")

        os.environ["GROQ_API_KEY"] = self.api_key

        self.llm = init_chat_model(
            model=self.generation_config.model,
            model_provider=self.generation_config.model_provider,
            temperature=self.generation_config.temperature,
            max_tokens=self.generation_config.max_tokens,
        )
        self.text_splitter = RecursiveCharacterTextSplitter(
            chunk_size=self.generation_config.chunk_size,
            chunk_overlap=self.generation_config.chunk_overlap,
        )

    def _complete(self, template: str, **kwargs) -> str:
        prompt = ChatPromptTemplate.from_messages([
            ("system", system_template),
            ("human", template),
        ])
        response = self.llm.invoke(prompt.format_messages(**kwargs))
        return response.content

    def condense_transcript(self, transcript: str) -> str:
        """
        Shrink a long transcript so it fits in one prompt.

        Short transcripts are returned as they are. Longer ones are split into
        chunks, each chunk is summarized and the partial summaries are joined.
        """
        chunks = self.text_splitter.split_text(transcript)
        if len(chunks) <= 1:
            return transcript

        logging.info(f"Condensing transcript of {len(transcript)} characters in {len(chunks)} chunks")
        partial_summaries = [self._complete(map_template, text=chunk) for chunk in chunks]
        return "\n\n".join(partial_summaries)

    def generate_summary(self, transcript: str) -> EpisodeSummary:
        return parse_summary(self._complete(summary_template, transcript=transcript))

    def generate_chapters(self, transcript: str) -> List[Chapter]:
        return parse_chapters(self._complete(chapters_template, transcript=transcript))

    def generate_keywords(self, transcript: str) -> List[str]:
        return parse_keywords(self._complete(keywords_template, transcript=transcript))

    def generate_quotes(self, transcript: str) -> List[Quote]:
        return parse_quotes(self._complete(quotes_template, transcript=transcript))

    def generate_show_notes(self, transcript: str, title: Optional[str] = None) -> GeneratedContent:
        """
        Generate title, summary, takeaways, topics and a call to action in one call.

        Args:
            transcript: Episode transcript
            title: Title of the source video, if known

        Returns:
            GeneratedContent
        """
        if not transcript or not transcript.strip():
            raise ValueError("Transcript is required")

        response = self._complete(
            show_notes_template,
            transcript=self.condense_transcript(transcript),
            title=title or "Untitled",
        )
        return parse_show_notes(response)

    def generate_episode_content(self, transcript: str, title: Optional[str] = None) -> EpisodeContent:
        """
        Generate summary, chapters, keywords and quotes in parallel.

        Show notes are added when the configuration asks for them.

        Args:
            transcript: Episode transcript
            title: Title of the source video, if known

        Returns:
            EpisodeContent
        """
        if not transcript or not transcript.strip():
            raise ValueError("Transcript is required")

        text = self.condense_transcript(transcript)
        logging.info(f"Generating episode content from {len(text)} characters")

        with ThreadPoolExecutor(max_workers=4) as executor:
            summary_future = executor.submit(self.generate_summary, text)
            chapters_future = executor.submit(self.generate_chapters, text)
            keywords_future = executor.submit(self.generate_keywords, text)
            quotes_future = executor.submit(self.generate_quotes, text)

            content = EpisodeContent(
                summary=summary_future.result(),
                chapters=chapters_future.result(),
                keywords=keywords_future.result(),
                quotes=quotes_future.result(),
            )

        if self.generation_config.include_show_notes:
            content.show_notes = parse_show_notes(
                self._complete(show_notes_template, transcript=text, title=title or "Untitled")
            )

        logging.info(
            f"Generated {len(content.chapters)} chapters, {len(content.keywords)} keywords "
            f"and {len(content.quotes)} quotes"
        )
        return content
