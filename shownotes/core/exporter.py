"""
Module for rendering episodes into downloadable and ready-to-post formats.

Every renderer takes the episode as a dictionary (see crud.episode_to_dict)
and returns text.
"""

import csv
import io
import re
import json
import datetime
import html
import xml.etree.ElementTree as ET
from email.utils import format_datetime
from typing import Any, Callable, Dict, List, Optional

from shownotes.core.youtube_helpers import (
    create_youtube_url_with_timestamp,
    parse_timestamp_to_seconds,
)
from shownotes.models.schemas import ExportFormat, ExportedFile
from shownotes.utils.error_handling import InvalidFormatError
from shownotes.utils.helpers import sanitize_filename, truncate_text

TWEET_LIMIT = 280
THREAD_SEPARATOR = "\n\n---\n\n"

FORMAT_DETAILS = {
    ExportFormat.MARKDOWN: ("md", "text/markdown"),
    ExportFormat.HTML: ("html", "text/html"),
    ExportFormat.JSON: ("json", "application/json"),
    ExportFormat.CSV: ("csv", "text/csv"),
    ExportFormat.XML: ("xml", "application/xml"),
    ExportFormat.RTF: ("rtf", "application/rtf"),
    ExportFormat.RSS: ("xml", "application/rss+xml"),
    ExportFormat.SHOW_NOTES: ("md", "text/markdown"),
    ExportFormat.TWITTER: ("txt", "text/plain"),
    ExportFormat.LINKEDIN: ("txt", "text/plain"),
    ExportFormat.SRT: ("srt", "application/x-subrip"),
    ExportFormat.VTT: ("vtt", "text/vtt"),
}

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")


def _title(episode: Dict[str, Any]) -> str:
    return episode.get("title") or "Untitled Episode"


def _summary(episode: Dict[str, Any]) -> Dict[str, str]:
    summary = episode.get("summary") or {}
    return {"short": summary.get("short") or "", "long": summary.get("long") or ""}


def _summary_text(episode: Dict[str, Any]) -> str:
    summary = _summary(episode)
    return summary["long"] or summary["short"]


def _takeaways(episode: Dict[str, Any]) -> List[str]:
    show_notes = episode.get("show_notes") or {}
    return list(show_notes.get("takeaways") or [])


def _topics(episode: Dict[str, Any]) -> List[str]:
    show_notes = episode.get("show_notes") or {}
    return list(show_notes.get("topics") or episode.get("keywords") or [])


def _quote_line(quote: Dict[str, Any]) -> str:
    line = f'"{quote.get("text", "")}"'
    if quote.get("speaker"):
        line += f' - {quote["speaker"]}'
    return line


def _chapter_line(chapter: Dict[str, Any]) -> str:
    return f'{chapter.get("timestamp", "00:00:00")} - {chapter.get("title", "")}'


def _chapter_link(episode: Dict[str, Any], chapter: Dict[str, Any]) -> Optional[str]:
    if not episode.get("video_id"):
        return None
    seconds = parse_timestamp_to_seconds(chapter.get("timestamp", ""))
    return create_youtube_url_with_timestamp(episode["video_id"], seconds)


def to_markdown(episode: Dict[str, Any]) -> str:
    summary = _summary(episode)
    lines = [f"# {_title(episode)}", "", "## Summary", summary["short"], ""]
    if summary["long"]:
        lines += [summary["long"], ""]

    if episode.get("chapters"):
        lines.append("## Chapters")
        for chapter in episode["chapters"]:
            link = _chapter_link(episode, chapter)
            timestamp = chapter.get("timestamp", "00:00:00")
            stamp = f"[{timestamp}]({link})" if link else timestamp
            lines.append(f'- **{stamp}** {chapter.get("title", "")}')
            if chapter.get("content"):
                lines.append(f'  {chapter["content"]}')
        lines.append("")

    if episode.get("keywords"):
        lines += ["## Keywords", ", ".join(episode["keywords"]), ""]

    if episode.get("quotes"):
        lines.append("## Quotes")
        lines += [f"> {_quote_line(quote)}" for quote in episode["quotes"]]
        lines.append("")

    if _takeaways(episode):
        lines.append("## Key Takeaways")
        lines += [f"- {takeaway}" for takeaway in _takeaways(episode)]
        lines.append("")

    if episode.get("transcript"):
        lines += ["## Full Transcript", episode["transcript"], ""]
    return "\n".join(lines).rstrip() + "\n"


def to_html(episode: Dict[str, Any]) -> str:
    """Standalone HTML page. All episode text is escaped."""
    esc = html.escape
    summary = _summary(episode)
    parts = [
        "<!DOCTYPE html>",
        "<html>",
        "<head>",
        '    <meta charset="utf-8">',
        f"    <title>{esc(_title(episode))}</title>",
        "    <style>",
        "        body { font-family: Arial, sans-serif; max-width: 800px; margin: 0 auto; padding: 20px; }",
        "        h1 { color: #333; border-bottom: 2px solid #007bff; }",
        "        h2 { color: #666; margin-top: 30px; }",
        "        .keywords { background: #f8f9fa; padding: 10px; border-radius: 5px; }",
        "    </style>",
        "</head>",
        "<body>",
        f"    <h1>{esc(_title(episode))}</h1>",
        "    <h2>Summary</h2>",
        f"    <p>{esc(summary['short'])}</p>",
    ]
    if summary["long"]:
        parts.append(f"    <p>{esc(summary['long'])}</p>")

    if episode.get("chapters"):
        parts += ["    <h2>Chapters</h2>", "    <ul class=\"chapters\">"]
        for chapter in episode["chapters"]:
            parts.append(
                f"        <li><strong>{esc(chapter.get('timestamp', ''))}</strong> "
                f"{esc(chapter.get('title', ''))}<br>{esc(chapter.get('content', ''))}</li>"
            )
        parts.append("    </ul>")

    if episode.get("keywords"):
        parts += ["    <h2>Keywords</h2>", f"    <div class=\"keywords\">{esc(', '.join(episode['keywords']))}</div>"]

    if episode.get("quotes"):
        parts.append("    <h2>Quotes</h2>")
        parts += [f"    <blockquote>{esc(_quote_line(quote))}</blockquote>" for quote in episode["quotes"]]

    if episode.get("transcript"):
        parts += ["    <h2>Full Transcript</h2>", f"    <p>{esc(episode['transcript'])}</p>"]

    parts += ["</body>", "</html>"]
    return "\n".join(parts) + "\n"


def to_json(episode: Dict[str, Any]) -> str:
    data = {
        "title": _title(episode),
        "summary": _summary(episode),
        "chapters": episode.get("chapters") or [],
        "keywords": episode.get("keywords") or [],
        "quotes": episode.get("quotes") or [],
        "show_notes": episode.get("show_notes"),
        "duration": episode.get("duration"),
        "source_type": episode.get("source_type"),
        "youtube_url": episode.get("youtube_url"),
        "transcript": episode.get("transcript") or "",
        "exported_at": datetime.datetime.now(datetime.timezone.utc).isoformat(),
    }
    return json.dumps(data, indent=2, ensure_ascii=False)


def to_csv(episode: Dict[str, Any]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["Type", "Content"])
    writer.writerow(["Title", _title(episode)])
    writer.writerow(["Summary", _summary_text(episode)])
    for index, chapter in enumerate(episode.get("chapters") or [], start=1):
        writer.writerow([f"Chapter {index}", _chapter_line(chapter)])
    for index, keyword in enumerate(episode.get("keywords") or [], start=1):
        writer.writerow([f"Keyword {index}", keyword])
    for index, quote in enumerate(episode.get("quotes") or [], start=1):
        writer.writerow([f"Quote {index}", _quote_line(quote)])
    writer.writerow(["Transcript", episode.get("transcript") or ""])
    return buffer.getvalue()


def to_xml(episode: Dict[str, Any]) -> str:
    root = ET.Element("episode", id=str(episode.get("id") or ""))
    ET.SubElement(root, "title").text = _title(episode)
    summary = _summary(episode)
    summary_el = ET.SubElement(root, "summary")
    ET.SubElement(summary_el, "short").text = summary["short"]
    ET.SubElement(summary_el, "long").text = summary["long"]

    chapters_el = ET.SubElement(root, "chapters")
    for index, chapter in enumerate(episode.get("chapters") or [], start=1):
        chapter_el = ET.SubElement(
            chapters_el, "chapter", number=str(index), timestamp=chapter.get("timestamp", "")
        )
        ET.SubElement(chapter_el, "title").text = chapter.get("title", "")
        ET.SubElement(chapter_el, "content").text = chapter.get("content", "")

    keywords_el = ET.SubElement(root, "keywords")
    for keyword in episode.get("keywords") or []:
        ET.SubElement(keywords_el, "keyword").text = keyword

    quotes_el = ET.SubElement(root, "quotes")
    for quote in episode.get("quotes") or []:
        quote_el = ET.SubElement(quotes_el, "quote")
        quote_el.text = quote.get("text", "")
        if quote.get("speaker"):
            quote_el.set("speaker", quote["speaker"])

    ET.SubElement(root, "transcript").text = episode.get("transcript") or ""
    ET.SubElement(root, "exportedAt").text = datetime.datetime.now(datetime.timezone.utc).isoformat()
    return ET.tostring(root, encoding="unicode", xml_declaration=True)


def _rtf_escape(text: str) -> str:
    out = []
    for ch in text or "":
        if ch in "\\{}":
            out.append("\\" + ch)
        elif ch == "\n":
            out.append("\\par\n")
        elif ord(ch) > 127:
            # RTF wants signed 16-bit UTF-16 code units
            units = ch.encode("utf-16-le")
            for i in range(0, len(units), 2):
                code = int.from_bytes(units[i:i + 2], "little", signed=True)
                out.append(f"\\u{code}?")
        else:
            out.append(ch)
    return "".join(out)


def to_rtf(episode: Dict[str, Any]) -> str:
    lines = [
        "{\\rtf1\\ansi\\deff0 {\\fonttbl {\\f0 Times New Roman;}}",
        "\\f0\\fs24",
        f"{{\\b {_rtf_escape(_title(episode))}}}\\par\\par",
        "{\\b Summary:}\\par",
        f"{_rtf_escape(_summary_text(episode))}\\par\\par",
    ]
    if episode.get("chapters"):
        lines.append("{\\b Chapters:}\\par")
        lines += [f"{_rtf_escape(_chapter_line(chapter))}\\par" for chapter in episode["chapters"]]
        lines.append("\\par")
    if episode.get("keywords"):
        lines += ["{\\b Keywords:}\\par", f"{_rtf_escape(', '.join(episode['keywords']))}\\par\\par"]
    if episode.get("transcript"):
        lines += ["{\\b Full Transcript:}\\par", f"{_rtf_escape(episode['transcript'])}\\par"]
    lines.append("}")
    return "\n".join(lines)


def _published_at(episode: Dict[str, Any]) -> datetime.datetime:
    created_at = episode.get("created_at")
    published = datetime.datetime.now(datetime.timezone.utc)
    if created_at:
        try:
            published = datetime.datetime.fromisoformat(created_at)
        except ValueError:
            pass
    if published.tzinfo is None:
        published = published.replace(tzinfo=datetime.timezone.utc)
    return published


def to_rss(episode: Dict[str, Any]) -> str:
    rss = ET.Element("rss", version="2.0")
    channel = ET.SubElement(rss, "channel")
    ET.SubElement(channel, "title").text = _title(episode)
    ET.SubElement(channel, "description").text = _summary(episode)["short"]
    ET.SubElement(channel, "language").text = "en-us"

    item = ET.SubElement(channel, "item")
    ET.SubElement(item, "title").text = _title(episode)
    ET.SubElement(item, "description").text = _summary_text(episode)
    if episode.get("youtube_url"):
        ET.SubElement(item, "link").text = episode["youtube_url"]
    for keyword in episode.get("keywords") or []:
        ET.SubElement(item, "category").text = keyword
    ET.SubElement(item, "pubDate").text = format_datetime(_published_at(episode))
    ET.SubElement(item, "guid", isPermaLink="false").text = str(episode.get("id") or "")
    return ET.tostring(rss, encoding="unicode", xml_declaration=True)


def to_show_notes(episode: Dict[str, Any]) -> str:
    lines = [f"# {_title(episode)} - Show Notes", "", "## Episode Summary", _summary_text(episode), ""]

    if episode.get("chapters"):
        lines.append("## Chapters & Timestamps")
        for index, chapter in enumerate(episode["chapters"], start=1):
            lines.append(f"{index}. {_chapter_line(chapter)}")
        lines.append("")

    if _topics(episode):
        lines.append("## Key Topics Discussed")
        lines += [f"• {topic}" for topic in _topics(episode)]
        lines.append("")

    if _takeaways(episode):
        lines.append("## Key Takeaways")
        lines += [f"• {takeaway}" for takeaway in _takeaways(episode)]
        lines.append("")

    if episode.get("quotes"):
        lines.append("## Notable Quotes")
        lines += [f"> {_quote_line(quote)}" for quote in episode["quotes"]]
        lines.append("")

    cta = (episode.get("show_notes") or {}).get("cta")
    if cta:
        lines += [cta, ""]

    if episode.get("youtube_url"):
        lines += [f"Watch the full episode: {episode['youtube_url']}", ""]

    lines += ["---", f"*Generated on {datetime.date.today().isoformat()}*"]
    return "\n".join(lines) + "\n"


def to_twitter_thread(episode: Dict[str, Any]) -> str:
    """
    Thread of numbered tweets, each at most 280 characters.

    Tweets are separated by a "---" line.
    """
    pieces = [f"🧵 {_title(episode)}"]
    pieces += [s for s in _SENTENCE_SPLIT.split(_summary_text(episode).strip()) if s]
    pieces += [_quote_line(quote) for quote in (episode.get("quotes") or [])[:3]]
    hashtags = " ".join(
        "#" + re.sub(r"\W", "", keyword.title()) for keyword in (episode.get("keywords") or [])[:3]
    )
    if hashtags.strip("# "):
        pieces.append(hashtags)

    # Room for the " n/N" counter
    body_limit = TWEET_LIMIT - 8
    tweets = []
    current = ""
    for piece in pieces:
        piece = truncate_text(piece, body_limit)
        candidate = f"{current} {piece}" if current else piece
        if len(candidate) <= body_limit:
            current = candidate
        else:
            tweets.append(current)
            current = piece
    if current:
        tweets.append(current)

    total = len(tweets)
    return THREAD_SEPARATOR.join(f"{tweet} {index}/{total}" for index, tweet in enumerate(tweets, start=1))


def to_linkedin(episode: Dict[str, Any]) -> str:
    highlights = _takeaways(episode) or [chapter.get("title", "") for chapter in episode.get("chapters") or []]
    lines = [f"🎙️ {_title(episode)}", "", _summary_text(episode), ""]
    if highlights:
        lines.append("📝 Key Takeaways:")
        lines += [f"• {highlight}" for highlight in highlights[:3]]
        lines.append("")
    if episode.get("keywords"):
        lines += [f"🔍 Keywords: {', '.join(episode['keywords'][:5])}", ""]
    if episode.get("youtube_url"):
        lines += [f"🎧 Listen here: {episode['youtube_url']}", ""]
    lines.append("#Podcast #Content #Insights #ProfessionalDevelopment")
    return "\n".join(lines)


def _caption_segments(episode: Dict[str, Any], format_name: str) -> List[Dict[str, Any]]:
    segments = episode.get("caption_segments") or []
    if not segments:
        raise InvalidFormatError(f"{format_name} export requires caption segments for this episode.")
    return segments


def _cue_time(milliseconds: float, separator: str) -> str:
    milliseconds = int(round(milliseconds))
    hours, remainder = divmod(milliseconds, 3600000)
    minutes, remainder = divmod(remainder, 60000)
    seconds, millis = divmod(remainder, 1000)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}{separator}{millis:03d}"


def _cues(segments: List[Dict[str, Any]], separator: str) -> List[str]:
    cues = []
    for segment in segments:
        start = segment.get("offset", 0)
        end = start + float(segment.get("duration") or 0) * 1000
        cues.append(f"{_cue_time(start, separator)} --> {_cue_time(end, separator)}\n{segment.get('text', '')}")
    return cues


def to_srt(episode: Dict[str, Any]) -> str:
    cues = _cues(_caption_segments(episode, "SRT"), ",")
    return "\n\n".join(f"{index}\n{cue}" for index, cue in enumerate(cues, start=1)) + "\n"


def to_vtt(episode: Dict[str, Any]) -> str:
    cues = _cues(_caption_segments(episode, "VTT"), ".")
    return "WEBVTT\n\n" + "\n\n".join(cues) + "\n"


RENDERERS: Dict[ExportFormat, Callable[[Dict[str, Any]], str]] = {
    ExportFormat.MARKDOWN: to_markdown,
    ExportFormat.HTML: to_html,
    ExportFormat.JSON: to_json,
    ExportFormat.CSV: to_csv,
    ExportFormat.XML: to_xml,
    ExportFormat.RTF: to_rtf,
    ExportFormat.RSS: to_rss,
    ExportFormat.SHOW_NOTES: to_show_notes,
    ExportFormat.TWITTER: to_twitter_thread,
    ExportFormat.LINKEDIN: to_linkedin,
    ExportFormat.SRT: to_srt,
    ExportFormat.VTT: to_vtt,
}


def export_episode(episode: Dict[str, Any], export_format: str) -> ExportedFile:
    """
    Render an episode in the requested format.

    Args:
        episode: Episode dictionary
        export_format: One of the ExportFormat values

    Returns:
        ExportedFile with content, filename and media type

    Raises:
        InvalidFormatError: Unknown format, or srt/vtt without caption segments
    """
    try:
        fmt = ExportFormat(export_format)
    except ValueError:
        raise InvalidFormatError(
            f"Unsupported export format '{export_format}'. "
            f"Supported formats: {', '.join(f.value for f in ExportFormat)}"
        )

    extension, media_type = FORMAT_DETAILS[fmt]
    content = RENDERERS[fmt](episode)
    stem = sanitize_filename(_title(episode))
    if fmt == ExportFormat.SHOW_NOTES:
        stem += "_show_notes"
    elif fmt in (ExportFormat.TWITTER, ExportFormat.LINKEDIN):
        stem += f"_{fmt.value}"
    return ExportedFile(content=content, filename=f"{stem}.{extension}", media_type=media_type)
