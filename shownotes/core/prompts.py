system_template = """
    You are an expert content creator and editor specializing in podcast and video content analysis.
    """

summary_template = """
    Create two versions of a summary for this podcast/video transcript:

    1. SHORT (2-3 sentences): A concise, engaging summary that captures the main topics and key insights. Make it compelling for potential listeners.

    2. LONG (1 paragraph): A more detailed summary that provides context and highlights the most valuable takeaways.

    Format your response as:
    SHORT: [your short summary]
    LONG: [your long summary]

    Transcript:
    {transcript}
    """

chapters_template = """
    Break this transcript into 5-8 logical chapters with timestamps and descriptive titles.
    Each chapter should represent a distinct topic or conversation segment.

    Format your response as:
    CHAPTER 1: 00:00:00 - [Descriptive Title]
    [Brief description of what's covered in this chapter]

    CHAPTER 2: 00:05:30 - [Descriptive Title]
    [Brief description of what's covered in this chapter]

    Continue this pattern for all chapters. Make timestamps realistic based on content length.

    Transcript:
    {transcript}
    """

keywords_template = """
    Extract 10-15 SEO-optimized keywords and topics from this content.
    Include both broad categories and specific terms that would help people discover this content.

    Format your response as a simple comma-separated list:
    keyword1, keyword2, keyword3, etc.

    Transcript:
    {transcript}
    """

quotes_template = """
    Find the 5 most impactful, quotable moments from this transcript.
    Choose quotes that are insightful, memorable, or would perform well on social media.

    Format your response as:
    QUOTE 1: "[exact quote text]" - Speaker Name (if identifiable)
    QUOTE 2: "[exact quote text]" - Speaker Name (if identifiable)
    Continue this pattern...

    Transcript:
    {transcript}
    """

show_notes_template = """
    Analyze this YouTube video transcript and create detailed, specific show notes
    that capture the actual content and value.

    Video Title: {title}

    Transcript:
    {transcript}

    Return ONLY a JSON object with these keys, no markdown:
    {{
      "title": "A compelling episode title that reflects the specific content",
      "summary": "A detailed 3-4 paragraph summary of what was actually said",
      "takeaways": ["Specific actionable insight 1", "Specific actionable insight 2", "Specific actionable insight 3"],
      "topics": ["Specific topic 1", "Specific topic 2", "Specific topic 3"],
      "cta": "A call-to-action that references the specific value discussed"
    }}
    """

map_template = """
    Summarize this part of a transcript. Keep names, numbers, notable quotes and
    the order in which topics come up:

    {text}
    """

chat_template = """
    You are an AI assistant that helps users understand and refine episode content.
    You have access to the transcript of the episode they're asking about.

    Episode title: {title}

    Transcript:
    {context}

    Based ONLY on the information provided in the transcript above,
    answer the user's question thoroughly and accurately.

    If the transcript doesn't contain information to answer the question,
    be honest and say you don't have that information from the episode.
    """
