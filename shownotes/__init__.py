"""
Show Notes Generator.

Turns uploaded audio or YouTube videos into episodes with transcripts,
summaries, chapters, keywords and quotes generated by an LLM.
"""

from shownotes.config import config

__version__ = config.APP_VERSION
