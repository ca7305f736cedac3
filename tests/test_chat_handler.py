"""
Tests for the episode chat handler.
"""

import pytest
from unittest.mock import patch, MagicMock

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from shownotes.core.chat_handler import (
    EMPTY_QUESTION_ANSWER,
    NO_TRANSCRIPT_ANSWER,
    ChatHandler,
    ChatSession,
)
from shownotes.db import crud


@pytest.fixture
def mock_llm():
    llm = MagicMock()
    llm.invoke.return_value = MagicMock(content="The episode is about testing.")
    return llm


def test_chat_session_generates_id():
    assert ChatSession("episode-1").session_id
    assert ChatSession("episode-1", "abc").session_id == "abc"


def test_chat_response_saves_history(db, sample_episode, mock_llm):
    handler = ChatHandler(llm=mock_llm)

    result = handler.get_chat_response(db, sample_episode, "  What is this about?  ")

    assert result["answer"] == "The episode is about testing."
    assert result["answered"]
    history = crud.get_chat_history(db, sample_episode.id, result["session_id"])
    assert len(history) == 1
    assert history[0].message == "What is this about?"

    messages = mock_llm.invoke.call_args[0][0]
    assert isinstance(messages[0], SystemMessage)
    assert "Episode title: Testing Podcast Episode 1" in messages[0].content
    assert "Welcome to the show." in messages[0].content
    assert messages[-1].content == "What is this about?"


def test_chat_response_includes_previous_turns(db, sample_episode, mock_llm):
    crud.add_chat_message(db, sample_episode.id, "session-1", "Who hosts it?", "Alice does.")
    handler = ChatHandler(llm=mock_llm)

    result = handler.get_chat_response(db, sample_episode, "What did she say?", session_id="session-1")

    assert result["session_id"] == "session-1"
    messages = mock_llm.invoke.call_args[0][0]
    assert isinstance(messages[1], HumanMessage)
    assert messages[1].content == "Who hosts it?"
    assert isinstance(messages[2], AIMessage)
    assert messages[2].content == "Alice does."
    assert len(crud.get_chat_history(db, sample_episode.id, "session-1")) == 2


@pytest.mark.parametrize("message", ["", "   "])
def test_empty_question(db, sample_episode, mock_llm, message):
    result = ChatHandler(llm=mock_llm).get_chat_response(db, sample_episode, message)

    assert result == {"answer": EMPTY_QUESTION_ANSWER, "session_id": "new_session"}
    mock_llm.invoke.assert_not_called()


def test_missing_transcript(db, mock_llm):
    episode = crud.create_episode(db, "user-1", "No transcript yet")

    result = ChatHandler(llm=mock_llm).get_chat_response(db, episode, "Anything?", session_id="s")

    assert result == {"answer": NO_TRANSCRIPT_ANSWER, "session_id": "s"}
    mock_llm.invoke.assert_not_called()


def test_llm_failure_returns_message(db, sample_episode, mock_llm):
    mock_llm.invoke.side_effect = Exception("429 rate limit reached")

    result = ChatHandler(llm=mock_llm).get_chat_response(db, sample_episode, "Hello?")

    assert result["error"]
    assert result["answer"] == "Rate limit exceeded. Please try again later."
    assert "answered" not in result
    assert crud.get_chat_history(db, sample_episode.id, result["session_id"]) == []


def test_llm_is_created_lazily():
    with patch("shownotes.core.chat_handler.init_chat_model") as mock_init_model:
        handler = ChatHandler()
        mock_init_model.assert_not_called()

        assert handler.llm is mock_init_model.return_value
        assert handler.llm is mock_init_model.return_value
        mock_init_model.assert_called_once()
