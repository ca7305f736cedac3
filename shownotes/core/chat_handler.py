"""
Chat handler module for asking questions about an episode transcript.
"""

import uuid
import traceback
from typing import Dict, Any, List, Optional

from sqlalchemy.orm import Session
from langchain.chat_models import init_chat_model
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder

from shownotes.config import config
from shownotes.core.prompts import chat_template
from shownotes.db.crud import add_chat_message, get_chat_history
from shownotes.db.models import Episode
from shownotes.utils.error_handling import user_facing_message
from shownotes.utils.helpers import truncate_text
from shownotes.utils.logger import logging

EMPTY_QUESTION_ANSWER = "Please provide a question about the episode."
NO_TRANSCRIPT_ANSWER = "The transcript for this episode is missing, so I can't answer questions about it yet."


class ChatSession:
    """Chat session with the conversation so far."""

    def __init__(self, episode_id: str, session_id: Optional[str] = None):
        """Initialize a chat session for an episode."""
        self.episode_id = episode_id
        self.session_id = session_id or str(uuid.uuid4())
        self.messages: List[BaseMessage] = []

    def load_history_from_db(self, db: Session, limit: int = 10):
        """Load chat history from database."""
        self.messages = []
        for entry in get_chat_history(db, self.episode_id, self.session_id, limit=limit):
            self.messages.append(HumanMessage(content=entry.message))
            self.messages.append(AIMessage(content=entry.response))

    def save_interaction(self, db: Session, question: str, answer: str):
        """Save a chat interaction to the database."""
        add_chat_message(
            db=db,
            episode_id=self.episode_id,
            session_id=self.session_id,
            message=question,
            response=answer
        )
        self.messages.append(HumanMessage(content=question))
        self.messages.append(AIMessage(content=answer))


class ChatHandler:
    """Handler for chat operations with episode transcripts."""

    def __init__(self, llm=None):
        self._llm = llm

    @property
    def llm(self):
        if self._llm is None:
            self._llm = init_chat_model(
                model=config.DEFAULT_SUMMARY_MODEL,
                model_provider=config.MODEL_PROVIDER,
                temperature=0.3
            )
        return self._llm

    def get_chat_response(
        self,
        db: Session,
        episode: Episode,
        message: str,
        session_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Answer a question about an episode.

        Args:
            db: Database session
            episode: Episode the question is about
            message: User question
            session_id: Optional session ID to continue a conversation

        Returns:
            Dict with the answer and the session ID
        """
        if not message or not message.strip():
            return {"answer": EMPTY_QUESTION_ANSWER, "session_id": session_id or "new_session"}

        session = ChatSession(episode.id, session_id)
        if not episode.transcript:
            return {"answer": NO_TRANSCRIPT_ANSWER, "session_id": session.session_id}

        session.load_history_from_db(db)
        context = truncate_text(episode.transcript, config.CHAT_CONTEXT_CHARS)
        logging.info(
            f"Chat question for episode {episode.id} (session {session.session_id}, "
            f"{len(session.messages) // 2} previous turns)"
        )

        prompt = ChatPromptTemplate.from_messages([
            ("system", chat_template),
            MessagesPlaceholder("history"),
            ("human", "{question}")
        ])
        messages = prompt.format_messages(
            title=episode.title,
            context=context,
            history=session.messages,
            question=message.strip(),
        )

        try:
            answer = self.llm.invoke(messages).content
        except Exception as e:
            logging.error(f"Error in chat handler: {str(e)}")
            logging.error(traceback.format_exc())
            return {"answer": user_facing_message(e), "session_id": session.session_id, "error": True}

        session.save_interaction(db, message.strip(), answer)
        return {"answer": answer, "session_id": session.session_id, "answered": True}
