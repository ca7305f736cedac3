"""
SQLAlchemy models for the Show Notes Generator database.
"""

import uuid
import datetime
from sqlalchemy import (
    Column, String, Text, DateTime, ForeignKey, Integer, Boolean, Float, JSON, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from shownotes.db.database import Base


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class Episode(Base):
    """An uploaded audio file or imported YouTube video and everything generated for it."""
    __tablename__ = "episodes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(64), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    transcript = Column(Text, nullable=True)

    # Generated content
    summary_short = Column(Text, nullable=True)
    summary_long = Column(Text, nullable=True)
    chapters = Column(JSON, nullable=True)
    keywords = Column(JSON, nullable=True)
    quotes = Column(JSON, nullable=True)
    show_notes = Column(JSON, nullable=True)
    caption_segments = Column(JSON, nullable=True)  # [{text, offset (ms), duration (s)}]

    # Source
    source_type = Column(String(16), nullable=False, default="audio")
    youtube_url = Column(String(255), nullable=True)
    video_id = Column(String(20), nullable=True)
    caption_language = Column(String(16), nullable=True)
    audio_filename = Column(String(255), nullable=True)
    file_size = Column(Integer, nullable=True)
    duration = Column(Integer, nullable=False, default=0)  # seconds
    has_estimated_duration = Column(Boolean, nullable=False, default=False)

    processing_status = Column(String(16), nullable=False, default="pending")
    processing_error = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    # Relationships
    chat_history = relationship("ChatHistory", back_populates="episode", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Episode(id='{self.id}', title='{self.title}', status='{self.processing_status}')>"


class UsageRecord(Base):
    """Monthly usage counters for one user."""
    __tablename__ = "user_usage"
    __table_args__ = (UniqueConstraint("user_id", "month_year", name="uq_user_usage_month"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    month_year = Column(String(7), nullable=False)  # YYYY-MM
    total_minutes_processed = Column(Integer, nullable=False, default=0)
    gpt_prompts_used = Column(Integer, nullable=False, default=0)
    episodes_processed = Column(Integer, nullable=False, default=0)
    api_calls_made = Column(Integer, nullable=False, default=0)
    cost = Column(Float, nullable=False, default=0.0)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<UsageRecord(user_id='{self.user_id}', month_year='{self.month_year}')>"


class Subscription(Base):
    """A user's plan. Maintained by an operator."""
    __tablename__ = "user_subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    plan_name = Column(String(32), nullable=False, default="Free")
    status = Column(String(16), nullable=False, default="active")
    created_at = Column(DateTime, default=_utcnow)

    def __repr__(self):
        return f"<Subscription(user_id='{self.user_id}', plan='{self.plan_name}', status='{self.status}')>"


class ChatHistory(Base):
    """Model representing chat history with an episode."""
    __tablename__ = "chat_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    episode_id = Column(String(36), ForeignKey("episodes.id", ondelete="CASCADE"))
    session_id = Column(String(50), nullable=False)  # To group messages by user session
    message = Column(Text, nullable=False)
    response = Column(Text, nullable=False)
    created_at = Column(DateTime, default=_utcnow)

    # Relationships
    episode = relationship("Episode", back_populates="chat_history")

    def __repr__(self):
        return f"<ChatHistory(id={self.id}, episode_id='{self.episode_id}', session_id='{self.session_id}')>"
