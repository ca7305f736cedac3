"""
CRUD operations for the Show Notes Generator database.
"""

from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session

from shownotes.db.models import Episode, UsageRecord, Subscription, ChatHistory
from shownotes.models.schemas import EpisodeContent, ProcessingStatus
from shownotes.utils.logger import logging


def get_episode(db: Session, episode_id: str, user_id: Optional[str] = None) -> Optional[Episode]:
    """Get an episode by ID, optionally restricted to its owner."""
    query = db.query(Episode).filter(Episode.id == episode_id)
    if user_id is not None:
        query = query.filter(Episode.user_id == user_id)
    return query.first()


def list_episodes(db: Session, user_id: str) -> List[Episode]:
    """All episodes of a user, newest first."""
    return db.query(Episode).filter(Episode.user_id == user_id).order_by(Episode.created_at.desc()).all()


def get_user_youtube_urls(db: Session, user_id: str) -> List[str]:
    """YouTube URLs the user has already imported."""
    rows = db.query(Episode.youtube_url).filter(
        Episode.user_id == user_id,
        Episode.youtube_url.isnot(None)
    ).all()
    return [row[0] for row in rows]


def get_user_episode_by_video_id(db: Session, user_id: str, video_id: str) -> Optional[Episode]:
    return db.query(Episode).filter(Episode.user_id == user_id, Episode.video_id == video_id).first()


def create_episode(db: Session, user_id: str, title: str, **fields: Any) -> Episode:
    """Create a new episode entry."""
    episode = Episode(user_id=user_id, title=title, **fields)
    db.add(episode)
    db.commit()
    db.refresh(episode)
    logging.info(f"Created episode {episode.id} for user {user_id}")
    return episode


def update_episode_status(db: Session, episode: Episode, status: ProcessingStatus,
                          error: Optional[str] = None) -> Episode:
    """Move an episode to a new processing status."""
    episode.processing_status = status.value
    episode.processing_error = error
    db.commit()
    db.refresh(episode)
    return episode


def store_episode_content(db: Session, episode: Episode, content: EpisodeContent) -> Episode:
    """Store generated content on an episode and mark it completed."""
    episode.summary_short = content.summary.short
    episode.summary_long = content.summary.long
    episode.chapters = [chapter.model_dump() for chapter in content.chapters]
    episode.keywords = list(content.keywords)
    episode.quotes = [quote.model_dump() for quote in content.quotes]
    if content.show_notes is not None:
        episode.show_notes = content.show_notes.model_dump()
    episode.processing_status = ProcessingStatus.COMPLETED.value
    episode.processing_error = None
    db.commit()
    db.refresh(episode)
    return episode


def delete_episode(db: Session, episode_id: str, user_id: str) -> bool:
    """Delete an episode. Recorded usage is left untouched."""
    episode = get_episode(db, episode_id, user_id)
    if not episode:
        return False
    db.delete(episode)
    db.commit()
    logging.info(f"Deleted episode {episode_id}")
    return True


def add_chat_message(db: Session, episode_id: str, session_id: str, message: str,
                     response: str) -> ChatHistory:
    """Add a chat message to the history."""
    chat_entry = ChatHistory(
        episode_id=episode_id,
        session_id=session_id,
        message=message,
        response=response
    )
    db.add(chat_entry)
    db.commit()
    db.refresh(chat_entry)
    return chat_entry


def get_chat_history(db: Session, episode_id: str, session_id: str, limit: int = 10) -> List[ChatHistory]:
    """Most recent chat turns for an episode and session, oldest first."""
    entries = db.query(ChatHistory).filter(
        ChatHistory.episode_id == episode_id,
        ChatHistory.session_id == session_id
    ).order_by(ChatHistory.id.desc()).limit(limit).all()
    return list(reversed(entries))


def get_active_subscription(db: Session, user_id: str) -> Optional[Subscription]:
    """The user's active subscription, if any."""
    return db.query(Subscription).filter(
        Subscription.user_id == user_id,
        Subscription.status == "active"
    ).order_by(Subscription.id.desc()).first()


def get_usage_record(db: Session, user_id: str, month_year: str) -> Optional[UsageRecord]:
    return db.query(UsageRecord).filter(
        UsageRecord.user_id == user_id,
        UsageRecord.month_year == month_year
    ).first()


def get_or_create_usage_record(db: Session, user_id: str, month_year: str) -> UsageRecord:
    """Usage counters for a month, created with zeros when missing."""
    record = get_usage_record(db, user_id, month_year)
    if record is None:
        record = UsageRecord(
            user_id=user_id,
            month_year=month_year,
            total_minutes_processed=0,
            gpt_prompts_used=0,
            episodes_processed=0,
            api_calls_made=0,
            cost=0.0,
        )
        db.add(record)
        db.flush()
    return record


def episode_to_dict(episode: Episode, include_transcript: bool = True) -> Dict[str, Any]:
    """Serialize an episode for API responses and exports."""
    data = {
        "id": episode.id,
        "user_id": episode.user_id,
        "title": episode.title,
        "summary": {"short": episode.summary_short, "long": episode.summary_long},
        "chapters": episode.chapters or [],
        "keywords": episode.keywords or [],
        "quotes": episode.quotes or [],
        "show_notes": episode.show_notes,
        "source_type": episode.source_type,
        "youtube_url": episode.youtube_url,
        "video_id": episode.video_id,
        "audio_filename": episode.audio_filename,
        "file_size": episode.file_size,
        "duration": episode.duration,
        "has_estimated_duration": episode.has_estimated_duration,
        "processing_status": episode.processing_status,
        "processing_error": episode.processing_error,
        "created_at": episode.created_at.isoformat() if episode.created_at else None,
        "updated_at": episode.updated_at.isoformat() if episode.updated_at else None,
    }
    if include_transcript:
        data["transcript"] = episode.transcript
        data["caption_segments"] = episode.caption_segments or []
    return data
