"""
Configuration for pytest tests.
"""

import os
import shutil
import tempfile

# Configuration is read when shownotes is first imported, so the test
# environment has to be in place before any test module is collected.
TEST_DATA_DIR = tempfile.mkdtemp(prefix="shownotes_test_")
os.environ["DATA_DIR"] = TEST_DATA_DIR
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GROQ_API_KEY"] = os.environ.get("GROQ_API_KEY", "test_api_key")
os.environ["ENVIRONMENT"] = "development"
os.environ.pop("REDIS_URL", None)
os.environ.pop("YOUTUBE_API_KEY", None)

import pytest
from unittest.mock import patch
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shownotes.db import models  # noqa: F401
from shownotes.db.database import Base, get_db
from shownotes.db.models import Episode, Subscription
from shownotes.models.schemas import CaptionSegment, VideoMetadata, YouTubeProcessingResult
from shownotes.utils.caching import clear_memory_cache


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Remove the temporary data directory after the test run."""
    yield
    shutil.rmtree(TEST_DATA_DIR, ignore_errors=True)


@pytest.fixture(autouse=True)
def empty_cache():
    """Every test starts with an empty in-memory cache."""
    clear_memory_cache()
    yield
    clear_memory_cache()


@pytest.fixture
def session_factory():
    """Session factory bound to a fresh in-memory database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    """Database session for a test."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    """FastAPI test client using the in-memory database."""
    from fastapi.testclient import TestClient
    from shownotes.api.app import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with patch("shownotes.db.database.SessionLocal", session_factory), \
            patch("shownotes.api.app.init_db"):
        with TestClient(app) as test_client:
            yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"X-User-Id": "user-1"}


@pytest.fixture
def test_video_url():
    """Return a test YouTube video URL."""
    return "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


@pytest.fixture
def caption_segments():
    return [
        CaptionSegment(text="Welcome to the show.", offset=0, duration=4.0),
        CaptionSegment(text="Today we talk about testing.", offset=4000, duration=5.5),
        CaptionSegment(text="Thanks for listening.", offset=600000, duration=3.2),
    ]


@pytest.fixture
def processing_result(caption_segments):
    """A YouTubeProcessingResult with metadata and captions."""
    return YouTubeProcessingResult(
        video_id="dQw4w9WgXcQ",
        metadata=VideoMetadata(
            video_id="dQw4w9WgXcQ",
            title="Testing Podcast Episode 1",
            description="An episode about tests",
            duration=604,
            channel_title="Test Channel",
        ),
        captions=caption_segments,
        transcript=" ".join(segment.text for segment in caption_segments),
        language="en",
        processing_time_ms=12,
    )


@pytest.fixture
def sample_episode(db, caption_segments):
    """A completed YouTube episode owned by user-1."""
    episode = Episode(
        user_id="user-1",
        title="Testing Podcast Episode 1",
        transcript="Welcome to the show. Today we talk about testing. Thanks for listening.",
        summary_short="A short chat about testing.",
        summary_long="A longer look at why tests matter and how to write them.",
        chapters=[
            {"timestamp": "00:00:00", "title": "Intro", "content": "Hosts say hello"},
            {"timestamp": "00:01:05", "title": "Testing", "content": "Why tests matter"},
        ],
        keywords=["testing", "python", "podcast"],
        quotes=[{"text": "Tests are documentation.", "speaker": "Alice", "timestamp": None}],
        caption_segments=[segment.model_dump() for segment in caption_segments],
        source_type="youtube",
        youtube_url="https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        video_id="dQw4w9WgXcQ",
        duration=604,
        processing_status="completed",
    )
    db.add(episode)
    db.commit()
    db.refresh(episode)
    return episode


@pytest.fixture
def pro_user(db):
    """user-pro has an active Pro subscription."""
    db.add(Subscription(user_id="user-pro", plan_name="Pro", status="active"))
    db.commit()
    return "user-pro"
