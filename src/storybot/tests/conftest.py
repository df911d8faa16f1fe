"""Test configuration."""
import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from faker import Faker

# Set test environment before any imports
os.environ["ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="storybot-test-"))

# Import after environment setup
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from storybot.config import ensure_directories
from storybot.models.base import Base, init_db
from storybot.models.book_models import BookData, Sentence, VocabularyItem
from storybot.models.models import User
from storybot.services.book_service import BookService

fake = Faker()


@pytest.fixture(autouse=True)
def setup_test_environment():
    """Set up test environment before each test."""
    ensure_directories()
    yield


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """In-memory database shared by every session of a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def user(db: Session) -> User:
    """Create a test user."""
    user = User(
        telegram_id=fake.random_int(min=1, max=10**9),
        username=fake.user_name(),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def book_data() -> BookData:
    """A small picture book."""
    return BookData(
        id="little_pup",
        title="Little Pup",
        description="A story about a small dog",
        icon="🐶",
        story=[
            Sentence(en="The little pup runs fast.", ko="작은 강아지가 빨리 달려요.", highlight_words=["pup"]),
            Sentence(en="He finds a big red ball.", ko="그는 커다란 빨간 공을 찾아요.", highlight_words=["ball"]),
            Sentence(en="The pup is happy.", ko="강아지는 행복해요.", highlight_words=["happy"]),
        ],
        vocabulary=[
            VocabularyItem(word="pup", meaning="강아지", example="The pup is sleeping."),
            VocabularyItem(word="ball", meaning="공", example="Throw the ball!"),
            VocabularyItem(word="happy", meaning="행복한", example="I am happy today."),
        ],
    )


@pytest.fixture
def book(db: Session, book_data: BookData) -> BookData:
    """Store the test book."""
    BookService(db).save_book(book_data)
    return book_data


@pytest.fixture
def books_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "books"
    directory.mkdir()
    return directory
