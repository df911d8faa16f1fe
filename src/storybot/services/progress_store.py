"""Durable per-book progress storage."""
import logging

from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storybot.models.book_models import BookProgress
from storybot.models.models import BookProgressRecord
from storybot.monitoring import progress_save_errors

logger = logging.getLogger(__name__)


class ProgressStore:
    """Loads and saves book progress for a single user."""

    def __init__(self, db: Session, user_id: int):
        """Initialize the store with a database session and the owning user."""
        self.db = db
        self.user_id = user_id

    def _get_record(self, book_id: str):
        return (
            self.db.query(BookProgressRecord)
            .filter(
                and_(
                    BookProgressRecord.user_id == self.user_id,
                    BookProgressRecord.book_id == book_id,
                )
            )
            .first()
        )

    def load(self, book_id: str) -> BookProgress:
        """Load progress for a book, falling back to a fresh record."""
        try:
            record = self._get_record(book_id)
        except SQLAlchemyError as e:
            logger.error(f"Error loading progress for book {book_id}, user {self.user_id}: {e}")
            self.db.rollback()
            return BookProgress()

        if record is None:
            logger.debug(f"No progress for book {book_id}, user {self.user_id}; starting fresh")
            return BookProgress()

        progress = BookProgress.from_json(record.data)
        if progress is None:
            logger.warning(f"Corrupt progress for book {book_id}, user {self.user_id}; starting fresh")
            return BookProgress()
        return progress

    def save(self, book_id: str, progress: BookProgress) -> bool:
        """Persist progress. Failures are logged and reported as False."""
        try:
            record = self._get_record(book_id)
            if record is None:
                record = BookProgressRecord(user_id=self.user_id, book_id=book_id, data=progress.to_json())
                self.db.add(record)
            else:
                record.data = progress.to_json()
            self.db.commit()
            return True
        except SQLAlchemyError as e:
            logger.error(f"Error saving progress for book {book_id}, user {self.user_id}: {e}")
            progress_save_errors.inc()
            self.db.rollback()
            return False

    def delete(self, book_id: str) -> bool:
        """Remove the stored progress for a book."""
        record = self._get_record(book_id)
        if record is None:
            return False
        self.db.delete(record)
        self.db.commit()
        return True
