"""Service for managing book content."""
import json
import logging
from datetime import datetime, UTC
from pathlib import Path
from typing import List, Optional

from sqlalchemy.orm import Session

from storybot.models.book_models import BookData, Sentence, VocabularyItem
from storybot.models.models import Book, BookProgressRecord

logger = logging.getLogger(__name__)


class BookService:
    """Service for storing, listing and removing books."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    @staticmethod
    def _to_data(book: Book) -> BookData:
        """Convert a database row to book data."""
        created = book.created_date
        if created is not None and created.tzinfo is None:
            created = created.replace(tzinfo=UTC)
        return BookData(
            id=book.id,
            title=book.title,
            description=book.description or "",
            icon=book.icon or "📚",
            story=[Sentence.from_dict(s) for s in json.loads(book.story or "[]")],
            vocabulary=[VocabularyItem.from_dict(v) for v in json.loads(book.vocabulary or "[]")],
            filename=book.filename,
            created_date=created,
        )

    def _get_row(self, book_id: str) -> Optional[Book]:
        return self.db.query(Book).filter(Book.id == book_id).first()

    def save_book(self, book_data: BookData) -> bool:
        """Insert a new book or replace an existing one with the same id."""
        if book_data.created_date is None:
            book_data.created_date = datetime.now(UTC)

        story = json.dumps([s.to_dict() for s in book_data.story], ensure_ascii=False)
        vocabulary = json.dumps([v.to_dict() for v in book_data.vocabulary], ensure_ascii=False)

        book = self._get_row(book_data.id)
        if book is None:
            book = Book(id=book_data.id)
            self.db.add(book)
            logger.info(f"Adding book {book_data.id}")
        else:
            logger.info(f"Updating book {book_data.id}")

        book.title = book_data.title
        book.description = book_data.description
        book.icon = book_data.icon
        book.filename = book_data.filename
        book.story = story
        book.vocabulary = vocabulary
        book.created_date = book_data.created_date
        self.db.commit()
        return True

    def get_all_books(self) -> List[BookData]:
        """Get all books in the order they were added."""
        return [self._to_data(book) for book in self.db.query(Book).order_by(Book.pk).all()]

    def get_book(self, book_id: str) -> Optional[BookData]:
        """Get a book by its id."""
        book = self._get_row(book_id)
        if not book:
            return None
        return self._to_data(book)

    def book_exists(self, book_id: str) -> bool:
        """Check whether a book id is already stored."""
        return self._get_row(book_id) is not None

    def delete_book(self, book_id: str) -> bool:
        """Delete a book together with every user's progress for it."""
        book = self._get_row(book_id)
        if not book:
            return False

        purged = (
            self.db.query(BookProgressRecord)
            .filter(BookProgressRecord.book_id == book_id)
            .delete(synchronize_session=False)
        )
        self.db.delete(book)
        self.db.commit()
        logger.info(f"Deleted book {book_id} and {purged} progress records")
        return True

    def import_books(self, directory: Path) -> int:
        """Load every ``*.json`` book file from a directory. Returns the number imported."""
        directory = Path(directory)
        if not directory.is_dir():
            logger.warning(f"Books directory {directory} does not exist")
            return 0

        imported = 0
        for path in sorted(directory.glob("*.json")):
            try:
                with open(path, encoding="utf-8") as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise TypeError(f"expected a JSON object, got {type(data).__name__}")
                book_data = BookData.from_dict(data)
            except (OSError, ValueError, KeyError, TypeError) as e:
                logger.error(f"Error reading book file {path}: {e}")
                continue
            if not book_data.filename:
                book_data.filename = path.name
            existing = self._get_row(book_data.id)
            if existing is not None and book_data.created_date is None:
                book_data.created_date = self._to_data(existing).created_date
            self.save_book(book_data)
            imported += 1

        logger.info(f"Imported {imported} books from {directory}")
        return imported
