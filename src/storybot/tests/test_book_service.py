"""Tests for book service."""
import json
from pathlib import Path

from sqlalchemy.orm import Session

from storybot.models.book_models import BookData, BookProgress
from storybot.models.models import BookProgressRecord, User
from storybot.services.book_service import BookService
from storybot.services.progress_store import ProgressStore


def test_save_and_get_book(db: Session, book_data: BookData) -> None:
    service = BookService(db)

    assert service.save_book(book_data) is True
    assert book_data.created_date is not None

    stored = service.get_book("little_pup")
    assert stored.title == "Little Pup"
    assert stored.story == book_data.story
    assert stored.vocabulary == book_data.vocabulary
    assert service.book_exists("little_pup")
    assert service.get_book("missing") is None
    assert not service.book_exists("missing")


def test_save_book_updates_existing(db: Session, book: BookData) -> None:
    service = BookService(db)
    created = service.get_book(book.id).created_date

    book.title = "Little Pup (2nd edition)"
    service.save_book(book)

    books = service.get_all_books()
    assert len(books) == 1
    assert books[0].title == "Little Pup (2nd edition)"
    assert books[0].created_date == created


def test_get_all_books_in_insertion_order(db: Session, book_data: BookData) -> None:
    service = BookService(db)
    service.save_book(BookData(id="snow_daze", title="Snow Daze"))
    service.save_book(book_data)

    assert [b.id for b in service.get_all_books()] == ["snow_daze", "little_pup"]


def test_delete_book_purges_progress(db: Session, book: BookData, user: User) -> None:
    ProgressStore(db, user.id).save(book.id, BookProgress(last_read_sentence=2))
    service = BookService(db)

    assert service.delete_book(book.id) is True

    assert service.get_book(book.id) is None
    assert db.query(BookProgressRecord).filter(BookProgressRecord.book_id == book.id).count() == 0
    assert service.delete_book(book.id) is False


def test_import_books(db: Session, books_dir: Path, book_data: BookData) -> None:
    (books_dir / "little_pup.json").write_text(json.dumps(book_data.to_dict(), ensure_ascii=False), encoding="utf-8")
    (books_dir / "broken.json").write_text("{oops", encoding="utf-8")
    (books_dir / "missing_title.json").write_text(json.dumps({"id": "x"}), encoding="utf-8")
    (books_dir / "list.json").write_text(json.dumps([1, 2]), encoding="utf-8")
    (books_dir / "number.json").write_text("42", encoding="utf-8")
    (books_dir / "notes.txt").write_text("not a book", encoding="utf-8")

    service = BookService(db)

    assert service.import_books(books_dir) == 1
    stored = service.get_book("little_pup")
    assert stored.filename == "little_pup.json"
    assert len(stored.vocabulary) == 3


def test_import_books_twice_keeps_one_copy(db: Session, books_dir: Path, book_data: BookData) -> None:
    (books_dir / "little_pup.json").write_text(json.dumps(book_data.to_dict()), encoding="utf-8")
    service = BookService(db)

    service.import_books(books_dir)
    created = service.get_book("little_pup").created_date
    service.import_books(books_dir)

    assert len(service.get_all_books()) == 1
    assert service.get_book("little_pup").created_date == created


def test_import_books_missing_directory(db: Session, tmp_path: Path) -> None:
    assert BookService(db).import_books(tmp_path / "nowhere") == 0
