"""Reader workflow: reading sentences, flashcards and review statistics."""
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from storybot.config import settings
from storybot.models.book_models import BookData, BookProgress, VocabularyItem, WordProgress
from storybot.monitoring import answers_recorded, sentences_read, words_mastered
from storybot.services.book_service import BookService
from storybot.services.progress_store import ProgressStore
from storybot.services.review_scheduler import compute_due_set, mastered_words, star_rating
from storybot.services.session_cursor import ReviewSession
from storybot.services.speech_service import SpeechService

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


class ReaderTab(Enum):
    """Reader tabs."""
    READ = "read"
    WORDS = "words"
    REVIEW = "review"


@dataclass
class ReaderContext:
    """State of one reader session, passed explicitly to every operation."""
    book: BookData
    progress: BookProgress
    current_tab: ReaderTab = ReaderTab.READ
    current_sentence: int = 0
    speed: float = 0.9
    show_translation: bool = True
    is_flipped: bool = False
    is_playing: bool = False
    session: Optional[ReviewSession] = None


@dataclass
class ReadProgress:
    """Sentences read out of the story."""
    completed: int
    total: int
    percentage: float


@dataclass
class ReviewStats:
    """Summary shown on the review tab."""
    total_sentences: int
    completed_sentences: int
    total_words: int
    mastered: List[VocabularyItem] = field(default_factory=list)
    due: List[VocabularyItem] = field(default_factory=list)
    stars: int = 0


class ReaderService:
    """Drives the reader for one user on top of the progress store."""

    def __init__(
        self,
        db: Session,
        user_id: int,
        speech_service: Optional[SpeechService] = None,
        clock: Callable[[], int] = now_ms,
    ):
        """Initialize the service with a database session and the reading user."""
        self.db = db
        self.user_id = user_id
        self.books = BookService(db)
        self.store = ProgressStore(db, user_id)
        self.speech = speech_service or SpeechService()
        self.clock = clock

    def open_book(
        self,
        book_id: str,
        speed: Optional[float] = None,
        show_translation: Optional[bool] = None,
    ) -> ReaderContext:
        """Load a book and its saved progress into a fresh reader context."""
        book = self.books.get_book(book_id)
        if not book:
            raise ValueError(f"Book {book_id} not found")

        progress = self.store.load(book_id)
        last_sentence = max(len(book.story) - 1, 0)
        logger.info(f"User {self.user_id} opened book {book_id} (last read sentence {progress.last_read_sentence})")
        return ReaderContext(
            book=book,
            progress=progress,
            current_sentence=min(max(progress.last_read_sentence, 0), last_sentence),
            speed=speed if speed is not None else settings.reader.default_speed,
            show_translation=settings.reader.show_translation if show_translation is None else show_translation,
        )

    def save(self, ctx: ReaderContext) -> bool:
        """Persist the context's progress; the in-memory state stays authoritative on failure."""
        saved = self.store.save(ctx.book.id, ctx.progress)
        if not saved:
            logger.warning(f"Progress for book {ctx.book.id} kept in memory only")
        return saved

    def switch_tab(self, ctx: ReaderContext, tab: ReaderTab) -> None:
        """Change the active tab.

        The words tab starts a study session if none is running. Review stats
        are computed by ``review_stats`` each time the review tab is shown.
        """
        ctx.current_tab = tab
        if tab == ReaderTab.WORDS and ctx.session is None:
            self.start_review(ctx)

    # Reading

    def play_sentence(self, ctx: ReaderContext, index: int) -> Optional[Path]:
        """Speak a sentence and record it as read. Ignored while another sentence plays."""
        if ctx.is_playing:
            logger.debug("Playback already in progress, ignoring request")
            return None
        if not 0 <= index < len(ctx.book.story):
            raise ValueError(f"Sentence {index} is out of range for book {ctx.book.id}")

        ctx.current_sentence = index
        ctx.is_playing = True
        try:
            audio = self.speech.speak(ctx.book.story[index].en, ctx.speed)
        finally:
            ctx.is_playing = False

        ctx.progress.mark_sentence_read(index)
        sentences_read.labels(book_id=ctx.book.id).inc()
        self.save(ctx)
        return audio

    def read_progress(self, ctx: ReaderContext) -> ReadProgress:
        """Completed sentences over the story length."""
        total = len(ctx.book.story)
        completed = min(ctx.progress.completed_sentences, total)
        percentage = completed / total * 100 if total else 0.0
        return ReadProgress(completed=completed, total=total, percentage=percentage)

    def toggle_translation(self, ctx: ReaderContext) -> bool:
        ctx.show_translation = not ctx.show_translation
        return ctx.show_translation

    def set_speed(self, ctx: ReaderContext, speed: float) -> None:
        if speed not in settings.reader.speed_options:
            raise ValueError(f"Unsupported reading speed: {speed}")
        ctx.speed = speed

    # Flashcards

    def start_review(self, ctx: ReaderContext) -> ReviewSession:
        """Start (or restart) a study session from the words due now."""
        now = self.clock()
        if ctx.session is None:
            ctx.session = ReviewSession(ctx.book.vocabulary, ctx.progress.vocabulary, now)
        else:
            ctx.session.restart(ctx.progress.vocabulary, now)
        ctx.is_flipped = False
        logger.info(f"User {self.user_id} started review of {ctx.session.total} words in book {ctx.book.id}")
        return ctx.session

    def current_word(self, ctx: ReaderContext) -> Optional[VocabularyItem]:
        """The card being shown, or None when the session is complete."""
        if ctx.session is None:
            self.start_review(ctx)
        return ctx.session.current

    def flip_card(self, ctx: ReaderContext) -> Optional[Path]:
        """Reveal the meaning and speak the word. Flipping twice does nothing."""
        word = self.current_word(ctx)
        if ctx.is_flipped or word is None:
            return None
        ctx.is_flipped = True
        return self.speech.speak(word.word, ctx.speed)

    def answer_word(self, ctx: ReaderContext, knew: bool) -> WordProgress:
        """Record a self-assessment for the current card and move to the next one."""
        if ctx.session is None:
            self.start_review(ctx)
        was_learned = False
        word = ctx.session.current
        if word is not None and word.word in ctx.progress.vocabulary:
            was_learned = ctx.progress.vocabulary[word.word].learned

        word_progress = ctx.session.answer(knew, ctx.progress.vocabulary, self.clock())
        ctx.is_flipped = False

        answers_recorded.labels(outcome="knew" if knew else "study_again").inc()
        if word_progress.learned and not was_learned:
            words_mastered.labels(book_id=ctx.book.id).inc()
            logger.info(f"User {self.user_id} mastered word '{word.word}' in book {ctx.book.id}")

        self.save(ctx)
        return word_progress

    # Review

    def review_stats(self, ctx: ReaderContext) -> ReviewStats:
        vocabulary = ctx.book.vocabulary
        mastered = mastered_words(vocabulary, ctx.progress.vocabulary)
        return ReviewStats(
            total_sentences=len(ctx.book.story),
            completed_sentences=min(ctx.progress.completed_sentences, len(ctx.book.story)),
            total_words=len(vocabulary),
            mastered=mastered,
            due=compute_due_set(vocabulary, ctx.progress.vocabulary, self.clock()),
            stars=star_rating(len(mastered), len(vocabulary)),
        )
