"""Study session cursor over a snapshot of due words."""
import logging
from typing import Dict, List, Optional, Sequence

from storybot.models.book_models import VocabularyItem, WordProgress
from storybot.services.review_scheduler import compute_due_set, record_answer

logger = logging.getLogger(__name__)


class ReviewSession:
    """Walks the due-set taken once at session start.

    The snapshot is fixed for the whole session: answering a word moves the
    index forward, it never re-queries the scheduler. Words that are not
    learned stay due forever, so re-querying would never end the session.
    """

    def __init__(self, vocabulary: Sequence[VocabularyItem], progress: Dict[str, WordProgress], now: int):
        self.vocabulary = list(vocabulary)
        self.words: List[VocabularyItem] = []
        self.index = 0
        self.restart(progress, now)

    def restart(self, progress: Dict[str, WordProgress], now: int) -> None:
        """Take a fresh snapshot of the due words and start from the first."""
        self.words = compute_due_set(self.vocabulary, progress, now)
        self.index = 0
        logger.debug(f"Review session started with {len(self.words)} due words")

    @property
    def total(self) -> int:
        return len(self.words)

    @property
    def position(self) -> int:
        """Zero-based index of the current word."""
        return self.index

    @property
    def is_complete(self) -> bool:
        return self.index >= len(self.words)

    @property
    def current(self) -> Optional[VocabularyItem]:
        if self.is_complete:
            return None
        return self.words[self.index]

    def answer(self, knew: bool, progress: Dict[str, WordProgress], now: int) -> WordProgress:
        """Record an answer for the current word and advance."""
        item = self.current
        if item is None:
            raise ValueError("Review session is already complete")
        word_progress = record_answer(item.word, knew, progress, now)
        self.index += 1
        return word_progress
