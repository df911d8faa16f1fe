"""Spaced-repetition review scheduling for book vocabulary.

A word moves through three conceptual states:

* new/due - not learned yet, or learned and past its review time;
* cooling down - not learned, 1-2 consecutive correct answers, review in the future;
* mastered - learned after ``MASTERY_THRESHOLD`` consecutive correct answers,
  next review one week out.

A wrong answer resets the counter and schedules the word an hour later
without touching ``learned``. Every function here is pure with respect to I/O;
``record_answer`` only mutates the progress mapping it is given.
"""
from typing import Dict, List, Mapping, Sequence

from storybot.config import (
    CORRECT_INTERVAL_MS,
    INCORRECT_INTERVAL_MS,
    MASTERED_INTERVAL_MS,
    MASTERY_THRESHOLD,
)
from storybot.models.book_models import VocabularyItem, WordProgress

# Star rating thresholds, percent of mastered words -> stars
STAR_THRESHOLDS = [(90, 5), (70, 4), (50, 3), (30, 2)]


def get_word_progress(progress: Mapping[str, WordProgress], word: str, now: int) -> WordProgress:
    """Return stored progress for a word, or the virtual default (due now).

    The default is not inserted into the mapping.
    """
    stored = progress.get(word)
    if stored is not None:
        return stored
    return WordProgress(learned=False, correct_count=0, last_review=now, next_review=now)


def is_due(word_progress: WordProgress, now: int) -> bool:
    """A word is due when it is not learned yet or its review time has come."""
    return not word_progress.learned or word_progress.next_review <= now


def compute_due_set(
    vocabulary: Sequence[VocabularyItem],
    progress: Mapping[str, WordProgress],
    now: int,
) -> List[VocabularyItem]:
    """Filter the vocabulary down to due words, keeping the book's order."""
    return [item for item in vocabulary if is_due(get_word_progress(progress, item.word, now), now)]


def record_answer(word: str, knew: bool, progress: Dict[str, WordProgress], now: int) -> WordProgress:
    """Apply a self-assessment to a word and return its updated progress."""
    if word not in progress:
        progress[word] = WordProgress(learned=False, correct_count=0, last_review=now, next_review=now)

    word_progress = progress[word]

    if knew:
        word_progress.correct_count += 1
        if word_progress.correct_count >= MASTERY_THRESHOLD:
            word_progress.learned = True
            word_progress.next_review = now + MASTERED_INTERVAL_MS
        else:
            word_progress.next_review = now + CORRECT_INTERVAL_MS
    else:
        # learned is left as is, even for mastered words
        word_progress.correct_count = 0
        word_progress.next_review = now + INCORRECT_INTERVAL_MS

    word_progress.last_review = now
    return word_progress


def mastered_words(
    vocabulary: Sequence[VocabularyItem],
    progress: Mapping[str, WordProgress],
) -> List[VocabularyItem]:
    """Words with a stored progress entry marked as learned."""
    return [item for item in vocabulary if item.word in progress and progress[item.word].learned]


def star_rating(mastered: int, total: int) -> int:
    """Number of stars (0-5) earned for the share of mastered words."""
    if total <= 0:
        return 0
    percentage = mastered / total * 100
    for threshold, stars in STAR_THRESHOLDS:
        if percentage >= threshold:
            return stars
    return 1 if percentage > 0 else 0
