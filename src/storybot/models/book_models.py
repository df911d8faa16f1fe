"""Models for book content and learning progress."""
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Dict, Any, Optional


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Sentence:
    """A story sentence with its translation."""
    en: str
    ko: str = ""
    highlight_words: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Sentence":
        return cls(
            en=data["en"],
            ko=data.get("ko", ""),
            highlight_words=list(data.get("highlightWords") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"en": self.en, "ko": self.ko, "highlightWords": list(self.highlight_words)}


@dataclass(frozen=True)
class VocabularyItem:
    """A word supplied by the book content. Never mutated by the scheduler."""
    word: str
    meaning: str = ""
    example: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VocabularyItem":
        return cls(
            word=data["word"],
            meaning=data.get("meaning", ""),
            example=data.get("example", ""),
        )

    def to_dict(self) -> Dict[str, str]:
        return {"word": self.word, "meaning": self.meaning, "example": self.example}


@dataclass
class BookData:
    """A unit of content: story plus vocabulary."""
    id: str
    title: str
    description: str = ""
    icon: str = "📚"
    story: List[Sentence] = field(default_factory=list)
    vocabulary: List[VocabularyItem] = field(default_factory=list)
    filename: Optional[str] = None
    created_date: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BookData":
        """Build a book from its JSON form (camelCase keys)."""
        created = data.get("createdDate")
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description", ""),
            icon=data.get("icon", "📚"),
            story=[Sentence.from_dict(s) for s in data.get("story", [])],
            vocabulary=[VocabularyItem.from_dict(v) for v in data.get("vocabulary", [])],
            filename=data.get("filename"),
            created_date=datetime.fromisoformat(created) if created else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "icon": self.icon,
            "story": [s.to_dict() for s in self.story],
            "vocabulary": [v.to_dict() for v in self.vocabulary],
            "filename": self.filename,
            "createdDate": self.created_date.isoformat() if self.created_date else None,
        }


@dataclass
class WordProgress:
    """Learning state of a single word. Timestamps are epoch milliseconds."""
    learned: bool = False
    correct_count: int = 0
    last_review: int = 0
    next_review: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WordProgress":
        return cls(
            learned=bool(data.get("learned", False)),
            correct_count=int(data.get("correctCount", 0)),
            last_review=int(data.get("lastReview", 0)),
            next_review=int(data.get("nextReview", 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "learned": self.learned,
            "correctCount": self.correct_count,
            "lastReview": self.last_review,
            "nextReview": self.next_review,
        }


@dataclass
class BookProgress:
    """Per-book progress: furthest sentence read and word progress keyed by word."""
    last_read_sentence: int = -1
    vocabulary: Dict[str, WordProgress] = field(default_factory=dict)

    def mark_sentence_read(self, index: int) -> None:
        """Raise the furthest read sentence; it never goes backwards."""
        if index >= self.last_read_sentence:
            self.last_read_sentence = index

    @property
    def completed_sentences(self) -> int:
        return self.last_read_sentence + 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BookProgress":
        vocabulary = data.get("vocabulary") or {}
        if not isinstance(vocabulary, dict):
            raise TypeError(f"vocabulary must be a mapping, got {type(vocabulary).__name__}")
        return cls(
            last_read_sentence=int(data.get("lastReadSentence", -1)),
            vocabulary={word: WordProgress.from_dict(wp) for word, wp in vocabulary.items()},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastReadSentence": self.last_read_sentence,
            "vocabulary": {word: wp.to_dict() for word, wp in self.vocabulary.items()},
        }

    @classmethod
    def from_json(cls, raw: Optional[str]) -> Optional["BookProgress"]:
        """Parse stored progress. Returns None when the record is missing or unusable."""
        if not raw:
            return None
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise TypeError(f"progress must be an object, got {type(data).__name__}")
            return cls.from_dict(data)
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Discarding unreadable progress record: {e}")
            return None

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)
