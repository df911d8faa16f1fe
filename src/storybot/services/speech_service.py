"""Text-to-speech for sentences and words using gTTS."""
import hashlib
import logging
import re
from pathlib import Path
from typing import Optional

from gtts import gTTS, gTTSError

from storybot.config import settings
from storybot.monitoring import speech_errors

logger = logging.getLogger(__name__)


class SpeechService:
    """Synthesizes speech to cached mp3 files. Failures never propagate."""

    def __init__(self, cache_dir: Optional[Path] = None):
        self.cache_dir = Path(cache_dir or settings.paths.pronunciations_dir)
        self.language = settings.speech.language
        self.tld = settings.speech.tld

    def is_slow(self, speed: float) -> bool:
        """gTTS only knows normal and slow; slower reading speeds map to slow."""
        return speed < settings.reader.slow_speech_threshold

    def speak(self, text: str, speed: float = 1.0) -> Optional[Path]:
        """Return the path of an mp3 with the spoken text, or None if synthesis failed."""
        text = text.strip()
        if not text:
            logger.warning("Empty text, skipping speech")
            return None

        slow = self.is_slow(speed)
        path = self.cache_dir / self._filename(text, slow)
        if path.exists():
            logger.debug(f"Using cached speech for: {text}")
            return path

        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            tts = gTTS(text=text, lang=self.language, tld=self.tld, slow=slow)
            tts.save(str(path))
            logger.info(f"Speech generated for: {text}, file: {path.name}")
            return path
        except (gTTSError, ValueError, OSError) as e:
            logger.error(f"Error generating speech for: {text}, error: {e}")
            speech_errors.inc()
            return None

    @staticmethod
    def _filename(text: str, slow: bool) -> str:
        """Build a stable cache file name for a text."""
        digest = hashlib.sha1(text.encode("utf-8")).hexdigest()[:10]
        stem = SpeechService._sanitize_filename(text)[:40]
        suffix = "_slow" if slow else ""
        return f"{stem}_{digest}{suffix}.mp3"

    @staticmethod
    def _sanitize_filename(text: str) -> str:
        """Sanitize text for use in filename."""
        # Replace any non-alphanumeric characters with underscore
        return re.sub(r'[^a-zA-Z0-9]', '_', text.lower())
