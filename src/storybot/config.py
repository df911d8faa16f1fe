"""Configuration settings for the reader bot."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Define base directory
BASE_DIR = Path(__file__).parent.parent.parent

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Define data directories from environment variables
DATA_DIR = Path(os.getenv("DATA_DIR", "./data"))
BOOKS_DIR = DATA_DIR / "books"
MEDIA_DIR = DATA_DIR / "media"
PRONUNCIATIONS_DIR = MEDIA_DIR / "pronunciations"

# Review settings (epoch milliseconds)
HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS
MASTERY_THRESHOLD = 3  # consecutive correct answers
INCORRECT_INTERVAL_MS = HOUR_MS
CORRECT_INTERVAL_MS = 2 * DAY_MS
MASTERED_INTERVAL_MS = 7 * DAY_MS

# Reader settings
SPEED_OPTIONS = [0.7, 0.9, 1.0, 1.2]


def ensure_directories() -> None:
    """Ensure all required directories exist."""
    directories = [
        DATA_DIR,
        BOOKS_DIR,
        MEDIA_DIR,
        PRONUNCIATIONS_DIR,
    ]

    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)


@dataclass
class PathSettings:
    """Path configuration settings."""
    base_dir: Path = BASE_DIR
    data_dir: Path = DATA_DIR
    books_dir: Path = BOOKS_DIR
    media_dir: Path = MEDIA_DIR
    pronunciations_dir: Path = PRONUNCIATIONS_DIR


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///storybot.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))
    admin_notification_level: str = os.getenv("ADMIN_NOTIFICATION_LEVEL", "ERROR")


def get_admin_ids() -> list[int]:
    """Get admin IDs from environment variable."""
    return [int(id_) for id_ in os.getenv("TELEGRAM_ADMIN_IDS", "").split(",") if id_]


@dataclass
class BotSettings:
    """Bot configuration settings."""
    token: str = os.getenv("TELEGRAM_BOT_TOKEN", "")
    admin_ids: list[int] = field(default_factory=get_admin_ids)
    metrics_port: Optional[int] = int(os.getenv("METRICS_PORT")) if os.getenv("METRICS_PORT") else None


@dataclass
class ReaderSettings:
    """Reader behaviour settings."""
    default_speed: float = float(os.getenv("DEFAULT_SPEED", "0.9"))
    speed_options: list[float] = field(default_factory=lambda: list(SPEED_OPTIONS))
    slow_speech_threshold: float = float(os.getenv("SLOW_SPEECH_THRESHOLD", "0.8"))
    show_translation: bool = os.getenv("SHOW_TRANSLATION", "true").lower() == "true"


@dataclass
class SpeechSettings:
    """Text-to-speech settings."""
    language: str = os.getenv("SPEECH_LANGUAGE", "en")
    tld: str = os.getenv("SPEECH_TLD", "com")  # "com" gives the US accent


def get_path_settings() -> PathSettings:
    """Get path settings."""
    return PathSettings()


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_bot_settings() -> BotSettings:
    """Get bot settings."""
    return BotSettings()


def get_reader_settings() -> ReaderSettings:
    """Get reader settings."""
    return ReaderSettings()


def get_speech_settings() -> SpeechSettings:
    """Get speech settings."""
    return SpeechSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    paths: PathSettings = field(default_factory=get_path_settings)
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    bot: BotSettings = field(default_factory=get_bot_settings)
    reader: ReaderSettings = field(default_factory=get_reader_settings)
    speech: SpeechSettings = field(default_factory=get_speech_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if not self.bot.token:
            raise ValueError("TELEGRAM_BOT_TOKEN is required")

        if not self.reader.speed_options:
            raise ValueError("At least one reading speed must be configured")

        if any(speed <= 0 for speed in self.reader.speed_options):
            raise ValueError("Reading speeds must be positive")

        if self.reader.default_speed not in self.reader.speed_options:
            raise ValueError("DEFAULT_SPEED must be one of the speed options")


# Create global settings instance
settings = Settings()
