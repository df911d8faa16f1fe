"""Tests for configuration settings."""
import pytest

from storybot.config import (
    CORRECT_INTERVAL_MS,
    DAY_MS,
    HOUR_MS,
    INCORRECT_INTERVAL_MS,
    MASTERED_INTERVAL_MS,
    MASTERY_THRESHOLD,
    BotSettings,
    ReaderSettings,
    Settings,
    settings,
)


def test_base_directories_exist():
    """Test that all required directories exist."""
    from storybot.config import DATA_DIR, BOOKS_DIR, MEDIA_DIR, PRONUNCIATIONS_DIR

    assert DATA_DIR.exists()
    assert BOOKS_DIR.exists()
    assert MEDIA_DIR.exists()
    assert PRONUNCIATIONS_DIR.exists()


def test_review_constants():
    assert MASTERY_THRESHOLD == 3
    assert HOUR_MS == 3_600_000
    assert DAY_MS == 86_400_000
    assert INCORRECT_INTERVAL_MS == 3_600_000
    assert CORRECT_INTERVAL_MS == 172_800_000
    assert MASTERED_INTERVAL_MS == 604_800_000


def test_settings_defaults():
    assert settings.reader.default_speed == 0.9
    assert settings.reader.default_speed in settings.reader.speed_options
    assert settings.speech.language == "en"
    assert settings.speech.tld == "com"


def test_validate_requires_token():
    test_settings = Settings(bot=BotSettings(token=""))

    with pytest.raises(ValueError, match="TELEGRAM_BOT_TOKEN"):
        test_settings.validate()


def test_validate_speed_options():
    test_settings = Settings(
        bot=BotSettings(token="test_token_123"),
        reader=ReaderSettings(default_speed=2.0, speed_options=[0.9, 1.0]),
    )

    with pytest.raises(ValueError, match="DEFAULT_SPEED"):
        test_settings.validate()

    test_settings.reader = ReaderSettings(default_speed=1.0, speed_options=[0.0, 1.0])
    with pytest.raises(ValueError, match="positive"):
        test_settings.validate()


def test_validate_accepts_valid_settings():
    Settings(bot=BotSettings(token="test_token_123")).validate()


def test_speed_options_are_not_shared():
    first = ReaderSettings()
    second = ReaderSettings()

    first.speed_options.append(2.0)

    assert 2.0 not in second.speed_options
    assert 2.0 not in settings.reader.speed_options
