"""Tests for the main application."""
from typing import Generator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from telegram.ext import ConversationHandler

from storybot.app import StoryBot
from storybot.config import settings


@pytest.fixture
def mock_app() -> AsyncMock:
    """Create mock application with async methods."""
    mock_app = AsyncMock()
    mock_app.initialize = AsyncMock()
    mock_app.start = AsyncMock()
    mock_app.updater = AsyncMock()
    mock_app.updater.start_polling = AsyncMock()
    mock_app.stop = AsyncMock()
    mock_app.shutdown = AsyncMock()
    mock_app.add_handler = MagicMock()
    mock_app.bot = MagicMock()
    return mock_app


@pytest.fixture
def bot(mock_app: AsyncMock) -> Generator[StoryBot, None, None]:
    """Create a bot instance with mocked dependencies."""
    mock_builder = MagicMock()
    mock_builder.token.return_value.build.return_value = mock_app

    with patch("telegram.ext.Application.builder", return_value=mock_builder), \
            patch.object(settings.bot, "token", "test_token_123"), \
            patch.object(settings.bot, "metrics_port", 0), \
            patch("storybot.app.init_db"), \
            patch.object(StoryBot, "_import_books"):
        yield StoryBot()


@pytest.mark.asyncio
async def test_start(bot: StoryBot, mock_app: AsyncMock) -> None:
    """Test starting the bot."""
    await bot.start()

    assert bot.running
    assert bot.application is mock_app
    handler = mock_app.add_handler.call_args.args[0]
    assert isinstance(handler, ConversationHandler)
    mock_app.updater.start_polling.assert_awaited_once()

    await bot.stop()


@pytest.mark.asyncio
async def test_stop(bot: StoryBot, mock_app: AsyncMock) -> None:
    """Test stopping the bot."""
    await bot.start()
    await bot.stop()

    assert not bot.running
    assert bot.application is None
    mock_app.updater.stop.assert_awaited_once()
    mock_app.shutdown.assert_awaited_once()


@pytest.mark.asyncio
async def test_start_when_already_running(bot: StoryBot, mock_app: AsyncMock) -> None:
    """Test starting the bot when it's already running."""
    await bot.start()
    await bot.start()

    mock_app.initialize.assert_awaited_once()
    await bot.stop()


@pytest.mark.asyncio
async def test_stop_when_not_running(bot: StoryBot) -> None:
    """Test stopping the bot when it's not running."""
    await bot.stop()

    assert not bot.running


@pytest.mark.asyncio
async def test_start_without_token(bot: StoryBot) -> None:
    with patch.object(settings.bot, "token", ""):
        with pytest.raises(ValueError):
            await bot.start()

    assert not bot.running
    assert bot.application is None


@pytest.mark.asyncio
async def test_error_handling(bot: StoryBot, mock_app: AsyncMock) -> None:
    """Test error handling during stop."""
    await bot.start()
    mock_app.shutdown.side_effect = Exception("Test error")

    with pytest.raises(Exception) as exc_info:
        await bot.stop()
    assert str(exc_info.value) == "Test error"

    assert not bot.running
    assert bot.application is None
