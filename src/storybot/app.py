"""Main application entry point."""
import logging
from typing import Optional
from warnings import filterwarnings

from telegram.warnings import PTBUserWarning

# Suppress the warning about CallbackQueryHandler and per_message
filterwarnings(action="ignore", message=r".*CallbackQueryHandler", category=PTBUserWarning)

from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ConversationHandler,
    MessageHandler,
    filters,
)

from storybot.config import settings
from storybot.models.base import init_db, SessionLocal
from storybot.monitoring import start_monitoring
from storybot.services.book_service import BookService
from storybot.bot import (
    handle_start,
    handle_callback,
    handle_message,
    setup_admin_notifications,
    disable_admin_notifications,
    MAIN_MENU,
    READING,
)


class StoryBot:
    """Main application class."""

    def __init__(self):
        """Initialize the application."""
        self.application: Optional[Application] = None
        self.running = False
        self.logger = logging.getLogger(__name__)

    def _import_books(self) -> None:
        """Load static book files into the database."""
        db = SessionLocal()
        try:
            BookService(db).import_books(settings.paths.books_dir)
        finally:
            db.close()

    async def start(self) -> None:
        """Start the application."""
        if self.running:
            return

        try:
            settings.validate()

            # Initialize database
            init_db()
            self.logger.info("Database initialized")

            self._import_books()

            if settings.bot.metrics_port:
                start_monitoring(settings.bot.metrics_port)
                self.logger.info(f"Metrics exported on port {settings.bot.metrics_port}")

            # Create application
            self.application = Application.builder().token(settings.bot.token).build()
            self.logger.info("Application created")

            # Set up error notifications
            setup_admin_notifications(self.application, settings.logging.admin_notification_level)

            conv_handler = ConversationHandler(
                entry_points=[CommandHandler("start", handle_start)],
                states={
                    MAIN_MENU: [
                        MessageHandler(filters.TEXT & ~filters.COMMAND, handle_message),
                        CallbackQueryHandler(handle_callback),
                    ],
                    READING: [
                        MessageHandler(filters.TEXT & ~filters.COMMAND, handle_message),
                        CallbackQueryHandler(handle_callback),
                    ],
                },
                fallbacks=[CommandHandler("start", handle_start)],
                per_message=False,
            )

            self.application.add_handler(conv_handler)
            self.logger.info("Handlers added")

            # Start application
            await self.application.initialize()
            await self.application.start()
            await self.application.updater.start_polling()
            self.logger.info("Application started")

            self.running = True

        except Exception as e:
            self.logger.error("Failed to start application: %s", str(e))
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop the application."""
        if not self.running and self.application is None:
            return

        try:
            if self.application:
                disable_admin_notifications()
                if self.running:
                    await self.application.updater.stop()
                    await self.application.stop()
                await self.application.shutdown()
                self.application = None
                self.logger.info("Application stopped")

            self.running = False

        except Exception as e:
            self.logger.error("Error while stopping application: %s", str(e))
            self.running = False
            self.application = None
            raise
