"""Main Telegram bot module."""
import asyncio
import html
import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.error import TelegramError
from telegram.ext import Application, CallbackContext

from storybot.config import settings
from storybot.models.base import SessionLocal
from storybot.models.book_models import BookData
from storybot.models.models import User
from storybot.services.book_service import BookService
from storybot.services.reader_service import ReaderContext, ReaderService, ReaderTab
from storybot.services.user_service import UserService

# Get logger for this module
logger = logging.getLogger(__name__)


class AdminNotificationHandler(logging.Handler):
    """Custom logging handler that sends error messages to admin users."""

    def __init__(self, level=logging.ERROR):
        super().__init__(level)
        self.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

    def emit(self, record):
        """Send the log record to admin users."""
        if not bot_application or not settings.bot.admin_ids:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return

        message = self.format(record)
        for admin_id in settings.bot.admin_ids:
            loop.create_task(
                bot_application.bot.send_message(
                    chat_id=admin_id,
                    text=f"⚠️ {record.levelname} Alert:\n\n{html.escape(message)}",
                    parse_mode="HTML",
                )
            )


# Store the bot application globally so it can be accessed by the logging handler
bot_application: Optional[Application] = None
admin_notification_handler: Optional[AdminNotificationHandler] = None


def setup_admin_notifications(app: Application, level: str = "ERROR") -> None:
    """Set up admin notifications."""
    global bot_application
    global admin_notification_handler
    if level == "OFF":
        return
    bot_application = app

    # Add the handler to the root logger
    admin_notification_handler = AdminNotificationHandler(level=level)
    logging.getLogger().addHandler(admin_notification_handler)


def disable_admin_notifications() -> None:
    """Disable admin notifications."""
    global bot_application
    global admin_notification_handler
    bot_application = None
    if admin_notification_handler is not None:
        logging.getLogger().removeHandler(admin_notification_handler)
        admin_notification_handler = None


# Conversation states
MAIN_MENU, READING = range(2)

# Button texts
MENU = "🏠 Books"
READ_TAB = "📖 Read"
WORDS_TAB = "🃏 Words"
REVIEW_TAB = "⭐ Review"
PLAY = "🎧 Play"
PREVIOUS = "◀️"
NEXT = "▶️"
SHOW_TRANSLATION = "Show translation"
HIDE_TRANSLATION = "Hide translation"
FLIP = "🔄 Flip"
KNOW = "✅ I know it"
STUDY = "📚 Study again"
RESTART = "🔁 Start again"


def msg_back_to(text: str) -> str: return f"🔙 {text}"

ERR_MSG_NOT_REGISTERED = "Please /start first to register"
ERR_KB_NOT_REGISTERED = InlineKeyboardMarkup([[InlineKeyboardButton(msg_back_to(MENU), callback_data="back_to_menu")]])

ERR_MSG_NO_BOOK = "Please choose a book first"

READER_KEY = "reader"
AUDIO_KEY = "last_audio_message_id"


async def log_received(update: Update, context_type: str) -> None:
    """Log message."""
    txt = ""
    if update.callback_query:
        txt = f" {update.callback_query.data}"
    elif update.message:
        txt = f" {update.message.text}"
    logger.info(f"Received @{context_type:8} from user {update.effective_user.username} ({update.effective_user.id}){txt}")


def get_user_from_update(update: Update) -> Optional[User]:
    """Get user from database based on update."""
    user = update.effective_user
    if not user:
        return None

    db = SessionLocal()
    try:
        return UserService(db).get_user_by_telegram_id(user.id)
    finally:
        db.close()


async def reply(update: Update, text: str, keyboard: InlineKeyboardMarkup) -> None:
    """Edit the message behind a button press, or answer a plain message."""
    if update.callback_query:
        try:
            await update.callback_query.edit_message_text(text, reply_markup=keyboard, parse_mode="HTML")
        except TelegramError as e:
            logger.warning(f"Error editing message: {e}")
    else:
        await update.message.reply_text(text, reply_markup=keyboard, parse_mode="HTML")


# Rendering


def tab_buttons(active: ReaderTab) -> List[InlineKeyboardButton]:
    """Row of tab buttons; the active tab is marked."""
    tabs = [(ReaderTab.READ, READ_TAB), (ReaderTab.WORDS, WORDS_TAB), (ReaderTab.REVIEW, REVIEW_TAB)]
    return [
        InlineKeyboardButton(f"• {label} •" if tab == active else label, callback_data=f"tab_{tab.value}")
        for tab, label in tabs
    ]


def highlight_sentence(text: str, words: List[str]) -> str:
    """Escape a sentence for HTML and make the highlighted words bold."""
    result = html.escape(text)
    for word in words:
        pattern = re.compile(rf"\b({re.escape(html.escape(word))})\b", re.IGNORECASE)
        result = pattern.sub(r"<b>\1</b>", result)
    return result


def render_book_list(books: List[BookData]) -> Tuple[str, InlineKeyboardMarkup]:
    """Text and keyboard of the book shelf."""
    if not books:
        return "No books yet. Ask an admin to add some! 📚", InlineKeyboardMarkup([])
    keyboard = [
        [InlineKeyboardButton(f"{book.icon} {book.title}", callback_data=f"book_{book.id}")]
        for book in books
    ]
    lines = ["📚 Choose a book:\n"]
    lines.extend(f"{book.icon} <b>{html.escape(book.title)}</b> - {html.escape(book.description)}" for book in books)
    return "\n".join(lines), InlineKeyboardMarkup(keyboard)


def render_read_tab(reader: ReaderService, ctx: ReaderContext) -> Tuple[str, InlineKeyboardMarkup]:
    """Current sentence with its translation and the reading progress."""
    book = ctx.book
    progress = reader.read_progress(ctx)
    header = f"{book.icon} <b>{html.escape(book.title)}</b>\n"
    footer = f"\n\n📈 {progress.completed} / {progress.total} sentences ({progress.percentage:.0f}%)"

    if not book.story:
        text = header + "\nThis book has no story yet." + footer
        keyboard = [tab_buttons(ctx.current_tab), [InlineKeyboardButton(msg_back_to(MENU), callback_data="back_to_menu")]]
        return text, InlineKeyboardMarkup(keyboard)

    sentence = book.story[ctx.current_sentence]
    body = f"\n<i>{ctx.current_sentence + 1} / {len(book.story)}</i>\n\n🎧 {highlight_sentence(sentence.en, sentence.highlight_words)}"
    if ctx.show_translation and sentence.ko:
        body += f"\n{html.escape(sentence.ko)}"

    navigation = []
    if ctx.current_sentence > 0:
        navigation.append(InlineKeyboardButton(PREVIOUS, callback_data="read_prev"))
    navigation.append(InlineKeyboardButton(PLAY, callback_data="read_play"))
    if ctx.current_sentence < len(book.story) - 1:
        navigation.append(InlineKeyboardButton(NEXT, callback_data="read_next"))

    speeds = [
        InlineKeyboardButton(f"[{speed}x]" if speed == ctx.speed else f"{speed}x", callback_data=f"speed_{speed}")
        for speed in settings.reader.speed_options
    ]
    keyboard = [
        tab_buttons(ctx.current_tab),
        navigation,
        [InlineKeyboardButton(HIDE_TRANSLATION if ctx.show_translation else SHOW_TRANSLATION, callback_data="read_translation")],
        speeds,
        [InlineKeyboardButton(msg_back_to(MENU), callback_data="back_to_menu")],
    ]
    return header + body + footer, InlineKeyboardMarkup(keyboard)


def render_words_tab(reader: ReaderService, ctx: ReaderContext) -> Tuple[str, InlineKeyboardMarkup]:
    """Flashcard front or back, or the completion screen."""
    word = reader.current_word(ctx)
    back = [InlineKeyboardButton(msg_back_to(MENU), callback_data="back_to_menu")]

    if word is None:
        text = "🎉 <b>All done!</b>\n\nYou have reviewed every word."
        keyboard = [tab_buttons(ctx.current_tab), [InlineKeyboardButton(RESTART, callback_data="word_restart")], back]
        return text, InlineKeyboardMarkup(keyboard)

    session = ctx.session
    counter = f"<i>{session.position + 1} / {session.total} words</i>"
    if ctx.is_flipped:
        text = (
            f"{counter}\n\n<b>{html.escape(word.word)}</b>\n"
            f"💡 {html.escape(word.meaning)}\n"
            f"✏️ {html.escape(word.example)}"
        )
        actions = [
            InlineKeyboardButton(KNOW, callback_data="word_know"),
            InlineKeyboardButton(STUDY, callback_data="word_study"),
        ]
    else:
        text = f"{counter}\n\n<b>{html.escape(word.word)}</b>\n\nDo you remember it? Flip the card to check."
        actions = [InlineKeyboardButton(FLIP, callback_data="word_flip")]

    keyboard = [tab_buttons(ctx.current_tab), actions, back]
    return text, InlineKeyboardMarkup(keyboard)


def render_review_tab(reader: ReaderService, ctx: ReaderContext) -> Tuple[str, InlineKeyboardMarkup]:
    """Statistics: sentences read, mastered words, stars and words to review."""
    stats = reader.review_stats(ctx)
    stars = "⭐" * stats.stars + "☆" * (5 - stats.stars)
    mastered = ", ".join(html.escape(w.word) for w in stats.mastered) or "No words learned yet"
    due = ", ".join(html.escape(w.word) for w in stats.due) or "Nothing to review! 🎉"
    text = (
        f"📊 <b>{html.escape(ctx.book.title)}</b>\n\n"
        f"📖 Sentences: {stats.completed_sentences} / {stats.total_sentences}\n"
        f"🏆 Mastered words: {len(stats.mastered)} / {stats.total_words}\n"
        f"{stars}\n\n"
        f"<b>Mastered:</b> {mastered}\n"
        f"<b>To review:</b> {due}"
    )
    keyboard = [tab_buttons(ctx.current_tab), [InlineKeyboardButton(msg_back_to(MENU), callback_data="back_to_menu")]]
    return text, InlineKeyboardMarkup(keyboard)


def render_reader(reader: ReaderService, ctx: ReaderContext) -> Tuple[str, InlineKeyboardMarkup]:
    if ctx.current_tab == ReaderTab.WORDS:
        return render_words_tab(reader, ctx)
    if ctx.current_tab == ReaderTab.REVIEW:
        return render_review_tab(reader, ctx)
    return render_read_tab(reader, ctx)


# Handlers


async def handle_start(update: Update, context: CallbackContext) -> int:
    """Register the user and show the book list."""
    await log_received(update, "start")

    db = SessionLocal()
    try:
        UserService(db).get_or_create_user(
            telegram_id=update.effective_user.id,
            username=update.effective_user.first_name,
        )
        context.user_data.pop(READER_KEY, None)
        text, keyboard = render_book_list(BookService(db).get_all_books())
        await reply(update, text, keyboard)
        return MAIN_MENU
    finally:
        db.close()


async def handle_message(update: Update, context: CallbackContext) -> int:
    """Handle free text messages."""
    await log_received(update, "message")
    await update.message.reply_text("Please start with /start")
    return MAIN_MENU


async def handle_callback(update: Update, context: CallbackContext) -> int:
    """Handle callback queries from inline keyboards."""
    query = update.callback_query
    await query.answer()

    await log_received(update, "callback")

    user = get_user_from_update(update)
    if not user:
        await reply(update, ERR_MSG_NOT_REGISTERED, ERR_KB_NOT_REGISTERED)
        return MAIN_MENU

    if query.data == "back_to_menu":
        return await handle_start(update, context)

    db = SessionLocal()
    try:
        reader = ReaderService(db, user.id)

        if query.data.startswith("book_"):
            return await open_book(update, context, reader, user, query.data[len("book_"):])

        ctx: Optional[ReaderContext] = context.user_data.get(READER_KEY)
        if ctx is None:
            await reply(update, ERR_MSG_NO_BOOK, ERR_KB_NOT_REGISTERED)
            return MAIN_MENU

        if query.data.startswith("tab_"):
            try:
                reader.switch_tab(ctx, ReaderTab(query.data[len("tab_"):]))
            except ValueError:
                logger.debug(f"Received unknown tab: {query.data}")
        elif query.data.startswith("read_") or query.data.startswith("speed_"):
            await handle_read_action(update, context, reader, ctx, user)
        elif query.data.startswith("word_"):
            await handle_word_action(update, context, reader, ctx)
        else:
            logger.debug(f"Received unknown callback: {query.data}")

        text, keyboard = render_reader(reader, ctx)
        await reply(update, text, keyboard)
        return READING
    finally:
        db.close()


async def open_book(update: Update, context: CallbackContext, reader: ReaderService, user: User, book_id: str) -> int:
    """Open a book on the read tab."""
    try:
        ctx = reader.open_book(book_id, speed=user.reading_speed, show_translation=user.show_translation)
    except ValueError as e:
        logger.warning(f"Error opening book: {e}")
        await reply(update, "This book is no longer available.", ERR_KB_NOT_REGISTERED)
        return MAIN_MENU

    context.user_data[READER_KEY] = ctx
    text, keyboard = render_reader(reader, ctx)
    await reply(update, text, keyboard)
    return READING


async def handle_read_action(
    update: Update, context: CallbackContext, reader: ReaderService, ctx: ReaderContext, user: User
) -> None:
    """Sentence navigation, playback, translation and speed buttons."""
    data = update.callback_query.data
    last = len(ctx.book.story) - 1

    if data == "read_prev":
        ctx.current_sentence = max(ctx.current_sentence - 1, 0)
    elif data == "read_next":
        ctx.current_sentence = min(ctx.current_sentence + 1, max(last, 0))
    elif data == "read_play" and ctx.book.story:
        audio = reader.play_sentence(ctx, ctx.current_sentence)
        if audio:
            await send_audio_file(update, audio, context)
    elif data == "read_translation":
        shown = reader.toggle_translation(ctx)
        UserService(reader.db).update_user_settings(user.id, show_translation=shown)
    elif data.startswith("speed_"):
        try:
            speed = float(data[len("speed_"):])
            reader.set_speed(ctx, speed)
            UserService(reader.db).update_user_settings(user.id, reading_speed=speed)
        except ValueError as e:
            logger.warning(f"Error setting speed for user {user.id}: {e}")


async def handle_word_action(update: Update, context: CallbackContext, reader: ReaderService, ctx: ReaderContext) -> None:
    """Flashcard buttons: flip, know, study again and restart."""
    data = update.callback_query.data

    if data == "word_flip":
        audio = reader.flip_card(ctx)
        if audio:
            await send_audio_file(update, audio, context)
    elif data in ("word_know", "word_study"):
        if reader.current_word(ctx) is None:
            logger.debug("Answer received after the session completed, ignoring")
            return
        reader.answer_word(ctx, knew=data == "word_know")
    elif data == "word_restart":
        reader.start_review(ctx)


async def send_audio_file(update: Update, audio_file_path: Path, context: CallbackContext) -> None:
    """Send an audio file and remember its message so the next one replaces it."""
    chat = update.callback_query.message.chat if update.callback_query else update.message.chat
    previous = context.user_data.pop(AUDIO_KEY, None)
    if previous:
        try:
            await chat.delete_message(previous)
        except TelegramError as e:
            logger.warning(f"Error deleting audio message: {e}")

    try:
        with open(audio_file_path, 'rb') as audio:
            message = await chat.send_audio(audio)
        context.user_data[AUDIO_KEY] = message.message_id
    except (OSError, TelegramError) as e:
        logger.error(f"Error sending audio file: {e}")
