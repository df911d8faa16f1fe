"""User service for managing user data and reader preferences."""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from storybot.config import settings
from storybot.models.models import User

# Configure logging
logger = logging.getLogger(__name__)


class UserService:
    """Service for managing user data and preferences."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def get_user_by_telegram_id(self, telegram_id: int) -> Optional[User]:
        """Get user by telegram ID."""
        return self.db.query(User).filter(User.telegram_id == telegram_id).first()

    def get_or_create_user(self, telegram_id: int, username: Optional[str] = None) -> User:
        """Get existing user or create a new one."""
        user = self.get_user_by_telegram_id(telegram_id)

        if not user:
            user = User(
                telegram_id=telegram_id,
                username=username,
                reading_speed=settings.reader.default_speed,
                show_translation=settings.reader.show_translation,
            )
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
            logger.info(f"User created: {username} ({telegram_id})")

        return user

    def update_user_settings(
        self,
        user_id: int,
        reading_speed: Optional[float] = None,
        show_translation: Optional[bool] = None,
    ) -> User:
        """Update reader preferences of a user."""
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise ValueError(f"User {user_id} not found")

        if reading_speed is not None:
            if reading_speed not in settings.reader.speed_options:
                raise ValueError(f"Unsupported reading speed: {reading_speed}")
            user.reading_speed = reading_speed
        if show_translation is not None:
            user.show_translation = show_translation

        self.db.commit()
        self.db.refresh(user)
        return user
