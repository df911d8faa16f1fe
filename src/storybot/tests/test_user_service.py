"""Tests for user service."""
import pytest
from faker import Faker
from sqlalchemy.orm import Session

from storybot.models.models import User
from storybot.services.user_service import UserService

fake = Faker()


@pytest.fixture
def user_service(db: Session) -> UserService:
    """Create a user service instance."""
    return UserService(db)


def test_get_or_create_user(user_service: UserService) -> None:
    """Test user creation and retrieval."""
    telegram_id = fake.random_int(min=1, max=10**9)
    username = fake.user_name()

    user = user_service.get_or_create_user(telegram_id=telegram_id, username=username)

    assert user.telegram_id == telegram_id
    assert user.username == username
    assert user.reading_speed == 0.9
    assert user.show_translation is True

    same_user = user_service.get_or_create_user(telegram_id=telegram_id, username="other")
    assert same_user.id == user.id
    assert same_user.username == username


def test_get_user_by_telegram_id(user_service: UserService, user: User) -> None:
    assert user_service.get_user_by_telegram_id(user.telegram_id).id == user.id
    assert user_service.get_user_by_telegram_id(-1) is None


def test_update_user_settings(user_service: UserService, user: User) -> None:
    """Test updating reader preferences."""
    updated = user_service.update_user_settings(user.id, reading_speed=1.2, show_translation=False)

    assert updated.reading_speed == 1.2
    assert updated.show_translation is False

    updated = user_service.update_user_settings(user.id, show_translation=True)
    assert updated.reading_speed == 1.2
    assert updated.show_translation is True


def test_update_user_settings_rejects_invalid(user_service: UserService, user: User) -> None:
    with pytest.raises(ValueError):
        user_service.update_user_settings(user.id, reading_speed=5.0)

    with pytest.raises(ValueError):
        user_service.update_user_settings(-1, show_translation=False)
