"""
UserPreferences Repository - data access layer for UserPreferences model.
"""

from typing import Optional
from sqlmodel import Session, select

from config import get_settings
from db_engine import get_engine
from models import UserPreferences


class UserPreferencesRepository:
    """Repository for UserPreferences CRUD operations."""

    @staticmethod
    def get() -> Optional[UserPreferences]:
        """Retrieve user preferences (singleton - only one record expected)."""
        with Session(get_engine()) as session:
            statement = select(UserPreferences)
            results = session.exec(statement)
            return results.first()

    @staticmethod
    def get_base_currency() -> str:
        """Preferred currency partition, falling back to the configured default."""
        prefs = UserPreferencesRepository.get()
        if prefs and prefs.base_currency:
            return prefs.base_currency
        return get_settings().default_currency

    @staticmethod
    def _save(**fields) -> UserPreferences:
        with Session(get_engine()) as session:
            statement = select(UserPreferences)
            results = session.exec(statement)
            prefs = results.first()

            if prefs:
                for key, value in fields.items():
                    setattr(prefs, key, value)
            else:
                prefs = UserPreferences(**fields)
            session.add(prefs)
            session.commit()
            session.refresh(prefs)
            return prefs

    @staticmethod
    def save_base_currency(base_currency: str) -> UserPreferences:
        """Save or update user base currency preference."""
        return UserPreferencesRepository._save(base_currency=base_currency.upper())

    @staticmethod
    def save_language(language: str) -> UserPreferences:
        """Save or update user language preference."""
        return UserPreferencesRepository._save(language=language)

    @staticmethod
    def save_theme(theme: str) -> UserPreferences:
        """Save or update user theme preference."""
        return UserPreferencesRepository._save(theme=theme)

    @staticmethod
    def save_display_name(display_name: str) -> UserPreferences:
        """Save or update the name shown in the dashboard header."""
        return UserPreferencesRepository._save(display_name=display_name)
