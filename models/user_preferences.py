"""
UserPreferences model - stores user preferences and settings.
"""

from typing import Optional
from sqlmodel import SQLModel, Field


class UserPreferences(SQLModel, table=True):
    """Stores user preferences and settings."""
    id: Optional[int] = Field(default=None, primary_key=True)
    display_name: Optional[str] = Field(default=None)
    language: Optional[str] = Field(default="en")  # "en", "zh" or "ms"
    theme: Optional[str] = Field(default="dark")  # "light" or "dark"
    base_currency: Optional[str] = Field(default="MYR")  # currency partition shown on load
