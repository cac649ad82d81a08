"""
Repositories package for MyAsset.
Provides data access layer for all database operations.
"""

from repositories.asset_record_repository import AssetRecordRepository
from repositories.user_preferences_repository import UserPreferencesRepository

__all__ = [
    'AssetRecordRepository',
    'UserPreferencesRepository',
]
