"""
Database models for MyAsset.
All SQLModel table definitions are centralized here.
"""

from models.asset_record import AssetRecord, AssetType, AssetStatus
from models.user_preferences import UserPreferences

__all__ = [
    'AssetRecord',
    'AssetType',
    'AssetStatus',
    'UserPreferences',
]
