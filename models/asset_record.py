"""
AssetRecord model - one ledger line for an asset (deposit, buy, rent, contribution...).
"""

from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field


class AssetType(str, Enum):
    """Closed set of asset types. Values are the labels stored and exported."""
    FIXED_DEPOSIT = "Fixed Deposit"
    STOCK = "Stock"
    REIT = "REIT"
    PROPERTY = "Property"
    EPF = "EPF"
    OTHER = "Other"


class AssetStatus(str, Enum):
    """Lifecycle state of a record. Only ACTIVE counts toward current holdings."""
    ACTIVE = "Active"
    MATURE = "Mature"
    SOLD = "Sold"


class AssetRecord(SQLModel, table=True):
    """Represents a single transaction against an asset."""
    id: Optional[str] = Field(default=None, primary_key=True)  # assigned by the store
    date: str = Field(index=True)  # ISO YYYY-MM-DD
    asset_type: str = Field(default=AssetType.OTHER.value, index=True)
    name: str = Field(index=True)  # e.g., "Maybank", "FFB", "The Skies"
    action: str = ""  # e.g., "Buy", "Deposit", "Rent"
    amount: float = 0.0  # Total amount of the transaction
    unit_price: Optional[float] = Field(default=None)
    quantity: Optional[float] = Field(default=None)
    fee: Optional[float] = Field(default=None)
    interest_rate: Optional[float] = Field(default=None)  # annual %, fixed deposits only
    interest_dividend: Optional[float] = Field(default=None)
    maturity_date: Optional[str] = Field(default=None)  # ISO YYYY-MM-DD
    status: str = Field(default=AssetStatus.ACTIVE.value)
    currency: str = Field(default="MYR", index=True)
    remarks: str = ""

    @property
    def is_active(self) -> bool:
        return self.status == AssetStatus.ACTIVE

    @property
    def is_fixed_deposit(self) -> bool:
        return self.asset_type == AssetType.FIXED_DEPOSIT

    def copy_record(self) -> "AssetRecord":
        """Detached copy carrying the same id and field values."""
        return AssetRecord(**self.model_dump())
