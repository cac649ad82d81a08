"""
Services package for MyAsset.
Provides core business logic separated from presentation and data layers.
"""

from services.errors import (
    MyAssetError,
    RecordStoreError,
    CsvImportError,
    ChatError,
    ValidationError,
)
from services.interest import calculate_fd_interest, refresh_fd_interest, fd_stats, FixedDepositStats
from services.maturity import apply_maturity, find_matured
from services.portfolio import (
    DashboardEngine,
    partition_by_currency,
    total_value,
    top_asset,
    allocation_breakdown,
    property_cash_flow,
    net_worth_series,
    performance_series,
)
from services.records import RecordService, validate_record
from services.views import ListViewState

__all__ = [
    # Errors
    'MyAssetError',
    'RecordStoreError',
    'CsvImportError',
    'ChatError',
    'ValidationError',
    # Fixed deposits
    'calculate_fd_interest',
    'refresh_fd_interest',
    'fd_stats',
    'FixedDepositStats',
    'apply_maturity',
    'find_matured',
    # Derivations
    'DashboardEngine',
    'partition_by_currency',
    'total_value',
    'top_asset',
    'allocation_breakdown',
    'property_cash_flow',
    'net_worth_series',
    'performance_series',
    'ListViewState',
    # Records
    'RecordService',
    'validate_record',
]
