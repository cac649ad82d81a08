"""
LangChain tools that let the chat assistant query the dashboard figures.
Tools are built per engine so they always answer from the ledger currently on screen.
"""

from typing import List
import logging

from langchain_core.tools import BaseTool, tool

from services.common import ALL, format_currency
from services.portfolio import (
    DashboardEngine,
    allocation_breakdown,
    partition_by_currency,
    property_cash_flow,
    top_asset,
    total_value,
)
from services.interest import fd_stats

logger = logging.getLogger(__name__)


def build_portfolio_tools(engine: DashboardEngine) -> List[BaseTool]:
    """
    Create the assistant's tools bound to a dashboard engine.

    Args:
        engine: Engine holding the user's records

    Returns:
        List of LangChain tools
    """

    @tool
    def get_portfolio_summary(currency: str = "MYR", asset_type: str = ALL) -> str:
        """
        Get the total value of active holdings, the top asset and the allocation
        for one currency.

        Args:
            currency: Currency code, e.g. "MYR" or "USD"
            asset_type: "All" or one of "Fixed Deposit", "Stock", "REIT", "Property", "EPF", "Other"

        Returns:
            Summary text
        """
        logger.info(f"Tool call: portfolio summary {currency} / {asset_type}")
        records = partition_by_currency(engine.records, currency.upper())
        if not records:
            return f"No records in {currency.upper()}."

        total = total_value(records, currency.upper(), asset_type)
        top = top_asset(records, asset_type)
        lines = [
            f"Total active value: {format_currency(total.value, total.currency)}",
            f"Top holding: {top.name} ({format_currency(top.value, total.currency)})",
            f"Records: {len(records)}",
            "Allocation:",
        ]
        for entry in allocation_breakdown(records, asset_type):
            lines.append(f"- {entry.name}: {format_currency(entry.value, total.currency)}")
        return "\n".join(lines)

    @tool
    def get_fixed_deposit_summary(currency: str = "MYR") -> str:
        """
        Get principal and expected interest of active fixed deposits in one currency.

        Args:
            currency: Currency code, e.g. "MYR"

        Returns:
            Summary text
        """
        logger.info(f"Tool call: fixed deposit summary {currency}")
        stats = fd_stats(partition_by_currency(engine.records, currency.upper()))
        if stats.count == 0:
            return f"No active fixed deposits in {currency.upper()}."
        return (
            f"Active fixed deposits: {stats.count}\n"
            f"Principal: {format_currency(stats.principal, currency.upper())}\n"
            f"Expected interest: {format_currency(stats.expected_interest, currency.upper())}"
        )

    @tool
    def get_property_cash_flow(currency: str = "MYR", property_name: str = ALL) -> str:
        """
        Get money invested in and returned from property holdings.

        Args:
            currency: Currency code, e.g. "MYR"
            property_name: "All" or the name of one property

        Returns:
            Summary text
        """
        logger.info(f"Tool call: property cash flow {currency} / {property_name}")
        flow = property_cash_flow(partition_by_currency(engine.records, currency.upper()), property_name)
        if not flow.has_properties:
            return "No property records found."
        return (
            f"Total invested: {format_currency(flow.total_invested, currency.upper())}\n"
            f"Total returned: {format_currency(flow.total_returned, currency.upper())}\n"
            f"Net cash flow: {format_currency(flow.net_cash_flow, currency.upper())}"
        )

    return [get_portfolio_summary, get_fixed_deposit_summary, get_property_cash_flow]
