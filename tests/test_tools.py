import pytest

from services.portfolio import DashboardEngine
from tools import build_portfolio_tools

from tests.conftest import make_record


@pytest.fixture
def tools():
    engine = DashboardEngine([
        make_record(name="FFB", amount=1000.0),
        make_record(asset_type="Property", name="The Skies", action="Buy", amount=500000.0),
        make_record(asset_type="Property", name="The Skies", action="Rent", amount=2000.0),
        make_record(name="Apple", amount=200.0, currency="USD"),
    ])
    return {t.name: t for t in build_portfolio_tools(engine)}


def test_portfolio_summary(tools):
    text = tools["get_portfolio_summary"].invoke({"currency": "myr"})
    assert "Total active value: MYR 503,000.00" in text
    assert "Top holding: Property (MYR 502,000.00)" in text
    assert "- Stock: MYR 1,000.00" in text


def test_portfolio_summary_unknown_currency(tools):
    assert tools["get_portfolio_summary"].invoke({"currency": "SGD"}) == "No records in SGD."


def test_fixed_deposit_summary_without_deposits(tools):
    assert tools["get_fixed_deposit_summary"].invoke({"currency": "MYR"}) == "No active fixed deposits in MYR."


def test_property_cash_flow(tools):
    text = tools["get_property_cash_flow"].invoke({"currency": "MYR", "property_name": "The Skies"})
    assert "Total invested: MYR 500,000.00" in text
    assert "Net cash flow: MYR -498,000.00" in text
    assert tools["get_property_cash_flow"].invoke({"currency": "USD"}) == "No property records found."
