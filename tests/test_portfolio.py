from datetime import date

import pytest

from services.common import NAME_PALETTE, TYPE_COLORS
from services.portfolio import (
    DashboardEngine,
    _range_start,
    allocation_breakdown,
    available_currencies,
    classify_property_action,
    net_worth_series,
    partition_by_currency,
    performance_series,
    property_cash_flow,
    property_names,
    top_asset,
    total_value,
)

from tests.conftest import make_record


@pytest.fixture
def ledger():
    return [
        make_record(id="1", name="FFB", amount=1000.0),
        make_record(id="2", name="Maybank", amount=500.0),
        make_record(id="3", asset_type="Fixed Deposit", name="Maybank", action="Deposit", amount=10000.0),
        make_record(id="4", asset_type="EPF", name="EPF", action="Self contribute", amount=3000.0, status="Sold"),
        make_record(id="5", name="Apple", amount=200.0, currency="USD"),
        make_record(id="6", name="Legacy", amount=50.0, currency=""),
    ]


def test_partition_treats_missing_currency_as_myr(ledger):
    assert [r.id for r in partition_by_currency(ledger, "MYR")] == ["1", "2", "3", "4", "6"]
    assert [r.id for r in partition_by_currency(ledger, "USD")] == ["5"]


def test_available_currencies_lists_preferred_first(ledger):
    assert available_currencies(ledger, "USD") == ["USD", "MYR"]
    assert available_currencies([], "MYR") == ["MYR"]


def test_total_value_counts_active_in_one_currency(ledger):
    assert total_value(ledger, "MYR").value == 11550.0
    assert total_value(ledger, "USD").value == 200.0
    assert total_value(ledger, "MYR", "Stock").value == 1550.0
    assert total_value(ledger, "SGD").value == 0.0


def test_top_asset(ledger):
    myr = partition_by_currency(ledger, "MYR")
    top = top_asset(myr)
    assert (top.name, top.value) == ("Fixed Deposit", 10000.0)
    top = top_asset(myr, "Stock")
    assert (top.name, top.value) == ("FFB", 1000.0)


def test_top_asset_tie_keeps_first():
    records = [
        make_record(asset_type="REIT", amount=100.0),
        make_record(asset_type="Stock", amount=100.0),
    ]
    assert top_asset(records).name == "REIT"


def test_top_asset_defaults():
    top = top_asset([make_record(status="Sold")])
    assert (top.name, top.value) == ("N/A", 0.0)


def test_allocation_by_type_uses_type_colors(ledger):
    entries = allocation_breakdown(partition_by_currency(ledger, "MYR"))
    assert [(e.name, e.value) for e in entries] == [("Fixed Deposit", 10000.0), ("Stock", 1550.0)]
    assert entries[0].color == TYPE_COLORS["Fixed Deposit"]
    assert entries[1].color == TYPE_COLORS["Stock"]


def test_allocation_by_name_cycles_palette_in_encounter_order(ledger):
    entries = allocation_breakdown(partition_by_currency(ledger, "MYR"), "Stock")
    assert [e.name for e in entries] == ["FFB", "Maybank", "Legacy"]
    assert [e.color for e in entries] == NAME_PALETTE[:3]


def test_allocation_drops_non_positive_groups():
    records = [make_record(amount=100.0), make_record(asset_type="REIT", amount=-5.0)]
    assert [e.name for e in allocation_breakdown(records)] == ["Stock"]


def test_classify_property_action():
    assert classify_property_action("Buy") == (True, False)
    assert classify_property_action("Rent") == (False, True)
    assert classify_property_action("Pay rent") == (True, True)
    assert classify_property_action(None) == (False, False)


def test_property_cash_flow():
    records = [
        make_record(asset_type="Property", name="The Skies", action="Buy", amount=500000.0),
        make_record(asset_type="Property", name="The Skies", action="Rent", amount=2000.0),
        make_record(asset_type="Property", name="Sentral", action="Maintenance", amount=300.0),
        make_record(asset_type="Property", name="Sentral", action="Pay rent", amount=100.0),
        make_record(name="FFB", action="Dividend", amount=50.0),
    ]
    flow = property_cash_flow(records)
    assert flow.total_invested == 500400.0
    assert flow.total_returned == 2100.0
    assert flow.net_cash_flow == flow.total_returned - flow.total_invested
    assert flow.has_properties
    assert len(flow.records) == 4

    skies = property_cash_flow(records, "The Skies")
    assert (skies.total_invested, skies.total_returned, skies.net_cash_flow) == (500000.0, 2000.0, -498000.0)

    assert property_names(records) == ["Sentral", "The Skies"]


def test_property_cash_flow_without_property():
    flow = property_cash_flow([make_record()])
    assert not flow.has_properties
    assert flow.net_cash_flow == 0.0


def test_net_worth_series():
    records = [
        make_record(date="2024-01-01", amount=1000.0),
        make_record(date="2024-02-01", amount=500.0),
        make_record(date="2024-03-01", amount=200.0, status="Sold"),
    ]
    points = net_worth_series(records)
    assert [(p.date, p.value) for p in points] == [
        ("2024-01-01", 1000.0), ("2024-02-01", 1500.0), ("2024-03-01", 1500.0)
    ]


def test_performance_series_week():
    records = [
        make_record(date="2024-01-01", amount=1000.0),
        make_record(date="2024-03-05", action="Sell", amount=300.0),
        make_record(date="2024-03-06", amount=999.0, status="Sold"),
    ]
    points = performance_series(records, "1W", today=date(2024, 3, 10))
    assert len(points) == 8
    assert points[0].date == "2024-03-03"
    assert points[0].value == 1000.0
    assert points[-1].value == 700.0


def test_range_start():
    assert _range_start("1M", date(2024, 3, 31)) == date(2024, 2, 29)
    assert _range_start("1M", date(2024, 1, 15)) == date(2023, 12, 15)
    assert _range_start("1Y", date(2024, 2, 29)) == date(2023, 2, 28)
    with pytest.raises(ValueError):
        _range_start("5Y", date(2024, 1, 1))


def test_engine_memoizes_until_inputs_change(ledger):
    engine = DashboardEngine(ledger)
    first = engine.allocation
    assert engine.allocation is first

    engine.set_currency("USD")
    assert engine.total_value.value == 200.0
    assert engine.record_count == 1

    engine.set_currency("MYR")
    engine.set_records(ledger[:2])
    assert engine.allocation is not first
    assert engine.total_value.value == 1500.0


def test_engine_type_filter_drives_records_view(ledger):
    engine = DashboardEngine(ledger)
    engine.records_view.set_page(3)
    engine.set_type_filter("Stock")
    assert engine.records_view.type_filter == "Stock"
    assert engine.records_view.page == 1
    assert {r.asset_type for r in engine.filtered_records} == {"Stock"}
    assert engine.top_asset.name == "FFB"


def test_engine_fd_page(ledger):
    engine = DashboardEngine(ledger)
    page = engine.fd_page()
    assert [r.id for r in page.rows] == ["3"]
    assert engine.fd_stats.principal == 10000.0
