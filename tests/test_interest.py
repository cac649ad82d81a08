from models import AssetRecord
from services.interest import calculate_fd_interest, fd_stats, refresh_fd_interest

from tests.conftest import make_record


def test_six_month_deposit():
    # 182 days in the first half of 2024
    assert calculate_fd_interest(10000, 3.5, "2024-01-01", "2024-07-01") == 174.52


def test_zero_or_missing_inputs_give_zero():
    assert calculate_fd_interest(0, 3.5, "2024-01-01", "2024-07-01") == 0.0
    assert calculate_fd_interest(10000, 0, "2024-01-01", "2024-07-01") == 0.0
    assert calculate_fd_interest(10000, 3.5, None, "2024-07-01") == 0.0
    assert calculate_fd_interest(10000, 3.5, "2024-01-01", "") == 0.0
    assert calculate_fd_interest(10000, 3.5, "garbage", "2024-07-01") == 0.0


def test_maturity_not_after_start_gives_zero():
    assert calculate_fd_interest(10000, 3.5, "2024-07-01", "2024-07-01") == 0.0
    assert calculate_fd_interest(10000, 3.5, "2024-07-01", "2024-01-01") == 0.0


def test_interest_grows_with_term():
    short = calculate_fd_interest(5000, 4.0, "2024-01-01", "2024-04-01")
    long = calculate_fd_interest(5000, 4.0, "2024-01-01", "2024-10-01")
    assert 0 < short < long


def test_refresh_overrides_stored_interest():
    record = make_record(
        asset_type="Fixed Deposit", name="Maybank", action="Deposit", amount=10000.0,
        maturity_date="2024-07-01", interest_dividend=1.0, remarks="[Rate: 3.5%]",
    )
    refresh_fd_interest(record)
    assert record.interest_rate == 3.5
    assert record.interest_dividend == 174.52


def test_refresh_leaves_other_types_alone():
    record = make_record(interest_dividend=12.0, remarks="[Rate: 3.5%]")
    refresh_fd_interest(record)
    assert record.interest_dividend == 12.0
    assert record.interest_rate is None


def test_fd_stats_counts_active_deposits_only():
    records = [
        make_record(asset_type="Fixed Deposit", amount=10000.0, interest_rate=3.5, maturity_date="2024-07-01"),
        make_record(asset_type="Fixed Deposit", amount=5000.0, interest_rate=3.5,
                    maturity_date="2024-07-01", status="Mature"),
        make_record(amount=700.0),
    ]
    stats = fd_stats(records)
    assert stats.count == 1
    assert stats.principal == 10000.0
    assert stats.expected_interest == 174.52


def test_fd_stats_empty():
    stats = fd_stats([])
    assert (stats.principal, stats.expected_interest, stats.count) == (0.0, 0.0, 0)


def test_record_default_is_not_fixed_deposit():
    assert not AssetRecord(date="2024-01-01", name="x").is_fixed_deposit


def test_interest_never_falls_as_rate_rises():
    results = [
        calculate_fd_interest(25000, rate, "2024-03-15", "2025-03-15")
        for rate in (0.5, 1, 2.25, 3.5, 4.85, 7)
    ]
    assert results == sorted(results)
    assert results[0] > 0
