from datetime import date

import pytest

from services.csv_io import (
    EXPORT_HEADERS,
    export_csv,
    export_filename,
    flag_duplicates,
    import_summary,
    parse_csv,
)
from services.errors import CsvImportError

from tests.conftest import make_record

HEADER = ','.join(EXPORT_HEADERS)


def test_export_header_and_quoting():
    record = make_record(name='Say "hi", Inc', remarks="line", unit_price=2.5, quantity=400.0, fee=0.0)
    lines = export_csv([record]).split('\n')
    assert lines[0] == HEADER
    assert lines[1] == (
        '"2024-01-01","Stock","Say ""hi"", Inc","Buy",2.5,400,1000,"","","","Active","MYR","line"'
    )


def test_free_text_with_commas_reads_back():
    record = make_record(action="Buy, top-up", remarks='note, "split" lot', fee=12.5)
    back = parse_csv(export_csv([record]))[0]
    assert back.action == "Buy, top-up"
    assert back.amount == 1000.0
    assert back.fee == 12.5
    assert back.status == "Active"
    assert back.currency == "MYR"
    assert back.remarks == 'note, "split" lot'


def test_export_filename():
    assert export_filename(date(2025, 1, 31)) == "my_asset_history_2025-01-31.csv"


def test_exported_fixed_deposit_reads_back():
    record = make_record(
        asset_type="Fixed Deposit", name="Maybank", action="Deposit", amount=10000.0,
        interest_rate=3.5, interest_dividend=174.52, maturity_date="2024-07-01",
        remarks="6 months [Rate: 3.5%]",
    )
    parsed = parse_csv(export_csv([record]))
    assert len(parsed) == 1
    back = parsed[0]
    assert (back.date, back.asset_type, back.name, back.action) == ("2024-01-01", "Fixed Deposit", "Maybank", "Deposit")
    assert back.amount == 10000.0
    assert back.interest_rate == 3.5
    assert back.interest_dividend == 174.52
    assert back.maturity_date == "2024-07-01"
    assert back.remarks == "6 months [Rate: 3.5%]"


def test_parse_handles_bom_dates_and_legacy_amount_header():
    text = (
        "\ufeffDate,Type,Name,Action,Amount,Status,Remarks\n"
        "27/11/2025,stock,FFB,Buy,1500,active,\"first, lot\"\n"
        "\n"
        "1/7/24,Crypto,BTC,Buy,200,Unknown,\n"
    )
    records = parse_csv(text)
    assert [r.date for r in records] == ["2025-11-27", "2024-07-01"]
    assert records[0].asset_type == "Stock"
    assert records[0].status == "Active"
    assert records[0].remarks == "first, lot"
    assert records[0].currency == "MYR"
    assert records[1].asset_type == "Other"
    assert records[1].status == "Active"


def test_parse_skips_rows_with_wrong_field_count():
    text = (
        HEADER + "\n"
        "2024-01-01,Stock,FFB\n"
        "2024-01-03,Stock,FFB,Buy, top-up,,,100,,,,Active,MYR,\n"
        "2024-01-02,Stock,FFB,Buy,,,100,,,,Active,USD,\n"
    )
    records = parse_csv(text)
    assert len(records) == 1
    assert records[0].currency == "USD"
    assert records[0].unit_price is None


@pytest.mark.parametrize("text", ["", "Date,Type,Name\n", "   \n\n"])
def test_parse_rejects_empty_files(text):
    with pytest.raises(CsvImportError, match="empty or missing headers"):
        parse_csv(text)


def test_parse_reports_missing_headers():
    with pytest.raises(CsvImportError) as excinfo:
        parse_csv("Date,Name\n2024-01-01,FFB\n")
    message = str(excinfo.value)
    assert message.startswith("Missing required headers:")
    assert "Type" in message and "Total Amount" in message


def test_flag_duplicates_against_store_and_within_file():
    existing = [make_record(id="x")]
    candidates = [
        make_record(),
        make_record(name="Maybank"),
        make_record(name="Maybank"),
        make_record(currency="USD"),
    ]
    flagged = flag_duplicates(candidates, existing)
    assert [c.is_duplicate for c in flagged] == [True, False, True, False]


def test_import_summary():
    candidates = flag_duplicates(
        [
            make_record(amount=100.0),
            make_record(asset_type="REIT", amount=50.5),
            make_record(currency="USD", amount=20.0),
            make_record(asset_type="EPF", amount=1.0),
        ],
        [make_record(amount=100.0)],
    )
    summary = import_summary(candidates)
    assert summary.count == 4
    assert summary.type_count == 3
    assert summary.duplicate_count == 1
    assert summary.totals_by_currency == {"MYR": 151.5, "USD": 20.0}
    assert len(summary.preview) == 3
