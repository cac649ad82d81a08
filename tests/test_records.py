from datetime import date

import pytest

from services.errors import RecordStoreError, ValidationError
from services.records import RecordService, prepare_for_store, validate_record

from tests.conftest import make_record


class FakeRepository:
    """In-memory store that can be told to fail."""

    def __init__(self, records=None):
        self.rows = {r.id: r for r in (records or [])}
        self.fail = False
        self.next_id = 100
        self.updates = []

    def _check(self):
        if self.fail:
            raise RuntimeError("store offline")

    def list_all(self):
        self._check()
        return [r.copy_record() for r in self.rows.values()]

    def insert(self, record):
        self._check()
        self.next_id += 1
        stored = record.copy_record()
        stored.id = str(self.next_id)
        self.rows[stored.id] = stored
        return stored.copy_record()

    def insert_many(self, records):
        return [self.insert(r) for r in records]

    def update(self, record_id, fields):
        self._check()
        self.updates.append((record_id, fields))
        if record_id not in self.rows:
            return False
        for key, value in fields.items():
            setattr(self.rows[record_id], key, value)
        return True

    def delete(self, record_id):
        self._check()
        return self.rows.pop(record_id, None) is not None

    def delete_many(self, record_ids):
        self._check()
        return sum(1 for i in list(record_ids) if self.rows.pop(i, None) is not None)


@pytest.fixture
def repo():
    return FakeRepository([make_record(id="1"), make_record(id="2", name="Maybank")])


@pytest.fixture
def service(repo):
    changes = []
    svc = RecordService(repository=repo, on_change=changes.append)
    svc.changes = changes
    svc.load()
    return svc


def test_validate_record():
    assert validate_record(make_record()) == []
    errors = validate_record(make_record(name=" ", date="31/02/2024", amount=0.0))
    assert "Name is required." in errors
    assert "Date must be a valid YYYY-MM-DD date." in errors
    assert "Total amount is required." in errors


def test_validate_property_action():
    assert validate_record(make_record(asset_type="Property", action="Rent")) == []
    assert validate_record(make_record(asset_type="Property", action="Party"))
    assert validate_record(make_record(asset_type="Crypto"))
    assert validate_record(make_record(status="Lost"))
    assert validate_record(make_record(maturity_date="someday"))


def test_prepare_for_store_normalizes_input():
    draft = make_record(
        asset_type="Fixed Deposit", name=" Maybank ", amount="10000", currency="usd",
        interest_rate="3.5", maturity_date="2024-07-01", unit_price="", remarks="old [Rate: 1%]",
    )
    record = prepare_for_store(draft)
    assert record.name == "Maybank"
    assert record.amount == 10000.0
    assert record.currency == "USD"
    assert record.unit_price is None
    assert record.remarks == "old [Rate: 3.5%]"
    assert record.interest_dividend == 174.52


def test_load_notifies_listener(service):
    assert {r.id for r in service.records} == {"1", "2"}
    assert service.changes[-1] is service.records
    assert service.last_error is None


def test_load_failure_keeps_records(service, repo):
    before = service.records
    repo.fail = True
    assert service.load() is False
    assert service.records is before
    assert "store offline" in service.last_error


def test_load_marks_matured_deposits():
    repo = FakeRepository([
        make_record(id="fd", asset_type="Fixed Deposit", amount=5000.0, maturity_date="2024-03-01"),
    ])
    svc = RecordService(repository=repo)
    svc.load(today=date(2024, 3, 1))
    assert svc.get("fd").status == "Mature"
    assert repo.updates == [("fd", {"status": "Mature"})]
    assert repo.rows["fd"].status == "Mature"


def test_save_creates_record(service, repo):
    created = service.save(make_record(name="Tesla", amount=250.0))
    assert created.id == "101"
    assert service.records[0] is created
    assert repo.rows["101"].name == "Tesla"


def test_save_rejects_invalid_draft(service):
    before = service.records
    with pytest.raises(ValidationError) as excinfo:
        service.save(make_record(name=""))
    assert "Name is required." in excinfo.value.errors
    assert service.records is before


def test_create_failure_rolls_back(service, repo):
    before = list(service.records)
    repo.fail = True
    with pytest.raises(RecordStoreError):
        service.save(make_record(name="Tesla"))
    assert service.records == before
    # The provisional row was shown before the store answered
    assert any(r.id.startswith("pending-") for r in service.changes[-2])


def test_update_replaces_fields(service, repo):
    updated = service.save(make_record(name="FFB Holdings", amount=1200.0), record_id="1")
    assert updated.id == "1"
    assert service.get("1").name == "FFB Holdings"
    assert repo.rows["1"].amount == 1200.0


def test_update_missing_record_rolls_back(service):
    before = list(service.records)
    with pytest.raises(RecordStoreError, match="no longer exists"):
        service.save(make_record(name="Ghost"), record_id="404")
    assert service.records == before


def test_delete_failure_restores_record(service, repo):
    repo.fail = True
    with pytest.raises(RecordStoreError):
        service.delete("1")
    assert service.get("1") is not None


def test_delete_many(service, repo):
    assert service.delete_many(["1", "2", "missing"]) == 2
    assert service.records == []
    assert repo.rows == {}
    assert service.delete_many([]) == 0


def test_import_records(service, repo):
    created = service.import_records([make_record(name="A"), make_record(name="B", interest_dividend=5.0)])
    assert [r.name for r in created] == ["A", "B"]
    assert created[1].remarks == "[Int: 5]"
    assert len(service.records) == 4


def test_import_skips_invalid_rows(service, repo):
    created = service.import_records([
        make_record(name="Good"),
        make_record(name="", amount=10.0),
        make_record(asset_type="Property", name="Flat", action="Party"),
    ])
    assert [r.name for r in created] == ["Good"]
    assert service.import_records([make_record(name="")]) == []


def test_import_failure_leaves_records(service, repo):
    before = service.records
    repo.fail = True
    with pytest.raises(RecordStoreError):
        service.import_records([make_record(name="A")])
    assert service.records is before


def test_round_trip_through_real_store(db):
    first = RecordService()
    created = first.save(make_record(
        asset_type="Fixed Deposit", name="Maybank", action="Deposit", amount=10000.0,
        interest_rate=3.5, maturity_date="2099-07-01", date="2099-01-01",
    ))

    second = RecordService()
    assert second.load() is True
    loaded = second.get(created.id)
    assert loaded.interest_rate == 3.5
    assert loaded.remarks == "[Rate: 3.5%]"
    assert loaded.interest_dividend == created.interest_dividend
    assert loaded.status == "Active"
