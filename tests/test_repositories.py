import pytest

from repositories import AssetRecordRepository, UserPreferencesRepository

from tests.conftest import make_record


def test_insert_assigns_id(db):
    stored = AssetRecordRepository.insert(make_record(id="client-side"))
    assert stored.id and stored.id != "client-side"
    assert AssetRecordRepository.get_by_id(stored.id).name == "FFB"


def test_list_all_newest_first(db):
    AssetRecordRepository.insert_many([
        make_record(date="2023-01-01", name="old"),
        make_record(date="2024-06-01", name="new"),
        make_record(date="2023-09-01", name="mid"),
    ])
    assert [r.name for r in AssetRecordRepository.list_all()] == ["new", "mid", "old"]


def test_update(db):
    stored = AssetRecordRepository.insert(make_record())
    assert AssetRecordRepository.update(stored.id, {"status": "Sold", "amount": 900.0}) is True
    reloaded = AssetRecordRepository.get_by_id(stored.id)
    assert (reloaded.status, reloaded.amount) == ("Sold", 900.0)

    assert AssetRecordRepository.update("missing", {"status": "Sold"}) is False
    with pytest.raises(ValueError):
        AssetRecordRepository.update(stored.id, {"id": "other"})


def test_delete(db):
    stored = AssetRecordRepository.insert(make_record())
    assert AssetRecordRepository.delete(stored.id) is True
    assert AssetRecordRepository.delete(stored.id) is False
    assert AssetRecordRepository.get_by_id(stored.id) is None


def test_delete_many(db):
    stored = AssetRecordRepository.insert_many([make_record(name=n) for n in ("a", "b", "c")])
    assert AssetRecordRepository.delete_many([stored[0].id, stored[2].id, "missing"]) == 2
    assert [r.name for r in AssetRecordRepository.list_all()] == ["b"]
    assert AssetRecordRepository.delete_many([]) == 0


def test_preferences(db):
    assert UserPreferencesRepository.get() is None
    assert UserPreferencesRepository.get_base_currency() == "MYR"

    UserPreferencesRepository.save_base_currency("usd")
    UserPreferencesRepository.save_language("ms")
    assert UserPreferencesRepository.get_base_currency() == "USD"

    prefs = UserPreferencesRepository.get()
    assert prefs.language == "ms"
    assert prefs.theme == "dark"
