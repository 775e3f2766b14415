import json

import pytest

from config import DURABLE_KEY, BACKUP_KEY, VIEWING_SHARED_KEY
from schema import KittenRecord, PersistenceSnapshot, BackupSnapshot
from storage import PersistenceGateway, MemoryStore, SQLiteStore, StorageUnavailableError


def kittens(*names):
  return [KittenRecord(kitten_id=f"kitten-{i}", name=n, weight_lb="2") for i, n in enumerate(names, 1)]


def make_gateway(durable=None, session=None):
  return PersistenceGateway(durable or MemoryStore(), session or MemoryStore())


def test_sqlite_store(tmp_path):
  store = SQLiteStore(str(tmp_path / "intake.db"))
  assert store.get_item("a") is None
  store.set_item("a", "1")
  store.set_item("a", "2")
  assert store.get_item("a") == "2"
  store.remove_item("a")
  assert store.get_item("a") is None
  assert store.is_available()


def test_sqlite_store_unopenable(tmp_path):
  store = SQLiteStore(str(tmp_path / "missing" / "intake.db"))
  assert not store.is_available()


def test_memory_store_unavailable():
  store = MemoryStore(available=False)
  assert not store.is_available()
  with pytest.raises(StorageUnavailableError):
    store.get_item("a")


def test_durable_round_trip(tmp_path):
  gateway = make_gateway(durable=SQLiteStore(str(tmp_path / "intake.db")))
  assert gateway.load_durable() is None

  assert gateway.save_durable(gateway.new_snapshot(kittens("A", "B"), 4))
  snapshot = gateway.load_durable()
  assert snapshot.version == "2.0"
  assert snapshot.kitten_counter == 4
  assert [k.name for k in snapshot.kittens] == ["A", "B"]


def test_counter_never_below_highest_id():
  snapshot = PersistenceSnapshot(version="2.0", kittens=[KittenRecord(kitten_id="kitten-5")], kitten_counter=2)
  assert snapshot.kitten_counter == 5


def test_old_version_cleared():
  durable = MemoryStore()
  durable.set_item(DURABLE_KEY, json.dumps({"version": "1.0", "kittens": []}))
  gateway = make_gateway(durable=durable)

  assert gateway.load_durable() is None
  assert durable.get_item(DURABLE_KEY) is None


def test_corrupt_data_cleared():
  durable = MemoryStore()
  durable.set_item(DURABLE_KEY, "{not json")
  gateway = make_gateway(durable=durable)

  assert gateway.load_durable() is None
  assert durable.get_item(DURABLE_KEY) is None


def test_unavailable_storage_does_not_raise():
  gateway = make_gateway(durable=MemoryStore(available=False), session=MemoryStore(available=False))
  assert gateway.save_durable(gateway.new_snapshot(kittens("A"), 1)) is False
  assert gateway.load_durable() is None
  assert gateway.set_viewing_shared(True) is False
  assert gateway.is_viewing_shared() is False
  assert gateway.load_backup() is None


def test_backup_and_flag_live_in_session():
  durable, session = MemoryStore(), MemoryStore()
  gateway = make_gateway(durable, session)
  snapshot = gateway.new_snapshot(kittens("A", "B", "C"), 3)

  gateway.save_backup(BackupSnapshot(snapshot=snapshot, captured_at="2026-10-19T09:30:00"))
  gateway.set_viewing_shared(True)

  assert session.get_item(VIEWING_SHARED_KEY) == "true"
  assert set(session.keys()) == {BACKUP_KEY, VIEWING_SHARED_KEY}
  assert durable.keys() == []

  info = gateway.backup_info()
  assert info.kitten_count == 3
  assert info.formatted_time == "2026-10-19 09:30 AM"

  gateway.set_viewing_shared(False)
  gateway.clear_backup()
  assert session.keys() == []


def test_corrupt_backup_discarded():
  session = MemoryStore()
  session.set_item(BACKUP_KEY, "[]")
  gateway = make_gateway(session=session)
  assert gateway.load_backup() is None
  assert not gateway.has_backup()


@pytest.mark.parametrize("day1_given", ["yes", [True, False], 1])
def test_corrupt_day1_given_cleared(day1_given):
  kitten = {"name": "A", "day1_given": day1_given}
  durable = MemoryStore()
  durable.set_item(DURABLE_KEY, json.dumps({"version": "2.0", "kittens": [kitten]}))
  gateway = make_gateway(durable=durable)

  assert gateway.load_durable() is None
  assert durable.get_item(DURABLE_KEY) is None


def test_foreign_kitten_id_tolerated():
  durable = MemoryStore()
  durable.set_item(DURABLE_KEY, json.dumps({"version": "2.0", "kitten_counter": 2, "kittens": [{"kitten_id": 5}]}))
  snapshot = make_gateway(durable=durable).load_durable()
  assert snapshot.kittens[0].number is None
  assert snapshot.kitten_counter == 2


def test_corrupt_kitten_in_backup_discarded():
  session = MemoryStore()
  session.set_item(BACKUP_KEY, json.dumps({
    "captured_at": None,
    "snapshot": {"version": "2.0", "kittens": [{"day1_given": "yes"}]},
  }))
  gateway = make_gateway(session=session)
  assert gateway.load_backup() is None
  assert session.get_item(BACKUP_KEY) is None


def test_empty_backup_marker():
  gateway = make_gateway()
  gateway.save_backup(BackupSnapshot(snapshot=None, captured_at="2026-10-19T09:30:00"))

  backup = gateway.load_backup()
  assert backup.was_empty
  assert gateway.backup_info().kitten_count == 0
