"""
Storage Layer
v1.0.0

The one persistence interface the coordinator talks to. Three independent
pieces of state live behind it:
- durable snapshot (survives restarts)        -> durable store
- session backup of the durable snapshot      -> session store
- "viewing a shared link" flag                -> session store

Design Principles:
- Backends are dumb string key/value stores (localStorage semantics)
- Storage that is missing, denied or broken never raises past this layer;
  the operation is skipped and the in-memory state stays authoritative
- Corrupt or outdated durable data is cleared, not half-loaded

Usage:
  from storage import PersistenceGateway, SQLiteStore, MemoryStore

  gateway = PersistenceGateway(durable=SQLiteStore("kitten_intake.db"), session=MemoryStore())
  snapshot = gateway.load_durable()
"""
import sqlite3
import json
from typing import Optional, Dict, Any, List
from contextlib import contextmanager

from config import DB_PATH, DURABLE_KEY, STORAGE_VERSION, BACKUP_KEY, VIEWING_SHARED_KEY
from schema import (
  KittenRecord,
  PersistenceSnapshot, BackupSnapshot, BackupInfo,
  get_current_timestamp,
)


class StorageUnavailableError(Exception):
  """Storage is disabled, denied, full or otherwise unusable"""


# ============================================
# Backends
# ============================================

class KeyValueStore:
  """Base class for string key/value backends"""

  def get_item(self, key: str) -> Optional[str]:
    raise NotImplementedError("Subclass must implement get_item()")

  def set_item(self, key: str, value: str):
    raise NotImplementedError("Subclass must implement set_item()")

  def remove_item(self, key: str):
    raise NotImplementedError("Subclass must implement remove_item()")

  def is_available(self) -> bool:
    """Probe with a throwaway write"""
    probe = "__storage_test__"
    try:
      self.set_item(probe, probe)
      self.remove_item(probe)
      return True
    except StorageUnavailableError:
      return False


class MemoryStore(KeyValueStore):
  """
  Process-lifetime store. Used for the session store, and in tests for
  both stores (flip `available` to simulate denied storage).
  """

  def __init__(self, available: bool = True):
    self.available = available
    self._items: Dict[str, str] = {}

  def _check(self):
    if not self.available:
      raise StorageUnavailableError("Storage is disabled")

  def get_item(self, key: str) -> Optional[str]:
    self._check()
    return self._items.get(key)

  def set_item(self, key: str, value: str):
    self._check()
    self._items[key] = value

  def remove_item(self, key: str):
    self._check()
    self._items.pop(key, None)

  def keys(self) -> List[str]:
    return list(self._items)


class SQLiteStore(KeyValueStore):
  """Durable store: one sqlite table of key -> text"""

  def __init__(self, db_path: str = DB_PATH):
    self.db_path = db_path

  @contextmanager
  def _get_connection(self):
    """Get database connection with automatic cleanup"""
    try:
      conn = sqlite3.connect(self.db_path)
    except sqlite3.Error as e:
      raise StorageUnavailableError(f"Cannot open {self.db_path}: {e}") from e

    try:
      conn.execute("""
        CREATE TABLE IF NOT EXISTS storage_items (
          key TEXT PRIMARY KEY,
          value TEXT NOT NULL,
          updated_at TEXT
        )
      """)
      yield conn
      conn.commit()
    except sqlite3.Error as e:
      conn.rollback()
      raise StorageUnavailableError(f"Storage error on {self.db_path}: {e}") from e
    except Exception:
      conn.rollback()
      raise
    finally:
      conn.close()

  def get_item(self, key: str) -> Optional[str]:
    with self._get_connection() as conn:
      row = conn.execute("SELECT value FROM storage_items WHERE key = ?", (key,)).fetchone()
      return row[0] if row else None

  def set_item(self, key: str, value: str):
    with self._get_connection() as conn:
      conn.execute("""
        INSERT OR REPLACE INTO storage_items (key, value, updated_at) VALUES (?, ?, ?)
      """, (key, value, get_current_timestamp()))

  def remove_item(self, key: str):
    with self._get_connection() as conn:
      conn.execute("DELETE FROM storage_items WHERE key = ?", (key,))


# ============================================
# Gateway
# ============================================

class PersistenceGateway:
  """
  Named operations over the durable and session stores.

  Every method swallows StorageUnavailableError after printing a warning
  and reports failure through its return value (None / False).
  """

  def __init__(
    self,
    durable: KeyValueStore,
    session: KeyValueStore,
    storage_version: str = STORAGE_VERSION,
  ):
    self.durable = durable
    self.session = session
    self.storage_version = storage_version

  # ---- raw access ----

  def _read(self, store: KeyValueStore, key: str) -> Optional[str]:
    try:
      return store.get_item(key)
    except StorageUnavailableError as e:
      print(f"⚠️ Storage unavailable, could not read {key}: {e}")
      return None

  def _write(self, store: KeyValueStore, key: str, value: str) -> bool:
    try:
      store.set_item(key, value)
      return True
    except StorageUnavailableError as e:
      print(f"⚠️ Storage unavailable, could not save {key}: {e}")
      return False

  def _remove(self, store: KeyValueStore, key: str) -> bool:
    try:
      store.remove_item(key)
      return True
    except StorageUnavailableError as e:
      print(f"⚠️ Storage unavailable, could not clear {key}: {e}")
      return False

  def load_json(self, key: str) -> Optional[Any]:
    """Read a JSON document from the durable store, None if absent or unreadable"""
    raw = self._read(self.durable, key)
    if raw is None:
      return None
    try:
      return json.loads(raw)
    except ValueError as e:
      print(f"⚠️ Error loading {key}: {e}")
      return None

  def save_json(self, key: str, data: Any) -> bool:
    return self._write(self.durable, key, json.dumps(data))

  def remove_json(self, key: str) -> bool:
    return self._remove(self.durable, key)

  # ---- durable snapshot ----

  def new_snapshot(self, kittens: List[KittenRecord], kitten_counter: int) -> PersistenceSnapshot:
    """Snapshot of the current form, stamped with this gateway's version"""
    return PersistenceSnapshot(
      version=self.storage_version,
      timestamp=get_current_timestamp(),
      kitten_counter=kitten_counter,
      kittens=list(kittens),
    )

  def load_durable(self) -> Optional[PersistenceSnapshot]:
    """
    Load the saved form.
    Returns None if nothing is saved; unreadable or old-version data is cleared.
    """
    raw = self._read(self.durable, DURABLE_KEY)
    if raw is None:
      return None

    try:
      snapshot = PersistenceSnapshot.from_dict(json.loads(raw))
    except (ValueError, TypeError) as e:
      print(f"⚠️ Invalid saved data, clearing: {e}")
      self.clear_durable()
      return None

    if snapshot.version != self.storage_version:
      print(f"⚠️ Saved data version {snapshot.version} != {self.storage_version}, clearing old data")
      self.clear_durable()
      return None

    return snapshot

  def save_durable(self, snapshot: PersistenceSnapshot) -> bool:
    return self.save_json(DURABLE_KEY, snapshot.to_dict())

  def clear_durable(self) -> bool:
    return self._remove(self.durable, DURABLE_KEY)

  # ---- session backup ----

  def load_backup(self) -> Optional[BackupSnapshot]:
    raw = self._read(self.session, BACKUP_KEY)
    if raw is None:
      return None
    try:
      return BackupSnapshot.from_dict(json.loads(raw))
    except (ValueError, TypeError) as e:
      print(f"⚠️ Invalid backup, discarding: {e}")
      self.clear_backup()
      return None

  def save_backup(self, backup: BackupSnapshot) -> bool:
    return self._write(self.session, BACKUP_KEY, json.dumps(backup.to_dict()))

  def clear_backup(self) -> bool:
    return self._remove(self.session, BACKUP_KEY)

  def has_backup(self) -> bool:
    return self._read(self.session, BACKUP_KEY) is not None

  def backup_info(self) -> Optional[BackupInfo]:
    backup = self.load_backup()
    return backup.info() if backup else None

  # ---- session flag ----

  def is_viewing_shared(self) -> bool:
    return self._read(self.session, VIEWING_SHARED_KEY) == "true"

  def set_viewing_shared(self, viewing: bool) -> bool:
    if viewing:
      return self._write(self.session, VIEWING_SHARED_KEY, "true")
    return self._remove(self.session, VIEWING_SHARED_KEY)
