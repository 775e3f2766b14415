"""
Persistence State Schema
v1.0.0

The shapes that land in storage:
- PersistenceSnapshot: the durable record ("restore on reload")
- BackupSnapshot: session copy of the durable record taken before a shared
  link replaced what is on screen
- BackupInfo: what the UI needs for "restore my data" messaging

Kept separate from KittenRecord so the wire codecs never depend on storage.
"""
from dataclasses import dataclass, field
from typing import Optional, Dict, List
from datetime import datetime

from .kitten_schema import KittenRecord, parse_kitten_number


@dataclass
class PersistenceSnapshot:
  """
  Everything the durable store holds.

  kitten_counter only ever grows within a session so removed kittens never
  hand their id to a new one.
  """
  version: str = ""
  timestamp: Optional[str] = None
  kitten_counter: int = 0
  kittens: List[KittenRecord] = field(default_factory=list)

  def __post_init__(self):
    # Never trust a counter lower than the ids we already hold
    highest = max((k.number or 0 for k in self.kittens), default=0)
    if self.kitten_counter < highest:
      self.kitten_counter = highest

  @property
  def kitten_count(self) -> int:
    return len(self.kittens)

  def to_dict(self) -> Dict:
    return {
      'version': self.version,
      'timestamp': self.timestamp,
      'kitten_counter': self.kitten_counter,
      'kittens': [k.to_dict() for k in self.kittens],
    }

  @classmethod
  def from_dict(cls, data: Dict) -> "PersistenceSnapshot":
    """
    Build from stored data.
    Raises ValueError when the structure is not a snapshot at all.
    """
    if not isinstance(data, dict) or not data.get('version'):
      raise ValueError("Invalid saved data structure")

    kittens = data.get('kittens')
    if not isinstance(kittens, list):
      raise ValueError("Saved data has no kitten list")

    return cls(
      version=str(data['version']),
      timestamp=data.get('timestamp'),
      kitten_counter=int(data.get('kitten_counter') or 0),
      kittens=[KittenRecord.from_dict(k) for k in kittens if isinstance(k, dict)],
    )


@dataclass
class BackupInfo:
  """Summary of a backup for user-facing messaging"""
  kitten_count: int
  captured_at: Optional[datetime]

  @property
  def formatted_time(self) -> str:
    if self.captured_at is None:
      return "Unknown"
    return self.captured_at.strftime("%Y-%m-%d %I:%M %p")


@dataclass
class BackupSnapshot:
  """
  The user's own durable data, parked while a shared link is on screen.

  snapshot is None when nothing was saved at the time the link was opened;
  restoring that backup means clearing the durable store.
  """
  snapshot: Optional[PersistenceSnapshot]
  captured_at: Optional[str] = None

  @property
  def was_empty(self) -> bool:
    return self.snapshot is None

  def to_dict(self) -> Dict:
    return {
      'captured_at': self.captured_at,
      'snapshot': self.snapshot.to_dict() if self.snapshot is not None else None,
    }

  @classmethod
  def from_dict(cls, data: Dict) -> "BackupSnapshot":
    if not isinstance(data, dict) or 'snapshot' not in data:
      raise ValueError("Invalid backup structure")
    snapshot = data['snapshot']
    return cls(
      snapshot=PersistenceSnapshot.from_dict(snapshot) if snapshot is not None else None,
      captured_at=data.get('captured_at'),
    )

  def info(self) -> BackupInfo:
    captured = None
    if self.captured_at:
      try:
        captured = datetime.fromisoformat(self.captured_at)
      except ValueError:
        captured = None
    kitten_count = self.snapshot.kitten_count if self.snapshot is not None else 0
    return BackupInfo(kitten_count=kitten_count, captured_at=captured)
