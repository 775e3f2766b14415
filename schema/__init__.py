"""
Schema Package
v1.0.0

Contains the data models shared by the link codecs, the stores and the
coordinator.

Modules:
- kitten_schema: KittenRecord and the enumerations behind its fields
- persistence_state: durable snapshot, session backup and backup summary
"""

from .kitten_schema import (
  KittenRecord,
  Day1Given,
  Topical,
  FleaStatus,
  RingwormStatus,
  PanacurDays,
  PonazurilDays,
  make_kitten_id,
  parse_kitten_number,
  get_current_timestamp,
)

from .persistence_state import (
  PersistenceSnapshot,
  BackupSnapshot,
  BackupInfo,
)

__all__ = [
  # Kitten schema
  'KittenRecord',
  'Day1Given',
  'Topical',
  'FleaStatus',
  'RingwormStatus',
  'PanacurDays',
  'PonazurilDays',
  'make_kitten_id',
  'parse_kitten_number',
  'get_current_timestamp',

  # Persistence state
  'PersistenceSnapshot',
  'BackupSnapshot',
  'BackupInfo',
]
