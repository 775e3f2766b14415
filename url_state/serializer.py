"""
State serializer - ordered kitten list <-> one share link parameter

Wire format:
  VERSION|name1|weight1|flags1|name2|weight2|flags2|...

The leading field is the wire version. Every following group of three
fields is one kitten, in display order. A trailing incomplete group (a
link cut short when pasted) is dropped. Ids are not transmitted; decoding
rebuilds them from position (kitten-1, kitten-2, ...).

Only WIRE_VERSION is understood. Any other version is rejected whole,
there is no upgrade path.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from config import WIRE_VERSION
from schema import KittenRecord, make_kitten_id
from url_state.kitten_codec import encode_record, decode_record, MalformedRecordError


DELIMITER = "|"
FIELDS_PER_RECORD = 3


@dataclass
class EncodedState:
  """A decoded share link"""
  version: int
  kittens: List[KittenRecord] = field(default_factory=list)

  @property
  def kitten_counter(self) -> int:
    # Ids are minted 1..n on decode
    return len(self.kittens)


def serialize(records: Sequence[KittenRecord], version: int = WIRE_VERSION) -> Optional[str]:
  """
  Encode records for a share link.
  Returns None when there is nothing to share.
  """
  if not records:
    return None
  if version != WIRE_VERSION:
    raise ValueError(f"Cannot write wire version {version}, only {WIRE_VERSION}")

  parts = [str(version)]
  for record in records:
    parts.extend(encode_record(record))
  return DELIMITER.join(parts)


def parse_version(text: str) -> Optional[int]:
  """Leading field as an int, None unless it is plain ASCII digits"""
  if not text or not text.isascii() or not text.isdigit():
    return None
  return int(text)


def is_supported_version(version: Optional[int]) -> bool:
  return version == WIRE_VERSION


def deserialize(text: Optional[str]) -> Optional[EncodedState]:
  """
  Decode a share link parameter.

  Returns None (never raises) when:
  - the version field is missing, not a number, or not WIRE_VERSION
  - no complete (name, weight, flags) group follows the version
  - any record has an undecodable name, weight or flag string
  """
  if not text:
    return None

  parts = text.split(DELIMITER)
  version = parse_version(parts[0])
  if not is_supported_version(version):
    return None

  fields = parts[1:]
  complete = len(fields) - len(fields) % FIELDS_PER_RECORD
  if not complete:
    return None
  fields = fields[:complete]

  kittens = []
  try:
    for number, start in enumerate(range(0, len(fields), FIELDS_PER_RECORD), 1):
      name, weight, flags = fields[start:start + FIELDS_PER_RECORD]
      kittens.append(decode_record(name, weight, flags, kitten_id=make_kitten_id(number)))
  except MalformedRecordError:
    return None

  return EncodedState(version=version, kittens=kittens)
