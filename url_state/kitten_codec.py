"""
Kitten record codec - one KittenRecord <-> (name, weight, flags)

Version 1 flag layout (11 bits, 2 symbols):
  Bits 0-1:  topical         (0=revolution, 1=advantage, 2=none)
  Bit 2:     flea_status     (0=given, 1=bathed)
  Bits 3-4:  ringworm_status (0=not-scanned, 1=negative, 2=positive)
  Bits 5-6:  panacur_days    (0="1", 1="3", 2="5")
  Bit 7:     ponazuril_days  (0="1", 1="3")
  Bit 8:     day1_given.panacur
  Bit 9:     day1_given.ponazuril
  Bit 10:    day1_given.drontal
  Bits 11+:  reserved, written as 0 and ignored on read

A value outside its table never fails the record: encode writes the
field's default index, decode substitutes the field's default value.
"""
import re
from dataclasses import dataclass
from typing import Dict, Tuple, Any
from urllib.parse import quote, unquote

from config import FLAG_WIDTH
from schema import KittenRecord, Day1Given, Topical, FleaStatus, RingwormStatus, PanacurDays, PonazurilDays
from schema.kitten_schema import (
  DEFAULT_TOPICAL,
  DEFAULT_FLEA_STATUS,
  DEFAULT_RINGWORM_STATUS,
  DEFAULT_PANACUR_DAYS,
  DEFAULT_PONAZURIL_DAYS,
)
from url_state.bitfield import encode_bits, decode_bits, BitfieldDecodeError


# Same unescaped set as JavaScript's encodeURIComponent
URI_COMPONENT_SAFE = "-_.!~*'()"
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")

# Weight is sent as typed; only the escape char and the delimiter are escaped
_WEIGHT_ESCAPES = {"%": "%25", "|": "%7C"}
_WEIGHT_UNESCAPE_RE = re.compile(r"%(25|7[Cc])")


class MalformedRecordError(ValueError):
  """A (name, weight, flags) triple that cannot be turned back into a kitten"""


@dataclass(frozen=True)
class FlagField:
  """One enumerable field packed into the flag bits"""
  name: str
  shift: int
  width: int
  values: Tuple[str, ...]
  default: str

  @property
  def mask(self) -> int:
    return (1 << self.width) - 1

  def index_of(self, value: str) -> int:
    if value in self.values:
      return self.values.index(value)
    return self.values.index(self.default)

  def value_at(self, index: int) -> str:
    if 0 <= index < len(self.values):
      return self.values[index]
    return self.default


def _table(enum_cls) -> Tuple[str, ...]:
  return tuple(member.value for member in enum_cls)


# Index tables follow enum declaration order; reordering an enum is a wire break
V1_FIELDS = (
  FlagField('topical', 0, 2, _table(Topical), DEFAULT_TOPICAL),
  FlagField('flea_status', 2, 1, _table(FleaStatus), DEFAULT_FLEA_STATUS),
  FlagField('ringworm_status', 3, 2, _table(RingwormStatus), DEFAULT_RINGWORM_STATUS),
  FlagField('panacur_days', 5, 2, _table(PanacurDays), DEFAULT_PANACUR_DAYS),
  FlagField('ponazuril_days', 7, 1, _table(PonazurilDays), DEFAULT_PONAZURIL_DAYS),
)

V1_DAY1_BITS = (
  ('panacur', 8),
  ('ponazuril', 9),
  ('drontal', 10),
)

V1_USED_BITS = 11
V1_USED_MASK = (1 << V1_USED_BITS) - 1


# ============================================
# Flags
# ============================================

def pack_flags(record: KittenRecord) -> int:
  """Build the version 1 bitfield for a record"""
  bits = 0
  for flag_field in V1_FIELDS:
    bits |= flag_field.index_of(getattr(record, flag_field.name)) << flag_field.shift

  for medication, bit in V1_DAY1_BITS:
    if getattr(record.day1_given, medication):
      bits |= 1 << bit

  return bits


def unpack_flags(bits: int) -> Dict[str, Any]:
  """Split a bitfield into KittenRecord field values"""
  bits &= V1_USED_MASK

  fields: Dict[str, Any] = {}
  for flag_field in V1_FIELDS:
    fields[flag_field.name] = flag_field.value_at((bits >> flag_field.shift) & flag_field.mask)

  fields['day1_given'] = Day1Given(**{
    medication: bool((bits >> bit) & 1) for medication, bit in V1_DAY1_BITS
  })
  return fields


def encode_flags(record: KittenRecord) -> str:
  return encode_bits(pack_flags(record), FLAG_WIDTH)


def decode_flags(text: str) -> Dict[str, Any]:
  """
  Decode a flag string into field values.
  Raises MalformedRecordError for the wrong length or an unknown symbol.
  """
  if len(text) != FLAG_WIDTH:
    raise MalformedRecordError(f"Flag string must be {FLAG_WIDTH} symbols, got {text!r}")
  try:
    bits = decode_bits(text)
  except BitfieldDecodeError as e:
    raise MalformedRecordError(str(e)) from e
  return unpack_flags(bits)


# ============================================
# Text fields
# ============================================

def encode_text(value: str) -> str:
  """Percent-encode like encodeURIComponent (UTF-8, full Unicode)"""
  return quote(value or "", safe=URI_COMPONENT_SAFE)


def decode_text(value: str) -> str:
  """Inverse of encode_text; malformed escapes raise MalformedRecordError"""
  if _BAD_ESCAPE_RE.search(value):
    raise MalformedRecordError(f"Malformed percent escape in {value!r}")
  try:
    return unquote(value, encoding="utf-8", errors="strict")
  except UnicodeDecodeError as e:
    raise MalformedRecordError(f"Invalid UTF-8 in {value!r}") from e


def encode_weight(value: str) -> str:
  """Typed weight, untouched unless it holds a percent sign or the delimiter"""
  return "".join(_WEIGHT_ESCAPES.get(ch, ch) for ch in (value or ""))


def decode_weight(value: str) -> str:
  """Inverse of encode_weight; never fails, a lone "%" is kept as is"""
  return _WEIGHT_UNESCAPE_RE.sub(lambda m: "%" if m.group(1) == "25" else "|", value)


# ============================================
# Records
# ============================================

def encode_record(record: KittenRecord) -> Tuple[str, str, str]:
  """
  KittenRecord -> (name, weight, flags).

  The name is escaped like encodeURIComponent. The weight goes out as
  typed; only "%" and "|" are escaped so the delimited format stays intact.
  """
  return (
    encode_text(record.name),
    encode_weight(record.weight_lb),
    encode_flags(record),
  )


def decode_record(name: str, weight: str, flags: str, kitten_id: str = "") -> KittenRecord:
  """(name, weight, flags) -> KittenRecord"""
  return KittenRecord(
    kitten_id=kitten_id,
    name=decode_text(name),
    weight_lb=decode_weight(weight),
    **decode_flags(flags),
  )
