"""
Kitten Intake Schema
v1.0.0

The single source of truth for what one kitten on the intake form looks like.
The form renderer, the share link codecs and the durable store all speak
KittenRecord.

Design Principles:
- Enumerable fields hold the enum's string value, exactly as the form submits it
- weight_lb is kept as typed text (no float parsing, "3." and "" are valid)
- Every field has a documented default so partial data never blocks the form
"""
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict
from datetime import datetime
from enum import Enum


KITTEN_ID_PREFIX = "kitten-"


class Topical(str, Enum):
  """Topical flea medication brand"""
  REVOLUTION = "revolution"
  ADVANTAGE = "advantage"
  NONE = "none"


class FleaStatus(str, Enum):
  """Whether the topical was applied or the kitten was bathed instead"""
  GIVEN = "given"
  BATHED = "bathed"


class RingwormStatus(str, Enum):
  """Wood's lamp scan result"""
  NOT_SCANNED = "not-scanned"
  NEGATIVE = "negative"
  POSITIVE = "positive"


class PanacurDays(str, Enum):
  """Panacur regimen length"""
  ONE = "1"
  THREE = "3"
  FIVE = "5"


class PonazurilDays(str, Enum):
  """Ponazuril regimen length"""
  ONE = "1"
  THREE = "3"


# Defaults used for new kittens and for unreadable values
DEFAULT_TOPICAL = Topical.REVOLUTION.value
DEFAULT_FLEA_STATUS = FleaStatus.GIVEN.value
DEFAULT_RINGWORM_STATUS = RingwormStatus.NOT_SCANNED.value
DEFAULT_PANACUR_DAYS = PanacurDays.FIVE.value
DEFAULT_PONAZURIL_DAYS = PonazurilDays.THREE.value
DEFAULT_DAY1_GIVEN = True


@dataclass
class Day1Given:
  """Which medications were already given on intake day"""
  panacur: bool = DEFAULT_DAY1_GIVEN
  ponazuril: bool = DEFAULT_DAY1_GIVEN
  drontal: bool = DEFAULT_DAY1_GIVEN

  def to_dict(self) -> Dict:
    return asdict(self)

  @classmethod
  def from_dict(cls, data: Optional[Dict]) -> "Day1Given":
    if not data:
      return cls()
    if not isinstance(data, dict):
      raise ValueError(f"day1_given must be a mapping, got {data!r}")
    return cls(**{k: bool(v) for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class KittenRecord:
  """
  One kitten on the intake form.

  kitten_id is local to the form ("kitten-3"); share links do not carry it,
  they rebuild ids from position.
  """
  kitten_id: str = ""
  name: str = ""
  weight_lb: str = ""

  topical: str = DEFAULT_TOPICAL                  # Topical value
  flea_status: str = DEFAULT_FLEA_STATUS          # FleaStatus value
  ringworm_status: str = DEFAULT_RINGWORM_STATUS  # RingwormStatus value
  panacur_days: str = DEFAULT_PANACUR_DAYS        # PanacurDays value
  ponazuril_days: str = DEFAULT_PONAZURIL_DAYS    # PonazurilDays value

  day1_given: Day1Given = field(default_factory=Day1Given)

  def __post_init__(self):
    if not isinstance(self.day1_given, Day1Given):
      self.day1_given = Day1Given.from_dict(self.day1_given)

  @property
  def number(self) -> Optional[int]:
    """Numeric part of kitten_id, None for ids we did not mint"""
    return parse_kitten_number(self.kitten_id)

  def to_dict(self) -> Dict:
    """Convert to dictionary for storage"""
    result = asdict(self)
    result['day1_given'] = self.day1_given.to_dict()
    return result

  @classmethod
  def from_dict(cls, data: Dict) -> "KittenRecord":
    """Create KittenRecord from dictionary, ignoring unknown keys"""
    if not data:
      return cls()
    if not isinstance(data, dict):
      raise ValueError(f"Kitten must be a mapping, got {data!r}")

    valid_fields = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
    if 'day1_given' in valid_fields:
      valid_fields['day1_given'] = Day1Given.from_dict(valid_fields['day1_given'])
    return cls(**valid_fields)


def make_kitten_id(number: int) -> str:
  """kitten-<n>"""
  return f"{KITTEN_ID_PREFIX}{number}"


def parse_kitten_number(kitten_id: str) -> Optional[int]:
  """Inverse of make_kitten_id; None for anything else"""
  if not isinstance(kitten_id, str) or not kitten_id.startswith(KITTEN_ID_PREFIX):
    return None
  suffix = kitten_id[len(KITTEN_ID_PREFIX):]
  if not suffix.isascii() or not suffix.isdigit():
    return None
  return int(suffix)


def get_current_timestamp() -> str:
  """Returns current timestamp in ISO format"""
  return datetime.now().isoformat()
