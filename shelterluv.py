"""
ShelterLuv Sync
v1.0.0

Pushes intake kittens to ShelterLuv: one animal per kitten, then a medical
record listing what was given on intake day.

Dose amounts are computed elsewhere. Pass a dose_provider(record, medication)
returning the dose text ("0.25 mL", "1 tablet(s)") or None when the weight is
out of range for that medication (the medication is then left off). Without
a dose_provider medications are sent without a Dosage.

Usage:
  from shelterluv import ShelterLuvClient, load_config

  client = ShelterLuvClient(load_config(gateway))
  result = client.sync_all(app_state.kittens, dose_provider=doses_for)
"""
import time
from dataclasses import dataclass, field, asdict
from typing import Callable, Dict, List, Optional, Tuple, Any

import requests

from config import (
  SHELTERLUV_CONFIG, SHELTERLUV_CONFIG_KEY, SHELTERLUV_CONFIG_VERSION,
  SIZE_CATEGORIES, SIZE_CATEGORY_MAX, USER_AGENT,
)
from schema import KittenRecord, Topical, FleaStatus, RingwormStatus, get_current_timestamp
from storage import PersistenceGateway


DoseProvider = Callable[[KittenRecord, str], Optional[str]]

# medication key -> (ShelterLuv name, type, route)
MEDICATIONS = {
  "panacur": ("Fenbendazole (Panacur)", "Dewormer", "Oral"),
  "ponazuril": ("Ponazuril", "Antiprotozoal", "Oral"),
  "drontal": ("Drontal", "Dewormer", "Oral"),
  Topical.REVOLUTION.value: ("Revolution", "Flea/Heartworm Prevention", "Topical"),
  Topical.ADVANTAGE.value: ("Advantage II", "Flea Prevention", "Topical"),
}

APP_SIGNATURE = "Processed via Kitten Intake App"


# ============================================
# Configuration
# ============================================

@dataclass
class ShelterLuvConfig:
  """API credentials and sync preferences"""
  api_key: str = ""
  shelter_slug: str = ""
  auto_sync: bool = False

  def has_api_key(self) -> bool:
    return bool(self.api_key)

  def to_dict(self) -> Dict:
    return asdict(self)

  @classmethod
  def from_dict(cls, data: Optional[Dict]) -> "ShelterLuvConfig":
    if not data:
      return cls()
    return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})

  @classmethod
  def from_env(cls) -> "ShelterLuvConfig":
    return cls(
      api_key=SHELTERLUV_CONFIG["api_key"],
      shelter_slug=SHELTERLUV_CONFIG["shelter_slug"],
      auto_sync=SHELTERLUV_CONFIG["auto_sync"],
    )


def load_config(gateway: PersistenceGateway) -> ShelterLuvConfig:
  """Saved config, falling back to the environment"""
  data = gateway.load_json(SHELTERLUV_CONFIG_KEY)
  if not isinstance(data, dict) or data.get("version") != SHELTERLUV_CONFIG_VERSION:
    return ShelterLuvConfig.from_env()
  return ShelterLuvConfig.from_dict(data)


def save_config(gateway: PersistenceGateway, sl_config: ShelterLuvConfig) -> bool:
  payload = {
    "version": SHELTERLUV_CONFIG_VERSION,
    "timestamp": get_current_timestamp(),
    **sl_config.to_dict(),
  }
  return gateway.save_json(SHELTERLUV_CONFIG_KEY, payload)


def clear_config(gateway: PersistenceGateway) -> bool:
  return gateway.remove_json(SHELTERLUV_CONFIG_KEY)


# ============================================
# Transform
# ============================================

def parse_weight(weight_lb: str) -> Optional[float]:
  """Typed weight as a positive float, None if it is not one yet"""
  try:
    weight = float(weight_lb)
  except (TypeError, ValueError):
    return None
  return weight if weight > 0 else None


def size_category(weight_lb: float) -> str:
  for limit, category in SIZE_CATEGORIES:
    if weight_lb < limit:
      return category
  return SIZE_CATEGORY_MAX


def build_description(record: KittenRecord, weight_lb: float) -> str:
  """Kennel card text"""
  parts = [f"Intake weight: {weight_lb:.2f} lb"]

  if record.ringworm_status != RingwormStatus.NOT_SCANNED.value:
    parts.append(f"Ringworm status: {record.ringworm_status}")

  if record.flea_status == FleaStatus.BATHED.value:
    parts.append("Bathed at intake")

  parts.append(APP_SIGNATURE)
  return ". ".join(parts)


def build_attributes(record: KittenRecord) -> List[Dict]:
  attributes = []
  if record.ringworm_status != RingwormStatus.NOT_SCANNED.value:
    attributes.append({"AttributeName": f"Ringworm: {record.ringworm_status}", "Publish": False})
  if record.flea_status == FleaStatus.BATHED.value:
    attributes.append({"AttributeName": "Bathed at intake", "Publish": False})
  return attributes


def to_animal(record: KittenRecord, now: Optional[int] = None) -> Dict[str, Any]:
  """
  ShelterLuv animal payload for one kitten.
  Raises ValueError if the kitten has no usable weight.
  """
  weight = parse_weight(record.weight_lb)
  if weight is None:
    raise ValueError(f"{record.name or 'Unnamed'} has no valid weight")

  now = int(time.time()) if now is None else now
  return {
    "Name": record.name or "Unnamed Kitten",
    "Type": "Cat",
    "Sex": "Unknown",
    "Status": "In Foster",
    "CurrentWeightPounds": weight,
    "Size": size_category(weight),
    "Altered": False,
    "LastIntakeUnixTime": now,
    "LastUpdatedUnixTime": now,
    "InFoster": True,
    "Description": build_description(record, weight),
    "Attributes": build_attributes(record),
  }


def medications_given(record: KittenRecord) -> List[str]:
  """Medication keys administered on intake day"""
  given = [med for med in ("panacur", "ponazuril", "drontal") if getattr(record.day1_given, med)]
  if record.flea_status == FleaStatus.GIVEN.value and record.topical in MEDICATIONS:
    given.append(record.topical)
  return given


def to_medical_record(
  record: KittenRecord,
  dose_provider: Optional[DoseProvider] = None,
  now: Optional[int] = None,
) -> Dict[str, Any]:
  """ShelterLuv medical record for the day-1 medications"""
  now = int(time.time()) if now is None else now
  medications = []

  for med in medications_given(record):
    name, med_type, route = MEDICATIONS[med]
    entry = {
      "MedicationName": name,
      "MedicationType": med_type,
      "Route": route,
      "DateGivenUnixTime": now,
      "Notes": f"Weight-based dose for {record.weight_lb} lb",
    }

    if dose_provider is not None:
      dose = dose_provider(record, med)
      if dose is None:
        continue  # out of range for this weight
      entry["Dosage"] = dose

    medications.append(entry)

  return {
    "RecordType": "Medication",
    "DateUnixTime": now,
    "Notes": "Intake medications administered via Kitten Intake App",
    "Medications": medications,
  }


# ============================================
# API
# ============================================

@dataclass
class SyncResult:
  """Outcome of a batch sync"""
  success: bool = True
  synced: int = 0
  failed: int = 0
  errors: List[str] = field(default_factory=list)
  kittens: List[Dict] = field(default_factory=list)
  message: str = ""


class ShelterLuvClient:
  """Thin requests wrapper around the ShelterLuv endpoints we use"""

  def __init__(
    self,
    sl_config: ShelterLuvConfig,
    base_url: str = SHELTERLUV_CONFIG["base_url"],
    session: Optional[requests.Session] = None,
    timeout: float = SHELTERLUV_CONFIG["timeout"],
  ):
    self.config = sl_config
    self.base_url = base_url.rstrip("/")
    self.timeout = timeout
    self.session = session or requests.Session()
    self.session.headers.update({
      "User-Agent": USER_AGENT,
      "X-Api-Key": sl_config.api_key,
      "Content-Type": "application/json",
    })

    self.sync_status = "idle"  # idle, syncing, success, error
    self.last_sync_time: Optional[str] = None
    self.last_error: Optional[str] = None

  def _url(self, path: str) -> str:
    return f"{self.base_url}/{path.lstrip('/')}"

  def _post(self, path: str, payload: Dict) -> Dict:
    response = self.session.post(self._url(path), json=payload, timeout=self.timeout)
    response.raise_for_status()
    try:
      return response.json()
    except ValueError:
      return {}

  def test_connection(self) -> Tuple[bool, str]:
    if not self.config.has_api_key():
      return False, "No API key configured"
    try:
      response = self.session.get(self._url("animals"), params={"limit": 1}, timeout=self.timeout)
      response.raise_for_status()
    except requests.RequestException as e:
      return False, f"Connection failed: {e}"
    return True, "Connection test successful"

  def create_animal(self, animal: Dict) -> str:
    """POST an animal; returns its ShelterLuv id"""
    data = self._post("animals", animal)
    animal_id = data.get("Internal-ID") or data.get("ID") or data.get("id")
    if not animal_id:
      raise ValueError("ShelterLuv did not return an animal id")
    return str(animal_id)

  def add_medical_record(self, animal_id: str, medical_record: Dict) -> Dict:
    return self._post(f"animals/{animal_id}/medical", medical_record)

  def sync_all(
    self,
    records: List[KittenRecord],
    dose_provider: Optional[DoseProvider] = None,
  ) -> SyncResult:
    """
    Create every weighed kitten and attach its medical record.
    One kitten failing does not stop the rest.
    """
    if not self.config.has_api_key():
      return SyncResult(success=False, message="No API key configured")

    kittens = [r for r in records if parse_weight(r.weight_lb) is not None]
    if not kittens:
      return SyncResult(success=False, message="No valid kittens to sync")

    self.sync_status = "syncing"
    self.last_error = None
    result = SyncResult()

    for kitten in kittens:
      label = kitten.name or "Unnamed"
      try:
        animal_id = self.create_animal(to_animal(kitten))
        medical = to_medical_record(kitten, dose_provider)
        if medical["Medications"]:
          self.add_medical_record(animal_id, medical)

        result.synced += 1
        result.kittens.append({"name": kitten.name, "shelterluv_id": animal_id, "success": True})
        print(f"  ✅ Synced {label} -> {animal_id}")
      except (requests.RequestException, ValueError) as e:
        result.failed += 1
        result.errors.append(f"{label}: {e}")
        result.kittens.append({"name": kitten.name, "success": False, "error": str(e)})
        print(f"  ❌ Failed to sync {label}: {e}")

    self.last_sync_time = get_current_timestamp()
    if result.failed:
      result.success = False
      self.sync_status = "error"
      self.last_error = "; ".join(result.errors)
    else:
      self.sync_status = "success"

    result.message = f"Synced {result.synced}, failed {result.failed}"
    return result

  def reset_status(self):
    self.sync_status = "idle"
    self.last_error = None
