import pytest
import requests

from schema import KittenRecord, Day1Given
from storage import PersistenceGateway, MemoryStore
from config import SHELTERLUV_CONFIG_KEY
from shelterluv import (
  ShelterLuvClient, ShelterLuvConfig,
  load_config, save_config, clear_config,
  size_category, to_animal, to_medical_record, parse_weight,
)


class FakeResponse:
  def __init__(self, status_code, json_data=None):
    self.status_code = status_code
    self._json = json_data

  def raise_for_status(self):
    if self.status_code >= 400:
      raise requests.HTTPError(f"{self.status_code} Server Error")

  def json(self):
    if self._json is None:
      raise ValueError("No JSON")
    return self._json


class FakeSession:
  """Records every call; animals named Boom get a 500"""

  def __init__(self, get_error=None):
    self.headers = {}
    self.posts = []
    self.gets = []
    self.get_error = get_error
    self._next_id = 100

  def post(self, url, json=None, timeout=None):
    self.posts.append((url, json))
    if url.endswith("/animals"):
      if json["Name"] == "Boom":
        return FakeResponse(500)
      self._next_id += 1
      return FakeResponse(200, {"Internal-ID": str(self._next_id)})
    return FakeResponse(200)

  def get(self, url, params=None, timeout=None):
    self.gets.append(url)
    if self.get_error:
      raise self.get_error
    return FakeResponse(200, {"animals": []})


def make_client(session, api_key="secret"):
  return ShelterLuvClient(ShelterLuvConfig(api_key=api_key), base_url="https://sl.test/api/v1", session=session)


def test_size_category():
  assert size_category(1.5) == "Tiny"
  assert size_category(2) == "Small"
  assert size_category(5) == "Medium"
  assert size_category(10) == "Large"


def test_parse_weight():
  assert parse_weight("2.5") == 2.5
  assert parse_weight("") is None
  assert parse_weight("0") is None
  assert parse_weight("abc") is None


def test_to_animal():
  record = KittenRecord(name="Mittens", weight_lb="2.5", ringworm_status="negative", flea_status="bathed")
  animal = to_animal(record, now=1700000000)

  assert animal["Name"] == "Mittens"
  assert animal["CurrentWeightPounds"] == 2.5
  assert animal["Size"] == "Small"
  assert animal["LastIntakeUnixTime"] == 1700000000
  assert "Ringworm status: negative" in animal["Description"]
  assert {"AttributeName": "Bathed at intake", "Publish": False} in animal["Attributes"]


def test_to_animal_needs_weight():
  with pytest.raises(ValueError):
    to_animal(KittenRecord(name="Light"))


def test_medical_record_lists_day1_medications():
  record = KittenRecord(name="Mittens", weight_lb="2.5")
  medical = to_medical_record(record, now=1)
  names = [m["MedicationName"] for m in medical["Medications"]]
  assert names == ["Fenbendazole (Panacur)", "Ponazuril", "Drontal", "Revolution"]
  assert "Dosage" not in medical["Medications"][0]


def test_medical_record_uses_dose_provider():
  record = KittenRecord(weight_lb="0.5", day1_given=Day1Given(panacur=True, ponazuril=False, drontal=True))

  def doses(kitten, medication):
    return None if medication == "drontal" else "0.1 mL"

  medical = to_medical_record(record, dose_provider=doses)
  assert [(m["MedicationName"], m["Dosage"]) for m in medical["Medications"]] == [
    ("Fenbendazole (Panacur)", "0.1 mL"),
    ("Revolution", "0.1 mL"),
  ]


def test_bathed_kitten_gets_no_topical():
  record = KittenRecord(weight_lb="1", flea_status="bathed", day1_given=Day1Given(False, False, False))
  assert to_medical_record(record)["Medications"] == []


def test_sync_all_collects_failures():
  session = FakeSession()
  client = make_client(session)
  records = [
    KittenRecord(name="Ash", weight_lb="2.5"),
    KittenRecord(name="Unweighed", weight_lb=""),
    KittenRecord(name="Boom", weight_lb="3"),
  ]

  result = client.sync_all(records)

  assert result.success is False
  assert (result.synced, result.failed) == (1, 1)
  assert result.errors[0].startswith("Boom:")
  assert result.kittens[0] == {"name": "Ash", "shelterluv_id": "101", "success": True}
  assert [url for url, _ in session.posts] == [
    "https://sl.test/api/v1/animals",
    "https://sl.test/api/v1/animals/101/medical",
    "https://sl.test/api/v1/animals",
  ]
  assert client.sync_status == "error"
  assert session.headers["X-Api-Key"] == "secret"


def test_sync_all_without_key_or_kittens():
  session = FakeSession()
  assert make_client(session, api_key="").sync_all([KittenRecord(weight_lb="2")]).success is False
  assert make_client(session).sync_all([KittenRecord()]).message == "No valid kittens to sync"
  assert session.posts == []


def test_connection():
  assert make_client(FakeSession(), api_key="").test_connection() == (False, "No API key configured")
  assert make_client(FakeSession()).test_connection()[0] is True

  ok, message = make_client(FakeSession(get_error=requests.ConnectionError("refused"))).test_connection()
  assert ok is False
  assert message.startswith("Connection failed")


def test_config_persistence():
  durable = MemoryStore()
  gateway = PersistenceGateway(durable, MemoryStore())

  save_config(gateway, ShelterLuvConfig(api_key="abc", shelter_slug="kittens", auto_sync=True))
  assert load_config(gateway) == ShelterLuvConfig(api_key="abc", shelter_slug="kittens", auto_sync=True)

  clear_config(gateway)
  assert durable.get_item(SHELTERLUV_CONFIG_KEY) is None
  assert load_config(gateway) == ShelterLuvConfig.from_env()


def test_config_wrong_version_uses_env():
  gateway = PersistenceGateway(MemoryStore(), MemoryStore())
  gateway.save_json(SHELTERLUV_CONFIG_KEY, {"version": "0.1", "api_key": "old"})
  assert load_config(gateway) == ShelterLuvConfig.from_env()
