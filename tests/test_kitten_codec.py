import pytest

from schema import KittenRecord, Day1Given
from url_state.kitten_codec import (
  pack_flags, encode_flags, decode_flags, encode_record, decode_record,
  encode_text, decode_text, MalformedRecordError,
)


def alternates():
  return KittenRecord(
    name="Shadow",
    weight_lb="1.2",
    topical="none",
    flea_status="bathed",
    ringworm_status="positive",
    panacur_days="1",
    ponazuril_days="1",
    day1_given=Day1Given(panacur=False, ponazuril=False, drontal=False),
  )


def test_default_kitten_flags():
  record = KittenRecord(name="Mittens", weight_lb="2.5")
  assert pack_flags(record) == 1984
  assert encode_flags(record) == "Af"


def test_alternate_values_flags():
  assert pack_flags(alternates()) == 22
  assert encode_flags(alternates()) == "WA"


def test_decode_alternates():
  fields = decode_flags("WA")
  assert fields['topical'] == "none"
  assert fields['flea_status'] == "bathed"
  assert fields['ringworm_status'] == "positive"
  assert fields['panacur_days'] == "1"
  assert fields['ponazuril_days'] == "1"
  assert fields['day1_given'] == Day1Given(False, False, False)


def test_unknown_value_encodes_as_default():
  record = KittenRecord(topical="frontline", panacur_days="7")
  assert encode_flags(record) == "Af"


def test_out_of_range_index_decodes_as_default():
  # topical index 3
  assert decode_flags("Df")['topical'] == "revolution"
  # ringworm index 3
  assert decode_flags("Yf")['ringworm_status'] == "not-scanned"
  # panacur index 3
  assert decode_flags("gf")['panacur_days'] == "5"


def test_reserved_bits_ignored():
  assert decode_flags("A_") == decode_flags("Af")


def test_flag_string_length():
  with pytest.raises(MalformedRecordError):
    decode_flags("A")
  with pytest.raises(MalformedRecordError):
    decode_flags("AfA")


def test_flag_string_symbol():
  with pytest.raises(MalformedRecordError):
    decode_flags("A!")


def test_text_escapes_delimiter_and_percent():
  assert encode_text("A|B%C") == "A%7CB%25C"
  assert decode_text("A%7CB%25C") == "A|B%C"


def test_weight_digits_unchanged():
  name, weight, flags = encode_record(KittenRecord(name="Tom", weight_lb="3."))
  assert (name, weight, flags) == ("Tom", "3.", "Af")


def test_unicode_name():
  record = KittenRecord(name="Señor Bigotes 🐱", weight_lb="4")
  decoded = decode_record(*encode_record(record), kitten_id="kitten-1")
  assert decoded.name == "Señor Bigotes 🐱"
  assert decoded.kitten_id == "kitten-1"


def test_malformed_text():
  with pytest.raises(MalformedRecordError):
    decode_text("50%")
  with pytest.raises(MalformedRecordError):
    decode_text("%zz")
  with pytest.raises(MalformedRecordError):
    decode_text("%E0%A4")


def test_weight_sent_as_typed():
  for weight in ("", "3", "3.", "0.75", "1 lb", "½"):
    assert encode_record(KittenRecord(weight_lb=weight))[1] == weight


def test_weight_escapes_only_percent_and_delimiter():
  assert encode_record(KittenRecord(weight_lb="2|3%"))[1] == "2%7C3%25"
  assert decode_record("A", "2%7C3%25", "Af").weight_lb == "2|3%"
  assert decode_record("A", "%257C", "Af").weight_lb == "%7C"


def test_raw_percent_weight_from_older_links():
  assert decode_record("A", "5%", "Af").weight_lb == "5%"
  assert decode_record("A", "%zz", "Af").weight_lb == "%zz"
