"""
Share link state codecs
"""
from url_state.bitfield import encode_bits, decode_bits, BitfieldDecodeError
from url_state.kitten_codec import encode_flags, decode_flags, encode_record, decode_record, MalformedRecordError
from url_state.serializer import EncodedState, serialize, deserialize

__all__ = [
  "encode_bits",
  "decode_bits",
  "BitfieldDecodeError",
  "encode_flags",
  "decode_flags",
  "encode_record",
  "decode_record",
  "MalformedRecordError",
  "EncodedState",
  "serialize",
  "deserialize",
]
