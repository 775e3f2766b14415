"""
Bitfield codec - small integers <-> short URL-safe text

Packs 6 bits per symbol, least significant symbol first, over the
base64url alphabet (RFC 4648). The alphabet order is part of the wire
contract and never changes between versions.
"""
from config import FLAG_WIDTH


ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
BITS_PER_SYMBOL = 6
SYMBOL_MASK = (1 << BITS_PER_SYMBOL) - 1

_SYMBOL_INDEX = {symbol: index for index, symbol in enumerate(ALPHABET)}


class BitfieldDecodeError(ValueError):
  """A flag string contained a symbol outside the alphabet"""


def max_bits(width: int = FLAG_WIDTH) -> int:
  """Number of usable bits for a string of `width` symbols"""
  return BITS_PER_SYMBOL * width


def encode_bits(bits: int, width: int = FLAG_WIDTH) -> str:
  """Render an unsigned integer as exactly `width` symbols"""
  if bits < 0:
    raise ValueError(f"Bitfield must be unsigned, got {bits}")
  if bits >> max_bits(width):
    raise ValueError(f"Bitfield {bits} does not fit in {width} symbols")

  symbols = []
  for _ in range(width):
    symbols.append(ALPHABET[bits & SYMBOL_MASK])
    bits >>= BITS_PER_SYMBOL
  return "".join(symbols)


def decode_bits(text: str) -> int:
  """
  Parse symbols back into the integer.
  Raises BitfieldDecodeError on any symbol outside the alphabet.
  """
  bits = 0
  for position, symbol in enumerate(text):
    index = _SYMBOL_INDEX.get(symbol)
    if index is None:
      raise BitfieldDecodeError(f"Unknown symbol {symbol!r} at position {position}")
    bits |= index << (BITS_PER_SYMBOL * position)
  return bits
