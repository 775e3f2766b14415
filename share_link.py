#!/usr/bin/env python3
"""
Share Link Tool
v1.0.0

Build and read kitten intake share links from the command line.

Usage:
  python share_link.py encode kittens.json               # JSON list -> share URL
  python share_link.py encode kittens.json --wire        # just the k= value
  python share_link.py decode "https://...?k=1|Mittens|2.5|Af"
  python share_link.py decode "1|Mittens|2.5|Af"
  python share_link.py inspect Af                        # show decoded flag fields
"""

import sys
import json
import argparse
from typing import List, Optional

from config import BASE_URL, STATE_PARAM
from schema import KittenRecord
from url_state import serialize, deserialize, decode_flags, decode_bits, MalformedRecordError
from address_bar import AddressBar


def load_records(path: str) -> List[KittenRecord]:
  """Read a JSON list of kitten dicts (the durable snapshot's kittens also work)"""
  with open(path) as f:
    data = json.load(f)

  if isinstance(data, dict):
    data = data.get('kittens', [])
  if not isinstance(data, list):
    raise ValueError(f"{path} must hold a list of kittens")
  return [KittenRecord.from_dict(item) for item in data if isinstance(item, dict)]


def wire_from_argument(value: str) -> Optional[str]:
  """Accept either a full URL or a bare wire string"""
  if "://" in value or value.startswith("?"):
    return AddressBar(value).get_param(STATE_PARAM)
  return value


def cmd_encode(args) -> int:
  try:
    records = load_records(args.file)
  except (OSError, ValueError) as e:
    print(f"❌ Could not read {args.file}: {e}", file=sys.stderr)
    return 1

  wire = serialize(records)
  if wire is None:
    print("⚠️ No kittens to share", file=sys.stderr)
    return 1

  print(wire if args.wire else AddressBar(args.base_url).url_with_param(wire))
  return 0


def cmd_decode(args) -> int:
  wire = wire_from_argument(args.link)
  state = deserialize(wire)
  if state is None:
    print("❌ Not a readable share link", file=sys.stderr)
    return 1

  print(json.dumps([k.to_dict() for k in state.kittens], indent=2, ensure_ascii=False))
  return 0


def cmd_inspect(args) -> int:
  try:
    fields = decode_flags(args.flags)
  except MalformedRecordError as e:
    print(f"❌ {e}", file=sys.stderr)
    return 1

  print(f"bits: {decode_bits(args.flags):#013b}")
  for name, value in fields.items():
    if name == 'day1_given':
      for medication, given in value.to_dict().items():
        print(f"  day1_given.{medication}: {given}")
    else:
      print(f"  {name}: {value}")
  return 0


def main(argv: Optional[List[str]] = None) -> int:
  parser = argparse.ArgumentParser(description="Build and read kitten intake share links")
  subparsers = parser.add_subparsers(dest="command", required=True)

  encode = subparsers.add_parser("encode", help="Build a share link from a JSON file")
  encode.add_argument("file", help="JSON list of kittens")
  encode.add_argument("--base-url", default=BASE_URL, help=f"Link target (default: {BASE_URL})")
  encode.add_argument("--wire", action="store_true", help="Print only the parameter value")
  encode.set_defaults(func=cmd_encode)

  decode = subparsers.add_parser("decode", help="Print the kittens in a share link as JSON")
  decode.add_argument("link", help="Share URL or bare wire string")
  decode.set_defaults(func=cmd_decode)

  inspect = subparsers.add_parser("inspect", help="Explain a flag string")
  inspect.add_argument("flags", help="Flag symbols, e.g. Af")
  inspect.set_defaults(func=cmd_inspect)

  args = parser.parse_args(argv)
  return args.func(args)


if __name__ == "__main__":
  sys.exit(main())
