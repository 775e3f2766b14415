"""
Address bar - the current location and its share link parameter

Models window.location + history.replaceState: the URL can be rewritten in
place without navigating. Other query parameters are left untouched.

The wire string is percent-encoded once more at this layer (only "|" stays
literal) so names that already carry escapes survive the query-string
decode on the way back in.
"""
from typing import List, Optional, Tuple
from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode, quote

from config import BASE_URL, STATE_PARAM


PARAM_SAFE = "|"


class AddressBar:
  """Current URL plus a log of every in-place rewrite"""

  def __init__(self, url: str = BASE_URL):
    self.url = url
    self.history: List[str] = []

  def _query_pairs(self, url: Optional[str] = None) -> List[Tuple[str, str]]:
    return parse_qsl(urlsplit(url or self.url).query, keep_blank_values=True)

  def get_param(self, key: str = STATE_PARAM) -> Optional[str]:
    for name, value in self._query_pairs():
      if name == key:
        return value
    return None

  def has_param(self, key: str = STATE_PARAM) -> bool:
    return self.get_param(key) is not None

  def url_with_param(self, value: str, key: str = STATE_PARAM) -> str:
    """This URL with `key` set to `value` (nothing is rewritten)"""
    parts = urlsplit(self.url)
    others = [(name, v) for name, v in self._query_pairs() if name != key]

    query = urlencode(others, quote_via=quote)
    param = f"{quote(key)}={quote(value, safe=PARAM_SAFE)}"
    query = f"{query}&{param}" if query else param
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))

  def url_without_param(self, key: str = STATE_PARAM) -> str:
    parts = urlsplit(self.url)
    others = [(name, v) for name, v in self._query_pairs() if name != key]
    query = urlencode(others, quote_via=quote)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))

  def replace_state(self, url: str):
    """Rewrite the location in place (history.replaceState)"""
    self.url = url
    self.history.append(url)

  def set_param(self, value: str, key: str = STATE_PARAM):
    self.replace_state(self.url_with_param(value, key))

  def clear_param(self, key: str = STATE_PARAM):
    if self.has_param(key):
      self.replace_state(self.url_without_param(key))
