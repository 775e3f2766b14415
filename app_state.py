"""
Application state for the intake form

Owns the ordered kitten list and the id counter. Passed explicitly to
whatever needs it; nothing reaches it through module globals.
"""
import copy
from typing import Callable, List, Optional, Iterable

from schema import KittenRecord, make_kitten_id


Listener = Callable[[List[str], Optional[str]], None]


class AppState:
  """
  Ordered kittens + a monotonically increasing id counter.

  Listeners receive (changed_fields, kitten_id) after every mutation.
  """

  def __init__(self):
    self._kittens: List[KittenRecord] = []
    self._kitten_counter = 0
    self._listeners: List[Listener] = []

  # ============================================
  # Change notification
  # ============================================

  def subscribe(self, listener: Listener) -> Callable[[], None]:
    """Register a listener; returns a function that unregisters it"""
    self._listeners.append(listener)

    def unsubscribe():
      if listener in self._listeners:
        self._listeners.remove(listener)

    return unsubscribe

  def _notify(self, changed_fields: List[str], kitten_id: Optional[str] = None):
    for listener in list(self._listeners):
      try:
        listener(changed_fields, kitten_id)
      except Exception as e:
        print(f"⚠️ State change listener error: {e}")

  # ============================================
  # Accessors
  # ============================================

  @property
  def kittens(self) -> List[KittenRecord]:
    """Copies in display order"""
    return copy.deepcopy(self._kittens)

  @property
  def kitten_counter(self) -> int:
    return self._kitten_counter

  @property
  def kitten_count(self) -> int:
    return len(self._kittens)

  def get_kitten(self, kitten_id: str) -> Optional[KittenRecord]:
    for kitten in self._kittens:
      if kitten.kitten_id == kitten_id:
        return copy.deepcopy(kitten)
    return None

  def has_kitten(self, kitten_id: str) -> bool:
    return any(k.kitten_id == kitten_id for k in self._kittens)

  def next_kitten_id(self) -> str:
    """Mint a new id; ids are never handed out twice"""
    self._kitten_counter += 1
    return make_kitten_id(self._kitten_counter)

  # ============================================
  # Mutations
  # ============================================

  def add_kitten(self, record: Optional[KittenRecord] = None) -> KittenRecord:
    """Append a kitten (defaults if no record given) under a fresh id"""
    kitten = copy.deepcopy(record) if record else KittenRecord()
    kitten.kitten_id = self.next_kitten_id()
    self._kittens.append(kitten)
    self._notify(['kittens', 'kitten_added'], kitten.kitten_id)
    return copy.deepcopy(kitten)

  def update_kitten(self, kitten_id: str, /, **updates) -> List[str]:
    """Apply field updates; returns the fields that actually changed"""
    for kitten in self._kittens:
      if kitten.kitten_id != kitten_id:
        continue

      changed = []
      for field_name, value in updates.items():
        if field_name == 'kitten_id' or field_name not in KittenRecord.__dataclass_fields__:
          continue
        if getattr(kitten, field_name) != value:
          setattr(kitten, field_name, value)
          changed.append(field_name)

      if changed:
        self._notify(changed, kitten_id)
      return changed

    return []

  def remove_kitten(self, kitten_id: str) -> bool:
    """Drop a kitten; the counter is left alone"""
    for index, kitten in enumerate(self._kittens):
      if kitten.kitten_id == kitten_id:
        del self._kittens[index]
        self._notify(['kittens', 'kitten_removed'], kitten_id)
        return True
    return False

  def replace_kittens(self, kittens: Iterable[KittenRecord], kitten_counter: int = 0):
    """
    Swap in a whole new list (restore from storage or a share link).
    The counter never drops below the highest id in the list.
    """
    self._kittens = copy.deepcopy(list(kittens))
    highest = max((k.number or 0 for k in self._kittens), default=0)
    self._kitten_counter = max(kitten_counter, highest)
    self._notify(['kittens'])

  def sync_from_form(self, kittens: Iterable[KittenRecord]):
    """Take the renderer's reading as the new truth, keeping the counter monotonic"""
    self.replace_kittens(kittens, self._kitten_counter)

  def clear(self):
    """Clear all data and reset ids"""
    self._kittens = []
    self._kitten_counter = 0
    self._notify(['kittens', 'cleared'])
