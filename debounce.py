"""
Debounced calls driven by the host's event loop

Single-threaded: nothing fires on its own. The host calls tick() from its
loop (or flush() when it wants everything out now). A newer call replaces
the pending one, so only the last call of a burst ever runs.
"""
import time
from typing import Callable, Optional


class Debouncer:
  """Keep at most one pending call; run it once `delay` seconds have passed quietly"""

  def __init__(self, delay: float, clock: Callable[[], float] = time.monotonic):
    self.delay = delay
    self.clock = clock
    self._pending: Optional[Callable[[], None]] = None
    self._due_at: Optional[float] = None

  @property
  def pending(self) -> bool:
    return self._pending is not None

  def call(self, fn: Callable[[], None]):
    """Schedule fn, superseding anything pending"""
    self._pending = fn
    self._due_at = self.clock() + self.delay

  def call_now(self, fn: Callable[[], None]):
    """Cancel anything pending and run fn immediately"""
    self.cancel()
    fn()

  def cancel(self):
    self._pending = None
    self._due_at = None

  def tick(self) -> bool:
    """Run the pending call if it is due. Returns True if something ran."""
    if self._pending is None or self.clock() < self._due_at:
      return False
    return self.flush()

  def flush(self) -> bool:
    """Run the pending call regardless of time"""
    fn = self._pending
    self.cancel()
    if fn is None:
      return False
    fn()
    return True
