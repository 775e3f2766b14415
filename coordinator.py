"""
Persistence Coordinator
v1.0.0

Decides where the form's kittens come from and where edits go.

States:
  LOCAL           the durable store is authoritative; every change is saved
  VIEWING_SHARED  a share link is on screen; the durable store is left alone
                  and the user's own data is parked in the session backup

Transitions:
  start()  -> VIEWING_SHARED when the URL carries a decodable share link
  eject()  VIEWING_SHARED -> LOCAL, the backup goes back into the durable store
  keep()   VIEWING_SHARED -> LOCAL, the shared kittens become the user's own

Design Principles:
- A broken link never blocks the form: fall back to the saved data
- The user's own data is never overwritten while a share link is shown
- Only this class creates/removes the backup or flips the session flag
- The renderer is a collaborator; nothing here touches markup
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from config import STATE_PARAM, URL_UPDATE_DELAY
from schema import KittenRecord, BackupSnapshot, BackupInfo, get_current_timestamp
from url_state import serialize, deserialize, EncodedState
from storage import PersistenceGateway
from app_state import AppState
from address_bar import AddressBar
from debounce import Debouncer


class CoordinatorState(str, Enum):
  LOCAL = "local"
  VIEWING_SHARED = "viewing_shared"


class LoadSource(str, Enum):
  """Where the rendered kittens came from"""
  DURABLE = "durable"
  SHARED_LINK = "shared_link"
  FRESH = "fresh"


class FormRenderer:
  """
  The form on screen. Subclasses read kittens out of the visible inputs and
  rebuild the inputs from a list.
  """

  def read_records(self) -> List[KittenRecord]:
    raise NotImplementedError("Subclass must implement read_records()")

  def populate(self, records: List[KittenRecord]):
    raise NotImplementedError("Subclass must implement populate()")


@dataclass
class LoadResult:
  """What the host needs to know after a load"""
  state: CoordinatorState
  source: LoadSource
  kittens: List[KittenRecord] = field(default_factory=list)
  choice_required: bool = False  # show the eject/keep prompt
  backup_info: Optional[BackupInfo] = None


class PersistenceCoordinator:
  """State machine over the durable store, the session backup and the share link"""

  def __init__(
    self,
    gateway: PersistenceGateway,
    app_state: AppState,
    renderer: FormRenderer,
    address_bar: AddressBar,
    debouncer: Optional[Debouncer] = None,
  ):
    self.gateway = gateway
    self.app_state = app_state
    self.renderer = renderer
    self.address_bar = address_bar
    self.debouncer = debouncer or Debouncer(URL_UPDATE_DELAY)
    self._state = CoordinatorState.LOCAL
    self.choice_required = False

  @property
  def state(self) -> CoordinatorState:
    return self._state

  @property
  def viewing_shared(self) -> bool:
    return self._state == CoordinatorState.VIEWING_SHARED

  # ============================================
  # Load
  # ============================================

  def start(self) -> LoadResult:
    """Pick the source of truth for this session and render it"""
    encoded = self.address_bar.get_param(STATE_PARAM)
    if encoded is not None:
      decoded = deserialize(encoded)
      if decoded is not None:
        return self._open_shared(decoded)
      print("⚠️ Ignoring unreadable share link, loading saved data")

    if self.gateway.is_viewing_shared():
      return self._resume_orphaned_share()

    return self._load_local()

  def _open_shared(self, decoded: EncodedState) -> LoadResult:
    # Reloading a shared view must not replace the backup of the user's own data
    if not self.gateway.is_viewing_shared():
      self._backup_durable()
      self.gateway.set_viewing_shared(True)

    self._state = CoordinatorState.VIEWING_SHARED
    self.choice_required = False
    self._render(decoded.kittens, decoded.kitten_counter)
    print(f"🔗 Viewing shared link: {len(decoded.kittens)} kitten(s)")

    return LoadResult(
      state=self._state,
      source=LoadSource.SHARED_LINK,
      kittens=self.app_state.kittens,
      backup_info=self.gateway.backup_info(),
    )

  def _backup_durable(self):
    # snapshot=None records that there was nothing of the user's to protect
    snapshot = self.gateway.load_durable()
    self.gateway.save_backup(BackupSnapshot(snapshot=snapshot, captured_at=get_current_timestamp()))

  def _resume_orphaned_share(self) -> LoadResult:
    """
    The session flag survived but the link is gone (manual navigation).
    Show the saved data and ask the user to eject or keep before the flag goes.
    """
    print("⚠️ Shared view was left without Eject or Keep")
    self._state = CoordinatorState.VIEWING_SHARED
    self.choice_required = True
    source = self._render_durable()

    return LoadResult(
      state=self._state,
      source=source,
      kittens=self.app_state.kittens,
      choice_required=True,
      backup_info=self.gateway.backup_info(),
    )

  def _load_local(self) -> LoadResult:
    self._state = CoordinatorState.LOCAL
    self.choice_required = False
    source = self._render_durable()
    return LoadResult(state=self._state, source=source, kittens=self.app_state.kittens)

  def _render_durable(self) -> LoadSource:
    snapshot = self.gateway.load_durable()
    if snapshot and snapshot.kittens:
      self._render(snapshot.kittens, snapshot.kitten_counter)
      return LoadSource.DURABLE

    self._render_fresh()
    return LoadSource.FRESH

  def _render_fresh(self):
    self.app_state.clear()
    self.app_state.add_kitten()
    self.renderer.populate(self.app_state.kittens)

  def _render(self, kittens: List[KittenRecord], kitten_counter: int):
    self.app_state.replace_kittens(kittens, kitten_counter)
    self.renderer.populate(self.app_state.kittens)

  # ============================================
  # Edits
  # ============================================

  def record_change(self, commit: bool = False):
    """
    The user edited the form. Saves (LOCAL only) and refreshes the link;
    pass commit=True to skip the debounce.
    """
    self.app_state.sync_from_form(self.renderer.read_records())
    self._persist_change(commit)

  def add_kitten(self, record: Optional[KittenRecord] = None) -> KittenRecord:
    self.app_state.sync_from_form(self.renderer.read_records())
    kitten = self.app_state.add_kitten(record)
    self.renderer.populate(self.app_state.kittens)
    self._persist_change(commit=True)
    return kitten

  def remove_kitten(self, kitten_id: str) -> bool:
    self.app_state.sync_from_form(self.renderer.read_records())
    if not self.app_state.remove_kitten(kitten_id):
      return False
    self.renderer.populate(self.app_state.kittens)
    self._persist_change(commit=True)
    return True

  def clear_all(self):
    """Drop every kitten (and the saved copy when the data is the user's own)"""
    if self._state == CoordinatorState.LOCAL:
      self.gateway.clear_durable()
    self._render_fresh()
    self._schedule_address_bar(commit=True)

  def save(self) -> bool:
    """Write the current kittens to the durable store (never while viewing a share link)"""
    if self.viewing_shared:
      return False
    snapshot = self.gateway.new_snapshot(self.app_state.kittens, self.app_state.kitten_counter)
    return self.gateway.save_durable(snapshot)

  def _persist_change(self, commit: bool):
    if self._state == CoordinatorState.LOCAL:
      self.save()
    self._schedule_address_bar(commit)

  # ============================================
  # Address bar
  # ============================================

  def _schedule_address_bar(self, commit: bool):
    if commit:
      self.debouncer.call_now(self._write_address_bar)
    else:
      self.debouncer.call(self._write_address_bar)

  def _write_address_bar(self):
    # Encoded when the update fires, never earlier
    encoded = serialize(self.app_state.kittens)
    if encoded is None:
      self.address_bar.clear_param()
    else:
      self.address_bar.set_param(encoded)

  def tick(self) -> bool:
    """Let a due address-bar update run (call from the host loop)"""
    return self.debouncer.tick()

  def flush(self) -> bool:
    return self.debouncer.flush()

  def share_url(self) -> Optional[str]:
    """Link that rebuilds the current form, None with nothing to share"""
    self.app_state.sync_from_form(self.renderer.read_records())
    encoded = serialize(self.app_state.kittens)
    if encoded is None:
      return None
    return self.address_bar.url_with_param(encoded)

  # ============================================
  # Terminal actions
  # ============================================

  def backup_info(self) -> Optional[BackupInfo]:
    return self.gateway.backup_info()

  def eject(self) -> Optional[LoadResult]:
    """Discard the shared view and put the user's own data back"""
    if not self.viewing_shared:
      return None

    self.debouncer.cancel()
    self.address_bar.clear_param()
    self.gateway.set_viewing_shared(False)

    backup = self.gateway.load_backup()
    if backup is None:
      # Durable was never written while viewing, so it still holds the user's data
      print("⚠️ No backup found, keeping saved data as is")
    elif backup.was_empty:
      self.gateway.clear_durable()
      print("⏏️ Nothing was saved before the link, starting fresh")
    else:
      self.gateway.save_durable(backup.snapshot)
      print(f"⏏️ Restored {backup.snapshot.kitten_count} kitten(s) from backup")
    self.gateway.clear_backup()

    return self._load_local()

  def keep(self) -> bool:
    """Adopt the shared view as the user's own data"""
    if not self.viewing_shared:
      return False

    self.debouncer.cancel()
    self.gateway.clear_backup()
    self.gateway.set_viewing_shared(False)
    self.address_bar.clear_param()

    self._state = CoordinatorState.LOCAL
    self.choice_required = False
    self.app_state.sync_from_form(self.renderer.read_records())
    saved = self.save()
    if saved:
      print(f"✅ Kept {self.app_state.kitten_count} shared kitten(s)")
    return saved
