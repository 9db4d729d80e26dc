"""Application state shared by the orchestrator and the tool surface.

``AppState`` is built explicitly and passed by reference; nothing here is a
module-level singleton. Lifecycle:

1. ``AppState.open(store, settings)`` constructs the state and loads the API
   key, preferences, gallery, request log and daily cost from the store.
2. Mutating operations persist the affected collection immediately, always
   as a whole-collection replace.
3. ``close()`` flushes every collection once more before shutdown.

Persistence failures are logged and never raised from here: the in-memory
state stays authoritative for the rest of the session.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from loguru import logger
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ConfigurationError, PersistenceError
from .request_log import DailyCostCounter, RequestLog
from .schema import GenerationRecord, LogEntry, Preferences
from .settings import Settings, get_settings
from .shard import constants as C
from .storage import KeyValueStore

_RECORDS = TypeAdapter(list[GenerationRecord])
_LOG_ENTRIES = TypeAdapter(list[LogEntry])


class AppState:
    def __init__(self, store: KeyValueStore, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.gallery: list[GenerationRecord] = []
        self.request_log = RequestLog()
        self.preferences = Preferences()
        self._api_key: str | None = None

    @classmethod
    def open(cls, store: KeyValueStore, settings: Settings | None = None) -> AppState:
        state = cls(store, settings)
        state.load()
        return state

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def load(self) -> None:
        stored_key = self._read(C.KEY_API_KEY)
        self._api_key = stored_key.strip() if isinstance(stored_key, str) and stored_key.strip() else None
        self.preferences = Preferences(
            developer_mode=bool(self._read(C.KEY_DEVELOPER_MODE, False)),
            advanced_controls=bool(self._read(C.KEY_ADVANCED_CONTROLS, False)),
        )
        self.gallery = self._load_collection(C.KEY_GALLERY, _RECORDS)
        self.request_log = RequestLog(
            entries=self._load_collection(C.KEY_REQUEST_LOGS, _LOG_ENTRIES),
            cost_counter=self._load_cost_counter(),
        )
        logger.info(f"Loaded {len(self.gallery)} poster(s) and {len(self.request_log)} log entr(ies)")

    def close(self) -> None:
        self.save_gallery()
        self._save_logs()
        self._save_cost_counter()

    # ------------------------------------------------------------------
    # Store helpers
    # ------------------------------------------------------------------
    def _read(self, key: str, default: Any = None) -> Any:
        try:
            return self.store.get(key, default)
        except PersistenceError as e:
            logger.warning(f"Ignoring unreadable stored value for '{key}': {e}")
            return default

    def _write(self, key: str, value: Any) -> bool:
        try:
            self.store.set(key, value)
        except PersistenceError as e:
            logger.error(f"Failed to persist '{key}': {e}")
            return False
        return True

    def _load_collection(self, key: str, adapter: TypeAdapter) -> list[Any]:
        raw = self._read(key)
        if raw is None:
            return []
        try:
            return adapter.validate_python(raw)
        except PydanticValidationError as e:
            logger.warning(f"Failed to decode stored '{key}'; starting empty: {e.error_count()} error(s)")
            return []

    def _load_cost_counter(self) -> DailyCostCounter:
        total = self._read(C.KEY_TOTAL_COST_TODAY, 0.0)
        last = self._read(C.KEY_LAST_COST_UPDATE)
        last_updated: date | None = None
        if isinstance(last, str):
            try:
                last_updated = date.fromisoformat(last[:10])
            except ValueError:
                logger.warning(f"Ignoring malformed last cost update date: {last!r}")
        try:
            return DailyCostCounter(total=float(total or 0.0), last_updated=last_updated)
        except (TypeError, ValueError, PydanticValidationError):
            logger.warning(f"Ignoring malformed daily cost total: {total!r}")
            return DailyCostCounter()

    def _save_logs(self) -> bool:
        return self._write(C.KEY_REQUEST_LOGS, _LOG_ENTRIES.dump_python(self.request_log.entries, mode="json", by_alias=True))

    def _save_cost_counter(self) -> bool:
        counter = self.request_log.cost_counter
        ok = self._write(C.KEY_TOTAL_COST_TODAY, counter.total)
        if counter.last_updated is not None:
            ok = self._write(C.KEY_LAST_COST_UPDATE, counter.last_updated.isoformat()) and ok
        return ok

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------
    @property
    def api_key(self) -> str | None:
        """Saved key, falling back to the ``RUNWARE_API_KEY`` setting."""
        if self._api_key:
            return self._api_key
        if self.settings.use_runware:
            return self.settings.runware_api_key.strip()  # type: ignore[union-attr]
        return None

    @property
    def has_api_key(self) -> bool:
        return self.api_key is not None

    def save_api_key(self, api_key: str) -> None:
        key = (api_key or "").strip()
        if not key:
            raise ConfigurationError("API key must not be empty.")
        self._api_key = key
        self._write(C.KEY_API_KEY, key)

    # ------------------------------------------------------------------
    # Gallery
    # ------------------------------------------------------------------
    def add_records(self, records: list[GenerationRecord]) -> None:
        """Insert records at the front (newest first) and persist the gallery."""
        self.gallery[0:0] = records
        self.save_gallery()

    def find_record(self, record_id: str) -> GenerationRecord | None:
        return next((r for r in self.gallery if r.id == record_id), None)

    def delete_record(self, record_id: str) -> bool:
        before = len(self.gallery)
        self.gallery = [r for r in self.gallery if r.id != record_id]
        if len(self.gallery) == before:
            return False
        self.save_gallery()
        return True

    def save_gallery(self) -> bool:
        return self._write(C.KEY_GALLERY, _RECORDS.dump_python(self.gallery, mode="json", by_alias=True))

    # ------------------------------------------------------------------
    # Request log
    # ------------------------------------------------------------------
    def record_log_entry(self, entry: LogEntry, today: date | None = None) -> None:
        self.request_log.append(entry, today=today)
        self._save_logs()
        if entry.cost is not None:
            self._save_cost_counter()

    def daily_cost(self) -> float:
        return self.request_log.daily_cost()

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------
    def toggle_developer_mode(self) -> bool:
        self.preferences.developer_mode = not self.preferences.developer_mode
        self._write(C.KEY_DEVELOPER_MODE, self.preferences.developer_mode)
        return self.preferences.developer_mode

    def toggle_advanced_controls(self) -> bool:
        self.preferences.advanced_controls = not self.preferences.advanced_controls
        self._write(C.KEY_ADVANCED_CONTROLS, self.preferences.advanced_controls)
        return self.preferences.advanced_controls


__all__ = ["AppState"]
