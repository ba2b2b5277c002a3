"""
Application data store: the single in-memory owner of the user's bundle.

Every mutation is applied synchronously to memory and then schedules a
debounced save of the whole bundle to the document store. Rapid edits
collapse into one PUT carrying the latest state. Saves are fire-and-forget:
failures are logged, not retried and not reported to the caller.

Known limitation: a save that is still in flight when the next debounced save
fires is not waited for, so two PUTs for the same document can race and the
last response to land wins.
"""

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from enum import Enum
from types import MappingProxyType
from typing import Any

import structlog

from healthlog.config import StoreConfig
from healthlog.domain.errors import RemoteSaveError
from healthlog.domain.models import (
    DayRecord,
    HealthArchive,
    StandardPattern,
    TimeSlotEntry,
    UserDataBundle,
    day_has_data,
    normalize_catalog,
    prune_pattern,
    validate_date_key,
)
from healthlog.services.bundle_io import export_bundle, parse_bundle_text, validate_bundle
from healthlog.services.debounce import Debouncer
from healthlog.services.jsonbin import JsonBinClient
from healthlog.services.preferences import LocalPreferenceStore

logger = structlog.get_logger(__name__)

API_KEY_PREFERENCE = "jsonbin_api_key"
BIN_ID_PREFERENCE = "jsonbin_bin_id"
SAVE_KEY = "remote_save"


class AuthState(str, Enum):
    """Authentication and loading lifecycle of the store."""

    UNINITIALIZED = "uninitialized"
    UNAUTHENTICATED = "unauthenticated"
    DATA_LOADING = "data_loading"
    READY = "ready"


def _dedupe(names: list[str]) -> list[str]:
    return list(dict.fromkeys(names))


def _copy_day(day: Mapping[str, TimeSlotEntry]) -> DayRecord:
    return {label: entry.model_copy(deep=True) for label, entry in day.items()}


class AppStore:
    """
    Authoritative holder of health records, medication catalog and standard pattern.

    Construct one per application run and hand it to every consumer; nothing
    else mutates the bundle.
    """

    def __init__(
        self,
        client: JsonBinClient,
        preferences: LocalPreferenceStore,
        config: StoreConfig | None = None,
        debouncer: Debouncer | None = None,
    ) -> None:
        self.client = client
        self.preferences = preferences
        self.config = config or StoreConfig()
        self.debouncer = debouncer or Debouncer()
        self.logger = logger.bind(component="app_store")

        self._state = AuthState.UNINITIALIZED
        self._api_key: str | None = None
        self._bin_id: str | None = None
        self._bundle = self._default_bundle()
        self._saves_in_flight = 0

    def _default_bundle(self) -> UserDataBundle:
        return UserDataBundle(medications=normalize_catalog(self.config.default_medications))

    # State flags

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state in (AuthState.DATA_LOADING, AuthState.READY)

    @property
    def is_loading(self) -> bool:
        return self._state is AuthState.UNINITIALIZED

    @property
    def is_data_loading(self) -> bool:
        return self._state is AuthState.DATA_LOADING

    @property
    def is_saving(self) -> bool:
        return self._saves_in_flight > 0

    # Read views

    @property
    def health_data(self) -> Mapping[str, Mapping[str, TimeSlotEntry]]:
        """Read-only view; change days through ``record_day``."""
        return MappingProxyType(
            {
                date: MappingProxyType(_copy_day(day))
                for date, day in self._bundle.health_data.items()
            }
        )

    @property
    def medications(self) -> list[str]:
        return list(self._bundle.medications)

    @property
    def standard_pattern(self) -> StandardPattern:
        return {label: list(meds) for label, meds in self._bundle.standard_pattern.items()}

    @property
    def bundle(self) -> UserDataBundle:
        """A deep copy of the current bundle."""
        return self._bundle.model_copy(deep=True)

    def day(self, date: str) -> DayRecord:
        """The stored record for ``date``; empty when nothing was recorded."""
        return _copy_day(self._bundle.health_data.get(date, {}))

    def has_data(self, date: str) -> bool:
        return day_has_data(self._bundle.health_data.get(date))

    # Authentication and loading

    async def start(self) -> None:
        """Decide the initial state from remembered credentials, loading data if present."""
        api_key = self.preferences.read(API_KEY_PREFERENCE, None)
        bin_id = self.preferences.read(BIN_ID_PREFERENCE, None)
        if isinstance(api_key, str) and isinstance(bin_id, str) and api_key and bin_id:
            await self._load(api_key, bin_id)
        else:
            self._state = AuthState.UNAUTHENTICATED
            self.logger.info("store_unauthenticated")

    async def login(self, api_key: str, bin_id: str) -> None:
        if not api_key.strip() or not bin_id.strip():
            raise ValueError("API key and bin id are required")
        self.preferences.write(API_KEY_PREFERENCE, api_key)
        self.preferences.write(BIN_ID_PREFERENCE, bin_id)
        await self._load(api_key, bin_id)

    def logout(self) -> None:
        """Forget credentials and reset in-memory state. A pending save is dropped."""
        self.debouncer.cancel(SAVE_KEY)
        self.preferences.write(API_KEY_PREFERENCE, None)
        self.preferences.write(BIN_ID_PREFERENCE, None)
        self._api_key = None
        self._bin_id = None
        self._bundle = self._default_bundle()
        self._state = AuthState.UNAUTHENTICATED
        self.logger.info("store_logged_out")

    async def _load(self, api_key: str, bin_id: str) -> None:
        self._api_key = api_key
        self._bin_id = bin_id
        self._state = AuthState.DATA_LOADING
        self.logger.info("bundle_loading", bin_id=bin_id)
        self._bundle = await self.client.fetch(api_key, bin_id, self._default_bundle())
        self._state = AuthState.READY
        self.logger.info(
            "store_ready",
            days=len(self._bundle.health_data),
            medications=len(self._bundle.medications),
        )

    # Mutations

    def record_day(self, date: str, record: Mapping[str, TimeSlotEntry | Mapping[str, Any]]) -> None:
        """Replace the whole record for ``date``."""
        validate_date_key(date)
        day: DayRecord = {
            label: entry.model_copy(deep=True)
            if isinstance(entry, TimeSlotEntry)
            else TimeSlotEntry.model_validate(entry)
            for label, entry in record.items()
        }
        self._bundle.health_data[date] = day
        self.logger.debug("day_recorded", date=date, slots=len(day))
        self._schedule_save()

    def add_medication(self, name: str) -> None:
        if name in self._bundle.medications:
            return
        self._bundle.medications = sorted([*self._bundle.medications, name])
        self.logger.debug("medication_added", name=name)
        self._schedule_save()

    def rename_medication(self, old_name: str, new_name: str) -> None:
        """Rename a medication everywhere it appears: catalog, every day and the pattern."""
        new_name = new_name.strip()
        if not new_name or new_name == old_name.strip():
            return

        def swap(meds: list[str]) -> list[str]:
            return _dedupe([new_name if m == old_name else m for m in meds])

        archive: HealthArchive = {
            date: {
                label: entry.model_copy(update={"medications": swap(entry.medications)})
                for label, entry in day.items()
            }
            for date, day in self._bundle.health_data.items()
        }
        self._bundle.health_data = archive
        self._bundle.standard_pattern = {
            label: swap(meds) for label, meds in self._bundle.standard_pattern.items()
        }
        self._bundle.medications = normalize_catalog(swap(self._bundle.medications))
        self.logger.debug("medication_renamed", old_name=old_name, new_name=new_name)
        self._schedule_save()

    def delete_medication(self, name: str) -> None:
        """Remove a medication from the catalog, every day and the pattern."""

        def drop(meds: list[str]) -> list[str]:
            return [m for m in meds if m != name]

        self._bundle.health_data = {
            date: {
                label: entry.model_copy(update={"medications": drop(entry.medications)})
                for label, entry in day.items()
            }
            for date, day in self._bundle.health_data.items()
        }
        self._bundle.standard_pattern = prune_pattern(
            {label: drop(meds) for label, meds in self._bundle.standard_pattern.items()}
        )
        self._bundle.medications = drop(self._bundle.medications)
        self.logger.debug("medication_deleted", name=name)
        self._schedule_save()

    def set_standard_pattern(self, pattern: Mapping[str, list[str]]) -> None:
        """Replace the standard pattern; slots without medications are pruned."""
        self._bundle.standard_pattern = prune_pattern(
            {label: _dedupe(list(meds)) for label, meds in pattern.items()}
        )
        self._schedule_save()

    def import_bundle(self, raw: Any) -> UserDataBundle:
        """
        Replace all state with an imported bundle.

        Raises:
            InvalidBundleError: ``raw`` lacks ``healthData``, ``medications`` or
                ``standardPattern``, or one of them has the wrong kind.
        """
        return self._install(validate_bundle(raw).unwrap())

    def import_text(self, text: str | bytes) -> UserDataBundle:
        """Parse exported JSON text and import it."""
        return self._install(parse_bundle_text(text))

    def _install(self, bundle: UserDataBundle) -> UserDataBundle:
        self._bundle = bundle
        self.logger.info(
            "bundle_imported", days=len(bundle.health_data), medications=len(bundle.medications)
        )
        self._schedule_save()
        return self.bundle

    def export_json(self) -> str:
        return export_bundle(self._bundle)

    # Persistence

    def _schedule_save(self) -> None:
        self.debouncer.schedule(SAVE_KEY, self.config.save_debounce_seconds, self._save)

    async def _save(self) -> None:
        if self._state is not AuthState.READY or not self._api_key or not self._bin_id:
            self.logger.debug("save_skipped", state=self._state.value)
            return

        snapshot = self._bundle.model_copy(deep=True)
        self._saves_in_flight += 1
        try:
            await self.client.replace(self._api_key, self._bin_id, snapshot)
        except RemoteSaveError as e:
            self.logger.error("background_save_failed", error=str(e), status_code=e.status_code)
        finally:
            self._saves_in_flight -= 1

    async def flush(self) -> None:
        """Run a pending save now and wait for every save in flight."""
        await self.debouncer.flush()

    async def close(self) -> None:
        await self.flush()
        await self.client.aclose()

    @asynccontextmanager
    async def session(self) -> AsyncIterator["AppStore"]:
        """
        Start the store and guarantee pending saves are flushed on exit.

        Pattern: acquire on enter, flush and release on exit even when the
        body raises.
        """
        await self.start()
        try:
            yield self
        finally:
            await self.close()
