"""Shared test doubles and fixtures."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from healthlog.config import StoreConfig
from healthlog.domain.errors import RemoteSaveError
from healthlog.domain.models import UserDataBundle
from healthlog.services.preferences import LocalPreferenceStore
from healthlog.services.store import API_KEY_PREFERENCE, BIN_ID_PREFERENCE, AppStore


class FakeJsonBinClient:
    """Test double with the JsonBinClient interface that records every call."""

    def __init__(
        self,
        remote: UserDataBundle | None = None,
        fail_saves: bool = False,
        save_delay_seconds: float = 0.0,
    ) -> None:
        self.remote = remote
        self.fail_saves = fail_saves
        self.save_delay_seconds = save_delay_seconds
        self.fetch_calls: list[tuple[str, str]] = []
        self.saved: list[UserDataBundle] = []
        self.save_times: list[float] = []
        self.closed = False

    async def fetch(self, api_key: str, bin_id: str, default: UserDataBundle) -> UserDataBundle:
        self.fetch_calls.append((api_key, bin_id))
        if self.remote is None:
            return default.model_copy(deep=True)
        return self.remote.model_copy(deep=True)

    async def replace(self, api_key: str, bin_id: str, bundle: UserDataBundle) -> None:
        self.save_times.append(asyncio.get_running_loop().time())
        if self.save_delay_seconds > 0:
            await asyncio.sleep(self.save_delay_seconds)
        if self.fail_saves:
            raise RemoteSaveError("Failed to save data to document store: Bad Gateway", 502)
        self.saved.append(bundle)

    async def aclose(self) -> None:
        self.closed = True


def make_store(
    client: FakeJsonBinClient | None = None,
    preferences_path: Path | None = None,
    debounce_seconds: float = 2.0,
) -> AppStore:
    return AppStore(
        client or FakeJsonBinClient(),  # type: ignore[arg-type]
        LocalPreferenceStore(preferences_path or Path("unused-preferences.json")),
        StoreConfig(save_debounce_seconds=debounce_seconds),
    )


@pytest.fixture
def preferences_path(tmp_path: Path) -> Path:
    return tmp_path / "preferences.json"


@pytest.fixture
def fake_client() -> FakeJsonBinClient:
    return FakeJsonBinClient()


@pytest.fixture
async def ready_store(fake_client: FakeJsonBinClient, preferences_path: Path) -> AppStore:
    """A logged-in store with a short debounce so timing tests stay fast."""
    store = make_store(fake_client, preferences_path, debounce_seconds=0.2)
    await store.login("test-key", "test-bin")
    return store


def remember_credentials(path: Path, api_key: str = "test-key", bin_id: str = "test-bin") -> None:
    preferences = LocalPreferenceStore(path)
    preferences.write(API_KEY_PREFERENCE, api_key)
    preferences.write(BIN_ID_PREFERENCE, bin_id)
