"""
Remote document client for a jsonbin.io style JSON store.

Two calls make up the whole protocol:
- ``GET {base}/{bin_id}/latest`` returns the raw bundle, or 404 when the bin
  has never been written.
- ``PUT {base}/{bin_id}`` replaces the whole document.
There is no retry: a PUT is a full replace, so resending current state later
is always safe.
"""

from types import TracebackType
from typing import Any

import httpx
import structlog

from healthlog.config import RemoteConfig
from healthlog.domain.errors import RemoteFetchError, RemoteSaveError
from healthlog.domain.models import UserDataBundle
from healthlog.services.bundle_io import load_bundle_lenient

logger = structlog.get_logger(__name__)


class JsonBinClient:
    """Fetch and replace a single bundle document."""

    def __init__(
        self,
        config: RemoteConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or RemoteConfig()
        self.logger = logger.bind(component="jsonbin_client")
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "JsonBinClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_latest(self, api_key: str, bin_id: str) -> Any | None:
        """Return the decoded document, ``None`` if it does not exist yet."""
        response = await self._client.get(
            f"/{bin_id}/latest",
            headers={"X-Master-Key": api_key, "X-Bin-Meta": "false"},
        )
        if response.status_code == 404:
            self.logger.info("bin_not_found", bin_id=bin_id)
            return None
        if not response.is_success:
            raise RemoteFetchError(response.status_code, response.reason_phrase)
        if not response.text:
            return None
        return response.json()

    async def fetch(
        self, api_key: str, bin_id: str, default: UserDataBundle
    ) -> UserDataBundle:
        """
        Load the bundle, never failing.

        A missing bin yields ``default``. Any other failure, whether a bad
        status, a transport error or an unparsable body, is logged and
        ``default`` is returned so the caller can carry on.
        """
        try:
            raw = await self._get_latest(api_key, bin_id)
        except RemoteFetchError as e:
            self.logger.error(
                "bundle_fetch_failed", bin_id=bin_id, status_code=e.status_code, error=str(e)
            )
            return default.model_copy(deep=True)
        except (httpx.HTTPError, ValueError) as e:
            self.logger.error("bundle_fetch_failed", bin_id=bin_id, error=str(e))
            return default.model_copy(deep=True)

        if raw is None:
            return default.model_copy(deep=True)

        bundle = load_bundle_lenient(raw, default)
        self.logger.info(
            "bundle_fetched",
            bin_id=bin_id,
            days=len(bundle.health_data),
            medications=len(bundle.medications),
        )
        return bundle

    async def replace(self, api_key: str, bin_id: str, bundle: UserDataBundle) -> None:
        """Overwrite the document with ``bundle``. Raises ``RemoteSaveError`` on failure."""
        try:
            response = await self._client.put(
                f"/{bin_id}",
                headers={"X-Master-Key": api_key, "Content-Type": "application/json"},
                json=bundle.to_json_dict(),
            )
        except httpx.HTTPError as e:
            self.logger.error("bundle_save_failed", bin_id=bin_id, error=str(e))
            raise RemoteSaveError(f"Failed to save data to document store: {e}") from e

        if not response.is_success:
            self.logger.error(
                "bundle_save_failed", bin_id=bin_id, status_code=response.status_code
            )
            raise RemoteSaveError(
                f"Failed to save data to document store: {response.reason_phrase}",
                status_code=response.status_code,
            )

        self.logger.info("bundle_saved", bin_id=bin_id, days=len(bundle.health_data))
