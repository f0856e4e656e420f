# eosbridge/vmix_client.py
# -----------------------------------------------------------------------------
# Bridge -> vMix (HTTP API)
# Fires GET <base>?Function=<fn>&Value=<value> at the vMix web API using a
# shared httpx.AsyncClient. No retries, no response parsing: a call counts as
# successful when it completes without a transport error. The status code is
# logged but never interpreted.
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
import time
from typing import Optional

import httpx

log = logging.getLogger("bridge.vmix")


class VmixClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout_ms: int = 2000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout_ms / 1000.0
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        # Observability counters
        self.calls_ok = 0
        self.calls_failed = 0

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "VmixClient":
        await self.start()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.stop()

    def url_for(self, function: str, value: str) -> str:
        return f"{self.base_url}?Function={function}&Value={value}"

    async def get(self, url: str) -> bool:
        """Issue a GET; True if the request completed, False on a transport error or bad URL."""
        if self._client is None:
            await self.start()
        assert self._client is not None

        t0 = time.perf_counter()
        try:
            resp = await self._client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self.calls_failed += 1
            log.warning("GET %s failed: %s: %s", url, type(e).__name__, e)
            return False

        self.calls_ok += 1
        log.info(
            "GET %s -> %s (%.1f ms)",
            url, resp.status_code, (time.perf_counter() - t0) * 1000,
        )
        return True

    # ----------------------- vMix functions -----------------------

    async def select_row(self, data_source: str, index: int) -> bool:
        return await self.get(self.url_for("DataSourceSelectRow", f"{data_source},{index}"))

    async def start_script(self, name: str) -> bool:
        return await self.get(self.url_for("ScriptStart", name))
