"""
Async HTTP client for the time tracker API, used by the GPS sampler and by
scripts driving the tracker from a device.

Reads retry rate limits, server errors and network errors, then fall back to
the last value cached for that read (or an empty result). Writes retry the
same errors but raise once the retries are used up, so the caller can surface
the failure.
"""

import logging
from typing import Any, Optional

import httpx

from fieldops.services.cache import TTLCache
from fieldops.services.retry import RAISE, retry_with_backoff

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


class TimeTrackerClient:
    def __init__(
        self,
        base_url: str,
        user_id: Optional[str] = None,
        token: Optional[str] = None,
        timeout: float = 15.0,
        max_retries: int = 3,
        initial_delay: float = 2.0,
        cache: Optional[TTLCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep=None,
    ):
        headers = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        elif user_id:
            headers["X-User-Id"] = str(user_id)

        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + API_PREFIX,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.cache = cache or TTLCache()
        self._retry_kwargs = {"sleep": sleep} if sleep else {}

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def aclose(self):
        await self._http.aclose()

    # ── plumbing ──

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        r = await self._http.request(method, path, **kwargs)
        r.raise_for_status()
        return r.json()

    async def _read(self, key: str, path: str, empty: Any, force_reload: bool = False, **kwargs) -> Any:
        cached = self.cache.get(key, force_reload=force_reload)
        if cached is not None:
            return cached

        miss = object()

        async def _call():
            return await self._request("GET", path, **kwargs)

        data = await retry_with_backoff(
            _call,
            max_retries=self.max_retries,
            initial_delay=self.initial_delay,
            fallback=miss,
            **self._retry_kwargs,
        )
        if data is miss:
            last = self.cache.last(key)
            logger.warning("Read %s failed, serving %s", path, "cached value" if last is not None else "empty result")
            return last if last is not None else empty

        self.cache.set(key, data)
        return data

    async def _write(self, method: str, path: str, payload: Optional[dict] = None) -> Any:
        async def _call():
            return await self._request(method, path, json=payload)

        return await retry_with_backoff(
            _call,
            max_retries=self.max_retries,
            initial_delay=self.initial_delay,
            fallback=RAISE,
            **self._retry_kwargs,
        )

    # ── reads ──

    async def get_settings(self, force_reload: bool = False) -> dict:
        return await self._read("settings", "/time-tracker/settings", {}, force_reload)

    async def get_active_timesheet(self) -> Optional[dict]:
        # Active state changes with every write; never served from a fresh cache hit
        data = await self._read("active", "/time-tracker/active", {"timesheet": None}, force_reload=True)
        return data.get("timesheet")

    async def list_work_orders(self, status: Optional[str] = None, force_reload: bool = False) -> list:
        params = {"status": status} if status else {}
        key = f"work_orders:{status or 'all'}"
        return await self._read(key, "/work-orders", [], force_reload, params=params)

    # ── writes ──

    async def clock_in(self, **payload) -> dict:
        data = await self._write("POST", "/time-tracker/clock-in", payload)
        self.cache.delete("active")
        return data

    async def clock_out(self, **payload) -> dict:
        data = await self._write("POST", "/time-tracker/clock-out", payload)
        self.cache.delete("active")
        return data

    async def switch_work_order(self, work_order_id: str, **payload) -> dict:
        payload["work_order_id"] = str(work_order_id)
        data = await self._write("POST", "/time-tracker/switch", payload)
        self.cache.delete("active")
        return data

    async def add_tracking_point(self, lat: float, lon: float) -> dict:
        return await self._write("POST", "/time-tracker/tracking-points", {"lat": lat, "lon": lon})

    async def reverse_geocode(self, lat: float, lon: float) -> dict:
        return await self._write("POST", "/geocode/reverse", {"lat": lat, "lon": lon})
