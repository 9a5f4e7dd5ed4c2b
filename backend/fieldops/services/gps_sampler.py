"""
Periodic GPS sampling for active field-work sessions.

One LocationWatch receives every fix from the device's location provider. The
GpsSampler task reads the latest fix on a fixed interval and posts it as a
tracking point on the user's active timesheet. Sampling happens immediately on
start and then every `interval_minutes`.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from fieldops.services.tracker_client import TimeTrackerClient

logger = logging.getLogger(__name__)

FIELD_WORK = "field_work"


@dataclass(frozen=True)
class Fix:
    lat: float
    lon: float
    received_at: datetime


class LocationWatch:
    def __init__(self, client: Optional[TimeTrackerClient] = None):
        self._client = client
        self._fix: Optional[Fix] = None
        self.address: Optional[str] = None
        self.last_error: Optional[str] = None

    def update(self, lat: float, lon: float, at: Optional[datetime] = None):
        self._fix = Fix(lat, lon, at or datetime.now(timezone.utc))
        self.last_error = None

    def fail(self, error: str):
        # keep the previous fix; a dropped signal should not stop sampling
        self.last_error = error
        logger.info("Location watch error: %s", error)

    def current(self) -> Optional[Fix]:
        return self._fix

    async def resolve_address(self) -> Optional[str]:
        """Best effort. Falls back to "lat, lon" text when geocoding fails."""
        fix = self._fix
        if fix is None:
            return None
        fallback = f"{fix.lat}, {fix.lon}"
        if self._client is None:
            self.address = fallback
            return self.address
        try:
            result = await self._client.reverse_geocode(fix.lat, fix.lon)
            self.address = result.get("address") or fallback
        except Exception as e:
            logger.info("Reverse geocode failed: %s", e)
            self.address = fallback
        return self.address


class GpsSampler:
    def __init__(
        self,
        client: TimeTrackerClient,
        watch: LocationWatch,
        interval_minutes: float,
        track_gps: bool = True,
    ):
        self.client = client
        self.watch = watch
        self.interval_minutes = interval_minutes
        self.track_gps = track_gps
        self._task: Optional[asyncio.Task] = None
        self._stop: Optional[asyncio.Event] = None

    @property
    def enabled(self) -> bool:
        return bool(self.track_gps) and bool(self.interval_minutes) and self.interval_minutes > 0

    async def sample_once(self) -> bool:
        """Post the current fix. Returns True when a point was recorded."""
        if not self.enabled:
            return False

        active = await self.client.get_active_timesheet()
        if not active or active.get("timesheet_type") != FIELD_WORK:
            return False

        fix = self.watch.current()
        if fix is None:
            logger.debug("No location fix yet, skipping sample")
            return False

        await self.client.add_tracking_point(fix.lat, fix.lon)
        logger.debug("Tracking point posted (%s, %s)", fix.lat, fix.lon)
        return True

    async def run(self, stop: asyncio.Event):
        if not self.enabled:
            logger.info("GPS sampling disabled (track_gps=%s, interval=%s)", self.track_gps, self.interval_minutes)
            return

        interval = self.interval_minutes * 60
        while not stop.is_set():
            try:
                await self.sample_once()
            except Exception as e:
                logger.warning("GPS sample failed: %s", e)
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                continue

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._stop = asyncio.Event()
            self._task = asyncio.create_task(self.run(self._stop))
        return self._task

    async def stop(self):
        if self._task is None:
            return
        self._stop.set()
        try:
            await self._task
        finally:
            self._task = None
