import os
import logging
from typing import Optional

import httpx
from fastapi import HTTPException

from fieldops.services.cache import TTLCache
from fieldops.services.retry import retry_with_backoff

logger = logging.getLogger(__name__)

GOOGLE_GEOCODING_API_KEY = os.getenv("GOOGLE_GEOCODING_API_KEY", "").strip()
GEOCODE_URL = os.getenv("GEOCODE_URL", "https://maps.googleapis.com/maps/api/geocode/json").strip()
GEOCODE_TIMEOUT = float(os.getenv("GEOCODE_TIMEOUT", "10"))

_address_cache = TTLCache()


def _cache_key(lat: float, lon: float) -> tuple:
    # ~11 m grid; neighbouring samples share an address
    return round(lat, 4), round(lon, 4)


async def reverse_geocode(
    lat: float,
    lon: float,
    api_key: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict:
    """Return {"address": str, "success": bool, "error"?: str} for a coordinate pair."""
    key = api_key if api_key is not None else GOOGLE_GEOCODING_API_KEY
    if not key:
        raise HTTPException(status_code=503, detail="Geocoding not configured. Set GOOGLE_GEOCODING_API_KEY.")

    cached = _address_cache.get(_cache_key(lat, lon))
    if cached:
        return {"address": cached, "success": True}

    async with httpx.AsyncClient(timeout=GEOCODE_TIMEOUT, transport=transport) as client:
        async def _fetch():
            r = await client.get(GEOCODE_URL, params={"latlng": f"{lat},{lon}", "key": key})
            r.raise_for_status()
            return r.json()

        data = await retry_with_backoff(_fetch, fallback=None)

    if data is None:
        return {"address": f"{lat}, {lon}", "success": False, "error": "UNAVAILABLE"}

    if data.get("status") == "OK" and data.get("results"):
        address = data["results"][0].get("formatted_address")
        if address:
            _address_cache.set(_cache_key(lat, lon), address)
            return {"address": address, "success": True}

    logger.info("Reverse geocode returned %s for %s,%s", data.get("status"), lat, lon)
    return {"address": f"{lat}, {lon}", "success": False, "error": data.get("status") or "NO_RESULTS"}


def clear_cache():
    _address_cache.clear()
