import asyncio

import httpx
import pytest
from fastapi import HTTPException

from fieldops.services.geocoding import reverse_geocode


def _transport(payload, calls):
    def handler(request: httpx.Request):
        calls.append(request)
        return httpx.Response(200, json=payload)
    return httpx.MockTransport(handler)


def test_returns_first_formatted_address():
    calls = []
    transport = _transport({"status": "OK", "results": [
        {"formatted_address": "Dam 1, 1012 JS Amsterdam"},
        {"formatted_address": "Amsterdam"},
    ]}, calls)

    result = asyncio.run(reverse_geocode(52.3731, 4.8926, api_key="k", transport=transport))

    assert result == {"address": "Dam 1, 1012 JS Amsterdam", "success": True}
    assert calls[0].url.params["latlng"] == "52.3731,4.8926"
    assert calls[0].url.params["key"] == "k"


def test_nearby_lookups_hit_the_cache():
    calls = []
    transport = _transport({"status": "OK", "results": [{"formatted_address": "Dam 1"}]}, calls)
    asyncio.run(reverse_geocode(52.37311, 4.89261, api_key="k", transport=transport))
    again = asyncio.run(reverse_geocode(52.37312, 4.89262, api_key="k", transport=transport))
    assert again["address"] == "Dam 1"
    assert len(calls) == 1


def test_no_results_falls_back_to_coordinates():
    calls = []
    transport = _transport({"status": "ZERO_RESULTS", "results": []}, calls)
    result = asyncio.run(reverse_geocode(0.0, 0.0, api_key="k", transport=transport))
    assert result == {"address": "0.0, 0.0", "success": False, "error": "ZERO_RESULTS"}


def test_missing_api_key():
    with pytest.raises(HTTPException) as exc:
        asyncio.run(reverse_geocode(1.0, 1.0, api_key=""))
    assert exc.value.status_code == 503


def test_geocode_endpoint_validates_coordinates(client, worker, headers):
    r = client.post("/api/v1/geocode/reverse", headers=headers(worker), json={"lat": 200, "lon": 0})
    assert r.status_code == 422
