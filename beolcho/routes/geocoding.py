"""Geocoding proxy for the map picker.

Keyword and address search against the Kakao Local API. Proxied through
the backend so the REST key never reaches the browser.
"""

import logging
from typing import Optional

import httpx
from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from .. import config

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/geocoding", tags=["Geocoding"])


class Place(BaseModel):
    lat: float
    lng: float
    address: str
    placeName: Optional[str] = None


class PlaceSearchResponse(BaseModel):
    results: list[Place]


def _parse_documents(documents: list[dict]) -> list[Place]:
    places = []
    for doc in documents:
        try:
            lat, lng = float(doc["y"]), float(doc["x"])
        except (KeyError, TypeError, ValueError):
            continue
        address = doc.get("road_address_name") or doc.get("address_name") or ""
        if isinstance(doc.get("road_address"), dict):
            address = doc["road_address"].get("address_name") or address
        places.append(Place(lat=lat, lng=lng, address=address, placeName=doc.get("place_name")))
    return places


@router.get("/search", response_model=PlaceSearchResponse)
async def search_places(
    query: str = Query(..., description="Place name or address, e.g. 성주군 성주읍"),
    size: int = Query(10, ge=1, le=15),
):
    query = (query or "").strip()
    if len(query) < 2:
        return PlaceSearchResponse(results=[])

    if not config.KAKAO_REST_API_KEY:
        logger.error("❌ KAKAO_REST_API_KEY not configured")
        raise HTTPException(status_code=500, detail="Geocoding not configured")

    headers = {"Authorization": f"KakaoAK {config.KAKAO_REST_API_KEY}"}
    params = {"query": query, "size": str(size)}

    try:
        async with httpx.AsyncClient(base_url=config.KAKAO_LOCAL_BASE_URL, timeout=8.0) as client:
            # Keyword search first; fall back to address search for plain addresses
            resp = await client.get("/v2/local/search/keyword.json", params=params, headers=headers)
            if resp.status_code >= 400:
                logger.warning(f"Kakao keyword search error {resp.status_code}: {resp.text[:200]}")
                raise HTTPException(status_code=502, detail="Geocoding provider error")
            places = _parse_documents(resp.json().get("documents", []))

            if not places:
                resp = await client.get("/v2/local/search/address.json", params=params, headers=headers)
                if resp.status_code >= 400:
                    logger.warning(f"Kakao address search error {resp.status_code}: {resp.text[:200]}")
                    raise HTTPException(status_code=502, detail="Geocoding provider error")
                places = _parse_documents(resp.json().get("documents", []))
    except httpx.HTTPError as e:
        logger.error(f"❌ Kakao Local request failed: {e}")
        raise HTTPException(status_code=502, detail="Geocoding provider unavailable") from e

    return PlaceSearchResponse(results=places)
