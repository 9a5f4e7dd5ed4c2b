from fastapi import APIRouter, Depends

from fieldops.dependencies import get_current_user
from fieldops.models.user import User
from fieldops.schemas.time_tracker import Coords
from fieldops.services.geocoding import reverse_geocode

router = APIRouter(prefix="/api/v1/geocode", tags=["Geocode"])


@router.post("/reverse")
async def reverse(body: Coords, user: User = Depends(get_current_user)):
    return await reverse_geocode(body.lat, body.lon)
