from fastapi import APIRouter, Depends, HTTPException

from townmatch.api.deps import get_resolver
from townmatch.services.geocoding_service import AddressResolver
from townmatch.utils.japanese_address import PREFECTURES

router = APIRouter()


@router.get("/prefectures")
async def list_prefectures():
    return list(PREFECTURES)


@router.get("/cities")
async def list_cities(prefecture: str, resolver: AddressResolver = Depends(get_resolver)):
    if prefecture not in PREFECTURES:
        raise HTTPException(status_code=404, detail=f"Unknown prefecture '{prefecture}'")
    return await resolver.gazetteer.get_city_names(prefecture)


@router.get("/towns")
async def list_towns(
    prefecture: str,
    city: str,
    resolver: AddressResolver = Depends(get_resolver),
):
    towns = await resolver.gazetteer.get_town_list(prefecture, city)
    return [
        {
            "lg_code": t.lg_code,
            "town_id": t.town_id,
            "name": t.name,
            "koaza": t.koaza,
            "lat": t.lat,
            "lon": t.lon,
        }
        for t in towns
    ]
