from fastapi import APIRouter

from townmatch.api.v1 import geocode, locations

api_router = APIRouter()

api_router.include_router(geocode.router, prefix="/geocode", tags=["geocode"])
api_router.include_router(locations.router, prefix="/locations", tags=["locations"])
