from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from townmatch.api.deps import get_resolver
from townmatch.config import settings
from townmatch.services.geocoding_service import AddressResolver

router = APIRouter()


class BatchGeocodeRequest(BaseModel):
    addresses: list[str]


@router.get("")
async def geocode(address: str, resolver: AddressResolver = Depends(get_resolver)):
    if not address.strip():
        raise HTTPException(status_code=422, detail="address must not be empty")
    result = await resolver.resolve(address)
    return result.to_dict()


@router.post("/batch")
async def geocode_batch(req: BatchGeocodeRequest, resolver: AddressResolver = Depends(get_resolver)):
    if len(req.addresses) > settings.max_batch_size:
        raise HTTPException(
            status_code=422,
            detail=f"At most {settings.max_batch_size} addresses per request",
        )
    results = await resolver.resolve_many(req.addresses)
    return {"results": [r.to_dict() for r in results]}
