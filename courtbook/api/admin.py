"""Administrative endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from courtbook.core.database import get_db
from courtbook.schemas.reservation import ReleaseResult
from courtbook.services.sweeper import release_expired_holds

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/holds/release-expired", response_model=ReleaseResult)
async def release_expired(db: AsyncSession = Depends(get_db)):
    """Release expired holds now instead of waiting for the next sweep."""
    released = await release_expired_holds(db)
    return ReleaseResult(released=released)
