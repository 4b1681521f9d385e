from fastapi import APIRouter, Depends

from smartalbums.dependencies import get_smart_album_service
from smartalbums.schemas.jobs import JobResult, MatchSmartAlbumsJob
from smartalbums.services.smart_album_service import SmartAlbumService

router = APIRouter(prefix="/jobs", tags=["jobs"])

@router.post("/smart-albums/match", response_model=JobResult)
async def match_smart_albums(body: MatchSmartAlbumsJob,
                             svc: SmartAlbumService = Depends(get_smart_album_service)) -> JobResult:
    status = await svc.handle_match_smart_albums(body)
    return JobResult(status=status)
