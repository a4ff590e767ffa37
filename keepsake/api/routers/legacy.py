"""
Legacy routes: deceased confirmation and released media.
"""

import uuid
from dataclasses import asdict

from fastapi import APIRouter, Depends

from keepsake.api.deps import get_current_user, get_media_access, get_release_orchestrator
from keepsake.core.logging import get_logger
from keepsake.models.user import User
from keepsake.schemas.legacy import ConfirmDeceasedRequest, ConfirmDeceasedResponse, ReleasedVideoRead
from keepsake.services.legacy.media import MediaAccess
from keepsake.services.legacy.release import ReleaseOrchestrator

logger = get_logger(__name__)

router = APIRouter()


@router.post("/confirm-deceased", response_model=ConfirmDeceasedResponse)
def confirm_deceased(
    request: ConfirmDeceasedRequest,
    user: User = Depends(get_current_user),
    orchestrator: ReleaseOrchestrator = Depends(get_release_orchestrator),
) -> ConfirmDeceasedResponse:
    """
    Confirm that an owner has passed away and release their legacy videos.

    Repeating the call after success returns already_confirmed=true.
    """
    result = orchestrator.confirm_deceased(user.id, request)
    return ConfirmDeceasedResponse(
        success=result.success,
        already_confirmed=result.already_confirmed,
        confirmation_id=result.confirmation_id,
        message=result.message,
    )


@router.get("/owners/{owner_id}/videos", response_model=list[ReleasedVideoRead])
def released_videos(
    owner_id: uuid.UUID,
    user: User = Depends(get_current_user),
    media: MediaAccess = Depends(get_media_access),
) -> list[ReleasedVideoRead]:
    return [ReleasedVideoRead(**asdict(v)) for v in media.released_videos_for(user, owner_id)]
