# crisis router: hotline resources and on-demand risk checks

import logging

from fastapi import APIRouter, Depends

from app.dependencies import get_current_user
from app.models.crisis import DEFAULT_RESOURCES, CrisisAlert, CrisisCheckRequest, CrisisResource
from app.services import crisis_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/crisis", tags=["crisis"])


@router.get("/resources", response_model=list[CrisisResource])
async def get_resources():
    """public list of crisis hotlines, no sign-in needed"""
    return DEFAULT_RESOURCES


@router.post("/check", response_model=CrisisAlert)
async def check_text(
    body: CrisisCheckRequest,
    current_user: dict = Depends(get_current_user),
):
    """assess a piece of text. resources are attached only when a crisis is flagged."""
    assessment = await crisis_service.assess(body.text)
    alert = crisis_service.to_alert(assessment)
    if alert is not None:
        logger.warning(f"Crisis check flagged text for user {current_user['id']}")
        return alert
    return CrisisAlert(**assessment.model_dump())
