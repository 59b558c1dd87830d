# services/drive_service/app/routers/dashboard.py
from fastapi import APIRouter, Depends, HTTPException
import logging

from core.models import ApiResponse, UserDocument
from .. import logic
from ..dependencies import require_current_user

logger = logging.getLogger("Drive_Core").getChild("DriveService").getChild("DashboardRouter")

router = APIRouter()


@router.get("/usage", response_model=ApiResponse)
async def usage(user: UserDocument = Depends(require_current_user)):
    """Storage used per category, against the user's quota."""
    try:
        data = await logic.get_dashboard_usage(user)
    except Exception as e:
        logger.error(f"[{user.id}] Error calculating total space used: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error calculating total space used")
    return ApiResponse(status="success", data=data)
