# services/drive_service/app/dependencies.py
from fastapi import Depends, HTTPException, Request, status
from typing import Optional

from core.config import settings, logger as core_logger
from core.models import UserDocument
from . import auth

logger = core_logger.getChild("DriveService").getChild("Dependencies")


def get_session_token(request: Request) -> Optional[str]:
    """Session token from the session cookie, or from an `Authorization: Bearer` header for API clients."""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


async def require_current_user(token: Optional[str] = Depends(get_session_token)) -> UserDocument:
    """Dependency resolving the signed-in user, raising 401 when there is none."""
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No session")
    try:
        user = await auth.get_current_user(token)
    except Exception as e:
        logger.error(f"Failed to resolve current user: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to load current user")
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user
