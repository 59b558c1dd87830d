# services/drive_service/app/routers/auth.py
from fastapi import APIRouter, Body, Depends, HTTPException, Response
from typing import Optional
import logging

from core.config import settings
from core.models import (
    ApiResponse, SessionResponse, SignInRequest, SignUpRequest, UserDocument, VerifyOtpRequest
)
from .. import auth as auth_logic
from ..dependencies import get_session_token, require_current_user
from ..main import rate_limiter

logger = logging.getLogger("Drive_Core").getChild("DriveService").getChild("AuthRouter")

router = APIRouter()


@router.post("/sign-up", response_model=ApiResponse, dependencies=[Depends(rate_limiter)])
async def sign_up(payload: SignUpRequest = Body(...)):
    """Creates the user profile if needed and emails a one-time code."""
    logger.info(f"Sign-up request for {payload.email}")
    try:
        account = await auth_logic.create_account(full_name=payload.full_name, email=payload.email)
    except Exception as e:
        logger.error(f"Failed to create account for {payload.email}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create account")
    return ApiResponse(status="success", data=account, message="Verification code sent")


@router.post("/sign-in", response_model=ApiResponse, dependencies=[Depends(rate_limiter)])
async def sign_in(payload: SignInRequest = Body(...)):
    """Emails a one-time code to an existing user."""
    logger.info(f"Sign-in request for {payload.email}")
    try:
        account = await auth_logic.sign_in_user(payload.email)
    except auth_logic.UserNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    except Exception as e:
        logger.error(f"Failed to sign in {payload.email}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to sign in user")
    return ApiResponse(status="success", data=account, message="Verification code sent")


@router.post("/verify", response_model=ApiResponse, dependencies=[Depends(rate_limiter)])
async def verify(response: Response, payload: VerifyOtpRequest = Body(...)):
    """Exchanges an emailed code for a session and stores it in an HTTP-only cookie."""
    try:
        session, user = await auth_logic.verify_secret(payload.email, payload.otp)
    except auth_logic.UserNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    except auth_logic.InvalidOtpError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to verify OTP for {payload.email}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to verify OTP")

    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session.access_token,
        path="/",
        httponly=True,
        samesite="strict",
        secure=settings.SESSION_COOKIE_SECURE,
        max_age=session.expires_in or None,
    )
    data = SessionResponse(account_id=user.account_id, user=user, expires_at=session.expires_at)
    return ApiResponse(status="success", data=data, message="Signed in")


@router.post("/sign-out", response_model=ApiResponse)
async def sign_out(response: Response, token: Optional[str] = Depends(get_session_token)):
    """Revokes the session and clears the cookie. The cookie is cleared even if revocation fails."""
    message = "Signed out"
    if token:
        try:
            await auth_logic.sign_out_user(token)
        except Exception as e:
            logger.error(f"Failed to revoke session: {e}", exc_info=False)
            message = "Signed out locally; session revocation failed"
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME, path="/")
    return ApiResponse(status="success", message=message)


@router.get("/me", response_model=ApiResponse)
async def me(user: UserDocument = Depends(require_current_user)):
    return ApiResponse(status="success", data=user)
