# services/drive_service/app/auth.py
"""
One-time email code authentication on top of Supabase Auth.

Sign-up and sign-in both end with an emailed six digit code. Verifying the
code yields a Supabase session whose access token becomes the session cookie.
User profiles live in the users table and are linked to the auth account on
first verification.
"""
import asyncio
from typing import Optional, Tuple

from supabase import AuthError

from core.config import settings, logger as core_logger
from core.models import AccountResponse, UserDocument
from core.supabase_client import create_auth_client
from . import crud

logger = core_logger.getChild("DriveService").getChild("Auth")


class UserNotFoundError(LookupError):
    """No user document exists for the given email."""


class InvalidOtpError(Exception):
    """The emailed code was wrong, expired, or already used."""


async def send_email_otp(email: str, create_user: bool = True) -> None:
    """Asks Supabase Auth to email a one-time code to `email`."""
    client = await create_auth_client()
    try:
        await asyncio.to_thread(
            client.auth.sign_in_with_otp,
            {"email": email, "options": {"should_create_user": create_user}}
        )
    except AuthError as e:
        logger.error(f"[{email}] Failed to send email OTP: {e}", exc_info=False)
        raise
    logger.info(f"[{email}] Email OTP sent.")


async def create_account(full_name: str, email: str) -> AccountResponse:
    """Sends a code and creates the user document if this email is new."""
    email = email.lower()
    existing_user = await crud.get_user_by_email(email)

    await send_email_otp(email, create_user=True)

    if existing_user:
        logger.info(f"[{email}] Sign-up for an existing user, code sent.")
        return AccountResponse(account_id=existing_user.account_id, email=email)

    user = await crud.create_user(full_name=full_name, email=email, avatar=settings.AVATAR_PLACEHOLDER_URL)
    return AccountResponse(account_id=user.account_id, email=email)


async def sign_in_user(email: str) -> AccountResponse:
    """Sends a code to a known user. Raises UserNotFoundError for unknown emails."""
    email = email.lower()
    existing_user = await crud.get_user_by_email(email)
    if not existing_user:
        logger.info(f"[{email}] Sign-in attempt for unknown user.")
        raise UserNotFoundError("User not found")

    # Profiles created before their first verification have no auth account yet
    await send_email_otp(email, create_user=existing_user.account_id is None)
    return AccountResponse(account_id=existing_user.account_id, email=email)


async def verify_secret(email: str, otp: str) -> Tuple[object, UserDocument]:
    """
    Verifies an emailed code and returns (session, user document).
    The session's access token is what callers store in the session cookie.
    """
    email = email.lower()
    user = await crud.get_user_by_email(email)
    if not user:
        raise UserNotFoundError("User not found")

    client = await create_auth_client()
    try:
        response = await asyncio.to_thread(
            client.auth.verify_otp,
            {"email": email, "token": otp, "type": "email"}
        )
    except AuthError as e:
        logger.warning(f"[{email}] OTP verification failed: {e}")
        raise InvalidOtpError("Invalid or expired code") from e

    if not response.session or not response.user:
        raise InvalidOtpError("Invalid or expired code")

    account_id = response.user.id
    if user.account_id != account_id:
        if user.account_id:
            logger.warning(f"[{email}] Auth account changed from {user.account_id} to {account_id}, relinking.")
        user = await crud.link_account(user.id, account_id)

    logger.info(f"[{email}] Session created for account {account_id}.")
    return response.session, user


async def get_current_user(access_token: Optional[str]) -> Optional[UserDocument]:
    """Resolves the user document behind a session token. Returns None for missing or invalid tokens."""
    if not access_token:
        return None

    client = await create_auth_client()
    try:
        result = await asyncio.to_thread(client.auth.get_user, access_token)
    except AuthError as e:
        logger.info(f"Session token rejected: {e}")
        return None

    if not result or not result.user:
        return None
    return await crud.get_user_by_account_id(result.user.id)


async def sign_out_user(access_token: str) -> None:
    """Revokes the session behind `access_token` on Supabase Auth."""
    client = await create_auth_client()
    try:
        await asyncio.to_thread(client.auth.admin.sign_out, access_token)
    except AuthError as e:
        logger.error(f"Failed to sign out user: {e}", exc_info=False)
        raise
    logger.info("Session revoked.")
