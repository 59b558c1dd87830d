import pytest
from unittest.mock import patch, AsyncMock, MagicMock

from supabase import AuthError

from core.config import settings
from services.drive_service.app import auth

AUTH = "services.drive_service.app.auth"


class SimulatedAuthError(AuthError):
    def __init__(self, message="Simulated auth error"):
        Exception.__init__(self, message)


def _auth_client():
    return MagicMock()

# --- create_account ---

@pytest.mark.asyncio
async def test_create_account_new_user(user):
    client = _auth_client()
    with patch(f"{AUTH}.create_auth_client", new_callable=AsyncMock, return_value=client), \
         patch(f"{AUTH}.crud.get_user_by_email", new_callable=AsyncMock) as mock_get, \
         patch(f"{AUTH}.crud.create_user", new_callable=AsyncMock) as mock_create:
        mock_get.return_value = None
        mock_create.return_value = user.model_copy(update={"account_id": None})

        result = await auth.create_account("Ada Lovelace", "Ada@Example.com")

        client.auth.sign_in_with_otp.assert_called_once_with(
            {"email": "ada@example.com", "options": {"should_create_user": True}}
        )
        mock_create.assert_called_once_with(
            full_name="Ada Lovelace", email="ada@example.com", avatar=settings.AVATAR_PLACEHOLDER_URL
        )
        assert result.email == "ada@example.com"
        assert result.account_id is None

@pytest.mark.asyncio
async def test_create_account_existing_user_only_sends_code(user):
    client = _auth_client()
    with patch(f"{AUTH}.create_auth_client", new_callable=AsyncMock, return_value=client), \
         patch(f"{AUTH}.crud.get_user_by_email", new_callable=AsyncMock) as mock_get, \
         patch(f"{AUTH}.crud.create_user", new_callable=AsyncMock) as mock_create:
        mock_get.return_value = user

        result = await auth.create_account("Ada Lovelace", "ada@example.com")

        mock_create.assert_not_called()
        client.auth.sign_in_with_otp.assert_called_once()
        assert result.account_id == "acc-1"

@pytest.mark.asyncio
async def test_create_account_otp_failure_propagates():
    client = _auth_client()
    client.auth.sign_in_with_otp.side_effect = SimulatedAuthError()
    with patch(f"{AUTH}.create_auth_client", new_callable=AsyncMock, return_value=client), \
         patch(f"{AUTH}.crud.get_user_by_email", new_callable=AsyncMock, return_value=None), \
         patch(f"{AUTH}.crud.create_user", new_callable=AsyncMock) as mock_create:
        with pytest.raises(AuthError):
            await auth.create_account("Ada Lovelace", "ada@example.com")
        mock_create.assert_not_called()

# --- sign_in_user ---

@pytest.mark.asyncio
async def test_sign_in_user_unknown_email():
    with patch(f"{AUTH}.crud.get_user_by_email", new_callable=AsyncMock, return_value=None), \
         patch(f"{AUTH}.create_auth_client", new_callable=AsyncMock) as mock_client:
        with pytest.raises(auth.UserNotFoundError):
            await auth.sign_in_user("ghost@example.com")
        mock_client.assert_not_called()

@pytest.mark.asyncio
async def test_sign_in_user_existing(user):
    client = _auth_client()
    with patch(f"{AUTH}.crud.get_user_by_email", new_callable=AsyncMock, return_value=user), \
         patch(f"{AUTH}.create_auth_client", new_callable=AsyncMock, return_value=client):
        result = await auth.sign_in_user("ada@example.com")

        client.auth.sign_in_with_otp.assert_called_once_with(
            {"email": "ada@example.com", "options": {"should_create_user": False}}
        )
        assert result.account_id == "acc-1"

# --- verify_secret ---

@pytest.mark.asyncio
async def test_verify_secret_links_account_on_first_login(user):
    unlinked = user.model_copy(update={"account_id": None})
    client = _auth_client()
    client.auth.verify_otp.return_value = MagicMock(session=MagicMock(access_token="tok"), user=MagicMock(id="acc-9"))
    with patch(f"{AUTH}.crud.get_user_by_email", new_callable=AsyncMock, return_value=unlinked), \
         patch(f"{AUTH}.crud.link_account", new_callable=AsyncMock) as mock_link, \
         patch(f"{AUTH}.create_auth_client", new_callable=AsyncMock, return_value=client):
        mock_link.return_value = user.model_copy(update={"account_id": "acc-9"})

        session, linked = await auth.verify_secret("ada@example.com", "123456")

        client.auth.verify_otp.assert_called_once_with({"email": "ada@example.com", "token": "123456", "type": "email"})
        mock_link.assert_called_once_with("user-1", "acc-9")
        assert session.access_token == "tok"
        assert linked.account_id == "acc-9"

@pytest.mark.asyncio
async def test_verify_secret_already_linked(user):
    client = _auth_client()
    client.auth.verify_otp.return_value = MagicMock(session=MagicMock(), user=MagicMock(id="acc-1"))
    with patch(f"{AUTH}.crud.get_user_by_email", new_callable=AsyncMock, return_value=user), \
         patch(f"{AUTH}.crud.link_account", new_callable=AsyncMock) as mock_link, \
         patch(f"{AUTH}.create_auth_client", new_callable=AsyncMock, return_value=client):
        _, result = await auth.verify_secret("ada@example.com", "123456")
        mock_link.assert_not_called()
        assert result == user

@pytest.mark.asyncio
async def test_verify_secret_wrong_code(user):
    client = _auth_client()
    client.auth.verify_otp.side_effect = SimulatedAuthError("Token has expired or is invalid")
    with patch(f"{AUTH}.crud.get_user_by_email", new_callable=AsyncMock, return_value=user), \
         patch(f"{AUTH}.create_auth_client", new_callable=AsyncMock, return_value=client):
        with pytest.raises(auth.InvalidOtpError):
            await auth.verify_secret("ada@example.com", "000000")

@pytest.mark.asyncio
async def test_verify_secret_without_session(user):
    client = _auth_client()
    client.auth.verify_otp.return_value = MagicMock(session=None, user=None)
    with patch(f"{AUTH}.crud.get_user_by_email", new_callable=AsyncMock, return_value=user), \
         patch(f"{AUTH}.create_auth_client", new_callable=AsyncMock, return_value=client):
        with pytest.raises(auth.InvalidOtpError):
            await auth.verify_secret("ada@example.com", "000000")

# --- get_current_user ---

@pytest.mark.asyncio
async def test_get_current_user_without_token():
    with patch(f"{AUTH}.create_auth_client", new_callable=AsyncMock) as mock_client:
        assert await auth.get_current_user(None) is None
        mock_client.assert_not_called()

@pytest.mark.asyncio
async def test_get_current_user_resolves_document(user):
    client = _auth_client()
    client.auth.get_user.return_value = MagicMock(user=MagicMock(id="acc-1"))
    with patch(f"{AUTH}.create_auth_client", new_callable=AsyncMock, return_value=client), \
         patch(f"{AUTH}.crud.get_user_by_account_id", new_callable=AsyncMock, return_value=user) as mock_get:
        result = await auth.get_current_user("tok")
        client.auth.get_user.assert_called_once_with("tok")
        mock_get.assert_called_once_with("acc-1")
        assert result == user

@pytest.mark.asyncio
async def test_get_current_user_invalid_token():
    client = _auth_client()
    client.auth.get_user.side_effect = SimulatedAuthError("invalid JWT")
    with patch(f"{AUTH}.create_auth_client", new_callable=AsyncMock, return_value=client), \
         patch(f"{AUTH}.crud.get_user_by_account_id", new_callable=AsyncMock) as mock_get:
        assert await auth.get_current_user("bad") is None
        mock_get.assert_not_called()

# --- sign_out_user ---

@pytest.mark.asyncio
async def test_sign_out_user_revokes_token():
    client = _auth_client()
    with patch(f"{AUTH}.create_auth_client", new_callable=AsyncMock, return_value=client):
        await auth.sign_out_user("tok")
        client.auth.admin.sign_out.assert_called_once_with("tok")
