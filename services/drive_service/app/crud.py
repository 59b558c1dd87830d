# services/drive_service/app/crud.py
import asyncio
import re
from core.config import logger as core_logger
from core.supabase_client import get_supabase_client, USERS_TABLE, FILES_TABLE
from core.models import UserDocument, FileDocument, FileList, FileQuery
from typing import Optional, List, Dict, Any
from supabase import PostgrestAPIError

logger = core_logger.getChild("DriveService").getChild("CRUD")


def _log_api_error(prefix: str, action: str, e: PostgrestAPIError):
    logger.error(f"{prefix} Supabase error {action}: {e.message} (Code: {e.code}, Details: {e.details})", exc_info=False)


def apply_file_query(builder, query: FileQuery):
    """Applies filters, ordering and limit from a FileQuery to a PostgREST select builder."""
    # Owned by the user, or shared with their email
    builder = builder.or_(f'owner.eq.{query.owner_id},users.cs.{{"{query.email}"}}')
    if query.types:
        builder = builder.in_("type", list(query.types))
    if query.search_text:
        # Case-insensitive regex match on the literal text; like patterns would treat * % _ as wildcards
        builder = builder.filter("name", "imatch", re.escape(query.search_text))
    builder = builder.order(query.sort_column, desc=query.sort_descending)
    if query.limit:
        builder = builder.limit(query.limit)
    return builder

# --- Users ---

async def _get_user_by(column: str, value: str) -> Optional[UserDocument]:
    job_prefix = f"[{column}={value}]"
    try:
        supabase = await get_supabase_client()

        def db_call():
            return supabase.table(USERS_TABLE)\
                   .select("*")\
                   .eq(column, value)\
                   .limit(1)\
                   .execute()

        response = await asyncio.to_thread(db_call)
    except PostgrestAPIError as e:
        _log_api_error(job_prefix, "retrieving user", e)
        raise

    if response.data:
        return UserDocument(**response.data[0])
    logger.debug(f"{job_prefix} No user document found.")
    return None


async def get_user_by_email(email: str) -> Optional[UserDocument]:
    """Fetches the user document for an email, used to check existence before sign-up/sign-in."""
    return await _get_user_by("email", email.lower())


async def get_user_by_account_id(account_id: str) -> Optional[UserDocument]:
    return await _get_user_by("account_id", account_id)


async def create_user(full_name: str, email: str, avatar: str, account_id: Optional[str] = None) -> UserDocument:
    job_prefix = f"[{email}]"
    user_dict = {"full_name": full_name, "email": email.lower(), "avatar": avatar, "account_id": account_id}
    try:
        supabase = await get_supabase_client()

        def db_call():
            return supabase.table(USERS_TABLE).insert(user_dict).execute()

        response = await asyncio.to_thread(db_call)
    except PostgrestAPIError as e:
        _log_api_error(job_prefix, "creating user", e)
        raise

    logger.info(f"{job_prefix} Created user document.")
    return UserDocument(**response.data[0])


async def link_account(user_id: str, account_id: str) -> UserDocument:
    """Stores the auth account id on a user document after its first successful OTP verification."""
    job_prefix = f"[{user_id}]"
    try:
        supabase = await get_supabase_client()

        def db_call():
            return supabase.table(USERS_TABLE)\
                   .update({"account_id": account_id})\
                   .eq("id", user_id)\
                   .execute()

        response = await asyncio.to_thread(db_call)
    except PostgrestAPIError as e:
        _log_api_error(job_prefix, "linking account", e)
        raise

    logger.info(f"{job_prefix} Linked auth account {account_id}.")
    return UserDocument(**response.data[0])

# --- Files ---

async def insert_file(file_dict: Dict[str, Any]) -> FileDocument:
    job_prefix = f"[{file_dict.get('bucket_file_id')}]"
    try:
        supabase = await get_supabase_client()

        def db_call():
            return supabase.table(FILES_TABLE).insert(file_dict).execute()

        response = await asyncio.to_thread(db_call)
    except PostgrestAPIError as e:
        _log_api_error(job_prefix, "creating file document", e)
        raise

    if not response.data:
        raise RuntimeError("Insert returned no file document")
    logger.info(f"{job_prefix} Created file document '{response.data[0].get('id')}'.")
    return FileDocument(**response.data[0])


async def get_file(file_id: str) -> Optional[FileDocument]:
    job_prefix = f"[{file_id}]"
    try:
        supabase = await get_supabase_client()

        def db_call():
            return supabase.table(FILES_TABLE)\
                   .select("*")\
                   .eq("id", file_id)\
                   .limit(1)\
                   .execute()

        response = await asyncio.to_thread(db_call)
    except PostgrestAPIError as e:
        _log_api_error(job_prefix, "retrieving file", e)
        raise

    if response.data:
        return FileDocument(**response.data[0])
    logger.info(f"{job_prefix} No file document found.")
    return None


async def list_files(query: FileQuery) -> FileList:
    """Lists files owned by or shared with the user described by `query`."""
    job_prefix = f"[{query.owner_id}]"
    try:
        supabase = await get_supabase_client()

        def db_call():
            builder = supabase.table(FILES_TABLE).select("*", count="exact")
            return apply_file_query(builder, query).execute()

        response = await asyncio.to_thread(db_call)
    except PostgrestAPIError as e:
        _log_api_error(job_prefix, "listing files", e)
        raise

    documents = [FileDocument(**item) for item in (response.data or [])]
    total = response.count if response.count is not None else len(documents)
    logger.debug(f"{job_prefix} Listed {len(documents)} of {total} files.")
    return FileList(total=total, documents=documents)


async def list_owned_files(owner_id: str) -> List[FileDocument]:
    job_prefix = f"[{owner_id}]"
    try:
        supabase = await get_supabase_client()

        def db_call():
            return supabase.table(FILES_TABLE)\
                   .select("*")\
                   .eq("owner", owner_id)\
                   .execute()

        response = await asyncio.to_thread(db_call)
    except PostgrestAPIError as e:
        _log_api_error(job_prefix, "listing owned files", e)
        raise

    return [FileDocument(**item) for item in (response.data or [])]


async def update_file(file_id: str, changes: Dict[str, Any]) -> Optional[FileDocument]:
    job_prefix = f"[{file_id}]"
    logger.debug(f"{job_prefix} Updating file fields: {sorted(changes)}")
    try:
        supabase = await get_supabase_client()

        def db_call():
            return supabase.table(FILES_TABLE)\
                   .update(changes)\
                   .eq("id", file_id)\
                   .execute()

        response = await asyncio.to_thread(db_call)
    except PostgrestAPIError as e:
        _log_api_error(job_prefix, "updating file", e)
        raise

    if not response.data:
        logger.warning(f"{job_prefix} Update matched no file document.")
        return None
    return FileDocument(**response.data[0])


async def delete_file_row(file_id: str) -> bool:
    """Deletes a file document. Returns True if a row was removed."""
    job_prefix = f"[{file_id}]"
    try:
        supabase = await get_supabase_client()

        def db_call():
            return supabase.table(FILES_TABLE)\
                   .delete()\
                   .eq("id", file_id)\
                   .execute()

        response = await asyncio.to_thread(db_call)
    except PostgrestAPIError as e:
        _log_api_error(job_prefix, "deleting file", e)
        raise

    deleted = bool(response.data)
    logger.info(f"{job_prefix} Delete request sent (removed={deleted}).")
    return deleted
