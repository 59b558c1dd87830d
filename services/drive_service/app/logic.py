# services/drive_service/app/logic.py
from typing import Iterable, List, Optional

from core import storage
from core.config import settings, logger as core_logger
from core.models import (
    DashboardUsage, DeleteFileResponse, FileDocument, FileList, FileQuery,
    SpaceUsage, UserDocument
)
from core.supabase_client import get_supabase_client
from core.utils import (
    DEFAULT_SORT, calculate_percentage, construct_file_url, convert_file_size,
    get_file_type, get_usage_summary, parse_sort
)
from . import crud

logger = core_logger.getChild("DriveService").getChild("Logic")


class FileTooLargeError(ValueError):
    def __init__(self, size: int, limit: int):
        super().__init__(f"File is {size} bytes, the limit is {limit} bytes")
        self.size = size
        self.limit = limit


class FileNotFoundInDrive(LookupError):
    """No file document with the requested id."""


class NotFileOwnerError(PermissionError):
    """Only the owner may rename, share or delete a file."""


class BucketFileMismatchError(ValueError):
    """The bucket_file_id given on delete is not the one stored for the file."""

# --- Upload ---

async def upload_file(owner: UserDocument, file_name: str, content: bytes, content_type: Optional[str] = None) -> FileDocument:
    """
    Uploads the bytes to the storage bucket, then writes the metadata document.
    If the metadata write fails the uploaded object is removed again and the
    original error is re-raised.
    """
    size = len(content)
    if size > settings.MAX_FILE_SIZE:
        logger.warning(f"[{owner.id}] Rejected upload '{file_name}': {size} bytes exceeds {settings.MAX_FILE_SIZE}.")
        raise FileTooLargeError(size, settings.MAX_FILE_SIZE)

    supabase = await get_supabase_client()
    bucket = settings.STORAGE_BUCKET
    bucket_file_id = storage.build_object_path(file_name)

    await storage.upload_blob(supabase, bucket, bucket_file_id, content, content_type)

    type_info = get_file_type(file_name)
    file_dict = {
        "type": type_info.type,
        "name": file_name,
        "url": construct_file_url(bucket_file_id),
        "extension": type_info.extension,
        "size": size,
        "owner": owner.id,
        "account_id": owner.account_id,
        "users": [],
        "bucket_file_id": bucket_file_id,
    }

    try:
        return await crud.insert_file(file_dict)
    except Exception as e:
        logger.error(f"[{bucket_file_id}] Failed to create file document, rolling back upload: {e}")
        try:
            await storage.remove_blob(supabase, bucket, bucket_file_id)
        except Exception as rollback_err:
            logger.error(f"[{bucket_file_id}] Rollback failed, object left orphaned: {rollback_err}")
        raise

# --- Listing ---

def build_file_query(user: UserDocument, types: Optional[Iterable[str]] = None, search_text: str = "",
                     sort: Optional[str] = DEFAULT_SORT, limit: Optional[int] = None) -> FileQuery:
    """Filters for files the user owns or that are shared with their email."""
    sort_column, descending = parse_sort(sort)
    return FileQuery(
        owner_id=user.id,
        email=user.email,
        types=list(types or []),
        search_text=(search_text or "").strip(),
        sort_column=sort_column,
        sort_descending=descending,
        limit=limit or None,
    )


async def get_files(user: UserDocument, types: Optional[Iterable[str]] = None, search_text: str = "",
                    sort: Optional[str] = DEFAULT_SORT, limit: Optional[int] = None) -> FileList:
    query = build_file_query(user, types, search_text, sort, limit)
    logger.info(f"[{user.id}] Listing files: types={query.types}, search='{query.search_text}', "
                f"sort={query.sort_column} {'desc' if query.sort_descending else 'asc'}, limit={query.limit}")
    return await crud.list_files(query)

# --- Owner-only mutations ---

async def _get_owned_file(user: UserDocument, file_id: str) -> FileDocument:
    file = await crud.get_file(file_id)
    if not file:
        raise FileNotFoundInDrive(file_id)
    if file.owner != user.id:
        logger.warning(f"[{file_id}] User {user.id} attempted to modify a file owned by {file.owner}.")
        raise NotFileOwnerError(file_id)
    return file


async def rename_file(user: UserDocument, file_id: str, name: str, extension: str) -> FileDocument:
    """Renames a file to "<name>.<extension>"; the stored type is left as is."""
    await _get_owned_file(user, file_id)
    name = name.strip()
    extension = extension.strip().lstrip(".")
    new_name = f"{name}.{extension}" if extension else name

    updated = await crud.update_file(file_id, {"name": new_name})
    if not updated:
        raise FileNotFoundInDrive(file_id)
    logger.info(f"[{file_id}] Renamed to '{new_name}'.")
    return updated


def normalize_emails(emails: Iterable[str]) -> List[str]:
    """Trims and lower-cases emails, dropping blanks and duplicates while keeping order."""
    seen = []
    for email in emails:
        email = (email or "").strip().lower()
        if email and email not in seen:
            seen.append(email)
    return seen


async def update_file_users(user: UserDocument, file_id: str, emails: Iterable[str]) -> FileDocument:
    """Replaces the list of emails a file is shared with."""
    await _get_owned_file(user, file_id)
    shared_with = normalize_emails(emails)

    updated = await crud.update_file(file_id, {"users": shared_with})
    if not updated:
        raise FileNotFoundInDrive(file_id)
    logger.info(f"[{file_id}] Shared with {len(shared_with)} user(s).")
    return updated


async def delete_file(user: UserDocument, file_id: str, bucket_file_id: Optional[str] = None) -> DeleteFileResponse:
    """Deletes the metadata document, then its object in the bucket."""
    file = await _get_owned_file(user, file_id)
    if bucket_file_id and bucket_file_id != file.bucket_file_id:
        raise BucketFileMismatchError("bucket_file_id does not belong to this file")

    deleted = await crud.delete_file_row(file_id)
    if deleted:
        supabase = await get_supabase_client()
        await storage.remove_blob(supabase, settings.STORAGE_BUCKET, file.bucket_file_id)
    return DeleteFileResponse(status="success")

# --- Usage ---

def aggregate_space_used(files: Iterable[FileDocument], quota: Optional[int] = None) -> SpaceUsage:
    """Sums sizes per file type and tracks the most recent update of each type."""
    space = SpaceUsage(all=quota or settings.STORAGE_QUOTA_BYTES)
    for file in files:
        category = getattr(space, file.type)
        category.size += file.size
        space.used += file.size

        if file.updated_at and (category.latest_date is None or file.updated_at > category.latest_date):
            category.latest_date = file.updated_at
    return space


async def get_total_space_used(user: UserDocument) -> SpaceUsage:
    """Storage used by the files the user owns. Files shared with them do not count."""
    files = await crud.list_owned_files(user.id)
    space = aggregate_space_used(files)
    logger.info(f"[{user.id}] Space used: {space.used} of {space.all} bytes across {len(files)} files.")
    return space


async def get_dashboard_usage(user: UserDocument) -> DashboardUsage:
    space = await get_total_space_used(user)
    return DashboardUsage(
        space=space,
        summary=get_usage_summary(space),
        used_percentage=calculate_percentage(space.used, space.all),
        used_label=convert_file_size(space.used),
        total_label=convert_file_size(space.all),
    )
