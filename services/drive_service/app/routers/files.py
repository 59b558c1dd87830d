# services/drive_service/app/routers/files.py
from fastapi import APIRouter, Body, Depends, File, HTTPException, Query, UploadFile, status
from typing import Optional
import logging

from core.config import settings
from core.models import ApiResponse, FileCategory, RenameFileRequest, UpdateFileUsersRequest, UserDocument
from core.utils import DEFAULT_SORT, SORT_TYPES, get_file_types_params
from .. import logic
from ..dependencies import require_current_user

logger = logging.getLogger("Drive_Core").getChild("DriveService").getChild("FilesRouter")

router = APIRouter()


def _raise_for_file_error(e: Exception, action: str, file_id: str):
    """Translates logic-layer errors into HTTP errors. Unknown errors become a generic 500."""
    if isinstance(e, logic.FileNotFoundInDrive):
        raise HTTPException(status_code=404, detail="File not found")
    if isinstance(e, logic.NotFileOwnerError):
        raise HTTPException(status_code=403, detail="Only the owner can change this file")
    if isinstance(e, logic.BucketFileMismatchError):
        raise HTTPException(status_code=400, detail=str(e))
    logger.error(f"[{file_id}] Failed to {action}: {e}", exc_info=True)
    raise HTTPException(status_code=500, detail=f"Failed to {action}")


@router.get("/sort-options", response_model=ApiResponse)
async def sort_options():
    return ApiResponse(status="success", data=SORT_TYPES)


@router.get("/", response_model=ApiResponse)
async def list_files(
    category: Optional[FileCategory] = Query(None, description="documents, images, media or others; all files when omitted"),
    search: str = Query("", description="Substring of the file name"),
    sort: str = Query(DEFAULT_SORT, description="<key>-<asc|desc>, e.g. name-asc"),
    limit: Optional[int] = Query(None, gt=0, le=1000),
    user: UserDocument = Depends(require_current_user),
):
    """Files the user owns or that were shared with them."""
    types = get_file_types_params(category) if category else []
    try:
        files = await logic.get_files(user, types=types, search_text=search, sort=sort, limit=limit)
    except Exception as e:
        logger.error(f"[{user.id}] Failed to get files: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get files")
    return ApiResponse(status="success", data=files)


@router.post("/", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def upload(file: UploadFile = File(...), user: UserDocument = Depends(require_current_user)):
    """Uploads a file into the user's drive."""
    file_name = file.filename or "file"
    # Read one byte past the limit so oversized uploads are detected without buffering them fully
    content = await file.read(settings.MAX_FILE_SIZE + 1)
    logger.info(f"[{user.id}] Received upload '{file_name}' ({len(content)} bytes read)")

    try:
        document = await logic.upload_file(user, file_name, content, file.content_type)
    except logic.FileTooLargeError:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size is {settings.MAX_FILE_SIZE} bytes"
        )
    except Exception as e:
        logger.error(f"[{user.id}] Failed to upload file '{file_name}': {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to upload file")
    finally:
        await file.close()
    return ApiResponse(status="success", data=document, message="File uploaded")


@router.patch("/{file_id}/name", response_model=ApiResponse)
async def rename(file_id: str, payload: RenameFileRequest = Body(...), user: UserDocument = Depends(require_current_user)):
    try:
        document = await logic.rename_file(user, file_id, payload.name, payload.extension)
    except Exception as e:
        _raise_for_file_error(e, "rename file", file_id)
    return ApiResponse(status="success", data=document, message="File renamed")


@router.put("/{file_id}/users", response_model=ApiResponse)
async def share(file_id: str, payload: UpdateFileUsersRequest = Body(...), user: UserDocument = Depends(require_current_user)):
    """Replaces the list of emails the file is shared with."""
    try:
        document = await logic.update_file_users(user, file_id, payload.emails)
    except Exception as e:
        _raise_for_file_error(e, "update file users", file_id)
    return ApiResponse(status="success", data=document, message="File sharing updated")


@router.delete("/{file_id}", response_model=ApiResponse)
async def delete(
    file_id: str,
    bucket_file_id: Optional[str] = Query(None),
    user: UserDocument = Depends(require_current_user),
):
    try:
        result = await logic.delete_file(user, file_id, bucket_file_id)
    except Exception as e:
        _raise_for_file_error(e, "delete file", file_id)
    return ApiResponse(status="success", data=result, message="File deleted")
