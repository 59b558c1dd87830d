# core/storage.py
"""
Core Storage Utilities.

Thin async wrappers around the Supabase Storage bucket API. The SDK is
synchronous, so every call runs in a worker thread. Errors are logged and
re-raised for the caller to translate.
"""
import asyncio
import re
import uuid

from core.config import logger as core_logger

logger = core_logger.getChild("Storage")

DEFAULT_CONTENT_TYPE = "application/octet-stream"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def build_object_path(file_name: str) -> str:
    """Unique object key for an upload: "<uuid hex>/<sanitised file name>"."""
    safe_name = _UNSAFE_CHARS.sub("_", file_name).strip("._") or "file"
    return f"{uuid.uuid4().hex}/{safe_name[:200]}"


async def upload_blob(client, bucket: str, path: str, content: bytes, content_type: str | None = None):
    """Uploads raw bytes to `bucket` under `path`. Never overwrites an existing object."""
    logger.info(f"Uploading {len(content)} bytes to Storage: Bucket='{bucket}', Object='{path}'")

    def do_upload():
        return client.storage.from_(bucket).upload(
            path=path,
            file=content,
            file_options={"content-type": content_type or DEFAULT_CONTENT_TYPE, "upsert": "false"}
        )

    try:
        response = await asyncio.to_thread(do_upload)
    except Exception as e:
        logger.error(f"Storage upload failed for '{path}': {e}", exc_info=True)
        raise
    logger.debug(f"Storage upload finished for '{path}'. Response type: {type(response)}")
    return response


async def remove_blob(client, bucket: str, path: str):
    """Deletes one object from `bucket`."""
    logger.info(f"Removing object from Storage: Bucket='{bucket}', Object='{path}'")
    try:
        return await asyncio.to_thread(client.storage.from_(bucket).remove, [path])
    except Exception as e:
        logger.error(f"Storage removal failed for '{path}': {e}", exc_info=True)
        raise
