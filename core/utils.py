# core/utils.py
"""
Core Utility Functions.

Pure helpers shared by the Drive service: human-readable sizes, file type
classification from extensions, quota percentages, sort key parsing, public
object URLs and the dashboard usage summary. None of these touch Supabase.
"""
import datetime
from typing import List, Optional, Tuple, Union
from urllib.parse import quote

from core.config import settings
from core.models import FileTypeInfo, SortOption, SpaceUsage, UsageSummaryItem

KB = 1024
MB = 1024 * KB
GB = 1024 * MB

DOCUMENT_EXTENSIONS = frozenset([
    "pdf", "doc", "docx", "txt", "xls", "xlsx", "csv", "rtf", "ods", "ppt",
    "odp", "md", "html", "htm", "epub", "pages", "fig", "psd", "ai", "indd",
    "xd", "sketch", "afdesign", "afphoto",
])
IMAGE_EXTENSIONS = frozenset(["jpg", "jpeg", "png", "gif", "bmp", "svg", "webp"])
VIDEO_EXTENSIONS = frozenset(["mp4", "avi", "mov", "mkv", "webm"])
AUDIO_EXTENSIONS = frozenset(["mp3", "wav", "ogg", "flac"])

ICONS_DIR = "/assets/icons"

_EXTENSION_ICONS = {
    "pdf": "file-pdf.svg",
    "doc": "file-doc.svg",
    "docx": "file-docx.svg",
    "csv": "file-csv.svg",
    "txt": "file-txt.svg",
    "xls": "file-document.svg",
    "xlsx": "file-document.svg",
    "svg": "file-image.svg",
}
for _ext in ("mkv", "mov", "avi", "wmv", "mp4", "flv", "webm", "m4v", "3gp"):
    _EXTENSION_ICONS[_ext] = "file-video.svg"
for _ext in ("mp3", "mpeg", "wav", "aac", "flac", "ogg", "wma", "m4a", "aiff", "alac"):
    _EXTENSION_ICONS[_ext] = "file-audio.svg"

_TYPE_ICONS = {
    "image": "file-image.svg",
    "document": "file-document.svg",
    "video": "file-video.svg",
    "audio": "file-audio.svg",
}

# Sort keys accepted from clients, mapped to files table columns
SORT_COLUMNS = {
    "$createdAt": "created_at",
    "createdAt": "created_at",
    "created_at": "created_at",
    "$updatedAt": "updated_at",
    "updatedAt": "updated_at",
    "updated_at": "updated_at",
    "name": "name",
    "size": "size",
}
DEFAULT_SORT = "$createdAt-desc"

SORT_TYPES: List[SortOption] = [
    SortOption(label="Date created (newest)", value="$createdAt-desc"),
    SortOption(label="Created Date (oldest)", value="$createdAt-asc"),
    SortOption(label="Name (A-Z)", value="name-asc"),
    SortOption(label="Name (Z-A)", value="name-desc"),
    SortOption(label="Size (Highest)", value="size-desc"),
    SortOption(label="Size (Lowest)", value="size-asc"),
]

_CATEGORY_TYPES = {
    "documents": ["document"],
    "images": ["image"],
    "media": ["video", "audio"],
    "others": ["other"],
}

_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def convert_file_size(size_in_bytes: int, digits: Optional[int] = None) -> str:
    """Converts a byte count to a human-readable string, e.g. "2.3 MB"."""
    digits = digits or 1
    if size_in_bytes < KB:
        return f"{size_in_bytes} Bytes"
    if size_in_bytes < MB:
        return f"{size_in_bytes / KB:.{digits}f} KB"
    if size_in_bytes < GB:
        return f"{size_in_bytes / MB:.{digits}f} MB"
    return f"{size_in_bytes / GB:.{digits}f} GB"


def calculate_percentage(size_in_bytes: int, total_in_bytes: Optional[int] = None) -> float:
    """Share of the quota used, in percent with two decimals, capped to [0, 100]."""
    total = total_in_bytes or settings.STORAGE_QUOTA_BYTES
    percentage = round(size_in_bytes / total * 100, 2)
    return min(max(percentage, 0.0), 100.0)


def get_file_type(file_name: str) -> FileTypeInfo:
    """Classifies a file by the extension after its last dot."""
    if not file_name or "." not in file_name:
        return FileTypeInfo(type="other", extension="")

    extension = file_name.rsplit(".", 1)[-1].lower()
    if not extension:
        return FileTypeInfo(type="other", extension="")

    if extension in DOCUMENT_EXTENSIONS:
        return FileTypeInfo(type="document", extension=extension)
    if extension in IMAGE_EXTENSIONS:
        return FileTypeInfo(type="image", extension=extension)
    if extension in VIDEO_EXTENSIONS:
        return FileTypeInfo(type="video", extension=extension)
    if extension in AUDIO_EXTENSIONS:
        return FileTypeInfo(type="audio", extension=extension)
    return FileTypeInfo(type="other", extension=extension)


def get_file_icon(extension: Optional[str], file_type: str) -> str:
    """Icon path for an extension, falling back to one per file type."""
    icon = _EXTENSION_ICONS.get((extension or "").lower())
    if icon is None:
        icon = _TYPE_ICONS.get(file_type, "file-other.svg")
    return f"{ICONS_DIR}/{icon}"


def format_date_time(value: Union[str, datetime.datetime, None]) -> str:
    """Formats a timestamp as e.g. "3:45pm, 20 Jun". Returns "—" for empty or unparsable input."""
    if not value:
        return "—"
    if isinstance(value, str):
        try:
            value = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return "—"

    hours = value.hour % 12 or 12
    period = "pm" if value.hour >= 12 else "am"
    return f"{hours}:{value.minute:02d}{period}, {value.day} {_MONTHS[value.month - 1]}"


def parse_sort(sort: Optional[str]) -> Tuple[str, bool]:
    """
    Parses a "<key>-<asc|desc>" sort value into (column, descending).
    Unrecognised keys or directions fall back to newest first.
    """
    if not sort or "-" not in sort:
        return "created_at", True

    key, _, direction = sort.rpartition("-")
    column = SORT_COLUMNS.get(key)
    if column is None or direction not in ("asc", "desc"):
        return "created_at", True
    return column, direction == "desc"


def get_file_types_params(category: Optional[str]) -> List[str]:
    """Maps a listing category (e.g. "media") to the file types it contains."""
    return list(_CATEGORY_TYPES.get(category or "", ["document"]))


def construct_file_url(bucket_file_id: str) -> str:
    """Public URL for viewing an object stored in the configured bucket."""
    base_url = (settings.SUPABASE_URL or "").rstrip("/")
    return f"{base_url}/storage/v1/object/public/{settings.STORAGE_BUCKET}/{quote(bucket_file_id)}"


def construct_download_url(bucket_file_id: str) -> str:
    """Public URL that makes the browser download the object instead of displaying it."""
    return f"{construct_file_url(bucket_file_id)}?download="


def _latest(*dates: Optional[datetime.datetime]) -> Optional[datetime.datetime]:
    present = [d for d in dates if d is not None]
    return max(present) if present else None


def get_usage_summary(space: SpaceUsage) -> List[UsageSummaryItem]:
    """Dashboard cards: one entry per listing category."""
    return [
        UsageSummaryItem(
            title="Documents",
            size=space.document.size,
            latest_date=space.document.latest_date,
            icon=f"{ICONS_DIR}/file-document-light.svg",
            url="/documents",
        ),
        UsageSummaryItem(
            title="Images",
            size=space.image.size,
            latest_date=space.image.latest_date,
            icon=f"{ICONS_DIR}/file-image-light.svg",
            url="/images",
        ),
        UsageSummaryItem(
            title="Media",
            size=space.video.size + space.audio.size,
            latest_date=_latest(space.video.latest_date, space.audio.latest_date),
            icon=f"{ICONS_DIR}/file-video-light.svg",
            url="/media",
        ),
        UsageSummaryItem(
            title="Others",
            size=space.other.size,
            latest_date=space.other.latest_date,
            icon=f"{ICONS_DIR}/file-other-light.svg",
            url="/others",
        ),
    ]
