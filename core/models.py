# core/models.py
from pydantic import BaseModel, EmailStr, Field, computed_field, field_validator
from typing import List, Optional, Any, Literal
import datetime

# --- Core Types ---

FileType = Literal["document", "image", "video", "audio", "other"]

# Listing categories accepted by GET /files/
FileCategory = Literal["documents", "images", "media", "others"]

# --- Core Data Models ---

class FileTypeInfo(BaseModel):
    """Category and lower-cased extension derived from a file name."""
    type: FileType = "other"
    extension: str = ""

class UserDocument(BaseModel):
    """A row of the users table."""
    id: str
    full_name: str
    email: str
    avatar: Optional[str] = None
    account_id: Optional[str] = Field(None, description="Supabase auth user id, set on first OTP verification")
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True

class FileDocument(BaseModel):
    """A row of the files table: metadata for one object in the storage bucket."""
    id: str
    name: str
    url: str
    type: FileType = "other"
    extension: str = ""
    size: int = Field(0, ge=0, description="Size in bytes")
    owner: str = Field(..., description="users.id of the uploader")
    account_id: Optional[str] = None
    users: List[str] = Field(default_factory=list, description="Emails the file is shared with")
    bucket_file_id: str = Field(..., description="Object path inside the storage bucket")
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    @field_validator("users", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        return value or []

    # Display fields for clients; derived, never stored.
    @computed_field
    @property
    def download_url(self) -> str:
        from core import utils
        return utils.construct_download_url(self.bucket_file_id)

    @computed_field
    @property
    def icon(self) -> str:
        from core import utils
        return utils.get_file_icon(self.extension, self.type)

    @computed_field
    @property
    def formatted_created_at(self) -> str:
        from core import utils
        return utils.format_date_time(self.created_at)

    class Config:
        from_attributes = True

class FileList(BaseModel):
    total: int
    documents: List[FileDocument]

class FileQuery(BaseModel):
    """Filters and ordering for a files listing, independent of the PostgREST builder."""
    owner_id: str
    email: str
    types: List[FileType] = Field(default_factory=list)
    search_text: str = ""
    sort_column: str = "created_at"
    sort_descending: bool = True
    limit: Optional[int] = Field(None, gt=0)

# --- Usage ---

class CategoryUsage(BaseModel):
    size: int = 0
    latest_date: Optional[datetime.datetime] = None

class SpaceUsage(BaseModel):
    """Per-type storage totals for one owner."""
    image: CategoryUsage = Field(default_factory=CategoryUsage)
    document: CategoryUsage = Field(default_factory=CategoryUsage)
    video: CategoryUsage = Field(default_factory=CategoryUsage)
    audio: CategoryUsage = Field(default_factory=CategoryUsage)
    other: CategoryUsage = Field(default_factory=CategoryUsage)
    used: int = 0
    all: int

class UsageSummaryItem(BaseModel):
    title: str
    size: int
    latest_date: Optional[datetime.datetime] = None
    icon: str
    url: str

class DashboardUsage(BaseModel):
    space: SpaceUsage
    summary: List[UsageSummaryItem]
    used_percentage: float
    used_label: str
    total_label: str

class SortOption(BaseModel):
    label: str
    value: str

# --- Auth Request/Response Models ---

class SignUpRequest(BaseModel):
    full_name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr

class SignInRequest(BaseModel):
    email: EmailStr

class VerifyOtpRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=6, max_length=6, description="Six digit code from the email")

class AccountResponse(BaseModel):
    account_id: Optional[str] = None
    email: str

class SessionResponse(BaseModel):
    account_id: str
    user: UserDocument
    expires_at: Optional[int] = Field(None, description="Unix timestamp at which the access token expires")

# --- File Request Models ---

class RenameFileRequest(BaseModel):
    name: str = Field(..., min_length=1, description="New base name, without extension")
    extension: str = ""

class UpdateFileUsersRequest(BaseModel):
    emails: List[EmailStr] = Field(default_factory=list)

class DeleteFileResponse(BaseModel):
    status: str = "success"

# --- Common Envelope ---

class ApiResponse(BaseModel):
    """Standard response wrapper for the Drive API."""
    status: str = Field(description="'success' or 'error'")
    data: Any | None = Field(default=None, description="The primary data payload (depends on the endpoint)")
    message: Optional[str] = Field(default=None, description="Optional status message or error details")
