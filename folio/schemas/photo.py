"""Photo request/response schemas."""

from typing import Optional

from pydantic import BaseModel


class PhotoResponse(BaseModel):
    id: str
    owner_id: str
    url: str
    thumbnail_url: Optional[str]
    caption: Optional[str]
    sort_order: int
    is_visible: bool
    view_count: int
    click_count: int
    mime_type: Optional[str]
    size_bytes: Optional[int]
    width: Optional[int]
    height: Optional[int]
    created_at: str


class PhotoListResponse(BaseModel):
    photos: list[PhotoResponse]
    total_count: int


class PublicPhotoResponse(BaseModel):
    id: str
    url: str
    thumbnail_url: Optional[str]
    caption: Optional[str]
    width: Optional[int]
    height: Optional[int]


class PortfolioPhotosResponse(BaseModel):
    username: str
    display_name: Optional[str]
    photos: list[PublicPhotoResponse]


class UploadResult(BaseModel):
    filename: str
    status: str  # 'uploaded' | 'rejected' | 'failed'
    message: Optional[str] = None
    photo: Optional[PhotoResponse] = None


class BulkUploadResponse(BaseModel):
    results: list[UploadResult]
    uploaded_count: int
    failed_count: int


class PhotoOrderRequest(BaseModel):
    photo_ids: list[str]


class VisibilityChange(BaseModel):
    id: str
    is_visible: bool


class VisibilityBatchRequest(BaseModel):
    changes: list[VisibilityChange]


class PhotoUpdateRequest(BaseModel):
    caption: Optional[str] = None
    is_visible: Optional[bool] = None


class LibraryInsightsResponse(BaseModel):
    photos: list[PhotoResponse]
    total_views: int
    total_clicks: int
    visible_count: int
    hidden_count: int
