"""Photo engagement request/response schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PhotoEventRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    photo_id: str = Field(default="")
    event_type: str = Field(default="")


class PhotoEventResponse(BaseModel):
    success: bool
    tracked: bool
    reason: Optional[str] = None


class DailyStats(BaseModel):
    views: int
    clicks: int


class PhotoStatsResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    photo_id: str
    total_views: int
    total_clicks: int
    unique_viewers: int
    last_viewed_at: Optional[str]
    daily_stats: dict[str, DailyStats]
