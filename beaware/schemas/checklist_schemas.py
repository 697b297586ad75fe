from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

ChecklistCategory = Literal[
    "identity_protection",
    "password_security",
    "account_security",
    "device_security",
    "network_security",
    "financial_security",
]
Priority = Literal["high", "medium", "low"]


class ChecklistItemCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    category: ChecklistCategory
    priority: Priority = "medium"
    recommendation_text: str = Field(..., min_length=1)
    help_url: Optional[str] = None
    tool_launch_url: Optional[str] = None
    youtube_video_url: Optional[str] = None
    estimated_time_minutes: Optional[int] = Field(default=None, ge=0)
    is_active: bool = True
    sort_order: int = 0


class ChecklistItemUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[ChecklistCategory] = None
    priority: Optional[Priority] = None
    recommendation_text: Optional[str] = None
    help_url: Optional[str] = None
    tool_launch_url: Optional[str] = None
    youtube_video_url: Optional[str] = None
    estimated_time_minutes: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class ProgressUpdateRequest(BaseModel):
    # clients send true/false, "true"/"false" or 1/0
    is_completed: Union[bool, int, str]
    notes: Optional[str] = Field(default=None, max_length=5000)
