from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from beaware.db import Base

CHECKLIST_CATEGORIES = (
    "identity_protection",
    "password_security",
    "account_security",
    "device_security",
    "network_security",
    "financial_security",
)

PRIORITIES = ("high", "medium", "low")


class SecurityChecklistItem(Base):
    __tablename__ = "security_checklist_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(50), nullable=False)
    priority = Column(String(10), nullable=False, default="medium")
    recommendation_text = Column(Text, nullable=False)

    help_url = Column(String(500))
    tool_launch_url = Column(String(500))
    youtube_video_url = Column(String(500))
    estimated_time_minutes = Column(Integer)

    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )


class UserSecurityProgress(Base):
    __tablename__ = "user_security_progress"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "checklist_item_id",
            name="uq_user_security_progress_user_item",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    checklist_item_id = Column(
        Integer,
        ForeignKey("security_checklist_items.id"),
        nullable=False,
    )
    is_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True))
    notes = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )
