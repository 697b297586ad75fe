from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from beaware.db import Base

LOOKUP_TYPES = ("phone", "email", "url", "ip", "domain")

DEFAULT_TIMEOUT_SECONDS = 30


class ApiConfig(Base):
    """
    Third-party lookup provider, managed from the admin panel.

    url may carry {{token}} placeholders. parameter_mapping and headers
    are JSON object templates stored as text.
    """

    __tablename__ = "api_configs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    type = Column(String(20), nullable=False, index=True)
    url = Column(String(1000), nullable=False)
    api_key = Column(String(500), nullable=False)
    enabled = Column(Boolean, nullable=False, default=True)
    description = Column(Text)

    rate_limit = Column(Integer, nullable=False, default=60)
    timeout = Column(Integer, nullable=False, default=DEFAULT_TIMEOUT_SECONDS)

    parameter_mapping = Column(Text)
    headers = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )
