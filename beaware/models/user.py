from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from beaware.db import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)

    email = Column(String(255), unique=True, nullable=False)
    display_name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_USER)

    password_hash = Column(String, nullable=False)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now()
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
