"""User domain model: maps to the 'users' table."""

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from intranet.infrastructure.database import Base
from intranet.domain.models.enums import UserRole


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(Enum(UserRole, name="user_role"), nullable=False, default=UserRole.MEMBER)
    is_active = Column(Boolean, nullable=False, default=True)
    email_verified_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    pages = relationship("Page", back_populates="author")
    notification_preference = relationship(
        "NotificationPreference", back_populates="user", uselist=False
    )

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
