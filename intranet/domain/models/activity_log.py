"""Activity log: append-only audit trail of user actions."""

from sqlalchemy import JSON, Column, DateTime, Enum, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from intranet.infrastructure.database import Base, utcnow
from intranet.domain.models.enums import ActivityAction, ResourceType


class ActivityLog(Base):
    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("ix_activity_logs_user_created", "user_id", "created_at"),
        Index("ix_activity_logs_action_created", "action", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    action = Column(Enum(ActivityAction, name="activity_action"), nullable=False, index=True)
    resource_type = Column(Enum(ResourceType, name="resource_type"), nullable=True, index=True)
    resource_id = Column(String(64), nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    user = relationship("User")

    def __repr__(self):
        return f"<ActivityLog {self.action} by {self.user_id}>"
