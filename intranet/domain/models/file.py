"""File domain model: uploaded attachments, optionally bound to a page."""

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from intranet.infrastructure.database import Base, utcnow


class File(Base):
    __tablename__ = "files"

    id = Column(Integer, primary_key=True, autoincrement=True)
    filename = Column(String(500), nullable=False)
    original_name = Column(String(500), nullable=False)
    mime_type = Column(String(200), nullable=False, index=True)
    file_size = Column(BigInteger, nullable=False)
    file_path = Column(String(1000), nullable=False)
    uploaded_by_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    page_id = Column(Integer, ForeignKey("pages.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    uploaded_by = relationship("User")
    page = relationship("Page", back_populates="files")

    def __repr__(self):
        return f"<File {self.original_name} ({self.file_size} bytes)>"
