"""Page domain model: published intranet content and its tags."""

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from intranet.infrastructure.database import Base, utcnow
from intranet.domain.models.enums import PageType


class Page(Base):
    __tablename__ = "pages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False, index=True)
    content = Column(Text, nullable=False, default="")
    page_type = Column(Enum(PageType, name="page_type"), nullable=False, index=True)
    published = Column(Boolean, nullable=False, default=True, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    author = relationship("User", back_populates="pages")
    tag_entries = relationship(
        "PageTag", back_populates="page", cascade="all, delete-orphan", order_by="PageTag.id"
    )
    comments = relationship("Comment", back_populates="page", cascade="all, delete-orphan")
    files = relationship("File", back_populates="page")

    @property
    def tags(self) -> list[str]:
        return [entry.tag for entry in self.tag_entries]

    @tags.setter
    def tags(self, values: list[str]) -> None:
        # Reuse surviving rows so the unique (page_id, tag) pair is never inserted twice in one flush
        existing = {entry.tag: entry for entry in self.tag_entries}
        self.tag_entries = [
            existing.get(tag) or PageTag(tag=tag) for tag in dict.fromkeys(values or [])
        ]

    def __repr__(self):
        return f"<Page {self.id} - {self.title}>"


class PageTag(Base):
    __tablename__ = "page_tags"
    __table_args__ = (UniqueConstraint("page_id", "tag", name="uq_page_tags_page_tag"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    page_id = Column(Integer, ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True)
    tag = Column(String(50), nullable=False, index=True)

    page = relationship("Page", back_populates="tag_entries")

    def __repr__(self):
        return f"<PageTag {self.page_id}:{self.tag}>"
