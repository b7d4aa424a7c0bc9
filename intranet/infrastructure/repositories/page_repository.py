"""
SQLAlchemy Implementation of Page Repository.
"""

from typing import Any, Dict, List, Optional, Set

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, selectinload

from intranet.domain.models.comment import Comment
from intranet.domain.models.file import File
from intranet.domain.models.page import Page, PageTag
from intranet.domain.models.user import User
from intranet.domain.repositories.page_repository import PageRepository
from intranet.domain.schemas.page import PageListParams, SearchParams
from intranet.infrastructure.repositories.base_repository import SQLAlchemyRepository

SORT_COLUMNS = {
    "date": Page.created_at,
    "createdAt": Page.created_at,
    "title": Page.title,
    "pageType": Page.page_type,
    "author": Page.author_id,
}


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _matches(term: str):
    """Case-insensitive title/content substring, or exact tag."""
    pattern = _like_pattern(term)
    return or_(
        Page.title.ilike(pattern, escape="\\"),
        Page.content.ilike(pattern, escape="\\"),
        Page.tag_entries.any(PageTag.tag == term),
    )


class SQLAlchemyPageRepository(SQLAlchemyRepository[Page], PageRepository):
    """Page repository implementation using SQLAlchemy."""

    def _published(self) -> Query:
        return (
            self.db.query(Page)
            .options(selectinload(Page.author), selectinload(Page.tag_entries))
            .filter(Page.published.is_(True))
        )

    def _apply_filters(self, query: Query, params: PageListParams) -> Query:
        if params.page_type:
            query = query.filter(Page.page_type == params.page_type)
        if params.tags:
            query = query.filter(Page.tag_entries.any(PageTag.tag.in_(params.tags)))
        if params.author_id:
            query = query.filter(Page.author_id == params.author_id)
        return query

    def _paginate(self, query: Query, params: PageListParams, column, descending: bool) -> Dict[str, Any]:
        total = query.count()
        order = [column.desc(), Page.id.desc()] if descending else [column.asc(), Page.id.asc()]
        items = (
            query.order_by(*order)
            .offset((params.page - 1) * params.limit)
            .limit(params.limit)
            .all()
        )
        return {"items": items, "total": total}

    def get_list(self, params: PageListParams) -> Dict[str, Any]:
        query = self._apply_filters(self._published(), params)
        if params.query:
            query = query.filter(_matches(params.query))

        column = SORT_COLUMNS.get(params.sort_by, Page.created_at)
        return self._paginate(query, params, column, params.sort_order == "desc")

    def search(self, params: SearchParams) -> Dict[str, Any]:
        query = self._apply_filters(self._published(), params)
        if params.query:
            terms = params.query.split()
            query = query.filter(or_(_matches(params.query), *[_matches(term) for term in terms]))

        # Relevance has no scoring yet; newest first stands in for it
        if params.sort_by == "title":
            return self._paginate(query, params, Page.title, params.sort_order == "desc")
        if params.sort_by == "date":
            return self._paginate(query, params, Page.created_at, params.sort_order == "desc")
        return self._paginate(query, params, Page.created_at, True)

    def get_unread(self, read_ids: Set[int]) -> List[Page]:
        query = self._published()
        if read_ids:
            query = query.filter(Page.id.notin_(read_ids))
        return query.order_by(Page.created_at.desc(), Page.id.desc()).all()

    def get_detail(self, page_id: int) -> Optional[Page]:
        return (
            self.db.query(Page)
            .options(
                selectinload(Page.author),
                selectinload(Page.tag_entries),
                selectinload(Page.files),
                selectinload(Page.comments).selectinload(Comment.user),
            )
            .filter(Page.id == page_id)
            .first()
        )

    def count_related(self, page_ids: List[int]) -> Dict[int, Dict[str, int]]:
        if not page_ids:
            return {}
        comments = dict(
            self.db.query(Comment.page_id, func.count(Comment.id))
            .filter(Comment.page_id.in_(page_ids))
            .group_by(Comment.page_id)
            .all()
        )
        files = dict(
            self.db.query(File.page_id, func.count(File.id))
            .filter(File.page_id.in_(page_ids))
            .group_by(File.page_id)
            .all()
        )
        return {
            page_id: {"comment_count": comments.get(page_id, 0), "file_count": files.get(page_id, 0)}
            for page_id in page_ids
        }

    def get_tag_counts(self) -> List[Dict[str, Any]]:
        count = func.count(PageTag.id)
        results = (
            self.db.query(PageTag.tag, count.label("count"))
            .join(Page, Page.id == PageTag.page_id)
            .filter(Page.published.is_(True))
            .group_by(PageTag.tag)
            .order_by(count.desc(), PageTag.tag.asc())
            .all()
        )
        return [{"tag": r.tag, "count": r.count} for r in results]

    def get_global_stats(self) -> Dict[str, Any]:
        published = self.db.query(func.count(Page.id)).filter(Page.published.is_(True))
        by_type = (
            self.db.query(Page.page_type, func.count(Page.id))
            .filter(Page.published.is_(True))
            .group_by(Page.page_type)
            .all()
        )
        return {
            "total_pages": published.scalar() or 0,
            "total_users": self.db.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar() or 0,
            "total_files": self.db.query(func.count(File.id)).scalar() or 0,
            "total_comments": self.db.query(func.count(Comment.id)).scalar() or 0,
            "pages_by_type": {page_type.value: count for page_type, count in by_type},
        }
