"""Search and global statistics routes."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from intranet.application.services import activity_logger, page_service
from intranet.core.exceptions import validate_model
from intranet.domain.models.user import User
from intranet.domain.schemas.page import SearchParams
from intranet.interfaces.api.deps import get_current_user
from intranet.interfaces.api.pages import split_tags
from intranet.interfaces.api.responses import ok
from intranet.interfaces.deps import get_db

router = APIRouter(prefix="/api", tags=["Search"])


@router.get("/search")
def search_pages(
    request: Request,
    q: Optional[str] = Query(None),
    query: Optional[str] = Query(None),
    page_type: Optional[str] = Query(None, alias="pageType"),
    tags: Optional[List[str]] = Query(None),
    author_id: Optional[int] = Query(None, alias="authorId"),
    page: int = Query(1),
    limit: int = Query(10),
    sort_by: str = Query("relevance", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    params = validate_model(
        SearchParams,
        {
            "query": q if q is not None else query,
            "page_type": page_type,
            "tags": split_tags(tags),
            "author_id": author_id,
            "page": page,
            "limit": limit,
            "sort_by": sort_by,
            "sort_order": sort_order,
        },
    )
    result = page_service.search(db, params)
    activity_logger.log_search(
        db, user.id, params.query, result["pagination"]["total"], request,
        page_type=params.page_type.value if params.page_type else None, tags=params.tags,
    )
    return ok(result["pages"], pagination=result["pagination"])


@router.get("/stats")
def global_stats(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return ok(page_service.get_global_stats(db))
